"""Directory exclusion patterns.

Patterns are matched against a single path component. A pattern equal to the
name always matches; patterns containing ``*`` or ``?`` are treated as
anchored globs. Anything else only matches exactly.
"""

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional, Pattern, Sequence, Union

logger = logging.getLogger(__name__)


def is_glob(pattern: str) -> bool:
    return "*" in pattern or "?" in pattern


@lru_cache(maxsize=512)
def _compile(pattern: str) -> Optional[Pattern[str]]:
    # Escape everything, then turn the escaped wildcards back into regex
    escaped = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    try:
        return re.compile(escaped, re.DOTALL)
    except re.error as e:
        logger.debug(f"Ignoring exclude pattern {pattern!r}: {e}")
        return None


def is_excluded(name: str, patterns: Iterable[str]) -> bool:
    """Check whether a directory name matches any exclude pattern."""
    for pattern in patterns:
        if name == pattern:
            return True
        if is_glob(pattern):
            regex = _compile(pattern)
            if regex is not None and regex.fullmatch(name):
                return True
    return False


class ExclusionMatcher:
    """Exclude patterns bound to one scan."""

    def __init__(self, patterns: Sequence[str]):
        self.patterns = tuple(patterns)

    def matches(self, name: str) -> bool:
        return is_excluded(name, self.patterns)

    def path_is_excluded(self, path: Union[str, Path]) -> bool:
        """True if any component of ``path`` is excluded."""
        path = Path(path)
        return any(self.matches(part) for part in path.parts if part != path.anchor)
