"""Directory tree walking and project detection for projcat."""

import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Set, Union

from .exclusion import ExclusionMatcher
from .indicators import DEFAULT_CATALOG, IndicatorCatalog
from .models import (
    Indicator,
    Project,
    ScanConfig,
    ScanError,
    ScanErrorKind,
    ScanPathError,
    ScanResult,
)

logger = logging.getLogger(__name__)


def validate_scan_root(root: Union[str, Path]) -> Path:
    """Return ``root`` as an absolute path, or raise ScanPathError."""
    path = Path(root).expanduser()
    if not path.exists():
        raise ScanPathError(f"Path does not exist: {path}")
    if not path.is_dir():
        raise ScanPathError(f"Path is not a directory: {path}")
    return path.absolute()


class TreeWalker:
    """Walks one root and reports the projects found under it."""

    def __init__(self, catalog: Optional[IndicatorCatalog] = None):
        self.catalog = catalog or DEFAULT_CATALOG

    def detect_indicators(self, directory: Path, config: ScanConfig) -> List[Indicator]:
        """Return the configured indicators present as children of ``directory``."""
        present = [
            name for name in config.project_indicators
            if os.path.exists(os.path.join(directory, name))
        ]
        return self.catalog.resolve_all(present)

    def _make_project(self, path: Path, indicators: List[Indicator]) -> Project:
        return Project(
            path=path,
            project_type=self.catalog.classify(indicators),
            indicators=indicators,
            last_scanned=datetime.now(timezone.utc),
        )

    def _should_skip(self, name: str, matcher: ExclusionMatcher, config: ScanConfig) -> bool:
        """Check whether a child directory is pruned from the walk."""
        if matcher.matches(name):
            return True
        # Hidden directories are skipped unless they are indicators themselves (.git)
        return name.startswith(".") and name not in config.project_indicators

    def scan(self, root: Union[str, Path], config: Optional[ScanConfig] = None) -> ScanResult:
        """Scan a directory tree for projects.

        Raises ScanPathError if ``root`` is missing or not a directory. Any
        error met while listing a subdirectory is recorded in the result and
        the walk carries on.
        """
        root_path = validate_scan_root(root)
        config = (config or ScanConfig.default()).validate()
        matcher = ExclusionMatcher(config.exclude_patterns)

        start_time = time.perf_counter()
        result = ScanResult(root_path=root_path)

        # The root itself, the walk below only inspects depth >= 1
        result.dirs_scanned += 1
        root_indicators = self.detect_indicators(root_path, config)
        if root_indicators and not matcher.path_is_excluded(root_path):
            result.projects.append(self._make_project(root_path, root_indicators))

        def on_error(error: OSError):
            path = Path(error.filename) if error.filename else root_path
            scan_error = ScanError(
                path=path,
                kind=ScanErrorKind.from_os_error(error),
                message=error.strerror or str(error),
            )
            logger.warning(f"Error while scanning: {scan_error}")
            result.errors.append(scan_error)

        visited: Set[str] = set()

        for dirpath, dirnames, _filenames in os.walk(
            root_path, onerror=on_error, followlinks=config.follow_symlinks
        ):
            current = Path(dirpath)
            depth = len(current.relative_to(root_path).parts)

            if config.follow_symlinks:
                real_path = os.path.realpath(dirpath)
                if real_path in visited:
                    logger.debug(f"Skipping symlink cycle: {current} -> {real_path}")
                    dirnames[:] = []
                    continue
                visited.add(real_path)

            if depth > 0:
                result.dirs_scanned += 1
                indicators = self.detect_indicators(current, config)
                if indicators and not matcher.path_is_excluded(current):
                    result.projects.append(self._make_project(current, indicators))

            if config.max_depth is not None and depth >= config.max_depth:
                dirnames[:] = []
                continue

            kept = []
            for name in sorted(dirnames):
                child = current / name
                if not config.follow_symlinks and child.is_symlink():
                    continue
                if self._should_skip(name, matcher, config):
                    logger.debug(f"Excluding directory: {child}")
                    result.excluded_dirs.append(child)
                    continue
                kept.append(name)
            dirnames[:] = kept

        result.duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            f"Scanned {root_path}: {len(result.projects)} project(s), "
            f"{result.dirs_scanned} dir(s), {len(result.errors)} error(s) in {result.duration_ms}ms"
        )
        return result
