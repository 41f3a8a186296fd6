"""Frecency scoring and ranked project queries.

Scores decay with a 30 day half-life. Decay is computed lazily from the
stored score and the time of the last access, so nothing has to run in the
background to keep scores current:

    decay  = 0.5 ** (days_since_last_access / 30)   (1.0 if never accessed)
    access : score' = score * decay + 1.0
    read   : current = score * decay
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Set, Union

from .models import Project

if TYPE_CHECKING:
    from .store import CatalogStore

logger = logging.getLogger(__name__)

HALF_LIFE_DAYS = 30.0
SECONDS_PER_DAY = 86400.0
MAX_FRECENT_CANDIDATES = 500


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def decay_factor(
    last_accessed: Optional[datetime],
    now: Optional[datetime] = None,
    half_life_days: float = HALF_LIFE_DAYS,
) -> float:
    """Fraction of a score left after the time since ``last_accessed``."""
    if last_accessed is None:
        return 1.0
    now = now or utc_now()
    # Clock skew must never inflate a score
    days = max((now - last_accessed).total_seconds(), 0.0) / SECONDS_PER_DAY
    return 0.5 ** (days / half_life_days)


def decayed_score(score: float, last_accessed: Optional[datetime], now: Optional[datetime] = None) -> float:
    """Score as seen at ``now``, without recording anything."""
    return score * decay_factor(last_accessed, now)


def bumped_score(score: float, last_accessed: Optional[datetime], now: Optional[datetime] = None) -> float:
    """Score after one more access at ``now``."""
    return decayed_score(score, last_accessed, now) + 1.0


def matches_pattern(path: Union[str, Path], pattern: str) -> bool:
    """Case-insensitive containment in the full path or any single component."""
    needle = pattern.lower()
    path = Path(path)
    if needle in str(path).lower():
        return True
    return any(needle in part.lower() for part in path.parts)


class FrecencyEngine:
    """Ranks catalog projects by how often and how recently they were used."""

    def __init__(self, store: "CatalogStore"):
        self.store = store

    def record_access(self, path: Union[str, Path]) -> bool:
        """Bump the score of a known project. Returns False for unknown paths."""
        recorded = self.store.record_access(path)
        if not recorded:
            logger.debug(f"Access to non-project path ignored: {path}")
        return recorded

    def current_score(self, path: Union[str, Path]) -> Optional[float]:
        return self.store.current_score(path)

    def top(self, limit: int) -> List[Project]:
        """Projects with a positive score, best current score first."""
        if limit <= 0:
            return []
        now = utc_now()
        ranked = [
            (decayed_score(state.score, state.last_accessed, now), project)
            for project, state in self.store.get_frecent_candidates()
        ]
        ranked.sort(key=lambda item: (-item[0], str(item[1].path)))
        return [project for _score, project in ranked[:limit]]

    def query(self, pattern: str, limit: int) -> List[Path]:
        """Find the projects a user most likely means by ``pattern``."""
        if limit <= 0:
            return []
        if not pattern:
            return [project.path for project in self.top(limit)]

        # Phase 1: recent favourites that match
        candidates = self.top(min(limit * 10, MAX_FRECENT_CANDIDATES))
        selected: List[Path] = [
            project.path for project in candidates if matches_pattern(project.path, pattern)
        ][:limit]

        # Phase 2: fill up from the whole catalog, shortest paths first
        if len(selected) < limit:
            seen: Set[Path] = set(selected)
            for project in self.store.search_by_path_substring(pattern):
                if project.path in seen:
                    continue
                selected.append(project.path)
                seen.add(project.path)
                if len(selected) >= limit:
                    break

        return selected

    def best_match(self, pattern: str) -> Optional[Path]:
        results = self.query(pattern, 1)
        return results[0] if results else None
