"""High level entry point tying the scanner, store and ranking together."""

import json
import logging
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .config import ConfigManager
from .frecency import FrecencyEngine, utc_now
from .models import (
    Project,
    ProjectType,
    ScanConfig,
    ScanResult,
    ScanStatistics,
    ScanSummary,
)
from .scanner import ScanOrchestrator
from .store import CatalogStore
from .walker import TreeWalker

logger = logging.getLogger(__name__)


def _absolute(path: Union[str, Path]) -> Path:
    return Path(path).expanduser().absolute()


class ProjectCatalog:
    """
    The project catalog used by the CLI and shell integration.

    Wraps a CatalogStore with scanning and frecency ranking. All paths passed
    in are made absolute before they are looked up.
    """

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        store: Optional[CatalogStore] = None,
        walker: Optional[TreeWalker] = None,
    ):
        self.config = (config or ScanConfig.default()).validate()
        self.store = store if store is not None else CatalogStore(":memory:")
        self.store.initialize()
        self.walker = walker or TreeWalker()
        self.frecency = FrecencyEngine(self.store)

    @classmethod
    def open(
        cls,
        db_path: Optional[Union[str, Path]] = None,
        config: Optional[ScanConfig] = None,
        config_manager: Optional[ConfigManager] = None,
    ) -> "ProjectCatalog":
        """Open the catalog database named by the user's settings."""
        manager = config_manager or ConfigManager()
        settings = manager.load_settings()
        if db_path is None:
            db_path = manager.db_path(settings)
        if config is None:
            config = manager.scan_config(settings)
        logger.debug(f"Opening catalog at {db_path}")
        return cls(config=config, store=CatalogStore(db_path))

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "ProjectCatalog":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _orchestrator(self, config: Optional[ScanConfig], persist: bool) -> ScanOrchestrator:
        return ScanOrchestrator(
            config=config or self.config,
            store=self.store,
            walker=self.walker,
            persist=persist,
        )

    # Scanning

    async def scan(
        self,
        root: Union[str, Path],
        config: Optional[ScanConfig] = None,
        persist: bool = True,
    ) -> ScanResult:
        return await self._orchestrator(config, persist).scan_one(root)

    async def scan_many(
        self,
        roots: Sequence[Union[str, Path]],
        config: Optional[ScanConfig] = None,
        persist: bool = True,
    ) -> List[ScanResult]:
        return await self._orchestrator(config, persist).scan_many(roots)

    async def incremental_scan(
        self,
        roots: Sequence[Union[str, Path]],
        max_age_hours: float = 24.0,
        config: Optional[ScanConfig] = None,
    ) -> List[ScanResult]:
        """Scan the roots that have not been scanned in the last ``max_age_hours``."""
        return await self._orchestrator(config, True).incremental_scan(
            roots, timedelta(hours=max_age_hours)
        )

    # Lookup

    def list_projects(self, project_type: Optional[ProjectType] = None) -> List[Project]:
        if project_type is None:
            return self.store.get_all_projects()
        return self.store.get_projects_by_type(project_type)

    def search(self, pattern: str, limit: Optional[int] = None) -> List[Project]:
        return self.store.search_by_path_substring(pattern, limit)

    def get_project(self, path: Union[str, Path]) -> Optional[Project]:
        return self.store.get_project(_absolute(path))

    def delete_project(self, path: Union[str, Path]) -> bool:
        return self.store.delete_project(_absolute(path))

    def is_project_root(self, path: Union[str, Path]) -> bool:
        """True if ``path`` is a catalogued project."""
        return self.get_project(path) is not None

    def project_counts(self) -> Dict[ProjectType, int]:
        return self.store.project_counts_by_type()

    # Ranking

    def query(self, pattern: str = "", limit: int = 10) -> List[Path]:
        return self.frecency.query(pattern, limit)

    def best_match(self, pattern: str) -> Optional[Path]:
        return self.frecency.best_match(pattern)

    def record_access(self, path: Union[str, Path]) -> bool:
        return self.frecency.record_access(_absolute(path))

    def current_score(self, path: Union[str, Path]) -> Optional[float]:
        return self.frecency.current_score(_absolute(path))

    def top(self, limit: int = 10) -> List[Project]:
        return self.frecency.top(limit)

    # Scan history and maintenance

    def recent_scans(self, limit: int = 10) -> List[ScanSummary]:
        return self.store.recent_scans(limit)

    def get_scan_result(self, scan_id: int) -> Optional[ScanResult]:
        return self.store.get_scan_result(scan_id)

    def statistics(self) -> ScanStatistics:
        return self.store.scan_statistics()

    def clean_old_scans(self, max_age_days: float = 30) -> int:
        """Drop scan log entries older than ``max_age_days``."""
        removed = self.store.delete_scans_before(utc_now() - timedelta(days=max_age_days))
        logger.info(f"Removed {removed} old scan(s)")
        return removed

    def cleanup_orphaned_projects(self, max_age_days: float = 30) -> int:
        """Drop projects no scan has seen in the last ``max_age_days``."""
        removed = self.store.cleanup_orphaned_projects(utc_now() - timedelta(days=max_age_days))
        logger.info(f"Removed {removed} orphaned project(s)")
        return removed

    def prune_missing(self, dry_run: bool = False) -> List[Path]:
        """Remove projects whose directory no longer exists."""
        missing = [project.path for project in self.store.get_all_projects() if not project.path.is_dir()]
        if not dry_run:
            for path in missing:
                self.store.delete_project(path)
                logger.info(f"Removed missing project: {path}")
        return missing

    def export_json(self) -> str:
        """Export all projects as JSON, with their frecency state."""
        data = []
        for project in self.store.get_all_projects():
            entry = project.to_dict()
            state = self.store.get_frecency_state(project.path)
            if state is not None:
                entry["frecency_score"] = state.score
                entry["access_count"] = state.access_count
                entry["last_accessed"] = state.last_accessed.isoformat() if state.last_accessed else None
            data.append(entry)
        return json.dumps(data, indent=2)

    def export_statistics_json(self) -> str:
        return json.dumps(self.statistics().to_dict(), indent=2)

    def backup(self, path: Union[str, Path]) -> None:
        self.store.backup_to_sql(path)

    def restore(self, path: Union[str, Path]) -> None:
        self.store.restore_from_sql(path)
