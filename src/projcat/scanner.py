"""Concurrent scanning of several roots."""

import asyncio
import logging
from datetime import timedelta
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .frecency import utc_now
from .models import ScanConfig, ScanResult
from .store import CatalogStore
from .walker import TreeWalker, validate_scan_root

logger = logging.getLogger(__name__)


class ScanOrchestrator:
    """Runs tree walks in worker threads and saves their results."""

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        store: Optional[CatalogStore] = None,
        walker: Optional[TreeWalker] = None,
        persist: bool = True,
    ):
        self.config = (config or ScanConfig.default()).validate()
        self.store = store
        self.walker = walker or TreeWalker()
        self.persist = persist

    def _save(self, results: List[ScanResult]) -> None:
        # Only ever called from the event loop thread, after every walk joined
        if self.store is None or not self.persist:
            return
        for result in results:
            self.store.store_scan_result(result)

    async def _walk(self, root: Path) -> ScanResult:
        logger.debug(f"Starting walk of {root}")
        return await asyncio.to_thread(self.walker.scan, root, self.config)

    async def scan_one(self, root: Union[str, Path]) -> ScanResult:
        """Scan a single root."""
        results = await self.scan_many([root])
        return results[0]

    async def scan_many(self, roots: Sequence[Union[str, Path]]) -> List[ScanResult]:
        """Scan several roots concurrently, results in input order.

        Every root is validated before any walk starts, so one bad root fails
        the whole batch and nothing is saved.
        """
        paths = [validate_scan_root(root) for root in roots]
        if not paths:
            return []

        results = list(await asyncio.gather(*(self._walk(path) for path in paths)))
        self._save(results)

        logger.info(
            f"Scanned {len(results)} root(s): "
            f"{sum(len(r.projects) for r in results)} project(s) found"
        )
        return results

    async def incremental_scan(
        self,
        roots: Sequence[Union[str, Path]],
        freshness_window: timedelta = timedelta(hours=24),
    ) -> List[ScanResult]:
        """Scan only the roots not already scanned within ``freshness_window``."""
        paths = [validate_scan_root(root) for root in roots]

        stale = paths
        if self.store is not None:
            cutoff = utc_now() - freshness_window
            stale = []
            for path in paths:
                if self.store.has_been_scanned_recently(path, cutoff):
                    logger.info(f"Skipping recently scanned root: {path}")
                else:
                    stale.append(path)

        if not stale:
            return []
        return await self.scan_many(stale)
