"""
Projcat - project discovery and frecency ranking.

Walks directory trees for project roots, keeps them in a SQLite catalog and
ranks them by how often and how recently they are used.
"""

__version__ = "0.1.0"

from .catalog import ProjectCatalog
from .frecency import FrecencyEngine
from .models import (
    CatalogError,
    CatalogStoreError,
    ConfigError,
    Project,
    ProjectType,
    ScanConfig,
    ScanPathError,
    ScanResult,
)
from .scanner import ScanOrchestrator
from .store import CatalogStore
from .walker import TreeWalker

__all__ = [
    "CatalogError",
    "CatalogStore",
    "CatalogStoreError",
    "ConfigError",
    "FrecencyEngine",
    "Project",
    "ProjectCatalog",
    "ProjectType",
    "ScanConfig",
    "ScanOrchestrator",
    "ScanPathError",
    "ScanResult",
    "TreeWalker",
    "__version__",
]
