"""Data models for projcat."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


class CatalogError(Exception):
    """Base exception for projcat errors."""


class ScanPathError(CatalogError):
    """Raised when a scan root is missing or is not a directory."""


class ConfigError(CatalogError):
    """Raised when a scan configuration is invalid."""


class CatalogStoreError(CatalogError):
    """Raised when the catalog database fails or holds corrupt data."""


class IndicatorKind(Enum):
    """Symbolic tags for the files and directories that mark a project root."""

    GIT_DIRECTORY = "GitDirectory"
    PACKAGE_JSON = "PackageJson"
    GEMFILE = "Gemfile"
    GEMSPEC = "Gemspec"
    CARGO_TOML = "CargoToml"
    PYPROJECT_TOML = "PyprojectToml"
    REQUIREMENTS_TXT = "RequirementsTxt"
    GO_MOD = "GoMod"
    POM_XML = "PomXml"
    DEVENV_NIX = "DevenvNix"
    CUSTOM = "Custom"


@dataclass(frozen=True)
class Indicator:
    """A project indicator found at a path, e.g. ``.git`` or ``Cargo.toml``."""

    kind: IndicatorKind
    name: str

    @classmethod
    def custom(cls, name: str) -> "Indicator":
        return cls(IndicatorKind.CUSTOM, name)

    @property
    def is_custom(self) -> bool:
        return self.kind is IndicatorKind.CUSTOM

    def __str__(self) -> str:
        return self.name


class ProjectType(Enum):
    """Ecosystem classification of a project."""

    RUST = "Rust"
    NODEJS = "NodeJs"
    RUBY = "Ruby"
    PYTHON = "Python"
    GO = "Go"
    JAVA = "Java"
    GIT = "Git"
    NIX = "Nix"
    UNKNOWN = "Unknown"

    @property
    def label(self) -> str:
        """Human readable name."""
        if self is ProjectType.NODEJS:
            return "Node.js"
        return self.value

    @property
    def priority(self) -> int:
        """Sort priority, higher first."""
        return _TYPE_PRIORITY[self]

    @classmethod
    def parse(cls, value: str) -> "ProjectType":
        """Parse a type from its value, member name or label (case-insensitive)."""
        wanted = value.strip().lower()
        for member in cls:
            if wanted in (member.value.lower(), member.name.lower(), member.label.lower()):
                return member
        raise ValueError(f"Unknown project type: {value}")


_TYPE_PRIORITY = {
    ProjectType.RUST: 10,
    ProjectType.NODEJS: 9,
    ProjectType.PYTHON: 8,
    ProjectType.GO: 7,
    ProjectType.JAVA: 6,
    ProjectType.RUBY: 5,
    ProjectType.NIX: 4,
    ProjectType.GIT: 1,
    ProjectType.UNKNOWN: 0,
}


@dataclass
class Project:
    """A discovered project root."""

    path: Path
    project_type: ProjectType
    indicators: List[Indicator] = field(default_factory=list)
    last_scanned: Optional[datetime] = None

    def has_indicator(self, kind: IndicatorKind) -> bool:
        return any(indicator.kind is kind for indicator in self.indicators)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "project_type": self.project_type.value,
            "indicators": [indicator.name for indicator in self.indicators],
            "last_scanned": self.last_scanned.isoformat() if self.last_scanned else None,
        }


@dataclass
class FrecencyState:
    """Access-ranking state kept alongside a project."""

    score: float = 0.0
    last_accessed: Optional[datetime] = None
    access_count: int = 0


class ScanErrorKind(Enum):
    PERMISSION_DENIED = "PermissionDenied"
    PATH_NOT_FOUND = "PathNotFound"
    IO_ERROR = "IoError"
    OTHER = "Other"

    @classmethod
    def from_os_error(cls, error: BaseException) -> "ScanErrorKind":
        if isinstance(error, PermissionError):
            return cls.PERMISSION_DENIED
        if isinstance(error, FileNotFoundError):
            return cls.PATH_NOT_FOUND
        if isinstance(error, OSError):
            return cls.IO_ERROR
        return cls.OTHER


@dataclass
class ScanError:
    """A non-fatal problem met while walking a tree."""

    path: Path
    kind: ScanErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message} ({self.kind.value})"


@dataclass
class ScanResult:
    """Report produced by scanning one root."""

    root_path: Path
    projects: List[Project] = field(default_factory=list)
    excluded_dirs: List[Path] = field(default_factory=list)
    errors: List[ScanError] = field(default_factory=list)
    dirs_scanned: int = 0
    duration_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root_path": str(self.root_path),
            "projects": [project.to_dict() for project in self.projects],
            "excluded_dirs": [str(path) for path in self.excluded_dirs],
            "errors": [
                {"path": str(error.path), "kind": error.kind.value, "message": error.message}
                for error in self.errors
            ],
            "dirs_scanned": self.dirs_scanned,
            "duration_ms": self.duration_ms,
        }


@dataclass
class ScanSummary:
    """One row of the scan log."""

    id: int
    scanned_at: datetime
    root_path: Path
    dirs_scanned: int
    duration_ms: int
    error_count: int = 0
    excluded_count: int = 0
    project_count: int = 0


@dataclass
class ScanStatistics:
    """Aggregate numbers over the whole catalog."""

    total_scans: int = 0
    total_projects: int = 0
    total_dirs_scanned: int = 0
    total_errors: int = 0
    last_scan_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_scans": self.total_scans,
            "total_projects": self.total_projects,
            "total_dirs_scanned": self.total_dirs_scanned,
            "total_errors": self.total_errors,
            "last_scan_at": self.last_scan_at.isoformat() if self.last_scan_at else None,
        }


DEFAULT_MAX_DEPTH = 10

DEFAULT_EXCLUDE_PATTERNS: Tuple[str, ...] = (
    "node_modules",
    "vendor",
    ".git",
    "__pycache__",
    "target",
    "build",
    "dist",
)

DEFAULT_PROJECT_INDICATORS: Tuple[str, ...] = (
    ".git",
    "package.json",
    "Gemfile",
    ".gemspec",
    "Cargo.toml",
    "pyproject.toml",
    "requirements.txt",
    "go.mod",
    "pom.xml",
    "devenv.nix",
)


@dataclass(frozen=True)
class ScanConfig:
    """Settings for a single scan. Immutable while the scan runs."""

    max_depth: Optional[int] = DEFAULT_MAX_DEPTH
    exclude_patterns: Tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    project_indicators: Tuple[str, ...] = DEFAULT_PROJECT_INDICATORS
    follow_symlinks: bool = False

    def __post_init__(self):
        # Accept lists from callers but keep the snapshot immutable
        object.__setattr__(self, "exclude_patterns", tuple(self.exclude_patterns))
        object.__setattr__(self, "project_indicators", tuple(self.project_indicators))

    @classmethod
    def default(cls) -> "ScanConfig":
        return cls()

    def validate(self) -> "ScanConfig":
        """Check the configuration, raising ConfigError on the first problem."""
        if self.max_depth is not None and self.max_depth < 1:
            raise ConfigError(f"max_depth must be at least 1, got {self.max_depth}")
        for pattern in self.exclude_patterns:
            if not pattern or not pattern.strip():
                raise ConfigError("Exclude patterns cannot be empty or whitespace-only")
        if not self.project_indicators:
            raise ConfigError("At least one project indicator is required")
        for token in self.project_indicators:
            if not token or not token.strip():
                raise ConfigError("Project indicators cannot be empty or whitespace-only")
        return self
