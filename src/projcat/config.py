"""Configuration management for projcat using platformdirs."""

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional

from platformdirs import user_config_dir, user_data_dir, user_state_dir
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .models import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_MAX_DEPTH,
    DEFAULT_PROJECT_INDICATORS,
    ConfigError,
    ScanConfig,
)

logger = logging.getLogger(__name__)

APP_NAME = "projcat"


class CatalogSettings(BaseSettings):
    """User settings for projcat."""

    model_config = SettingsConfigDict(
        env_prefix="PROJCAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables
    )

    # Scanning
    max_depth: Optional[int] = Field(default=DEFAULT_MAX_DEPTH, description="Deepest level to descend to")
    exclude_patterns: Annotated[List[str], NoDecode] = Field(
        default=list(DEFAULT_EXCLUDE_PATTERNS),
        description="Directory names or globs to skip",
    )
    project_indicators: Annotated[List[str], NoDecode] = Field(
        default=list(DEFAULT_PROJECT_INDICATORS),
        description="File or directory names marking a project root",
    )
    follow_symlinks: bool = Field(default=False, description="Descend into symlinked directories")

    # Catalog
    db_path: Optional[Path] = Field(default=None, description="Catalog database location")
    query_limit: int = Field(default=10, description="Default number of query results")
    freshness_hours: float = Field(default=24.0, description="Window for incremental scans")

    @field_validator("exclude_patterns", "project_indicators", mode="before")
    @classmethod
    def _split_comma_list(cls, value: Any) -> Any:
        # Environment values come in as "a,b,c"
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    def to_scan_config(self) -> ScanConfig:
        return ScanConfig(
            max_depth=self.max_depth,
            exclude_patterns=tuple(self.exclude_patterns),
            project_indicators=tuple(self.project_indicators),
            follow_symlinks=self.follow_symlinks,
        )


class ConfigManager:
    """Manages projcat directories and settings."""

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        data_dir: Optional[Path] = None,
        state_dir: Optional[Path] = None,
    ):
        self.config_dir = Path(config_dir or user_config_dir(APP_NAME, APP_NAME))
        self.data_dir = Path(data_dir or user_data_dir(APP_NAME, APP_NAME))
        self.state_dir = Path(state_dir or user_state_dir(APP_NAME, APP_NAME))

        self.config_file = self.config_dir / "config.json"
        self.log_file = self.state_dir / "projcat.log"

    def ensure_dirs(self) -> None:
        """Create the config, data and state directories if missing."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.state_dir.mkdir(parents=True, exist_ok=True)

    @property
    def default_db_path(self) -> Path:
        return self.data_dir / "catalog.db"

    def _read_config_file(self) -> Dict[str, Any]:
        """Load settings saved in config.json."""
        if not self.config_file.exists():
            return {}
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read {self.config_file}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{self.config_file} must contain a JSON object")
        return data

    def load_settings(self, **overrides: Any) -> CatalogSettings:
        """Load settings: overrides > environment > .env > config.json > defaults."""
        try:
            from_env = CatalogSettings()
            merged = self._read_config_file()
            merged.update(from_env.model_dump(include=from_env.model_fields_set))
            merged.update({key: value for key, value in overrides.items() if value is not None})
            return CatalogSettings(**merged)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings: {e}") from e

    def db_path(self, settings: Optional[CatalogSettings] = None) -> Path:
        settings = settings or self.load_settings()
        return Path(settings.db_path).expanduser() if settings.db_path else self.default_db_path

    def scan_config(self, settings: Optional[CatalogSettings] = None) -> ScanConfig:
        """Validated scan configuration built from the settings."""
        settings = settings or self.load_settings()
        return settings.to_scan_config().validate()

    def save_settings(self, settings: CatalogSettings) -> None:
        """Save settings to config.json."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        data = settings.model_dump(mode="json")
        with open(self.config_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        logger.info(f"Saved settings to {self.config_file}")
