"""Tests for the data model and project classification."""

from pathlib import Path

import pytest

from projcat.indicators import DEFAULT_CATALOG, IndicatorCatalog
from projcat.models import (
    ConfigError,
    Indicator,
    IndicatorKind,
    Project,
    ProjectType,
    ScanConfig,
    ScanErrorKind,
)


def classify(*names):
    return DEFAULT_CATALOG.classify(DEFAULT_CATALOG.resolve_all(names))


def test_default_scan_config():
    """Test ScanConfig defaults."""
    config = ScanConfig.default()

    assert config.max_depth == 10
    assert config.follow_symlinks is False
    assert "node_modules" in config.exclude_patterns
    assert ".git" in config.exclude_patterns
    assert len(config.project_indicators) == 10
    assert config.validate() is config


def test_scan_config_accepts_lists():
    """Test that list arguments are stored as tuples."""
    config = ScanConfig(exclude_patterns=["a", "b"], project_indicators=["Makefile"])

    assert config.exclude_patterns == ("a", "b")
    assert config.project_indicators == ("Makefile",)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_depth": 0},
        {"max_depth": -3},
        {"exclude_patterns": ("node_modules", "")},
        {"exclude_patterns": ("   ",)},
        {"project_indicators": ()},
    ],
)
def test_invalid_scan_config(kwargs):
    """Test that invalid configurations are rejected."""
    with pytest.raises(ConfigError):
        ScanConfig(**kwargs).validate()


def test_unlimited_depth_is_valid():
    assert ScanConfig(max_depth=None).validate().max_depth is None


def test_classification_precedence():
    """Test that the highest ranked indicator decides the type."""
    assert classify("Cargo.toml", "package.json", ".git") is ProjectType.RUST
    assert classify(".git", "package.json") is ProjectType.NODEJS
    assert classify("package.json", "Cargo.toml") is ProjectType.RUST
    assert classify(".gemspec") is ProjectType.RUBY
    assert classify("Gemfile", "requirements.txt") is ProjectType.RUBY
    assert classify("requirements.txt") is ProjectType.PYTHON
    assert classify("pyproject.toml", "go.mod") is ProjectType.PYTHON
    assert classify("go.mod", "pom.xml") is ProjectType.GO
    assert classify("pom.xml", ".git") is ProjectType.JAVA
    assert classify(".git", "devenv.nix") is ProjectType.GIT
    assert classify("devenv.nix") is ProjectType.NIX


def test_unknown_classification():
    assert classify("Makefile") is ProjectType.UNKNOWN
    assert classify() is ProjectType.UNKNOWN


def test_resolve_custom_indicator():
    """Test that unknown tokens become custom indicators."""
    indicator = DEFAULT_CATALOG.resolve("Makefile")

    assert indicator == Indicator.custom("Makefile")
    assert indicator.is_custom
    assert str(indicator) == "Makefile"
    assert DEFAULT_CATALOG.indicator_for("Makefile") is None
    assert DEFAULT_CATALOG.indicator_for(".git") == Indicator(IndicatorKind.GIT_DIRECTORY, ".git")


def test_resolve_all_drops_duplicates():
    indicators = DEFAULT_CATALOG.resolve_all([".git", "Cargo.toml", ".git"])

    assert [i.name for i in indicators] == [".git", "Cargo.toml"]


def test_custom_catalog_rules():
    """Test a catalog built from its own tables."""
    catalog = IndicatorCatalog(
        names={"BUILD": IndicatorKind.CUSTOM},
        rules=[(frozenset({IndicatorKind.GIT_DIRECTORY}), ProjectType.GIT)],
    )

    assert catalog.resolve("BUILD").is_custom
    assert catalog.classify([Indicator(IndicatorKind.CARGO_TOML, "Cargo.toml")]) is ProjectType.UNKNOWN
    assert catalog.classify([Indicator(IndicatorKind.GIT_DIRECTORY, ".git")]) is ProjectType.GIT


def test_project_type_labels_and_parsing():
    """Test ProjectType display names and parsing."""
    assert ProjectType.NODEJS.label == "Node.js"
    assert ProjectType.RUST.label == "Rust"
    assert ProjectType.parse("node.js") is ProjectType.NODEJS
    assert ProjectType.parse("NodeJs") is ProjectType.NODEJS
    assert ProjectType.parse(" rust ") is ProjectType.RUST
    with pytest.raises(ValueError):
        ProjectType.parse("cobol")


def test_project_type_priority():
    ordered = sorted(ProjectType, key=lambda t: -t.priority)

    assert ordered[0] is ProjectType.RUST
    assert ordered[-1] is ProjectType.UNKNOWN
    assert ProjectType.GIT.priority < ProjectType.NIX.priority


def test_project_to_dict():
    """Test Project serialization."""
    project = Project(
        path=Path("/work/app"),
        project_type=ProjectType.NODEJS,
        indicators=[Indicator(IndicatorKind.PACKAGE_JSON, "package.json")],
    )

    data = project.to_dict()
    assert data["path"] == str(Path("/work/app"))
    assert data["project_type"] == "NodeJs"
    assert data["indicators"] == ["package.json"]
    assert data["last_scanned"] is None
    assert project.has_indicator(IndicatorKind.PACKAGE_JSON)
    assert not project.has_indicator(IndicatorKind.GIT_DIRECTORY)


def test_scan_error_kind_from_os_error():
    assert ScanErrorKind.from_os_error(PermissionError()) is ScanErrorKind.PERMISSION_DENIED
    assert ScanErrorKind.from_os_error(FileNotFoundError()) is ScanErrorKind.PATH_NOT_FOUND
    assert ScanErrorKind.from_os_error(OSError()) is ScanErrorKind.IO_ERROR
    assert ScanErrorKind.from_os_error(ValueError()) is ScanErrorKind.OTHER
