"""Tests for the ProjectCatalog entry point."""

import json
import shutil
from pathlib import Path

import pytest

from projcat.catalog import ProjectCatalog
from projcat.config import ConfigManager
from projcat.models import ProjectType, ScanConfig, ScanPathError
from projcat.store import CatalogStore

from conftest import make_tree


@pytest.fixture
def workspace(tmp_path):
    return make_tree(tmp_path / "ws", [
        "web/package.json",
        "web/.git/",
        "api/pyproject.toml",
        "tools/cli/Cargo.toml",
        "notes/readme.txt",
    ])


@pytest.fixture
def catalog():
    catalog = ProjectCatalog(store=CatalogStore(":memory:"))
    yield catalog
    catalog.close()


@pytest.mark.asyncio
async def test_scan_and_list(catalog, workspace):
    """Test scanning a workspace and listing the catalog."""
    result = await catalog.scan(workspace)

    assert len(result.projects) == 3
    names = sorted(p.path.name for p in catalog.list_projects())
    assert names == ["api", "cli", "web"]
    assert [p.path.name for p in catalog.list_projects(ProjectType.PYTHON)] == ["api"]
    assert catalog.project_counts() == {
        ProjectType.NODEJS: 1,
        ProjectType.PYTHON: 1,
        ProjectType.RUST: 1,
    }


@pytest.mark.asyncio
async def test_is_project_root(catalog, workspace, monkeypatch):
    await catalog.scan(workspace)

    assert catalog.is_project_root(workspace / "web")
    assert not catalog.is_project_root(workspace / "notes")
    monkeypatch.chdir(workspace)
    assert catalog.is_project_root("api")


@pytest.mark.asyncio
async def test_rescan_keeps_scores(catalog, workspace):
    """Test that re-scanning does not reset frecency."""
    await catalog.scan(workspace)
    assert catalog.record_access(workspace / "api")
    assert catalog.record_access(workspace / "api")

    await catalog.scan(workspace)

    assert catalog.current_score(workspace / "api") == pytest.approx(2.0, abs=1e-3)
    assert catalog.query("", 5) == [workspace / "api"]


@pytest.mark.asyncio
async def test_query_and_best_match(catalog, workspace):
    await catalog.scan(workspace)
    catalog.record_access(workspace / "tools" / "cli")

    assert catalog.best_match("cli") == workspace / "tools" / "cli"
    assert catalog.query("api", 3) == [workspace / "api"]
    assert catalog.query("nothing-like-this", 3) == []
    assert [p.path for p in catalog.top(1)] == [workspace / "tools" / "cli"]


@pytest.mark.asyncio
async def test_record_access_unknown(catalog, workspace):
    await catalog.scan(workspace)

    assert not catalog.record_access(workspace / "notes")
    assert catalog.current_score(workspace / "notes") is None


@pytest.mark.asyncio
async def test_scan_many_fails_fast(catalog, workspace, tmp_path):
    with pytest.raises(ScanPathError):
        await catalog.scan_many([workspace, tmp_path / "missing"])

    assert catalog.list_projects() == []


@pytest.mark.asyncio
async def test_incremental_scan(catalog, workspace):
    first = await catalog.incremental_scan([workspace], max_age_hours=1)
    second = await catalog.incremental_scan([workspace], max_age_hours=1)

    assert len(first) == 1
    assert second == []


@pytest.mark.asyncio
async def test_scan_with_config_override(catalog, workspace):
    result = await catalog.scan(workspace, config=ScanConfig(max_depth=1), persist=False)

    assert sorted(p.path.name for p in result.projects) == ["api", "web"]
    assert catalog.list_projects() == []


@pytest.mark.asyncio
async def test_search_delete_and_history(catalog, workspace):
    await catalog.scan(workspace)

    assert [p.path.name for p in catalog.search("tools")] == ["cli"]
    assert catalog.delete_project(workspace / "web")
    assert catalog.get_project(workspace / "web") is None

    scans = catalog.recent_scans()
    assert len(scans) == 1
    assert catalog.get_scan_result(scans[0].id).root_path == workspace
    assert catalog.statistics().total_projects == 2


@pytest.mark.asyncio
async def test_prune_missing(catalog, workspace):
    """Test that only vanished project directories are removed."""
    await catalog.scan(workspace)
    shutil.rmtree(workspace / "api")

    assert catalog.prune_missing(dry_run=True) == [workspace / "api"]
    assert catalog.get_project(workspace / "api") is not None

    assert catalog.prune_missing() == [workspace / "api"]
    assert catalog.get_project(workspace / "api") is None
    assert catalog.get_project(workspace / "web") is not None


@pytest.mark.asyncio
async def test_cleanup(catalog, workspace):
    await catalog.scan(workspace)

    assert catalog.clean_old_scans(max_age_days=30) == 0
    assert catalog.cleanup_orphaned_projects(max_age_days=30) == 0
    assert catalog.clean_old_scans(max_age_days=0) == 1
    assert catalog.cleanup_orphaned_projects(max_age_days=0) == 3


@pytest.mark.asyncio
async def test_export_json(catalog, workspace):
    await catalog.scan(workspace)
    catalog.record_access(workspace / "web")

    data = {Path(entry["path"]).name: entry for entry in json.loads(catalog.export_json())}

    assert set(data) == {"api", "cli", "web"}
    assert data["web"]["project_type"] == "NodeJs"
    assert data["web"]["indicators"] == [".git", "package.json"]
    assert data["web"]["access_count"] == 1
    assert data["api"]["last_accessed"] is None


@pytest.mark.asyncio
async def test_backup_and_restore(catalog, workspace, tmp_path):
    await catalog.scan(workspace)
    backup = tmp_path / "catalog.sql"

    catalog.backup(backup)
    catalog.delete_project(workspace / "api")
    catalog.restore(backup)

    assert catalog.is_project_root(workspace / "api")


def test_open_uses_config_manager(tmp_path, monkeypatch):
    """Test that open() takes the database and scan settings from the user config."""
    for name in ("PROJCAT_DB_PATH", "PROJCAT_MAX_DEPTH", "PROJCAT_EXCLUDE_PATTERNS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    manager = ConfigManager(
        config_dir=tmp_path / "config",
        data_dir=tmp_path / "data",
        state_dir=tmp_path / "state",
    )
    manager.save_settings(manager.load_settings(max_depth=3))

    with ProjectCatalog.open(config_manager=manager) as catalog:
        assert catalog.config.max_depth == 3
        assert catalog.store.db_path == tmp_path / "data" / "catalog.db"
        catalog.list_projects()

    assert (tmp_path / "data" / "catalog.db").exists()


@pytest.mark.asyncio
async def test_export_statistics_json(catalog, workspace):
    """Test the statistics export before and after a scan."""
    empty = json.loads(catalog.export_statistics_json())
    assert empty == {
        "total_scans": 0,
        "total_projects": 0,
        "total_dirs_scanned": 0,
        "total_errors": 0,
        "last_scan_at": None,
    }

    await catalog.scan(workspace)
    data = json.loads(catalog.export_statistics_json())

    assert data["total_scans"] == 1
    assert data["total_projects"] == 3
    assert data["total_errors"] == 0
    assert data["last_scan_at"] is not None
