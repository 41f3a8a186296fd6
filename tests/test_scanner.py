"""Tests for concurrent scanning."""

import asyncio
from datetime import timedelta
from pathlib import Path

import pytest

from projcat.models import ProjectType, ScanConfig, ScanPathError
from projcat.scanner import ScanOrchestrator

from conftest import make_tree


@pytest.fixture
def roots(tmp_path):
    make_tree(tmp_path, [
        "one/app/package.json",
        "one/lib/Cargo.toml",
        "two/svc/go.mod",
        "three/",
    ])
    return [tmp_path / "one", tmp_path / "two", tmp_path / "three"]


@pytest.mark.asyncio
async def test_scan_many_keeps_input_order(roots, store):
    """Test that results come back in the order the roots were given."""
    orchestrator = ScanOrchestrator(store=store)

    results = await orchestrator.scan_many(roots)

    assert [r.root_path for r in results] == roots
    assert [len(r.projects) for r in results] == [2, 1, 0]
    assert len(store.get_all_projects()) == 3
    assert len(store.recent_scans(10)) == 3


@pytest.mark.asyncio
async def test_scan_one(roots, store):
    result = await ScanOrchestrator(store=store).scan_one(roots[1])

    assert [p.project_type for p in result.projects] == [ProjectType.GO]
    assert store.get_project(roots[1] / "svc") is not None


@pytest.mark.asyncio
async def test_invalid_root_fails_whole_batch(roots, store, tmp_path):
    """Test that one bad root means nothing is scanned or saved."""
    orchestrator = ScanOrchestrator(store=store)

    with pytest.raises(ScanPathError):
        await orchestrator.scan_many([roots[0], tmp_path / "missing"])

    assert store.get_all_projects() == []
    assert store.recent_scans(10) == []


@pytest.mark.asyncio
async def test_scan_without_persisting(roots, store):
    results = await ScanOrchestrator(store=store, persist=False).scan_many(roots)

    assert sum(len(r.projects) for r in results) == 3
    assert store.get_all_projects() == []


@pytest.mark.asyncio
async def test_scan_without_store(roots):
    results = await ScanOrchestrator().scan_many(roots[:1])

    assert len(results[0].projects) == 2


@pytest.mark.asyncio
async def test_scan_many_empty():
    assert await ScanOrchestrator().scan_many([]) == []


@pytest.mark.asyncio
async def test_config_is_applied(roots, store):
    orchestrator = ScanOrchestrator(ScanConfig(exclude_patterns=("lib",)), store=store)

    result = await orchestrator.scan_one(roots[0])

    assert [p.path.name for p in result.projects] == ["app"]
    assert roots[0] / "lib" in result.excluded_dirs


@pytest.mark.asyncio
async def test_incremental_scan_skips_fresh_roots(roots, store):
    """Test that a recently scanned root is not scanned again."""
    orchestrator = ScanOrchestrator(store=store)
    await orchestrator.scan_one(roots[0])

    results = await orchestrator.incremental_scan(roots[:2], timedelta(hours=1))

    assert [r.root_path for r in results] == [roots[1]]
    assert len(store.recent_scans(10)) == 2

    again = await orchestrator.incremental_scan(roots[:2], timedelta(hours=1))
    assert again == []


@pytest.mark.asyncio
async def test_incremental_scan_rescans_stale_roots(roots, store):
    orchestrator = ScanOrchestrator(store=store)
    await orchestrator.scan_one(roots[0])

    results = await orchestrator.incremental_scan(roots[:1], timedelta(0))

    assert [r.root_path for r in results] == [roots[0]]


@pytest.mark.asyncio
async def test_concurrent_batches(roots, store):
    """Test several batches running at once on one event loop."""
    orchestrator = ScanOrchestrator(store=store)

    batches = await asyncio.gather(*(orchestrator.scan_many(roots) for _ in range(3)))

    assert all([r.root_path for r in batch] == roots for batch in batches)
    assert len(store.get_all_projects()) == 3
    assert len(store.recent_scans(20)) == 9
