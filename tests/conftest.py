"""Shared fixtures for projcat tests."""

from pathlib import Path
from typing import Iterable

import pytest

from projcat.store import CatalogStore


def make_tree(root: Path, entries: Iterable[str]) -> Path:
    """Create files and directories under root. Entries ending in '/' are directories."""
    for entry in entries:
        path = root / entry
        if entry.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("")
    return root


@pytest.fixture
def store():
    store = CatalogStore(":memory:")
    store.initialize()
    yield store
    store.close()
