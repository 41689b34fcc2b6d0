from __future__ import annotations

from pathlib import Path

import pytest

from dinopark.state import MemoryEntityStore, SqliteEntityStore
from dinopark.state.base import EntityStore
from dinopark.zones import enumerate_zone_codes


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> EntityStore:
    """Each store-level test runs against both implementations."""
    backend: EntityStore
    if request.param == "memory":
        backend = MemoryEntityStore()
    else:
        backend = SqliteEntityStore(tmp_path / "park.sqlite3", timeout=1.0)
    backend.initialize_zones(enumerate_zone_codes())
    return backend
