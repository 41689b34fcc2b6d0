from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from dinopark.config import DinoparkConfig
from dinopark.models.zone import ZoneStatus
from dinopark.park import Park
from dinopark.state import MemoryEntityStore, SqliteEntityStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def _added(external_id: int, *, herbivore: bool, period: int = 12) -> dict[str, object]:
    return {
        "kind": "dino_added",
        "id": external_id,
        "name": f"Dino {external_id}",
        "species": "Brachiosaurus" if herbivore else "Velociraptor",
        "gender": "female",
        "herbivore": herbivore,
        "digestion_period_in_hours": period,
        "park_id": 1,
        "time": _iso(NOW - timedelta(days=10)),
    }


def _located(external_id: int, zone: str) -> dict[str, object]:
    return {
        "kind": "dino_location_updated",
        "dinosaur_id": external_id,
        "location": zone,
        "park_id": 1,
        "time": _iso(NOW - timedelta(hours=3)),
    }


def _history() -> list[dict[str, object]]:
    return [
        _located(1, "C3"),
        _added(1, herbivore=False),
        {"kind": "dino_fed", "dinosaur_id": 1, "park_id": 1, "time": _iso(NOW - timedelta(hours=2))},
        _added(2, herbivore=False, period=6),
        _located(2, "D4"),
        {"kind": "dino_fed", "dinosaur_id": 2, "park_id": 1, "time": _iso(NOW - timedelta(hours=7))},
        _added(3, herbivore=True),
        _located(3, "E5"),
        _added(4, herbivore=True),
        {"kind": "dino_removed", "id": 4, "park_id": 1},
        {"kind": "maintenance_performed", "location": "C3", "park_id": 1, "time": _iso(NOW - timedelta(days=2))},
        {"kind": "maintenance_performed", "location": "D4", "park_id": 1, "time": _iso(NOW - timedelta(days=45))},
        {"kind": "dino_hatched", "id": 99},
    ]


def test_park_end_to_end_on_sqlite(tmp_path: Path) -> None:
    park = Park(SqliteEntityStore(tmp_path / "park.sqlite3"), clock=lambda: NOW)

    result = park.process_event_batch(_history())

    assert (result.processed, result.failed) == (13, 0)
    assert park.evaluate_zone_safety("C3")
    assert not park.evaluate_zone_safety("D4")
    assert park.evaluate_zone_safety("E5")
    assert park.evaluate_zone_safety("A0")

    assert park.zone_report("C3").status == ZoneStatus.SAFE
    assert park.zone_report("D4").status == ZoneStatus.UNSAFE
    assert park.zone_report("E5").status == ZoneStatus.SAFE_NEEDS_MAINTENANCE

    stats = park.status()
    assert stats.total_agents == 3
    assert stats.carnivores == 2
    assert stats.herbivores == 1
    assert stats.zones_with_maintenance == 2
    assert stats.maintenance_records == 2


def test_replaying_history_changes_nothing() -> None:
    park = Park(MemoryEntityStore(), clock=lambda: NOW)
    park.process_event_batch(_history())
    before = (park.status(), park.store.list_agents(), park.store.list_zones())

    park.process_event_batch(_history())
    park.process_event_batch(_history())

    assert (park.status(), park.store.list_agents(), park.store.list_zones()) == before


def test_core_interface() -> None:
    park = Park(MemoryEntityStore(), clock=lambda: NOW)

    codes = park.enumerate_zone_codes()
    assert len(codes) == 416
    assert codes[:2] == ["A0", "A1"]
    assert park.is_maintenance_due(None)
    assert not park.is_maintenance_due(NOW - timedelta(days=1))
    assert len(park.grid()) == 16


def test_from_config_uses_sqlite_file(tmp_path: Path) -> None:
    path = tmp_path / "data" / "park.sqlite3"
    park = Park.from_config(DinoparkConfig(database_path=str(path), store_timeout=1.0))

    park.process_event_batch([_added(1, herbivore=True)])

    assert path.exists()
    assert Park.from_config(DinoparkConfig(database_path=str(path))).status().total_agents == 1


class _StaticSource:
    async def fetch(self) -> list[object]:
        return _history()


@pytest.mark.asyncio
async def test_poller_feeds_the_park() -> None:
    park = Park(MemoryEntityStore(), clock=lambda: NOW)
    poller = park.poller(_StaticSource(), interval=60)

    result = await poller.poll_once()

    assert result is not None
    assert poller.status.total_events == 13
    assert not poller.is_running
    assert park.status().total_agents == 3


def test_poll_interval_comes_from_config(tmp_path: Path) -> None:
    park = Park.from_config(DinoparkConfig(database_path=str(tmp_path / "park.sqlite3"), poll_interval=15.0))

    assert park.poller(_StaticSource()).interval == 15.0
    assert park.poller(_StaticSource(), interval=1.0).interval == 1.0


def test_naive_maintenance_time_is_utc() -> None:
    park = Park(MemoryEntityStore(), clock=lambda: NOW)

    assert park.is_maintenance_due(datetime(2025, 1, 1))
    assert not park.is_maintenance_due(datetime(2026, 2, 28))
