from __future__ import annotations

from datetime import UTC, datetime, timedelta
from itertools import permutations
from typing import Any

import pytest

from dinopark.exceptions import EventValidationError, StoreUnavailableError
from dinopark.ingestion.events import AgentFed
from dinopark.ingestion.reconciler import ApplyOutcome, Reconciler
from dinopark.models.agent import DietClass
from dinopark.state import MemoryEntityStore
from dinopark.state.base import EntityStore

T = datetime(2026, 2, 10, 12, 0, tzinfo=UTC)


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def added(external_id: int = 7, *, at: datetime = T, herbivore: bool = False, **overrides: Any) -> dict[str, Any]:
    event: dict[str, Any] = {
        "kind": "dino_added",
        "id": external_id,
        "name": f"Dino {external_id}",
        "species": "Allosaurus",
        "gender": "male",
        "herbivore": herbivore,
        "digestion_period_in_hours": 12,
        "park_id": 1,
        "time": _iso(at),
    }
    event.update(overrides)
    return event


def located(external_id: int = 7, zone: str = "E10", *, at: datetime = T) -> dict[str, Any]:
    return {"kind": "dino_location_updated", "dinosaur_id": external_id, "location": zone, "park_id": 1, "time": _iso(at)}


def fed(external_id: int = 7, *, at: datetime = T) -> dict[str, Any]:
    return {"kind": "dino_fed", "dinosaur_id": external_id, "park_id": 1, "time": _iso(at)}


def removed(external_id: int = 7) -> dict[str, Any]:
    return {"kind": "dino_removed", "id": external_id, "park_id": 1, "time": _iso(T)}


def maintained(zone: str = "B3", *, at: datetime = T) -> dict[str, Any]:
    return {"kind": "maintenance_performed", "location": zone, "park_id": 1, "time": _iso(at)}


# ------------------------------------------------------------------
# Idempotency and order independence
# ------------------------------------------------------------------


@pytest.mark.parametrize("times", [1, 2, 5])
def test_added_is_idempotent(store: EntityStore, times: int) -> None:
    reconciler = Reconciler(store)
    reconciler.apply(added())
    once = store.get_agent(7)

    for _ in range(times):
        reconciler.apply(added())

    assert store.get_agent(7) == once


def test_every_kind_is_idempotent(store: EntityStore) -> None:
    events = [added(), located(), fed(), maintained()]
    reconciler = Reconciler(store)
    for event in events:
        reconciler.apply(event)
    snapshot = (store.get_agent(7), store.get_zone("B3"), store.maintenance_history("B3"))

    for event in events:
        reconciler.apply(event)

    assert (store.get_agent(7), store.get_zone("B3"), store.maintenance_history("B3")) == snapshot


def test_fed_and_location_commute() -> None:
    first, second = MemoryEntityStore(), MemoryEntityStore()

    Reconciler(first).apply(fed(at=T))
    Reconciler(first).apply(located(at=T + timedelta(hours=1)))
    Reconciler(second).apply(located(at=T + timedelta(hours=1)))
    Reconciler(second).apply(fed(at=T))

    assert first.get_agent(7) == second.get_agent(7)


def test_all_permutations_converge(store: EntityStore) -> None:
    events = [
        added(at=T - timedelta(hours=100)),
        fed(at=T),
        located("E10", at=T - timedelta(hours=1)),
        located("F2", at=T - timedelta(hours=2)),
        fed(at=T - timedelta(hours=5)),
    ]
    reference = MemoryEntityStore()
    for event in events:
        Reconciler(reference).apply(event)
    expected = reference.get_agent(7)

    for order in permutations(events):
        store.delete_agent(7)
        reconciler = Reconciler(store)
        for event in order:
            reconciler.apply(event)
        assert store.get_agent(7) == expected

    assert expected is not None
    assert expected.current_zone == "E10"
    assert expected.last_fed_at == T


# ------------------------------------------------------------------
# Per-kind merge rules
# ------------------------------------------------------------------


def test_fed_before_added_keeps_feeding(store: EntityStore) -> None:
    reconciler = Reconciler(store)

    reconciler.apply(fed(at=T))
    reconciler.apply(added(at=T - timedelta(hours=100)))

    agent = store.get_agent(7)
    assert agent is not None
    assert agent.diet_class == DietClass.CARNIVORE
    assert agent.last_fed_at == T
    assert agent.current_zone is None
    assert not agent.is_shell


def test_location_creates_shell_then_added_fills_identity(store: EntityStore) -> None:
    reconciler = Reconciler(store)

    assert reconciler.apply(located(12, "A5")) == ApplyOutcome.APPLIED
    shell = store.get_agent(12)
    assert shell is not None
    assert shell.is_shell

    reconciler.apply(added(12, herbivore=True))
    agent = store.get_agent(12)
    assert agent is not None
    assert agent.current_zone == "A5"
    assert agent.diet_class == DietClass.HERBIVORE


def test_removal_deletes(store: EntityStore) -> None:
    reconciler = Reconciler(store)
    reconciler.apply(added())

    assert reconciler.apply(removed()) == ApplyOutcome.APPLIED
    assert store.get_agent(7) is None


def test_removal_of_unknown_agent_is_skipped(store: EntityStore) -> None:
    assert Reconciler(store).apply(removed(404)) == ApplyOutcome.SKIPPED


def test_maintenance_advances_zone(store: EntityStore) -> None:
    reconciler = Reconciler(store)

    reconciler.apply(maintained("B3", at=T))
    reconciler.apply(maintained("B3", at=T - timedelta(days=10)))

    zone = store.get_zone("B3")
    assert zone is not None
    assert zone.last_maintenance_at == T
    assert len(store.maintenance_history("B3")) == 2


def test_accepts_decoded_events(store: EntityStore) -> None:
    assert Reconciler(store).apply(AgentFed(external_id=5, time=T)) == ApplyOutcome.APPLIED

    agent = store.get_agent(5)
    assert agent is not None
    assert agent.last_fed_at == T


# ------------------------------------------------------------------
# Validation policy
# ------------------------------------------------------------------


def test_invalid_added_raises(store: EntityStore) -> None:
    event = added()
    del event["species"]

    with pytest.raises(EventValidationError) as excinfo:
        Reconciler(store).apply(event)

    assert excinfo.value.kind == "dino_added"
    assert store.get_agent(7) is None


def test_invalid_maintenance_raises(store: EntityStore) -> None:
    event = maintained()
    del event["location"]

    with pytest.raises(EventValidationError):
        Reconciler(store).apply(event)


@pytest.mark.parametrize(
    "event",
    [
        {"kind": "dino_removed", "park_id": 1},
        {"kind": "dino_removed", "id": None},
        {"kind": "dino_location_updated", "dinosaur_id": 7, "time": "2026-02-10T12:00:00Z"},
        {"kind": "dino_location_updated", "dinosaur_id": 7, "location": "AA3", "time": "2026-02-10T12:00:00Z"},
        {"kind": "dino_location_updated", "location": "A3", "time": "2026-02-10T12:00:00Z"},
        {"kind": "dino_fed", "park_id": 1, "time": "2026-02-10T12:00:00Z"},
        {"kind": "dino_fed", "dinosaur_id": 0, "time": "2026-02-10T12:00:00Z"},
    ],
)
def test_tolerant_kinds_skip_malformed_events(store: EntityStore, event: dict[str, Any]) -> None:
    assert Reconciler(store).apply(event) == ApplyOutcome.SKIPPED
    assert store.list_agents() == []


def test_unknown_kind_is_ignored(store: EntityStore) -> None:
    assert Reconciler(store).apply({"kind": "dino_hatched", "id": 1}) == ApplyOutcome.IGNORED


def test_store_failure_propagates_for_tolerant_kinds() -> None:
    class _LockedStore(MemoryEntityStore):
        def upsert_agent_fed(self, external_id: int, *, fed_at: datetime) -> Any:
            raise StoreUnavailableError("database is locked")

    with pytest.raises(StoreUnavailableError):
        Reconciler(_LockedStore()).apply(fed())


# ------------------------------------------------------------------
# Out-of-range values
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    "event",
    [
        fed(2**70),
        located(2**63),
        removed(2**70),
    ],
)
def test_ids_beyond_64_bits_are_skipped(store: EntityStore, event: dict[str, Any]) -> None:
    assert Reconciler(store).apply(event) == ApplyOutcome.SKIPPED
    assert store.list_agents() == []


def test_added_with_id_beyond_64_bits_raises(store: EntityStore) -> None:
    with pytest.raises(EventValidationError):
        Reconciler(store).apply(added(2**63))


def test_added_with_huge_digestion_period_raises(store: EntityStore) -> None:
    with pytest.raises(EventValidationError):
        Reconciler(store).apply(added(digestion_period_in_hours=10**11))

    assert store.get_agent(7) is None


def test_largest_id_is_stored(store: EntityStore) -> None:
    largest = 2**63 - 1

    assert Reconciler(store).apply(fed(largest)) == ApplyOutcome.APPLIED
    assert store.get_agent(largest) is not None


@pytest.mark.parametrize("kind", [["dino_fed"], {"kind": "dino_fed"}])
def test_unhashable_kind_is_ignored(store: EntityStore, kind: object) -> None:
    assert Reconciler(store).apply({"kind": kind, "dinosaur_id": 1}) == ApplyOutcome.IGNORED
