"""Park facade.

Wires a store, reconciler, batch coordinator and safety evaluator
together and exposes the operations the HTTP and CLI layers call.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from dinopark.config import DinoparkConfig
from dinopark.ingestion.batch import BatchCoordinator, BatchResult
from dinopark.ingestion.events import FeedEvent
from dinopark.ingestion.feed import FeedSource
from dinopark.ingestion.poller import FeedPoller
from dinopark.ingestion.reconciler import Reconciler
from dinopark.models.agent import DietClass
from dinopark.models.zone import ZoneReport
from dinopark.safety import SafetyEvaluator
from dinopark.state.base import EntityStore
from dinopark.state.sqlite import SqliteEntityStore
from dinopark.zones import enumerate_zone_codes


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ParkStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_agents: int
    carnivores: int
    herbivores: int
    zones_with_maintenance: int
    maintenance_records: int


class Park:
    """One park's ingestion and safety core.

    Usage::

        park = Park.from_config(DinoparkConfig.from_env())
        park.process_event_batch(events)
        park.evaluate_zone_safety("E10")
    """

    def __init__(
        self,
        store: EntityStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
        poll_interval: float = 120.0,
    ) -> None:
        self.store = store
        self.poll_interval = poll_interval
        self.store.initialize_zones(enumerate_zone_codes())
        self.reconciler = Reconciler(store)
        self.coordinator = BatchCoordinator(self.reconciler)
        self.evaluator = SafetyEvaluator(store, clock=clock)

    @classmethod
    def from_config(cls, config: DinoparkConfig) -> Park:
        return cls(
            SqliteEntityStore(config.database_path, timeout=config.store_timeout),
            poll_interval=config.poll_interval,
        )

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def process_event_batch(self, events: Iterable[Mapping[str, Any] | FeedEvent]) -> BatchResult:
        return self.coordinator.process_event_batch(events)

    def evaluate_zone_safety(self, zone_code: str) -> bool:
        return self.evaluator.evaluate_zone_safety(zone_code)

    def is_maintenance_due(self, last_maintenance_at: datetime | None) -> bool:
        return self.evaluator.is_maintenance_due(last_maintenance_at)

    @staticmethod
    def enumerate_zone_codes() -> list[str]:
        return enumerate_zone_codes()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def zone_report(self, zone_code: str) -> ZoneReport:
        return self.evaluator.zone_report(zone_code)

    def grid(self) -> list[list[ZoneReport]]:
        return self.evaluator.grid()

    def status(self) -> ParkStatistics:
        """Counts of stored agents, maintained zones and maintenance records."""
        agents = self.store.list_agents()
        zones = self.store.list_zones()
        return ParkStatistics(
            total_agents=len(agents),
            carnivores=sum(1 for agent in agents if agent.diet_class == DietClass.CARNIVORE),
            herbivores=sum(1 for agent in agents if agent.diet_class == DietClass.HERBIVORE),
            zones_with_maintenance=sum(1 for zone in zones if zone.last_maintenance_at is not None),
            maintenance_records=self.store.count_maintenance_records(),
        )

    def poller(self, source: FeedSource, *, interval: float | None = None) -> FeedPoller:
        """Create a feed poller feeding this park. The caller owns its lifecycle.

        ``interval`` defaults to the park's configured ``poll_interval``.
        """
        return FeedPoller(
            source,
            self.coordinator,
            interval=self.poll_interval if interval is None else interval,
        )
