"""Structural interface of an entity store."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from dinopark.models.agent import Agent, AgentIdentity, DietClass
from dinopark.models.zone import MaintenanceRecord, Zone


class EntityStore(Protocol):
    """What the reconciler and safety evaluator need from persistence.

    Every ``upsert_*`` and ``record_*`` call is a single atomic
    insert-or-merge keyed by natural identity (``external_id`` or zone
    code) and only touches its own field group. Implementations raise
    :class:`~dinopark.exceptions.StoreUnavailableError` when the backing
    storage fails.
    """

    def initialize_zones(self, codes: Iterable[str]) -> None:
        ...

    def upsert_agent_identity(self, identity: AgentIdentity, *, observed_at: datetime) -> Agent:
        ...

    def upsert_agent_location(self, external_id: int, zone_code: str, *, observed_at: datetime) -> Agent:
        ...

    def upsert_agent_fed(self, external_id: int, *, fed_at: datetime) -> Agent:
        ...

    def delete_agent(self, external_id: int) -> bool:
        ...

    def record_maintenance(self, zone_code: str, *, performed_at: datetime) -> Zone:
        ...

    def get_agent(self, external_id: int) -> Agent | None:
        ...

    def list_agents(self, *, zone_code: str | None = None, diet_class: DietClass | None = None) -> list[Agent]:
        ...

    def get_zone(self, code: str) -> Zone | None:
        ...

    def list_zones(self) -> list[Zone]:
        ...

    def maintenance_history(self, zone_code: str) -> list[MaintenanceRecord]:
        ...

    def latest_maintenance(self, zone_code: str) -> MaintenanceRecord | None:
        ...

    def count_maintenance_records(self) -> int:
        ...
