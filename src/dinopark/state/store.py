"""In-memory entity store.

Holds agents, zones and maintenance history in dictionaries. Every write
performs its read-merge-write under one lock, so concurrent batches see
the same atomic upsert semantics as the SQLite store.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import datetime

from dinopark.models.agent import Agent, AgentIdentity, DietClass
from dinopark.models.zone import MaintenanceRecord, Zone
from dinopark.state.policy import latest, should_accept_update
from dinopark.zones import normalize_zone_code


class MemoryEntityStore:
    """Dictionary-backed :class:`~dinopark.state.base.EntityStore`.

    Given the same set of updates in any order, it converges to the same
    agents and zones.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._agents: dict[int, Agent] = {}
        self._zones: dict[str, Zone] = {}
        self._maintenance: dict[str, dict[datetime, MaintenanceRecord]] = {}

    def _agent(self, external_id: int) -> Agent:
        agent = self._agents.get(external_id)
        if agent is None:
            agent = Agent(external_id=external_id)
        return agent

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def initialize_zones(self, codes: Iterable[str]) -> None:
        with self._lock:
            for code in codes:
                normalized = normalize_zone_code(code)
                self._zones.setdefault(normalized, Zone(code=normalized))

    def upsert_agent_identity(self, identity: AgentIdentity, *, observed_at: datetime) -> Agent:
        with self._lock:
            agent = self._agent(identity.external_id)
            if should_accept_update(cached_ts=agent.identity_updated_at, incoming_ts=observed_at):
                agent = agent.model_copy(
                    update={
                        **identity.model_dump(exclude={"external_id"}),
                        "identity_updated_at": observed_at,
                    }
                )
            self._agents[identity.external_id] = agent
            return agent

    def upsert_agent_location(self, external_id: int, zone_code: str, *, observed_at: datetime) -> Agent:
        zone_code = normalize_zone_code(zone_code)
        with self._lock:
            agent = self._agent(external_id)
            if should_accept_update(cached_ts=agent.location_updated_at, incoming_ts=observed_at):
                agent = agent.model_copy(update={"current_zone": zone_code, "location_updated_at": observed_at})
            self._agents[external_id] = agent
            return agent

    def upsert_agent_fed(self, external_id: int, *, fed_at: datetime) -> Agent:
        with self._lock:
            agent = self._agent(external_id)
            agent = agent.model_copy(update={"last_fed_at": latest(agent.last_fed_at, fed_at)})
            self._agents[external_id] = agent
            return agent

    def delete_agent(self, external_id: int) -> bool:
        with self._lock:
            return self._agents.pop(external_id, None) is not None

    def record_maintenance(self, zone_code: str, *, performed_at: datetime) -> Zone:
        zone_code = normalize_zone_code(zone_code)
        with self._lock:
            history = self._maintenance.setdefault(zone_code, {})
            history.setdefault(
                performed_at,
                MaintenanceRecord(
                    zone_code=zone_code,
                    performed_at=performed_at,
                    notes=f"Maintenance performed via NUDLS event at {performed_at.isoformat()}",
                ),
            )
            zone = self._zones.get(zone_code) or Zone(code=zone_code)
            zone = zone.model_copy(
                update={"last_maintenance_at": latest(zone.last_maintenance_at, performed_at)}
            )
            self._zones[zone_code] = zone
            return zone

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_agent(self, external_id: int) -> Agent | None:
        return self._agents.get(external_id)

    def list_agents(self, *, zone_code: str | None = None, diet_class: DietClass | None = None) -> list[Agent]:
        with self._lock:
            agents = list(self._agents.values())
        if zone_code is not None:
            agents = [agent for agent in agents if agent.current_zone == zone_code]
        if diet_class is not None:
            agents = [agent for agent in agents if agent.diet_class == diet_class]
        return sorted(agents, key=lambda agent: agent.external_id)

    def get_zone(self, code: str) -> Zone | None:
        return self._zones.get(code)

    def list_zones(self) -> list[Zone]:
        with self._lock:
            return sorted(self._zones.values(), key=lambda zone: zone.code)

    def maintenance_history(self, zone_code: str) -> list[MaintenanceRecord]:
        with self._lock:
            history = list(self._maintenance.get(zone_code, {}).values())
        return sorted(history, key=lambda record: record.performed_at)

    def latest_maintenance(self, zone_code: str) -> MaintenanceRecord | None:
        history = self.maintenance_history(zone_code)
        return history[-1] if history else None

    def count_maintenance_records(self) -> int:
        with self._lock:
            return sum(len(history) for history in self._maintenance.values())
