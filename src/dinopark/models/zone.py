"""Zone, maintenance and zone report models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from dinopark.models._base import DinoparkModel, FeedTimestamp, ZoneCode
from dinopark.models.agent import Agent


class Zone(DinoparkModel):
    code: ZoneCode
    last_maintenance_at: FeedTimestamp | None = None


class MaintenanceRecord(DinoparkModel):
    """One maintenance action on a zone. History is append-only."""

    zone_code: ZoneCode
    performed_at: FeedTimestamp
    performed_by: str = "NUDLS"
    notes: str | None = None


class ZoneStatus(StrEnum):
    SAFE = "safe"
    SAFE_NEEDS_MAINTENANCE = "safe_needs_maintenance"
    UNSAFE = "unsafe"


class ZoneReport(DinoparkModel):
    """Derived safety view of one zone at a point in time."""

    code: ZoneCode
    column: str
    row: int
    safe: bool
    needs_maintenance: bool
    last_maintenance_at: FeedTimestamp | None = None
    status: ZoneStatus
    safety_reason: str
    carnivores: list[Agent] = Field(default_factory=list)
    herbivores: list[Agent] = Field(default_factory=list)
    unclassified: list[Agent] = Field(default_factory=list)
    """Shell agents located here whose diet is not known yet."""
    digesting: dict[int, bool] = Field(default_factory=dict)
    """``external_id`` -> whether each carnivore is still digesting."""
