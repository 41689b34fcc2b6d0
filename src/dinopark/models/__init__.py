"""Domain models for the park."""

from dinopark.models._base import DinoparkModel, FeedTimestamp, ZoneCode
from dinopark.models.agent import Agent, AgentIdentity, DietClass
from dinopark.models.zone import MaintenanceRecord, Zone, ZoneReport, ZoneStatus

__all__ = [
    "Agent",
    "AgentIdentity",
    "DietClass",
    "DinoparkModel",
    "FeedTimestamp",
    "MaintenanceRecord",
    "Zone",
    "ZoneCode",
    "ZoneReport",
    "ZoneStatus",
]
