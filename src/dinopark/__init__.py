"""dinopark - Event reconciliation and zone safety for a dinosaur park."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("dinopark")
except PackageNotFoundError:
    __version__ = "0+local"
from dinopark.config import DinoparkConfig
from dinopark.exceptions import (
    DinoparkConfigError,
    DinoparkError,
    EventError,
    EventValidationError,
    FeedTransportError,
    InvalidZoneCodeError,
    StoreUnavailableError,
    UnknownEventKindError,
)
from dinopark.ingestion.batch import BatchCoordinator, BatchFailure, BatchResult
from dinopark.ingestion.events import (
    AgentAdded,
    AgentFed,
    AgentLocationUpdated,
    AgentRemoved,
    EventKind,
    FeedEvent,
    MaintenancePerformed,
    decode_event,
)
from dinopark.ingestion.feed import FeedSource, HttpFeedSource
from dinopark.ingestion.poller import FeedPoller, PollerStatus
from dinopark.ingestion.reconciler import ApplyOutcome, Reconciler
from dinopark.models import Agent, AgentIdentity, DietClass, MaintenanceRecord, Zone, ZoneReport, ZoneStatus
from dinopark.park import Park, ParkStatistics
from dinopark.safety import SafetyEvaluator, is_maintenance_due
from dinopark.state import EntityStore, MemoryEntityStore, SqliteEntityStore
from dinopark.zones import enumerate_zone_codes, is_valid_zone_code, normalize_zone_code

__all__ = [
    "__version__",
    "Agent",
    "AgentAdded",
    "AgentFed",
    "AgentIdentity",
    "AgentLocationUpdated",
    "AgentRemoved",
    "ApplyOutcome",
    "BatchCoordinator",
    "BatchFailure",
    "BatchResult",
    "DietClass",
    "DinoparkConfig",
    "DinoparkConfigError",
    "DinoparkError",
    "EntityStore",
    "EventError",
    "EventKind",
    "EventValidationError",
    "FeedEvent",
    "FeedPoller",
    "FeedSource",
    "FeedTransportError",
    "HttpFeedSource",
    "InvalidZoneCodeError",
    "MaintenancePerformed",
    "MaintenanceRecord",
    "MemoryEntityStore",
    "Park",
    "ParkStatistics",
    "PollerStatus",
    "Reconciler",
    "SafetyEvaluator",
    "SqliteEntityStore",
    "StoreUnavailableError",
    "UnknownEventKindError",
    "Zone",
    "ZoneReport",
    "ZoneStatus",
    "decode_event",
    "enumerate_zone_codes",
    "is_maintenance_due",
    "is_valid_zone_code",
    "normalize_zone_code",
]
