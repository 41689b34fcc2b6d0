"""Zone safety and maintenance rules.

A zone is safe for maintenance workers when it holds no carnivores, or
every carnivore in it is still digesting its last meal. Safety is derived
live from the entity store on every call; nothing is cached. When the
answer cannot be determined the zone is reported unsafe.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from dinopark._constants import MAINTENANCE_INTERVAL, ZONE_COLUMNS, ZONE_ROW_COUNT
from dinopark.ingestion.normalize import ensure_utc
from dinopark.models.agent import Agent, DietClass
from dinopark.models.zone import ZoneReport, ZoneStatus
from dinopark.state.base import EntityStore
from dinopark.zones import normalize_zone_code, split_zone_code

_logger = logging.getLogger(__name__)

REASON_NO_CARNIVORES = "No carnivores present"
REASON_ALL_DIGESTING = "All carnivores are digesting"
REASON_HUNGRY_CARNIVORES = "Carnivores present and not digesting"
REASON_UNKNOWN = "Safety could not be determined"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def is_maintenance_due(last_maintenance_at: datetime | None, *, now: datetime | None = None) -> bool:
    """Return True if a zone needs maintenance.

    Due when never maintained, or when 30 days or more have passed. It is
    not due only while strictly inside the 30-day window. Naive datetimes
    are taken as UTC.
    """
    if last_maintenance_at is None:
        return True
    if now is None:
        now = _utcnow()
    return ensure_utc(now) - ensure_utc(last_maintenance_at) >= MAINTENANCE_INTERVAL


def carnivores_are_digesting(carnivores: list[Agent], now: datetime) -> bool:
    """True if every carnivore is digesting. Never-fed carnivores count as hungry."""
    return all(carnivore.is_digesting(now) for carnivore in carnivores)


class SafetyEvaluator:
    """Read-only view deriving zone safety from an entity store."""

    def __init__(self, store: EntityStore, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock

    def evaluate_zone_safety(self, zone_code: str) -> bool:
        """Return True if *zone_code* is safe to enter right now.

        Any failure, including an off-grid code or an unavailable store,
        yields False.
        """
        try:
            code = normalize_zone_code(zone_code)
            carnivores = self._store.list_agents(zone_code=code, diet_class=DietClass.CARNIVORE)
            return carnivores_are_digesting(carnivores, self._clock())
        except Exception:  # noqa: BLE001
            _logger.warning("Could not evaluate safety of zone %r; reporting unsafe", zone_code, exc_info=True)
            return False

    def is_maintenance_due(self, last_maintenance_at: datetime | None) -> bool:
        return is_maintenance_due(last_maintenance_at, now=self._clock())

    def zone_report(self, zone_code: str) -> ZoneReport:
        """Build the full safety view of one zone.

        Raises
        ------
        InvalidZoneCodeError
            If *zone_code* is not on the A0-Z15 grid.
        """
        code = normalize_zone_code(zone_code)
        column, row = split_zone_code(code)
        now = self._clock()

        try:
            zone = self._store.get_zone(code)
            agents = self._store.list_agents(zone_code=code)
            carnivores = [agent for agent in agents if agent.diet_class == DietClass.CARNIVORE]
            digesting = {carnivore.external_id: carnivore.is_digesting(now) for carnivore in carnivores}
            last_maintenance_at = zone.last_maintenance_at if zone is not None else None
            needs_maintenance = is_maintenance_due(last_maintenance_at, now=now)
        except Exception:  # noqa: BLE001
            _logger.warning("Could not evaluate zone %s; reporting unsafe", code, exc_info=True)
            return ZoneReport(
                code=code,
                column=column,
                row=row,
                safe=False,
                needs_maintenance=True,
                status=ZoneStatus.UNSAFE,
                safety_reason=REASON_UNKNOWN,
            )

        herbivores = [agent for agent in agents if agent.diet_class == DietClass.HERBIVORE]
        unclassified = [agent for agent in agents if agent.diet_class is None]

        if not carnivores:
            safe, reason = True, REASON_NO_CARNIVORES
        elif all(digesting.values()):
            safe, reason = True, REASON_ALL_DIGESTING
        else:
            safe, reason = False, REASON_HUNGRY_CARNIVORES

        if not safe:
            status = ZoneStatus.UNSAFE
        elif needs_maintenance:
            status = ZoneStatus.SAFE_NEEDS_MAINTENANCE
        else:
            status = ZoneStatus.SAFE

        return ZoneReport(
            code=code,
            column=column,
            row=row,
            safe=safe,
            needs_maintenance=needs_maintenance,
            last_maintenance_at=last_maintenance_at,
            status=status,
            safety_reason=reason,
            carnivores=carnivores,
            herbivores=herbivores,
            unclassified=unclassified,
            digesting=digesting,
        )

    def grid(self) -> list[list[ZoneReport]]:
        """Reports for the whole park, one list per row (0-15), columns A-Z."""
        return [
            [self.zone_report(f"{column}{row}") for column in ZONE_COLUMNS]
            for row in range(ZONE_ROW_COUNT)
        ]
