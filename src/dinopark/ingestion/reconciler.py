"""Event reconciler.

Applies one feed event to the entity store as an idempotent partial merge
keyed on natural identity. The feed may replay its whole history and
deliver events for an agent in any order (fed before added, removed
before located), so no handler assumes a create-before-update order:

- ``dino_added`` writes the identity group only.
- ``dino_location_updated`` writes ``current_zone`` only, creating a shell.
- ``dino_fed`` advances ``last_fed_at`` only, creating a shell.
- ``dino_removed`` deletes the agent if present.
- ``maintenance_performed`` appends history and advances the zone.

Validation failures of ``dino_added`` and ``maintenance_performed`` are
raised to the caller. The other three kinds arrive interleaved with
partial data, so their validation failures are logged and skipped.
Store failures always propagate.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, assert_never

from dinopark.exceptions import EventValidationError, UnknownEventKindError
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
from dinopark.state.base import EntityStore

_logger = logging.getLogger(__name__)

_STRICT_KINDS = frozenset({EventKind.AGENT_ADDED, EventKind.MAINTENANCE_PERFORMED})


class ApplyOutcome(StrEnum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    IGNORED = "ignored"


class Reconciler:
    """Routes decoded events to per-kind merge handlers."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def apply(self, event: Mapping[str, Any] | FeedEvent) -> ApplyOutcome:
        """Apply a raw or decoded feed event.

        Returns
        -------
        ApplyOutcome
            ``APPLIED`` when the store was written, ``SKIPPED`` for tolerated
            malformed events and removals of unknown agents, ``IGNORED`` for
            unknown kinds.

        Raises
        ------
        EventValidationError
            For an invalid ``dino_added`` or ``maintenance_performed`` event.
        StoreUnavailableError
            When the store cannot complete the write.
        """
        try:
            decoded = decode_event(event)
        except UnknownEventKindError as exc:
            _logger.warning("Ignoring event of unknown kind %r", exc.kind)
            return ApplyOutcome.IGNORED
        except EventValidationError as exc:
            if exc.kind in _STRICT_KINDS:
                raise
            _logger.warning("Skipped %s event: %s", exc.kind or "malformed", exc)
            return ApplyOutcome.SKIPPED

        match decoded:
            case AgentAdded():
                return self._apply_added(decoded)
            case AgentRemoved():
                return self._apply_removed(decoded)
            case AgentLocationUpdated():
                return self._apply_location(decoded)
            case AgentFed():
                return self._apply_fed(decoded)
            case MaintenancePerformed():
                return self._apply_maintenance(decoded)
            case _:
                assert_never(decoded)

    def _apply_added(self, event: AgentAdded) -> ApplyOutcome:
        agent = self._store.upsert_agent_identity(event.identity(), observed_at=event.time)
        _logger.debug(
            "Added/updated %s %s (id %s, %s)",
            agent.diet_class,
            agent.display_name,
            agent.external_id,
            agent.species,
        )
        return ApplyOutcome.APPLIED

    def _apply_removed(self, event: AgentRemoved) -> ApplyOutcome:
        if not self._store.delete_agent(event.external_id):
            _logger.info("Removal of unknown agent %s skipped", event.external_id)
            return ApplyOutcome.SKIPPED
        _logger.debug("Removed agent %s", event.external_id)
        return ApplyOutcome.APPLIED

    def _apply_location(self, event: AgentLocationUpdated) -> ApplyOutcome:
        agent = self._store.upsert_agent_location(event.external_id, event.zone_code, observed_at=event.time)
        _logger.debug("Agent %s now in zone %s", agent.external_id, agent.current_zone)
        return ApplyOutcome.APPLIED

    def _apply_fed(self, event: AgentFed) -> ApplyOutcome:
        agent = self._store.upsert_agent_fed(event.external_id, fed_at=event.time)
        _logger.debug("Agent %s last fed at %s", agent.external_id, agent.last_fed_at)
        return ApplyOutcome.APPLIED

    def _apply_maintenance(self, event: MaintenancePerformed) -> ApplyOutcome:
        zone = self._store.record_maintenance(event.zone_code, performed_at=event.time)
        _logger.info("Recorded maintenance of zone %s at %s", zone.code, event.time.isoformat())
        return ApplyOutcome.APPLIED
