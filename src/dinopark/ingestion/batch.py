"""Batch coordinator.

Drives a sequence of feed events through the reconciler one by one. The
order of the sequence is not trusted and a failing event never stops the
rest of the batch.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from dinopark.ingestion.events import FeedEvent
from dinopark.ingestion.normalize import describe_event
from dinopark.ingestion.reconciler import ApplyOutcome, Reconciler

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BatchFailure:
    """One event the reconciler could not apply."""

    index: int
    kind: str | None
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass(slots=True)
class BatchResult:
    """Summary of one batch run.

    ``processed`` counts applied, skipped and ignored events; ``failed``
    counts events that raised. ``by_kind`` counts every event seen, keyed
    by its ``kind`` string (``"unknown"`` when absent).
    """

    processed: int = 0
    failed: int = 0
    errors: list[BatchFailure] = field(default_factory=list)
    outcomes: Counter[ApplyOutcome] = field(default_factory=Counter)
    by_kind: Counter[str] = field(default_factory=Counter)

    @property
    def total(self) -> int:
        return self.processed + self.failed


class BatchCoordinator:
    def __init__(self, reconciler: Reconciler) -> None:
        self._reconciler = reconciler

    def process_event_batch(self, events: Iterable[Mapping[str, Any] | FeedEvent]) -> BatchResult:
        """Apply every event, collecting failures instead of raising them."""
        result = BatchResult()

        for index, event in enumerate(events):
            kind: str | None = None
            try:
                kind, park_id = describe_event(event)
                _logger.info("Processing %s event #%d (park %s)", kind, index, park_id)
                outcome = self._reconciler.apply(event)
            except Exception as exc:  # noqa: BLE001
                result.by_kind[kind or "unknown"] += 1
                result.failed += 1
                result.errors.append(BatchFailure(index=index, kind=kind, error=exc))
                _logger.warning("Failed to process %s event #%d: %s", kind, index, exc, exc_info=True)
                continue

            result.by_kind[kind or "unknown"] += 1
            result.processed += 1
            result.outcomes[outcome] += 1

        _logger.info("Batch done: %d processed, %d failed", result.processed, result.failed)
        return result
