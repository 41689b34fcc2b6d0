"""Scheduled feed polling.

:class:`FeedPoller` is an ordinary object owned by its caller: it holds
its own status counters and background task, and several pollers (for
example a backfill next to the scheduled one) can coexist.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from dinopark._constants import POLL_OUTAGE_THRESHOLD
from dinopark.ingestion.batch import BatchCoordinator, BatchResult
from dinopark.ingestion.events import EventKind
from dinopark.ingestion.feed import FeedSource

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _empty_kind_counts() -> dict[str, int]:
    return {kind.value: 0 for kind in EventKind}


class PollerStatus(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_running: bool = False
    last_successful_poll: datetime | None = None
    consecutive_failures: int = 0
    total_events: int = 0
    events_processed: dict[str, int] = Field(default_factory=_empty_kind_counts)


class FeedPoller:
    """Fetch the feed on an interval and run each batch through a coordinator.

    Usage::

        async with FeedPoller(source, coordinator, interval=120) as poller:
            ...
            print(poller.status)
    """

    def __init__(
        self,
        source: FeedSource,
        coordinator: BatchCoordinator,
        *,
        interval: float = 120.0,
        clock: Callable[[], datetime] = _utcnow,
        outage_threshold: int = POLL_OUTAGE_THRESHOLD,
    ) -> None:
        self._source = source
        self._coordinator = coordinator
        self._interval = interval
        self._clock = clock
        self._outage_threshold = outage_threshold
        self._status = PollerStatus()
        self._task: asyncio.Task[None] | None = None

    async def __aenter__(self) -> FeedPoller:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    @property
    def status(self) -> PollerStatus:
        """A snapshot of the poller's counters."""
        return self._status.model_copy(deep=True)

    @property
    def is_running(self) -> bool:
        return self._status.is_running

    @property
    def interval(self) -> float:
        return self._interval

    def start(self) -> None:
        """Start polling immediately and then every ``interval`` seconds.

        Must be called from a running event loop.
        """
        if self._status.is_running:
            _logger.warning("Feed poller already running")
            return
        self._status.is_running = True
        self._task = asyncio.get_running_loop().create_task(self._run())
        _logger.info("Feed poller started (every %.0fs)", self._interval)

    async def stop(self) -> None:
        """Stop submitting new batches and wait for the loop to exit."""
        if not self._status.is_running:
            _logger.warning("Feed poller not running")
            return
        self._status.is_running = False
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        _logger.info("Feed poller stopped")

    def reset_statistics(self) -> None:
        self._status.total_events = 0
        self._status.consecutive_failures = 0
        self._status.events_processed = _empty_kind_counts()

    async def _run(self) -> None:
        while self._status.is_running:
            await self.poll_once()
            await asyncio.sleep(self._interval)

    async def poll_once(self) -> BatchResult | None:
        """Fetch and process one batch.

        Returns the batch result, or ``None`` when the fetch or the batch
        run failed; failures only update the status counters.
        """
        try:
            events = await self._source.fetch()
            result = await asyncio.to_thread(self._coordinator.process_event_batch, events)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            self._status.consecutive_failures += 1
            _logger.warning(
                "Feed poll failed (%d consecutive failures): %s",
                self._status.consecutive_failures,
                exc,
                exc_info=True,
            )
            if self._status.consecutive_failures >= self._outage_threshold:
                _logger.error("Feed has been failing for %d polls", self._status.consecutive_failures)
            return None

        self._status.last_successful_poll = self._clock()
        self._status.consecutive_failures = 0
        self._status.total_events += result.total
        for kind, count in result.by_kind.items():
            self._status.events_processed[kind] = self._status.events_processed.get(kind, 0) + count

        if result.failed:
            _logger.warning("%d of %d feed events failed to process", result.failed, result.total)
        else:
            _logger.info("Processed %d feed events", result.total)
        return result
