"""Deterministic state merge policy.

Each field group of an agent carries the timestamp of the event that last
wrote it. These rules decide whether an incoming event wins; they make
re-delivery idempotent and updates to different groups commutative.
"""

from __future__ import annotations

from datetime import datetime


def should_accept_update(*, cached_ts: datetime | None, incoming_ts: datetime) -> bool:
    """Last-writer-wins for a field group.

    Accept when nothing was recorded yet or the incoming event is not older.
    Equal timestamps are accepted so re-applying the same event is a no-op
    rewrite of identical values.
    """
    if cached_ts is None:
        return True
    return incoming_ts >= cached_ts


def latest(cached: datetime | None, incoming: datetime) -> datetime:
    """Monotonic timestamp fields (feeding, maintenance) never move backwards."""
    if cached is None or incoming > cached:
        return incoming
    return cached
