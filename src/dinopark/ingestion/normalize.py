"""Normalization helpers.

Centralizes defensive parsing of raw feed values.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None or math.isinf(parsed):
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_feed_timestamp(value: Any) -> Any:
    """Coerce a feed timestamp to a UTC datetime.

    Accepts datetimes, ISO-8601 strings (``Z`` suffix included) and epoch
    numbers in seconds or milliseconds. Anything else is returned untouched
    so the model's own validation reports it.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        ts = float(value)
        if math.isnan(ts) or ts <= 0:
            return value
        # Treat values above 1e11 as milliseconds.
        if ts > 1e11:
            ts /= 1000.0
        return datetime.fromtimestamp(ts, tz=UTC)
    return value


def describe_event(event: Any) -> tuple[str | None, int | None]:
    """Best-effort ``(kind, park_id)`` of a raw or decoded event, for logging."""
    if isinstance(event, Mapping):
        return safe_str(event.get("kind")), safe_int(event.get("park_id"))
    return safe_str(getattr(event, "kind", None)), safe_int(getattr(event, "park_id", None))
