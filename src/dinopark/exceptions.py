"""Custom exception hierarchy for dinopark."""

from __future__ import annotations


class DinoparkError(Exception):
    """Base exception for all dinopark errors."""


class DinoparkConfigError(DinoparkError):
    """Invalid or missing configuration."""


class InvalidZoneCodeError(DinoparkError, ValueError):
    """A zone code outside the A0-Z15 grid."""

    def __init__(self, code: object) -> None:
        self.code = code
        super().__init__(f"invalid zone code {code!r}; expected A0-Z15")


class EventError(DinoparkError):
    """Base for feed events that cannot be applied."""

    def __init__(self, message: str, *, kind: str | None = None) -> None:
        self.kind = kind
        super().__init__(message)


class EventValidationError(EventError):
    """Feed event with a missing or malformed required field.

    Fatal to a ``dino_added`` or ``maintenance_performed`` event; the
    other kinds treat it as a tolerated skip.
    """

    def __init__(self, message: str, *, kind: str | None = None, field: str | None = None) -> None:
        self.field = field
        super().__init__(message, kind=kind)


class UnknownEventKindError(EventError):
    """Feed event whose ``kind`` is not one of the five known kinds."""


class StoreUnavailableError(DinoparkError):
    """The entity store could not complete a read or write."""


class FeedTransportError(DinoparkError):
    """HTTP-level failure fetching the feed (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)
