"""Typed feed events.

The feed delivers JSON objects tagged by a ``kind`` string. They decode
into a closed union of exactly five models; anything else is reported as
:class:`~dinopark.exceptions.UnknownEventKindError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, Field, TypeAdapter, ValidationError, model_validator

from dinopark._constants import MAX_DIGESTION_PERIOD_HOURS, MAX_EXTERNAL_ID
from dinopark.exceptions import EventValidationError, UnknownEventKindError
from dinopark.models._base import DinoparkModel, FeedTimestamp, ZoneCode
from dinopark.models.agent import AgentIdentity, DietClass


class EventKind(StrEnum):
    AGENT_ADDED = "dino_added"
    AGENT_REMOVED = "dino_removed"
    AGENT_LOCATION_UPDATED = "dino_location_updated"
    AGENT_FED = "dino_fed"
    MAINTENANCE_PERFORMED = "maintenance_performed"


class _FeedEvent(DinoparkModel):
    """Fields shared by every feed event."""

    time: FeedTimestamp | None = None
    park_id: int | None = None


class AgentAdded(_FeedEvent):
    kind: Literal["dino_added"] = "dino_added"
    time: FeedTimestamp
    park_id: int = Field(..., le=MAX_EXTERNAL_ID)
    external_id: int = Field(
        ...,
        gt=0,
        le=MAX_EXTERNAL_ID,
        validation_alias=AliasChoices("id", "external_id"),
    )
    display_name: str = Field(..., min_length=1, validation_alias=AliasChoices("name", "display_name"))
    species: str = Field(..., min_length=1)
    gender: str = Field(..., min_length=1)
    diet_class: DietClass
    digestion_period_hours: int = Field(
        ...,
        gt=0,
        le=MAX_DIGESTION_PERIOD_HOURS,
        validation_alias=AliasChoices("digestion_period_in_hours", "digestion_period_hours"),
    )

    @model_validator(mode="before")
    @classmethod
    def _diet_from_herbivore_flag(cls, values: Any) -> Any:
        """The feed sends ``herbivore: bool``; map it onto ``diet_class``."""
        if not isinstance(values, Mapping) or "diet_class" in values:
            return values
        herbivore = values.get("herbivore")
        if isinstance(herbivore, bool):
            return {**values, "diet_class": DietClass.from_herbivore_flag(herbivore)}
        return values

    def identity(self) -> AgentIdentity:
        return AgentIdentity(
            external_id=self.external_id,
            display_name=self.display_name,
            species=self.species,
            gender=self.gender,
            diet_class=self.diet_class,
            digestion_period_hours=self.digestion_period_hours,
            park_id=self.park_id,
        )


class AgentRemoved(_FeedEvent):
    kind: Literal["dino_removed"] = "dino_removed"
    external_id: int = Field(
        ...,
        gt=0,
        le=MAX_EXTERNAL_ID,
        validation_alias=AliasChoices("id", "dinosaur_id", "external_id"),
    )


class AgentLocationUpdated(_FeedEvent):
    kind: Literal["dino_location_updated"] = "dino_location_updated"
    time: FeedTimestamp
    external_id: int = Field(
        ...,
        gt=0,
        le=MAX_EXTERNAL_ID,
        validation_alias=AliasChoices("dinosaur_id", "id", "external_id"),
    )
    zone_code: ZoneCode = Field(..., validation_alias=AliasChoices("location", "zone_code"))


class AgentFed(_FeedEvent):
    kind: Literal["dino_fed"] = "dino_fed"
    time: FeedTimestamp
    external_id: int = Field(
        ...,
        gt=0,
        le=MAX_EXTERNAL_ID,
        validation_alias=AliasChoices("dinosaur_id", "id", "external_id"),
    )


class MaintenancePerformed(_FeedEvent):
    kind: Literal["maintenance_performed"] = "maintenance_performed"
    time: FeedTimestamp
    zone_code: ZoneCode = Field(..., validation_alias=AliasChoices("location", "zone_code"))


FeedEvent = Annotated[
    AgentAdded | AgentRemoved | AgentLocationUpdated | AgentFed | MaintenancePerformed,
    Field(discriminator="kind"),
]

_FEED_EVENT_ADAPTER: TypeAdapter[FeedEvent] = TypeAdapter(FeedEvent)
_EVENT_TYPES = (AgentAdded, AgentRemoved, AgentLocationUpdated, AgentFed, MaintenancePerformed)
_KNOWN_KINDS = frozenset(kind.value for kind in EventKind)


def _first_error_field(exc: ValidationError) -> str | None:
    for error in exc.errors():
        # Discriminated unions prefix the location with the tag; the field is last.
        names = [part for part in error.get("loc", ()) if isinstance(part, str) and part not in _KNOWN_KINDS]
        if names:
            return names[-1]
    return None


def decode_event(event: Mapping[str, Any] | FeedEvent) -> FeedEvent:
    """Decode a raw feed payload into its typed event.

    Already-decoded events are returned unchanged.

    Raises
    ------
    UnknownEventKindError
        If ``kind`` is missing or not one of the five known kinds.
    EventValidationError
        If the payload is not an object or a required field is missing or invalid.
    """
    if isinstance(event, _EVENT_TYPES):
        return event
    if not isinstance(event, Mapping):
        raise EventValidationError(f"event payload must be an object, got {type(event).__name__}")

    kind = event.get("kind")
    if not isinstance(kind, str) or kind not in _KNOWN_KINDS:
        raise UnknownEventKindError(f"unknown event kind {kind!r}", kind=kind if isinstance(kind, str) else None)

    try:
        return _FEED_EVENT_ADAPTER.validate_python(dict(event))
    except ValidationError as exc:
        field = _first_error_field(exc)
        detail = exc.errors()[0].get("msg", "invalid") if exc.errors() else "invalid"
        raise EventValidationError(
            f"invalid {kind} event: {field or 'payload'}: {detail}",
            kind=kind,
            field=field,
        ) from exc
