"""Base model and shared annotated types.

Every dinopark model inherits from :class:`DinoparkModel` which is frozen,
ignores unknown keys and accepts both field names and aliases.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict

from dinopark.ingestion.normalize import ensure_utc, parse_feed_timestamp
from dinopark.zones import normalize_zone_code

FeedTimestamp = Annotated[datetime, BeforeValidator(parse_feed_timestamp), AfterValidator(ensure_utc)]
"""Annotated type that coerces ISO-8601 strings or epoch numbers to UTC datetimes."""

ZoneCode = Annotated[str, AfterValidator(normalize_zone_code)]
"""Annotated type accepting only codes on the A0-Z15 grid."""


class DinoparkModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
