"""Agent (dinosaur) model."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import Field

from dinopark._constants import (
    DEFAULT_DIGESTION_PERIOD_HOURS,
    MAX_DIGESTION_PERIOD_HOURS,
    MAX_EXTERNAL_ID,
)
from dinopark.models._base import DinoparkModel, FeedTimestamp, ZoneCode


class DietClass(StrEnum):
    CARNIVORE = "carnivore"
    HERBIVORE = "herbivore"

    @classmethod
    def from_herbivore_flag(cls, herbivore: bool) -> DietClass:
        return cls.HERBIVORE if herbivore else cls.CARNIVORE


class AgentIdentity(DinoparkModel):
    """The identity field group of an agent: what it is.

    Written only by ``dino_added`` events and never touched by
    location or feeding updates.
    """

    external_id: int = Field(..., gt=0, le=MAX_EXTERNAL_ID)
    display_name: str
    species: str
    gender: str
    diet_class: DietClass
    digestion_period_hours: int = Field(
        default=DEFAULT_DIGESTION_PERIOD_HOURS,
        gt=0,
        le=MAX_DIGESTION_PERIOD_HOURS,
    )
    park_id: int = Field(..., le=MAX_EXTERNAL_ID)


class Agent(DinoparkModel):
    """A tracked dinosaur.

    Parameters
    ----------
    external_id : int
        Stable id assigned by the feed. Immutable.
    display_name, species, gender : str or None
        Identity fields; ``None`` on a shell created by an operational event.
    diet_class : DietClass or None
        ``None`` until the agent's ``dino_added`` event has been applied.
    digestion_period_hours : int
        Hours a fed carnivore stays safe.
    park_id : int or None
        Park the agent was registered in.
    current_zone : str or None
        Last known zone; ``None`` means location unknown.
    last_fed_at : datetime or None
        Most recent feeding time.
    identity_updated_at, location_updated_at : datetime or None
        Event timestamps that last won the identity and location groups.
    """

    external_id: int = Field(..., gt=0, le=MAX_EXTERNAL_ID)
    display_name: str | None = None
    species: str | None = None
    gender: str | None = None
    diet_class: DietClass | None = None
    digestion_period_hours: int = Field(
        default=DEFAULT_DIGESTION_PERIOD_HOURS,
        gt=0,
        le=MAX_DIGESTION_PERIOD_HOURS,
    )
    park_id: int | None = None
    current_zone: ZoneCode | None = None
    last_fed_at: FeedTimestamp | None = None
    identity_updated_at: FeedTimestamp | None = None
    location_updated_at: FeedTimestamp | None = None

    @property
    def is_carnivore(self) -> bool:
        return self.diet_class == DietClass.CARNIVORE

    @property
    def is_shell(self) -> bool:
        """True while no ``dino_added`` event has supplied the identity fields."""
        return self.identity_updated_at is None

    def is_digesting(self, now: datetime) -> bool:
        """True while the last meal is strictly within the digestion period.

        An agent that has never been fed is not digesting.
        """
        if self.last_fed_at is None:
            return False
        return now - self.last_fed_at < timedelta(hours=self.digestion_period_hours)
