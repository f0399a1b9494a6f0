"""End-game, Golden Age and extinction records."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class OutcomeType(str, Enum):
    UTOPIA = "utopia"
    DYSTOPIA = "dystopia"
    EXTINCTION = "extinction"


class EndGamePhase(str, Enum):
    NOT_ENTERED = "not_entered"
    EMERGING = "emerging"
    ACTIVE = "active"
    RESOLVED = "resolved"


class EndGameState(BaseModel):
    """
    Power-balance regime once AI has plausibly outpaced human control.

    States: not_entered → emerging → active → resolved

    aligned_power/misaligned_power are recomputed every month. human_relevance
    never increases. The locked_* fields are written exactly once.
    """

    phase: EndGamePhase = EndGamePhase.NOT_ENTERED
    entered_month: Optional[int] = None
    entry_reason: Optional[str] = None
    aligned_power: float = 0.0
    misaligned_power: float = 0.0
    human_relevance: float = Field(ge=0, le=1, default=1.0)
    months_in_end_game: int = 0
    aligned_victories: int = 0
    misaligned_victories: int = 0
    locked: bool = False
    locked_outcome: Optional[OutcomeType] = None
    locked_reason: Optional[str] = None
    locked_month: Optional[int] = None

    @property
    def in_progress(self) -> bool:
        return self.phase in (EndGamePhase.EMERGING, EndGamePhase.ACTIVE)


class GoldenAgeState(BaseModel):
    """Immediate prosperity. Not yet utopia: sustainability is unproven."""

    active: bool = False
    entry_month: Optional[int] = None
    duration: int = 0
    entry_reason: Optional[str] = None


class ExtinctionRecord(BaseModel):
    active: bool = False
    type: Optional[str] = None           # e.g. "rapid"
    mechanism: Optional[str] = None      # e.g. "climate_tipping_point"
    severity: float = Field(ge=0, le=1, default=0.0)
    start_month: Optional[int] = None
    current_phase: int = 0
    recovery_window_closed: bool = False
    completed: bool = False
