"""Outcome query results."""

from enum import Enum

from pydantic import BaseModel, Field


class Attractor(str, Enum):
    UTOPIA = "utopia"
    DYSTOPIA = "dystopia"
    EXTINCTION = "extinction"
    NONE = "none"


class OutcomeProbabilities(BaseModel):
    """Soft signal only; never used to lock a run."""

    utopia_probability: float = Field(ge=0, le=1)
    dystopia_probability: float = Field(ge=0, le=1)
    extinction_probability: float = Field(ge=0, le=1)
    active_attractor: Attractor = Attractor.NONE
    lock_in_strength: float = Field(ge=0, le=1, default=0.0)


class OutcomeDetermination(BaseModel):
    outcome: str  # "utopia" | "dystopia" | "extinction" | "active"
    reason: str
    confidence: float = Field(ge=0, le=1)


class UtopiaGateResult(BaseModel):
    can: bool
    reason: str
    spiral_count: int  # spirals sustained for the required consecutive months
