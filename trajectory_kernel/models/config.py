"""Simulation configuration."""

from enum import Enum

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    FULL = "full"          # snapshot every month, every event kept
    MONTHLY = "monthly"    # snapshot every month
    QUARTILE = "quartile"  # snapshot at 0%, 25%, 50%, 75%, 100%
    SUMMARY = "summary"    # initial and final snapshots only


class SimulationConfig(BaseModel):
    """Configuration for a simulation run."""

    seed: int = 42
    max_months: int = Field(ge=1, default=1000)
    log_level: LogLevel = LogLevel.MONTHLY
    check_actual_outcomes: bool = True
    government_action_frequency: float = Field(ge=0, le=1, default=0.08)
    social_adaptation_rate: float = Field(ge=0, default=1.0)
    ai_coordination_multiplier: float = Field(ge=0, default=1.0)
    economic_transition_rate: float = Field(ge=0, default=1.0)
