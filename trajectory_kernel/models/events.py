"""Structured simulation events."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class EventSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class SimulationEvent(BaseModel):
    """One entry in a month's event log."""

    id: str
    month: int
    type: str                               # e.g. "crisis", "end_game", "milestone"
    severity: EventSeverity = EventSeverity.INFO
    title: str
    description: str = ""
    phase_id: Optional[str] = None
    data: dict = {}

    @property
    def is_critical(self) -> bool:
        return self.severity == EventSeverity.CRITICAL or self.type == "crisis"
