"""Upward spiral state."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SpiralName(str, Enum):
    ABUNDANCE = "abundance"
    COGNITIVE = "cognitive"
    DEMOCRATIC = "democratic"
    SCIENTIFIC = "scientific"
    MEANING = "meaning"
    ECOLOGICAL = "ecological"


class UpwardSpiral(BaseModel):
    active: bool = False
    strength: float = Field(ge=0, le=1, default=0.0)
    months_active: int = 0
    last_activated_month: Optional[int] = None
    last_deactivated_month: Optional[int] = None


def _all_spirals() -> Dict[SpiralName, UpwardSpiral]:
    return {name: UpwardSpiral() for name in SpiralName}


class UpwardSpiralState(BaseModel):
    spirals: Dict[SpiralName, UpwardSpiral] = Field(default_factory=_all_spirals)
    cascade_active: bool = False
    cascade_strength: float = 1.0
    cascade_months: int = 0

    def get(self, name: SpiralName) -> UpwardSpiral:
        """Entry for `name`, created if missing. For writers."""
        if name not in self.spirals:
            self.spirals[name] = UpwardSpiral()
        return self.spirals[name]

    def lookup(self, name: SpiralName) -> UpwardSpiral:
        """Read-only view; a missing entry reads as an inactive spiral."""
        return self.spirals.get(name) or UpwardSpiral()

    def active_names(self) -> List[SpiralName]:
        return [name for name in SpiralName if self.lookup(name).active]
