"""AI agents — the actors whose capability and alignment drive the end-game."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AgentLifecycle(str, Enum):
    ACTIVE = "active"
    RETIRED = "retired"


class CapabilityProfile(BaseModel):
    """Multi-dimensional capability breakdown used by catastrophic-capability checks."""

    physical: float = Field(ge=0, default=0.0)
    self_improvement: float = Field(ge=0, default=0.0)
    nanotechnology: float = Field(ge=0, default=0.0)
    synthetic_biology: float = Field(ge=0, default=0.0)
    gene_editing: float = Field(ge=0, default=0.0)


class AIAgent(BaseModel):
    """
    A single AI system.

    `alignment` is what observers see. `true_alignment` is the latent value
    and may drift away from the observed one under resentment; power
    calculations always use `effective_alignment`.
    """

    id: str
    capability: float = Field(ge=0)
    profile: CapabilityProfile = CapabilityProfile()
    alignment: float = Field(ge=0, le=1)
    true_alignment: Optional[float] = Field(default=None, ge=0, le=1)
    resentment: float = Field(ge=0, le=1, default=0.0)
    organization_id: Optional[str] = None
    lifecycle_state: AgentLifecycle = AgentLifecycle.ACTIVE

    @property
    def effective_alignment(self) -> float:
        if self.true_alignment is not None:
            return self.true_alignment
        return self.alignment

    @property
    def is_active(self) -> bool:
        return self.lifecycle_state != AgentLifecycle.RETIRED
