"""Government, society and economy aggregates."""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class GovernmentType(str, Enum):
    DEMOCRATIC = "democratic"
    TECHNOCRATIC = "technocratic"
    AUTHORITARIAN = "authoritarian"


class GovernanceQuality(BaseModel):
    decision_quality: float = Field(ge=0, le=1, default=0.5)
    institutional_capacity: float = Field(ge=0, le=1, default=0.5)
    participation_rate: float = Field(ge=0, le=1, default=0.4)
    transparency: float = Field(ge=0, le=1, default=0.5)
    consensus_building_efficiency: float = Field(ge=0, le=1, default=0.5)


def _default_research() -> Dict[str, float]:
    return {"physical": 2.0, "digital": 3.0, "cognitive": 2.0, "social": 1.0, "alignment": 1.0}


class Government(BaseModel):
    """Government posture towards AI. Research investment is in $B/month."""

    control_desire: float = Field(ge=0, le=1, default=0.3)
    capability_to_control: float = Field(ge=0, default=0.5)
    surveillance_level: float = Field(ge=0, le=1, default=0.2)
    legitimacy: float = Field(ge=0, le=1, default=0.6)
    government_type: GovernmentType = GovernmentType.DEMOCRATIC
    regulation_count: int = Field(ge=0, default=0)
    ubi_enabled: bool = False
    research_investment: Dict[str, float] = Field(default_factory=_default_research)
    governance_quality: GovernanceQuality = GovernanceQuality()

    @property
    def total_research(self) -> float:
        return sum(self.research_investment.values())


class Society(BaseModel):
    paranoia_level: float = Field(ge=0, le=1, default=0.3)
    unemployment_level: float = Field(ge=0, le=1, default=0.05)
    social_adaptation: float = Field(ge=0, le=1, default=0.1)

    @property
    def trust_in_ai(self) -> float:
        """Trust is derived from paranoia, bounded to [0.20, 0.95]."""
        return max(0.20, min(0.95, 1.0 - self.paranoia_level * 0.75))


class GlobalMetrics(BaseModel):
    """Economy-wide indicators. `economic_stage` runs 0 (pre-AI) to 4 (post-scarcity)."""

    economic_stage: float = Field(ge=0, le=4, default=0.0)
    quality_of_life: float = Field(ge=0, le=1, default=0.55)
    social_stability: float = Field(ge=0, le=1, default=0.6)
    wealth_distribution: float = Field(ge=0, le=1, default=0.45)
    manufacturing_capacity: float = Field(ge=0, default=1.0)
    energy_use: float = Field(ge=0, default=1.0)
    private_capital: float = Field(ge=0, default=10_000_000.0)  # dollars


class Organization(BaseModel):
    id: str
    name: str
    parent_country: Optional[str] = None
