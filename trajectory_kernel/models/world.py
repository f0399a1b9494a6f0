"""World State — the single aggregate advanced one month at a time."""

from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field

from trajectory_kernel.models.accumulation import AccumulationRecord
from trajectory_kernel.models.agents import AIAgent
from trajectory_kernel.models.endgame import EndGameState, ExtinctionRecord, GoldenAgeState
from trajectory_kernel.models.outcomes import OutcomeProbabilities
from trajectory_kernel.models.quality import Distribution, QualityOfLifeSystems, SurvivalFundamentals
from trajectory_kernel.models.society import Government, GlobalMetrics, Organization, Society
from trajectory_kernel.models.spirals import UpwardSpiralState


class WorldState(BaseModel):
    """
    Everything a month of simulation reads and writes.

    Owned by the driver for the whole run. Subsystem-specific data that is not
    part of the core model goes into `extensions`, keyed by subsystem id.
    """

    month: int = Field(ge=0, default=0)
    seed: int = 42
    agents: List[AIAgent] = []
    organizations: List[Organization] = []
    government: Government = Government()
    society: Society = Society()
    metrics: GlobalMetrics = GlobalMetrics()
    qol: QualityOfLifeSystems = QualityOfLifeSystems()
    survival: SurvivalFundamentals = SurvivalFundamentals()
    distribution: Distribution = Distribution()
    accumulation: Dict[str, AccumulationRecord] = {}
    end_game: EndGameState = EndGameState()
    spirals: UpwardSpiralState = UpwardSpiralState()
    golden_age: GoldenAgeState = GoldenAgeState()
    extinction: ExtinctionRecord = ExtinctionRecord()
    outcome_metrics: Optional[OutcomeProbabilities] = None
    deployed_technologies: Dict[str, float] = {}   # technology id -> deployment 0..1
    unlocked_breakthroughs: Set[str] = set()
    extensions: Dict[str, dict] = {}

    # --- Aggregates over non-retired agents ---

    def active_agents(self) -> List[AIAgent]:
        return [a for a in self.agents if a.is_active]

    def total_capability(self) -> float:
        return sum(a.capability for a in self.active_agents())

    def max_capability(self) -> float:
        return max((a.capability for a in self.active_agents()), default=0.0)

    def average_capability(self) -> float:
        active = self.active_agents()
        if not active:
            return 0.0
        return sum(a.capability for a in active) / len(active)

    def average_alignment(self) -> float:
        active = self.active_agents()
        if not active:
            return 0.0
        return sum(a.effective_alignment for a in active) / len(active)

    def deployment(self, technology: str) -> float:
        return self.deployed_technologies.get(technology, 0.0)

    def extension(self, subsystem: str) -> dict:
        """Look up a subsystem's extension data, creating it on first access."""
        if subsystem not in self.extensions:
            self.extensions[subsystem] = {}
        return self.extensions[subsystem]
