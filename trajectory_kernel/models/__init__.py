"""Trajectory Kernel data models."""

from trajectory_kernel.models.accumulation import AccumulationRecord
from trajectory_kernel.models.agents import AgentLifecycle, AIAgent, CapabilityProfile
from trajectory_kernel.models.config import LogLevel, SimulationConfig
from trajectory_kernel.models.endgame import (
    EndGamePhase,
    EndGameState,
    ExtinctionRecord,
    GoldenAgeState,
    OutcomeType,
)
from trajectory_kernel.models.events import EventSeverity, SimulationEvent
from trajectory_kernel.models.outcomes import (
    Attractor,
    OutcomeDetermination,
    OutcomeProbabilities,
    UtopiaGateResult,
)
from trajectory_kernel.models.quality import (
    Distribution,
    QualityOfLifeSystems,
    SurvivalFundamentals,
)
from trajectory_kernel.models.run import HistoryEntry, MetricSnapshot, RunSummary, SimulationLog
from trajectory_kernel.models.society import (
    GlobalMetrics,
    GovernanceQuality,
    Government,
    GovernmentType,
    Organization,
    Society,
)
from trajectory_kernel.models.spirals import SpiralName, UpwardSpiral, UpwardSpiralState
from trajectory_kernel.models.world import WorldState

__all__ = [
    "AIAgent",
    "AccumulationRecord",
    "AgentLifecycle",
    "Attractor",
    "CapabilityProfile",
    "Distribution",
    "EndGamePhase",
    "EndGameState",
    "EventSeverity",
    "ExtinctionRecord",
    "GlobalMetrics",
    "GoldenAgeState",
    "GovernanceQuality",
    "Government",
    "GovernmentType",
    "HistoryEntry",
    "LogLevel",
    "MetricSnapshot",
    "Organization",
    "OutcomeDetermination",
    "OutcomeProbabilities",
    "OutcomeType",
    "QualityOfLifeSystems",
    "RunSummary",
    "SimulationConfig",
    "SimulationEvent",
    "SimulationLog",
    "Society",
    "SpiralName",
    "SurvivalFundamentals",
    "UpwardSpiral",
    "UpwardSpiralState",
    "UtopiaGateResult",
    "WorldState",
]
