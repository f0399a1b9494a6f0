"""
Default phase registration.

The order below is the versioned monthly sequence. Changing an order value
or inserting a phase changes simulation results; the contract test in
tests/test_orchestrator.py pins it.
"""

from trajectory_kernel.accumulation.environmental import ENVIRONMENTAL
from trajectory_kernel.accumulation.planetary import PLANETARY
from trajectory_kernel.accumulation.registry import get_domain
from trajectory_kernel.accumulation.social import SOCIAL
from trajectory_kernel.accumulation.technological import TECHNOLOGICAL
from trajectory_kernel.engine.orchestrator import PhaseRegistry
from trajectory_kernel.phases.accumulation import AccumulationPhase
from trajectory_kernel.phases.core import (
    AIDevelopmentPhase,
    ExtinctionProgressPhase,
    GovernmentResponsePhase,
    QualityOfLifePhase,
    SocietyDynamicsPhase,
    TimeAdvancementPhase,
)
from trajectory_kernel.phases.resolution import (
    EndGameResolutionPhase,
    GoldenAgePhase,
    OutcomeProbabilityPhase,
    UpwardSpiralPhase,
)

DEFAULT_PHASE_ORDER = [
    "ai-development",
    "government-response",
    "society-dynamics",
    ENVIRONMENTAL,
    SOCIAL,
    TECHNOLOGICAL,
    PLANETARY,
    "extinction-progress",
    "quality-of-life",
    "golden-age",
    "upward-spirals",
    "end-game",
    "outcome-probabilities",
    "time-advancement",
]


def build_default_registry() -> PhaseRegistry:
    registry = PhaseRegistry()
    registry.register(AIDevelopmentPhase())
    registry.register(GovernmentResponsePhase())
    registry.register(SocietyDynamicsPhase())
    registry.register(AccumulationPhase(get_domain(ENVIRONMENTAL), 4.0))
    registry.register(AccumulationPhase(get_domain(SOCIAL), 4.1))
    registry.register(AccumulationPhase(get_domain(TECHNOLOGICAL), 4.2, "Technological Risk"))
    registry.register(AccumulationPhase(get_domain(PLANETARY), 4.5, "Planetary Boundaries"))
    registry.register(ExtinctionProgressPhase())
    registry.register(QualityOfLifePhase())
    registry.register(GoldenAgePhase())
    registry.register(UpwardSpiralPhase())
    registry.register(EndGameResolutionPhase())
    registry.register(OutcomeProbabilityPhase())
    registry.register(TimeAdvancementPhase())
    return registry
