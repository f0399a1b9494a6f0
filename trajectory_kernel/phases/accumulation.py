"""Phases that drive the accumulation domains."""

from typing import List

from trajectory_kernel.accumulation.domain import AccumulationDomain
from trajectory_kernel.engine.orchestrator import SimulationPhase
from trajectory_kernel.models.events import SimulationEvent


class AccumulationPhase(SimulationPhase):
    """Runs one accumulation domain's monthly update."""

    def __init__(self, domain: AccumulationDomain, order: float, name: str = ""):
        self.domain = domain
        self.id = domain.id
        self.name = name or f"{domain.id.capitalize()} Accumulation"
        self.order = order

    def execute(self, state, rng, context) -> List[SimulationEvent]:
        return self.domain.update(state, rng, context)
