"""
Phase Orchestrator — runs one simulated month.

Behavioral Contract:
- Phases execute in ascending `order`, ties broken by registration order.
  This sequence is a versioned contract: changing it changes outcomes.
- Fractional orders (e.g. 4.1, 4.5) reserve insertion points between major
  phases without renumbering.
- One RNG stream is shared across every phase of a month; draws made by an
  earlier phase shift the draws seen by later phases.
- Events returned by phases are concatenated into a single monthly log.
- A failing phase aborts the rest of the month. Earlier mutations are kept.
- Registry errors (duplicate id, non-numeric order) are raised when a phase
  is registered, before any month runs.
"""

import logging
import math
import random
from typing import Callable, List, Optional, Tuple

from trajectory_kernel.engine.errors import PhaseConfigurationError, PhaseExecutionError
from trajectory_kernel.models.config import SimulationConfig
from trajectory_kernel.models.events import EventSeverity, SimulationEvent
from trajectory_kernel.models.world import WorldState

logger = logging.getLogger("trajectory_kernel.orchestrator")


class PhaseContext:
    """Per-month, per-phase helpers handed to `execute`."""

    def __init__(self, month: int, config: SimulationConfig, phase_id: str = ""):
        self.month = month
        self.config = config
        self.phase_id = phase_id
        self._counter = 0

    def for_phase(self, phase_id: str) -> "PhaseContext":
        ctx = PhaseContext(self.month, self.config, phase_id)
        return ctx

    def event(
        self,
        event_type: str,
        title: str,
        description: str = "",
        severity: EventSeverity = EventSeverity.INFO,
        data: Optional[dict] = None,
    ) -> SimulationEvent:
        """Build an event with a deterministic id."""
        self._counter += 1
        return SimulationEvent(
            id=f"{self.phase_id}-{self.month}-{self._counter}",
            month=self.month,
            type=event_type,
            severity=severity,
            title=title,
            description=description,
            phase_id=self.phase_id,
            data=data or {},
        )


class SimulationPhase:
    """A unit of monthly work. Subclasses set id, name and order."""

    id: str = ""
    name: str = ""
    order: float = 0.0

    def execute(
        self, state: WorldState, rng: random.Random, context: PhaseContext
    ) -> List[SimulationEvent]:
        raise NotImplementedError


class FunctionPhase(SimulationPhase):
    """Adapts a plain function to the phase interface."""

    def __init__(
        self,
        id: str,
        name: str,
        order: float,
        fn: Callable[[WorldState, random.Random, PhaseContext], List[SimulationEvent]],
    ):
        self.id = id
        self.name = name
        self.order = order
        self._fn = fn

    def execute(self, state, rng, context):
        return self._fn(state, rng, context)


def _validate_order(phase_id: str, order) -> None:
    if isinstance(order, bool) or not isinstance(order, (int, float)):
        raise PhaseConfigurationError(
            f"Phase '{phase_id}' has non-numeric order {order!r}"
        )
    if not math.isfinite(order):
        raise PhaseConfigurationError(
            f"Phase '{phase_id}' has non-finite order {order!r}"
        )


class PhaseRegistry:
    """Collects phases and fixes their execution order."""

    def __init__(self):
        self._phases: List[Tuple[int, SimulationPhase]] = []
        self._ids = set()

    def register(self, phase: SimulationPhase) -> None:
        if not phase.id:
            raise PhaseConfigurationError("Phase id must be a non-empty string")
        if phase.id in self._ids:
            raise PhaseConfigurationError(f"Duplicate phase id '{phase.id}'")
        _validate_order(phase.id, phase.order)

        self._phases.append((len(self._phases), phase))
        self._ids.add(phase.id)

    def ordered(self) -> List[SimulationPhase]:
        ranked = sorted(self._phases, key=lambda item: (item[1].order, item[0]))
        return [phase for _, phase in ranked]

    def ordered_ids(self) -> List[str]:
        return [p.id for p in self.ordered()]

    def __len__(self) -> int:
        return len(self._phases)

    def __contains__(self, phase_id: str) -> bool:
        return phase_id in self._ids


class PhaseOrchestrator:
    """Executes a registry's phases, in order, for one month."""

    def __init__(self, registry: PhaseRegistry, config: Optional[SimulationConfig] = None):
        self.registry = registry
        self.config = config or SimulationConfig()

    def execute_month(self, state: WorldState, rng: random.Random) -> List[SimulationEvent]:
        month = state.month
        context = PhaseContext(month, self.config)
        events: List[SimulationEvent] = []

        for phase in self.registry.ordered():
            try:
                produced = phase.execute(state, rng, context.for_phase(phase.id))
            except Exception as exc:
                logger.error("Phase %s failed in month %d: %s", phase.id, month, exc)
                raise PhaseExecutionError(phase.id, month, str(exc)) from exc
            if produced:
                events.extend(produced)

        return events
