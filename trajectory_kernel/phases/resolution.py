"""Phases that track prosperity and resolve the run's trajectory."""

from typing import List

from trajectory_kernel.endgame.machine import (
    check_end_game_transition,
    enter_end_game,
    process_end_game_month,
)
from trajectory_kernel.engine.orchestrator import SimulationPhase
from trajectory_kernel.models.endgame import EndGamePhase
from trajectory_kernel.models.events import EventSeverity, SimulationEvent
from trajectory_kernel.outcomes.golden_age import update_golden_age
from trajectory_kernel.outcomes.probabilities import calculate_outcome_probabilities
from trajectory_kernel.spirals.tracker import update_upward_spirals


class GoldenAgePhase(SimulationPhase):
    id = "golden-age"
    name = "Golden Age"
    order = 7.0

    def execute(self, state, rng, context) -> List[SimulationEvent]:
        return update_golden_age(state, context)


class UpwardSpiralPhase(SimulationPhase):
    id = "upward-spirals"
    name = "Upward Spirals"
    order = 11.0

    def execute(self, state, rng, context) -> List[SimulationEvent]:
        return update_upward_spirals(state, context)


class EndGameResolutionPhase(SimulationPhase):
    """Transition check, then the monthly end-game update while in progress."""

    id = "end-game"
    name = "End-Game"
    order = 30.0

    def execute(self, state, rng, context) -> List[SimulationEvent]:
        events: List[SimulationEvent] = []
        if state.end_game.phase == EndGamePhase.NOT_ENTERED:
            reason = check_end_game_transition(state)
            if reason is not None:
                enter_end_game(state, context.month, reason)
                events.append(context.event(
                    "end_game", "End-game begins",
                    description=reason,
                    severity=EventSeverity.CRITICAL,
                ))
        events.extend(process_end_game_month(state, rng, context))
        return events


class OutcomeProbabilityPhase(SimulationPhase):
    """Stores the soft probability signal on the state for observers."""

    id = "outcome-probabilities"
    name = "Outcome Probabilities"
    order = 35.0

    def execute(self, state, rng, context) -> List[SimulationEvent]:
        state.outcome_metrics = calculate_outcome_probabilities(state)
        return []
