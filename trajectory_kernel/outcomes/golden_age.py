"""Golden Age tracking: immediate prosperity awaiting proof of sustainability."""

import logging
from typing import List

from trajectory_kernel.models.events import EventSeverity, SimulationEvent
from trajectory_kernel.models.world import WorldState

logger = logging.getLogger("trajectory_kernel.outcomes")


def golden_age_conditions_met(state: WorldState) -> bool:
    return (
        state.metrics.quality_of_life >= 0.7
        and state.metrics.economic_stage >= 3.0
        and state.society.trust_in_ai >= 0.65
        and state.metrics.social_stability >= 0.4
        and not state.extinction.active
    )


def update_golden_age(state: WorldState, context) -> List[SimulationEvent]:
    golden = state.golden_age
    month = context.month

    if golden_age_conditions_met(state):
        if not golden.active:
            golden.active = True
            golden.entry_month = month
            golden.duration = 0
            golden.entry_reason = (
                f"QoL {state.metrics.quality_of_life:.2f}, "
                f"stage {state.metrics.economic_stage:.1f}, "
                f"trust {state.society.trust_in_ai:.2f}"
            )
            logger.info("Golden Age entered in month %d", month)
            return [context.event(
                "milestone", "Golden Age Begins",
                description=golden.entry_reason,
                severity=EventSeverity.WARNING,
            )]
        golden.duration += 1
        return []

    if golden.active:
        duration = golden.duration
        golden.active = False
        golden.duration = 0
        logger.info("Golden Age ended in month %d after %d months", month, duration)
        return [context.event(
            "milestone", "Golden Age Ends",
            description=f"Conditions lapsed after {duration} months",
            severity=EventSeverity.WARNING,
        )]
    return []
