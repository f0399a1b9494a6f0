"""
Simulation Engine — the driver that owns a world state for a run.

Behavioral Contract:
- step(state) advances exactly one month and returns a new state; the
  caller's state object is never mutated.
- Each month gets one RNG stream derived from (seed, month), so the same
  seed and the same phase registration always reproduce the same run.
- Inputs are restored to fully-typed containers before any phase runs.
- run() loops step(), records snapshots according to the log level, and
  halts at the first actual outcome when configured to.
- Cancellation happens only between months, via should_continue.
"""

import logging
from collections import Counter
from typing import Callable, List, Optional, Union
from uuid import uuid4

from trajectory_kernel.accumulation.domain import count_active_crises
from trajectory_kernel.engine.orchestrator import PhaseOrchestrator, PhaseRegistry
from trajectory_kernel.engine.rng import create_rng, month_seed
from trajectory_kernel.engine.sinks import EventSink, NullEventSink
from trajectory_kernel.history.store import RunHistoryStore
from trajectory_kernel.models.config import LogLevel, SimulationConfig
from trajectory_kernel.models.endgame import EndGamePhase
from trajectory_kernel.models.events import SimulationEvent
from trajectory_kernel.models.run import MetricSnapshot, RunSummary, SimulationLog
from trajectory_kernel.models.world import WorldState
from trajectory_kernel.outcomes.determiner import ACTIVE, determine_actual_outcome
from trajectory_kernel.outcomes.probabilities import (
    calculate_effective_control,
    calculate_outcome_probabilities,
)
from trajectory_kernel.phases.defaults import build_default_registry
from trajectory_kernel.world.serialization import restore_world_state

logger = logging.getLogger("trajectory_kernel.engine")

MAX_CRITICAL_EVENTS = 10
INCONCLUSIVE = "inconclusive"


class StepResult:
    """Outcome of a single month."""

    def __init__(self, state: WorldState, events: List[SimulationEvent], month: int):
        self.state = state
        self.events = events
        self.month = month


class RunResult:
    def __init__(self, final_state: WorldState, log: SimulationLog, summary: RunSummary):
        self.final_state = final_state
        self.log = log
        self.summary = summary


def take_snapshot(state: WorldState) -> MetricSnapshot:
    probs = state.outcome_metrics or calculate_outcome_probabilities(state)
    active_crises = []
    for domain_id, record in sorted(state.accumulation.items()):
        active_crises.extend(f"{domain_id}.{name}" for name in record.active_crises())
    return MetricSnapshot(
        month=state.month,
        total_capability=state.total_capability(),
        average_alignment=state.average_alignment(),
        unemployment=state.society.unemployment_level,
        economic_stage=state.metrics.economic_stage,
        wealth_distribution=state.metrics.wealth_distribution,
        quality_of_life=state.metrics.quality_of_life,
        trust_in_ai=state.society.trust_in_ai,
        social_stability=state.metrics.social_stability,
        effective_control=calculate_effective_control(state),
        regulation_count=state.government.regulation_count,
        government_legitimacy=state.government.legitimacy,
        utopia_probability=probs.utopia_probability,
        dystopia_probability=probs.dystopia_probability,
        extinction_probability=probs.extinction_probability,
        active_crises=active_crises,
        end_game_phase=state.end_game.phase.value,
        human_relevance=state.end_game.human_relevance,
    )


def fallback_outcome(state: WorldState):
    """Classify a run that ended without an actual outcome. Returns (outcome, probability)."""
    probs = calculate_outcome_probabilities(state)
    u, d, e = probs.utopia_probability, probs.dystopia_probability, probs.extinction_probability
    if u == d == e:
        # No indicator fired; the even split carries no signal
        return INCONCLUSIVE, 0.0
    if u > d and u > e:
        return "utopia", u
    if d > e:
        return "dystopia", d
    if e > 0.3:
        return "extinction", e
    return INCONCLUSIVE, 0.0


class SimulationEngine:
    """Drives a phase registry month by month."""

    def __init__(
        self,
        registry: Optional[PhaseRegistry] = None,
        config: Optional[SimulationConfig] = None,
        sink: Optional[EventSink] = None,
        history_store: Optional[RunHistoryStore] = None,
    ):
        self.config = config or SimulationConfig()
        self.registry = registry or build_default_registry()
        self.orchestrator = PhaseOrchestrator(self.registry, self.config)
        self.sink = sink or NullEventSink()
        self.history_store = history_store

    def step(self, state: Union[WorldState, dict, str]) -> StepResult:
        """Advance one month. The input state is left untouched."""
        if isinstance(state, WorldState):
            state = state.model_copy(deep=True)
        state = restore_world_state(state)

        month = state.month
        rng = create_rng(month_seed(state.seed, month))
        events = self.orchestrator.execute_month(state, rng)
        self.sink.publish(events)
        return StepResult(state, events, month)

    def run(
        self,
        state: Union[WorldState, dict, str],
        max_months: Optional[int] = None,
        should_continue: Optional[Callable[[WorldState], bool]] = None,
        run_id: Optional[str] = None,
    ) -> RunResult:
        if max_months is None:
            max_months = self.config.max_months
        if isinstance(state, WorldState):
            state = state.model_copy(deep=True)
        state = restore_world_state(state)
        run_id = run_id or f"run_{uuid4().hex[:12]}"

        level = self.config.log_level
        quartile_interval = max(1, max_months // 4)
        snapshots = [take_snapshot(state)]
        all_events: List[SimulationEvent] = []
        actual = None

        logger.info("Run %s started: seed=%d max_months=%d", run_id, state.seed, max_months)
        for _ in range(max_months):
            if should_continue is not None and not should_continue(state):
                logger.info("Run %s cancelled at month %d", run_id, state.month)
                break

            result = self.step(state)
            state = result.state
            all_events.extend(result.events)

            if level in (LogLevel.FULL, LogLevel.MONTHLY):
                snapshots.append(take_snapshot(state))
            elif level == LogLevel.QUARTILE and state.month % quartile_interval == 0:
                snapshots.append(take_snapshot(state))

            if self.config.check_actual_outcomes:
                determination = determine_actual_outcome(state, state.month)
                if determination.outcome != ACTIVE:
                    actual = determination
                    logger.info("Run %s reached %s at month %d: %s", run_id,
                                determination.outcome, state.month, determination.reason)
                    break

        final_snapshot = take_snapshot(state)
        if snapshots[-1].month != final_snapshot.month:
            snapshots.append(final_snapshot)

        if actual is not None:
            outcome, probability, reason = actual.outcome, actual.confidence, actual.reason
        else:
            outcome, probability = fallback_outcome(state)
            reason = "No actual outcome reached; classified by outcome probabilities"

        critical = [e for e in all_events if e.is_critical]
        summary = RunSummary(
            seed=state.seed,
            total_months=state.month,
            final_outcome=outcome,
            final_outcome_reason=reason,
            final_outcome_probability=probability,
            economic_stage_reached=state.metrics.economic_stage,
            end_game_entered=state.end_game.phase != EndGamePhase.NOT_ENTERED,
            critical_events=critical[:MAX_CRITICAL_EVENTS],
        )
        initial = snapshots[0]
        log = SimulationLog(
            seed=state.seed,
            log_level=level.value,
            total_months=state.month,
            outcome=outcome,
            snapshots=snapshots,
            events=all_events if level == LogLevel.FULL else [],
            events_by_type=dict(Counter(e.type for e in all_events)),
            critical_events=critical[:MAX_CRITICAL_EVENTS],
            trajectory={
                "capability_growth": final_snapshot.total_capability - initial.total_capability,
                "unemployment_change": final_snapshot.unemployment - initial.unemployment,
                "trust_change": final_snapshot.trust_in_ai - initial.trust_in_ai,
                "stage_progression": final_snapshot.economic_stage - initial.economic_stage,
            },
            run_id=run_id,
        )

        if self.history_store is not None:
            for snapshot in snapshots:
                self.history_store.append(run_id, snapshot)
            self.history_store.record_summary(run_id, summary)

        logger.info("Run %s finished after %d months: %s (%d active crises)",
                    run_id, state.month, outcome, count_active_crises(state))
        return RunResult(state, log, summary)
