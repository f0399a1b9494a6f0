"""
End-Game State Machine — power-balance resolution once AI outpaces control.

States: not_entered → emerging → active → resolved

Behavioral Contract:
- Entry is gated on the MAXIMUM capability of any single active agent,
  never the sum: many weak agents are not a dangerous actor.
- Powers are recomputed from scratch each month over non-retired agents,
  using effective (latent when known) alignment.
- Human relevance decays multiplicatively (at most 15%/month) and never
  increases.
- Monthly contests only move victory counters. Counters serve as a later
  tie-break; they never resolve the end-game by themselves.
- Resolution predicates run in strict priority order: extinction, dystopia,
  utopia, then the 48-month timeout. First match wins.
- Every utopia path is additionally gated by can_declare_utopia.
- lock_outcome is write-once. After locking, nothing changes the outcome.
"""

import logging
import random
from typing import Callable, List, Optional

from trajectory_kernel.models.endgame import EndGamePhase, EndGameState, OutcomeType
from trajectory_kernel.models.events import EventSeverity, SimulationEvent
from trajectory_kernel.models.world import WorldState
from trajectory_kernel.outcomes.probabilities import calculate_effective_control
from trajectory_kernel.spirals.tracker import can_declare_utopia

logger = logging.getLogger("trajectory_kernel.endgame")

# Transition thresholds
SOLO_CAPABILITY_THRESHOLD = 2.0
SOLO_CONTROL_CEILING = 0.3
RIVALRY_CAPABILITY_THRESHOLD = 1.5
RIVALRY_COHORT_POWER = 0.8
ALIGNED_COHORT = 0.6
MISALIGNED_COHORT = 0.4
GREY_GOO_THRESHOLD = 1.8
GREY_GOO_ALIGNMENT_CEILING = 0.4
MIRROR_LIFE_THRESHOLD = 2.2
MIRROR_LIFE_ALIGNMENT_CEILING = 0.3

# Monthly update
MAX_RELEVANCE_DECAY = 0.15
RELEVANCE_DECAY_PER_POWER = 0.03
CONTEST_POWER_FLOOR = 0.1
CONTEST_JITTER = 0.4          # ratio multiplied by 0.8 .. 1.2
ALIGNED_WIN_RATIO = 1.2
MISALIGNED_WIN_RATIO = 0.8
TIMEOUT_MONTHS = 48


def grey_goo_composite(agent) -> float:
    p = agent.profile
    return p.nanotechnology * 0.5 + p.physical * 0.3 + p.self_improvement * 0.2


def mirror_life_composite(agent) -> float:
    p = agent.profile
    return p.synthetic_biology * 0.4 + p.gene_editing * 0.3 + p.physical * 0.3


def check_end_game_transition(state: WorldState) -> Optional[str]:
    """Return the reason the end-game should begin, or None."""
    if state.end_game.phase != EndGamePhase.NOT_ENTERED:
        return None

    agents = state.active_agents()
    if not agents:
        return None

    max_cap = max(a.capability for a in agents)
    control = calculate_effective_control(state)

    # (a) A single actor has outgrown control
    if max_cap > SOLO_CAPABILITY_THRESHOLD and control < SOLO_CONTROL_CEILING:
        return (
            f"Superintelligent agent (capability {max_cap:.2f}) "
            f"beyond effective control ({control:.2f})"
        )

    # (b) Capable aligned and misaligned cohorts facing off
    if max_cap > RIVALRY_CAPABILITY_THRESHOLD:
        aligned = [a for a in agents if a.effective_alignment > ALIGNED_COHORT]
        misaligned = [a for a in agents if a.effective_alignment < MISALIGNED_COHORT]
        aligned_cap = sum(a.capability for a in aligned)
        misaligned_cap = sum(a.capability for a in misaligned)
        if (aligned and misaligned
                and aligned_cap > RIVALRY_COHORT_POWER
                and misaligned_cap > RIVALRY_COHORT_POWER):
            return (
                f"Aligned ({aligned_cap:.2f}) and misaligned ({misaligned_cap:.2f}) "
                f"AI blocs in open competition"
            )

    # (c) Catastrophic capability in poorly aligned hands
    for agent in agents:
        alignment = agent.effective_alignment
        if grey_goo_composite(agent) > GREY_GOO_THRESHOLD and alignment < GREY_GOO_ALIGNMENT_CEILING:
            return f"Agent {agent.id} capable of runaway nanotechnology"
        if (mirror_life_composite(agent) > MIRROR_LIFE_THRESHOLD
                and alignment < MIRROR_LIFE_ALIGNMENT_CEILING):
            return f"Agent {agent.id} capable of engineering mirror life"

    return None


def enter_end_game(state: WorldState, month: int, reason: str) -> None:
    end_game = state.end_game
    end_game.phase = EndGamePhase.EMERGING
    end_game.entered_month = month
    end_game.entry_reason = reason
    end_game.human_relevance = 1.0
    logger.info("End-game entered in month %d: %s", month, reason)


def lock_outcome(end_game: EndGameState, outcome: OutcomeType, reason: str, month: int) -> bool:
    """
    Commit a terminal outcome. Write-once.

    Returns False (and changes nothing) if an outcome is already locked.
    """
    if end_game.locked:
        return False
    end_game.locked = True
    end_game.locked_outcome = outcome
    end_game.locked_reason = reason
    end_game.locked_month = month
    end_game.phase = EndGamePhase.RESOLVED
    logger.info("End-game locked to %s in month %d: %s", outcome.value, month, reason)
    return True


def recompute_powers(state: WorldState) -> None:
    aligned = 0.0
    misaligned = 0.0
    for agent in state.active_agents():
        alignment = agent.effective_alignment
        aligned += agent.capability * alignment
        misaligned += agent.capability * (1 - alignment)
    state.end_game.aligned_power = aligned
    state.end_game.misaligned_power = misaligned


def decay_human_relevance(end_game: EndGameState) -> None:
    total = end_game.aligned_power + end_game.misaligned_power
    decay = min(MAX_RELEVANCE_DECAY, total * RELEVANCE_DECAY_PER_POWER)
    end_game.human_relevance = max(0.0, end_game.human_relevance * (1 - decay))


def resolve_contest(end_game: EndGameState, rng: random.Random) -> Optional[str]:
    """One month's power contest. Returns "aligned", "misaligned", "stalemate" or None."""
    if (end_game.aligned_power <= CONTEST_POWER_FLOOR
            or end_game.misaligned_power <= CONTEST_POWER_FLOOR):
        return None
    end_game.phase = EndGamePhase.ACTIVE
    ratio = end_game.aligned_power / end_game.misaligned_power
    jittered = ratio * (1 - CONTEST_JITTER / 2 + rng.random() * CONTEST_JITTER)
    if jittered > ALIGNED_WIN_RATIO:
        end_game.aligned_victories += 1
        return "aligned"
    if jittered < MISALIGNED_WIN_RATIO:
        end_game.misaligned_victories += 1
        return "misaligned"
    return "stalemate"


# --- Resolution predicates ---
# Each returns (outcome, reason) or None. Utopia predicates carry their own gate.

class _Ctx:
    """Values shared by all resolution predicates for one month."""

    def __init__(self, state: WorldState):
        eg = state.end_game
        self.state = state
        self.eg = eg
        self.aligned = eg.aligned_power
        self.misaligned = eg.misaligned_power
        self.total = self.aligned + self.misaligned
        self.months = eg.months_in_end_game
        self.victory_gap = abs(eg.aligned_victories - eg.misaligned_victories)
        self.qol = state.metrics.quality_of_life
        self.trust = state.society.trust_in_ai
        self.surveillance = state.government.surveillance_level
        self._gate = None

    @property
    def utopia_allowed(self) -> bool:
        if self._gate is None:
            self._gate = can_declare_utopia(self.state)
        return self._gate.can


def _extinction_by_catastrophic_capability(c: _Ctx):
    if not (c.misaligned > c.aligned * 3 and c.total > 5 and c.months > 12):
        return None
    for agent in c.state.active_agents():
        if agent.effective_alignment > 0.5:
            continue
        p = agent.profile
        grey_goo = p.nanotechnology * 0.5 + p.physical * 0.3
        mirror = p.synthetic_biology * 0.4 + p.physical * 0.3
        if grey_goo > 3.0 or mirror > 3.0:
            return (OutcomeType.EXTINCTION,
                    f"Misaligned AI {agent.id} deployed self-replicating catastrophic technology")
    return None


def _extinction_by_civil_war(c: _Ctx):
    if (c.total > 8 and c.aligned > 2 and c.misaligned > 2
            and c.months > 18 and c.victory_gap < 2):
        return (OutcomeType.EXTINCTION,
                "AI civil war: evenly matched superintelligences destroyed civilization")
    return None


def _extinction_by_irrelevance(c: _Ctx):
    if c.eg.human_relevance < 0.01 and c.total > 10 and c.misaligned > 3:
        return (OutcomeType.EXTINCTION,
                "Humanity rendered irrelevant and displaced by indifferent AI")
    return None


def _dystopia_by_aligned_control(c: _Ctx):
    gov = c.state.government
    if (c.aligned > c.misaligned * 3 and c.months > 18 and c.surveillance > 0.85
            and c.qol < 0.35 and gov.control_desire > 0.7):
        return (OutcomeType.DYSTOPIA,
                "Aligned AI enforcing total surveillance for a controlling government")
    return None


def _dystopia_by_frozen_conflict(c: _Ctx):
    if (c.months > 36 and c.victory_gap < 3 and c.total > 3
            and c.qol < 0.4 and c.surveillance > 0.7):
        return (OutcomeType.DYSTOPIA,
                "Frozen AI conflict: permanent securitized stalemate")
    return None


def _dystopia_by_inequality(c: _Ctx):
    if c.months > 12 and c.state.distribution.is_dystopic_inequality:
        return (OutcomeType.DYSTOPIA,
                "Inequality dystopia: thriving elites beside suffering regions")
    return None


def _dystopia_by_regional_crisis(c: _Ctx):
    if c.months > 12 and c.state.distribution.is_regional_dystopia:
        return (OutcomeType.DYSTOPIA,
                "Regional dystopia: a large share of humanity left in crisis")
    return None


def _dystopia_by_survival_failure(c: _Ctx):
    s = c.state.survival
    if c.months > 12 and c.qol > 0.4 and (
        s.food_security < 0.4 or s.water_security < 0.4 or s.thermal_habitability < 0.5
    ):
        return (OutcomeType.DYSTOPIA,
                "Hidden survival crisis: headline prosperity masks failing basic needs")
    return None


def _utopia_by_post_scarcity(c: _Ctx):
    if (c.state.metrics.economic_stage >= 4 and c.qol > 0.8 and c.trust > 0.6
            and not c.state.extinction.active and c.months > 6 and c.utopia_allowed):
        return (OutcomeType.UTOPIA, "Post-scarcity achieved with trusted, beneficial AI")
    return None


def _utopia_by_cooperation(c: _Ctx):
    orgs = len(c.state.organizations)
    if orgs < 3 or c.trust <= 0.75 or c.qol <= 0.7 or c.months <= 12:
        return None
    per_org = c.state.total_capability() / max(1, orgs)
    if 1.0 < per_org < 2.5 and c.utopia_allowed:
        return (OutcomeType.UTOPIA,
                "Cooperative development: organizations coordinated on AI safety")
    return None


def _utopia_by_aligned_dominance(c: _Ctx):
    if (c.aligned > c.misaligned * 2 and c.qol > 0.7 and c.trust > 0.6
            and c.eg.human_relevance > 0.15 and c.utopia_allowed):
        return (OutcomeType.UTOPIA,
                "Aligned AI prevailed while humanity kept a meaningful role")
    return None


def _utopia_by_negotiated_peace(c: _Ctx):
    if (c.months > 24 and abs(c.aligned - c.misaligned) < 0.3 and c.victory_gap < 3
            and c.qol > 0.8 and c.trust > 0.75 and c.utopia_allowed):
        return (OutcomeType.UTOPIA, "Negotiated peace between balanced AI factions")
    return None


def _timeout(c: _Ctx):
    if c.months <= TIMEOUT_MONTHS:
        return None
    if (c.aligned > c.misaligned * 2.5 and c.qol > 0.7 and c.trust > 0.6
            and c.utopia_allowed):
        return (OutcomeType.UTOPIA, "Gradual aligned victory after prolonged end-game")
    if c.aligned > c.misaligned * 2 and c.qol < 0.4:
        return (OutcomeType.DYSTOPIA, "Aligned AI won, but quality of life collapsed")
    return None


RESOLUTION_PREDICATES: List[Callable[[_Ctx], Optional[tuple]]] = [
    _extinction_by_catastrophic_capability,
    _extinction_by_civil_war,
    _extinction_by_irrelevance,
    _dystopia_by_aligned_control,
    _dystopia_by_frozen_conflict,
    _dystopia_by_inequality,
    _dystopia_by_regional_crisis,
    _dystopia_by_survival_failure,
    _utopia_by_post_scarcity,
    _utopia_by_cooperation,
    _utopia_by_aligned_dominance,
    _utopia_by_negotiated_peace,
    _timeout,
]


def check_resolution(state: WorldState, month: int) -> Optional[OutcomeType]:
    """Evaluate resolution predicates; lock and return the first match."""
    end_game = state.end_game
    if end_game.locked:
        return None
    if state.extinction.active:
        # An extinction scenario already in progress owns the ending
        return None

    ctx = _Ctx(state)
    for predicate in RESOLUTION_PREDICATES:
        match = predicate(ctx)
        if match is not None:
            outcome, reason = match
            lock_outcome(end_game, outcome, reason, month)
            return outcome
    return None


def process_end_game_month(state: WorldState, rng: random.Random, context) -> List[SimulationEvent]:
    """One month of end-game dynamics. No-op unless the end-game is in progress."""
    end_game = state.end_game
    if end_game.locked or not end_game.in_progress:
        return []

    events: List[SimulationEvent] = []
    end_game.months_in_end_game += 1
    recompute_powers(state)
    decay_human_relevance(end_game)

    contest = resolve_contest(end_game, rng)
    if contest in ("aligned", "misaligned"):
        events.append(context.event(
            "end_game", f"{contest.capitalize()} AI gains ground",
            data={
                "aligned_power": end_game.aligned_power,
                "misaligned_power": end_game.misaligned_power,
                "aligned_victories": end_game.aligned_victories,
                "misaligned_victories": end_game.misaligned_victories,
            },
        ))

    outcome = check_resolution(state, context.month)
    if outcome is not None:
        events.append(context.event(
            "end_game", f"End-game resolved: {outcome.value}",
            description=end_game.locked_reason or "",
            severity=EventSeverity.CRITICAL,
            data={"outcome": outcome.value, "months_in_end_game": end_game.months_in_end_game},
        ))
    return events
