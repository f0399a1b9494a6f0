"""
Outcome Determiner — has the run actually reached a terminal outcome?

Unlike the probability calculator this answers with a classification,
not a signal. It is still a pure query.

Priority (first match wins):
  1. A locked end-game outcome
  2. An extinction scenario: "active" while in progress, extinction once complete
  3. Dystopia paths (structural oppression, Golden Age collapse)
  4. Utopia: sustained Golden Age, verified sustainability, and the utopia gate
  5. Otherwise "active"
"""

from typing import Callable, List, Optional

from trajectory_kernel.accumulation.domain import has_any_crisis
from trajectory_kernel.accumulation.environmental import (
    ENVIRONMENTAL,
    ENVIRONMENTAL_DOMAIN,
    environmental_sustainability,
)
from trajectory_kernel.accumulation.social import SOCIAL, SOCIAL_DOMAIN, social_sustainability
from trajectory_kernel.accumulation.technological import (
    TECHNOLOGICAL,
    TECHNOLOGICAL_DOMAIN,
    technological_safety,
)
from trajectory_kernel.models.outcomes import OutcomeDetermination
from trajectory_kernel.models.society import GovernmentType
from trajectory_kernel.models.world import WorldState
from trajectory_kernel.spirals.tracker import can_declare_utopia

ACTIVE = "active"
UTOPIA_MIN_GOLDEN_AGE_MONTHS = 12
UTOPIA_MIN_SUSTAINABILITY = 0.65


def _stocks(state: WorldState, domain_id: str, definition) -> dict:
    record = state.accumulation.get(domain_id)
    if record is None:
        return definition.initial_record().stocks
    return record.stocks


def _crisis(state: WorldState, domain_id: str, crisis: str) -> bool:
    record = state.accumulation.get(domain_id)
    return record is not None and record.is_active(crisis)


def overall_sustainability(state: WorldState) -> float:
    env = environmental_sustainability(_stocks(state, ENVIRONMENTAL, ENVIRONMENTAL_DOMAIN))
    social = social_sustainability(_stocks(state, SOCIAL, SOCIAL_DOMAIN))
    tech = technological_safety(_stocks(state, TECHNOLOGICAL, TECHNOLOGICAL_DOMAIN))
    return env * 0.35 + social * 0.35 + tech * 0.30


# --- Dystopia paths ---

def _surveillance_state(state, month):
    q, gov = state.qol, state.government
    if (gov.surveillance_level > 0.7 and q.autonomy < 0.3
            and q.political_freedom < 0.3 and month > 24):
        return OutcomeDetermination(
            outcome="dystopia",
            reason="Permanent surveillance state: pervasive monitoring, no autonomy, no freedom",
            confidence=0.85,
        )
    return None


def _authoritarian(state, month):
    q = state.qol
    if (state.government.government_type == GovernmentType.AUTHORITARIAN
            and q.autonomy < 0.4 and q.political_freedom < 0.3 and month > 18):
        return OutcomeDetermination(
            outcome="dystopia",
            reason="Authoritarian regime with structural oppression established",
            confidence=0.80,
        )
    return None


def _high_control(state, month):
    q, gov = state.qol, state.government
    if (gov.control_desire > 0.8 and gov.surveillance_level > 0.6
            and q.political_freedom < 0.4 and q.autonomy < 0.4 and month > 30):
        return OutcomeDetermination(
            outcome="dystopia",
            reason="High-control society: AI obedient but humans oppressed",
            confidence=0.75,
        )
    return None


def _over_regulation(state, month):
    if (state.government.regulation_count > 12
            and state.metrics.quality_of_life < 0.4
            and state.metrics.social_stability < 0.3
            and state.qol.autonomy < 0.4):
        return OutcomeDetermination(
            outcome="dystopia",
            reason="Over-regulation: economic collapse and authoritarian response",
            confidence=0.70,
        )
    return None


def _social_collapse(state, month):
    if not state.golden_age.active:
        return None
    if _crisis(state, SOCIAL, "institutional_failure") and (
        _crisis(state, SOCIAL, "social_unrest") or _crisis(state, SOCIAL, "meaning_collapse")
    ):
        return OutcomeDetermination(
            outcome="dystopia",
            reason="Golden Age collapse: institutions failed amid unrest and lost meaning",
            confidence=0.80,
        )
    return None


def _corporate_capture(state, month):
    if not state.golden_age.active:
        return None
    if (_crisis(state, TECHNOLOGICAL, "corporate_dystopia")
            and state.metrics.wealth_distribution < 0.3):
        return OutcomeDetermination(
            outcome="dystopia",
            reason="Corporate dystopia: AI capability and wealth captured by a few",
            confidence=0.75,
        )
    return None


DYSTOPIA_PATHS: List[Callable[[WorldState, int], Optional[OutcomeDetermination]]] = [
    _surveillance_state,
    _authoritarian,
    _high_control,
    _over_regulation,
    _social_collapse,
    _corporate_capture,
]


def determine_actual_outcome(state: WorldState, month: Optional[int] = None) -> OutcomeDetermination:
    if month is None:
        month = state.month

    end_game = state.end_game
    if end_game.locked and end_game.locked_outcome is not None:
        return OutcomeDetermination(
            outcome=end_game.locked_outcome.value,
            reason=end_game.locked_reason or "End-game outcome locked",
            confidence=1.0,
        )

    extinction = state.extinction
    if extinction.completed:
        return OutcomeDetermination(
            outcome="extinction",
            reason=f"Extinction completed: {extinction.type} ({extinction.mechanism})",
            confidence=1.0,
        )
    if extinction.active:
        return OutcomeDetermination(
            outcome=ACTIVE,
            reason=f"Extinction scenario in progress: {extinction.type} ({extinction.mechanism})",
            confidence=extinction.severity,
        )

    for path in DYSTOPIA_PATHS:
        result = path(state, month)
        if result is not None:
            return result

    golden = state.golden_age
    if golden.active and golden.duration >= UTOPIA_MIN_GOLDEN_AGE_MONTHS:
        sustainability = overall_sustainability(state)
        if sustainability > UTOPIA_MIN_SUSTAINABILITY and not has_any_crisis(state):
            gate = can_declare_utopia(state)
            if gate.can:
                return OutcomeDetermination(
                    outcome="utopia",
                    reason=(
                        f"Sustainable abundance: Golden Age held {golden.duration} months, "
                        f"sustainability {sustainability:.2f}"
                    ),
                    confidence=min(1.0, 0.85 + min(0.1, sustainability - 0.65)),
                )

    return OutcomeDetermination(outcome=ACTIVE, reason="No terminal outcome yet", confidence=0.0)
