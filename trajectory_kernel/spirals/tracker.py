"""
Upward Spiral Tracker — six independent flourishing conditions.

Behavioral Contract:
- Each spiral is a conjunction of thresholds, evaluated fresh every month.
- months_active counts consecutive months. It resets to 0 the instant the
  conjunction fails; there is no hysteresis and no partial credit.
- Four or more simultaneously active spirals form a cascade with strength
  1 + 0.2 × (count − 3). Below four the strength snaps back to 1.0.
- can_declare_utopia is a hard gate: sustained spirals, survival floors,
  an inequality floor, and zero active crises anywhere.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from trajectory_kernel.accumulation.domain import clamp, count_active_crises
from trajectory_kernel.accumulation.environmental import ENVIRONMENTAL, ENVIRONMENTAL_DOMAIN
from trajectory_kernel.accumulation.social import SOCIAL, SOCIAL_DOMAIN
from trajectory_kernel.models.events import EventSeverity, SimulationEvent
from trajectory_kernel.models.outcomes import UtopiaGateResult
from trajectory_kernel.models.society import GovernmentType
from trajectory_kernel.models.spirals import SpiralName, UpwardSpiral, UpwardSpiralState
from trajectory_kernel.models.world import WorldState

logger = logging.getLogger("trajectory_kernel.spirals")

CASCADE_MIN_SPIRALS = 4
UTOPIA_MIN_SPIRALS = 3
UTOPIA_MIN_SUSTAINED_MONTHS = 12
SURVIVAL_FLOOR = 0.7
MAX_GINI = 0.40
MIN_WORST_REGION_QOL = 0.50


def _stocks(state: WorldState, domain_id: str, definition) -> dict:
    # Read-only view: never creates a record as a side effect
    record = state.accumulation.get(domain_id)
    if record is None:
        return definition.initial_record().stocks
    return record.stocks


# --- Spiral conditions: each returns (active, strength) ---

def _abundance(state: WorldState) -> Tuple[bool, float]:
    qol = state.qol
    unemployment = state.society.unemployment_level
    active = (
        qol.material_abundance > 1.5
        and qol.energy_availability > 1.5
        and unemployment > 0.6
        and state.metrics.economic_stage >= 3
    )
    strength = (
        min(2.0, qol.material_abundance) / 2.0 * 0.4
        + min(2.0, qol.energy_availability) / 2.0 * 0.3
        + min(1.0, unemployment) * 0.3
    )
    return active, strength


def _cognitive(state: WorldState) -> Tuple[bool, float]:
    qol = state.qol
    meaning = _stocks(state, SOCIAL, SOCIAL_DOMAIN)["meaning_crisis"]
    avg_cap = state.average_capability()
    active = (
        qol.disease_burden < 0.3
        and qol.healthcare_quality > 0.8
        and meaning < 0.3
        and avg_cap > 1.5
        and state.society.trust_in_ai > 0.6
    )
    strength = (
        (1 - qol.disease_burden) * 0.3
        + (1 - meaning) * 0.4
        + min(1.0, avg_cap / 3.0) * 0.3
    )
    return active, strength


def _democratic(state: WorldState) -> Tuple[bool, float]:
    gov = state.government.governance_quality
    active = (
        gov.decision_quality > 0.7
        and gov.institutional_capacity > 0.7
        and gov.participation_rate > 0.6
        and gov.transparency > 0.7
        and state.government.government_type != GovernmentType.AUTHORITARIAN
    )
    strength = (
        gov.decision_quality * 0.25
        + gov.institutional_capacity * 0.2
        + gov.participation_rate * 0.25
        + gov.transparency * 0.2
        + gov.consensus_building_efficiency * 0.1
    )
    return active, strength


def _scientific(state: WorldState) -> Tuple[bool, float]:
    unlocked = len(state.unlocked_breakthroughs)
    deployed = sum(1 for d in state.deployed_technologies.values() if d > 0.5)
    research = state.government.total_research
    avg_cap = state.average_capability()
    active = unlocked >= 4 and research > 50 and avg_cap > 2.0
    strength = (
        min(1.0, unlocked / 8) * 0.3
        + min(1.0, deployed / 6) * 0.3
        + min(1.0, research / 100) * 0.2
        + min(1.0, avg_cap / 4.0) * 0.2
    )
    return active, strength


def _meaning(state: WorldState) -> Tuple[bool, float]:
    social = _stocks(state, SOCIAL, SOCIAL_DOMAIN)
    qol = state.qol
    active = (
        social["meaning_crisis"] < 0.2
        and social["social_cohesion"] > 0.7
        and social["cultural_adaptation"] > 0.7
        and qol.autonomy > 0.7
        and qol.cultural_vitality > 0.7
    )
    strength = (
        (1 - social["meaning_crisis"]) * 0.3
        + social["social_cohesion"] * 0.25
        + social["cultural_adaptation"] * 0.25
        + (qol.autonomy + qol.cultural_vitality) / 2 * 0.2
    )
    return active, strength


def _ecological(state: WorldState) -> Tuple[bool, float]:
    env = _stocks(state, ENVIRONMENTAL, ENVIRONMENTAL_DOMAIN)
    ecosystem = state.qol.ecosystem_health
    active = (
        ecosystem > 0.7
        and env["climate_stability"] > 0.7
        and env["biodiversity"] > 0.7
        and env["pollution_level"] < 0.3
        and env["resource_reserves"] > 0.7
    )
    strength = (
        ecosystem * 0.25
        + env["climate_stability"] * 0.2
        + env["biodiversity"] * 0.2
        + (1 - env["pollution_level"]) * 0.15
        + env["resource_reserves"] * 0.2
    )
    return active, strength


SPIRAL_CONDITIONS: Dict[SpiralName, Callable[[WorldState], Tuple[bool, float]]] = {
    SpiralName.ABUNDANCE: _abundance,
    SpiralName.COGNITIVE: _cognitive,
    SpiralName.DEMOCRATIC: _democratic,
    SpiralName.SCIENTIFIC: _scientific,
    SpiralName.MEANING: _meaning,
    SpiralName.ECOLOGICAL: _ecological,
}


def track_spiral(spiral: UpwardSpiral, active: bool, strength: float, month: int) -> None:
    """Apply one month of activation bookkeeping to a spiral."""
    was_active = spiral.active
    spiral.active = active
    if active:
        spiral.strength = clamp(strength)
        if was_active:
            spiral.months_active += 1
        else:
            spiral.months_active = 1
            spiral.last_activated_month = month
    else:
        spiral.strength = 0.0
        spiral.months_active = 0
        if was_active:
            spiral.last_deactivated_month = month


def update_cascade(spirals: UpwardSpiralState) -> None:
    count = len(spirals.active_names())
    if count >= CASCADE_MIN_SPIRALS:
        spirals.cascade_active = True
        spirals.cascade_strength = 1.0 + 0.2 * (count - 3)
        spirals.cascade_months += 1
    else:
        spirals.cascade_active = False
        spirals.cascade_strength = 1.0
        spirals.cascade_months = 0


def apply_cascade_effects(state: WorldState) -> None:
    """Virtuous cascade: abundance and cohesion reinforce each other."""
    boost = state.spirals.cascade_strength - 1.0
    qol = state.qol
    qol.material_abundance = min(2.0, qol.material_abundance * (1 + boost * 0.1))
    social = state.accumulation.get(SOCIAL)
    if social is not None:
        social.stocks["social_cohesion"] = clamp(
            social.stocks["social_cohesion"] + boost * 0.01
        )


def update_upward_spirals(state: WorldState, context) -> List[SimulationEvent]:
    events: List[SimulationEvent] = []
    spirals = state.spirals
    was_cascading = spirals.cascade_active

    for name, condition in SPIRAL_CONDITIONS.items():
        spiral = spirals.get(name)
        was_active = spiral.active
        active, strength = condition(state)
        track_spiral(spiral, active, strength, context.month)
        if active and not was_active:
            events.append(context.event(
                "spiral", f"{name.value.capitalize()} spiral activated",
                data={"spiral": name.value, "strength": spiral.strength},
            ))
        elif was_active and not active:
            events.append(context.event(
                "spiral", f"{name.value.capitalize()} spiral lost",
                severity=EventSeverity.WARNING,
                data={"spiral": name.value},
            ))

    update_cascade(spirals)
    if spirals.cascade_active:
        apply_cascade_effects(state)
        if not was_cascading:
            logger.info("Virtuous cascade began in month %d", context.month)
            events.append(context.event(
                "milestone", "Virtuous Cascade",
                description=f"{len(spirals.active_names())} upward spirals reinforcing each other",
                severity=EventSeverity.WARNING,
                data={"strength": spirals.cascade_strength},
            ))
    return events


def sustained_spirals(spirals: UpwardSpiralState,
                      min_months: int = UTOPIA_MIN_SUSTAINED_MONTHS) -> List[SpiralName]:
    return [
        name for name in SpiralName
        if spirals.lookup(name).active and spirals.lookup(name).months_active >= min_months
    ]


def can_declare_utopia(state: WorldState) -> UtopiaGateResult:
    """
    Hard gate on any utopia classification.

    Returns the first failed requirement as the reason.
    """
    sustained = len(sustained_spirals(state.spirals))
    if sustained < UTOPIA_MIN_SPIRALS:
        return UtopiaGateResult(
            can=False,
            reason=(
                f"Only {sustained} spirals sustained for "
                f"{UTOPIA_MIN_SUSTAINED_MONTHS}+ months (need {UTOPIA_MIN_SPIRALS})"
            ),
            spiral_count=sustained,
        )

    failed_floor: Optional[str] = None
    for name, value in state.survival.floors().items():
        if value < SURVIVAL_FLOOR:
            failed_floor = f"{name} {value:.2f} below {SURVIVAL_FLOOR}"
            break
    if failed_floor:
        return UtopiaGateResult(
            can=False, reason=f"Survival floor unmet: {failed_floor}", spiral_count=sustained
        )

    dist = state.distribution
    if dist.gini > MAX_GINI:
        return UtopiaGateResult(
            can=False,
            reason=f"Inequality too high: Gini {dist.gini:.2f} > {MAX_GINI}",
            spiral_count=sustained,
        )
    if dist.worst_region_qol < MIN_WORST_REGION_QOL:
        return UtopiaGateResult(
            can=False,
            reason=(
                f"Worst-off region QoL {dist.worst_region_qol:.2f} "
                f"below {MIN_WORST_REGION_QOL}"
            ),
            spiral_count=sustained,
        )

    active_crises = count_active_crises(state)
    if active_crises > 0:
        return UtopiaGateResult(
            can=False,
            reason=f"{active_crises} active crisis flag(s) veto utopia",
            spiral_count=sustained,
        )

    return UtopiaGateResult(
        can=True,
        reason=f"{sustained} sustained spirals, floors met, no active crises",
        spiral_count=sustained,
    )
