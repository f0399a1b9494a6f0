"""
Social accumulation: meaning crisis, institutional legitimacy, social
cohesion and cultural adaptation.

Automation erodes work-based identity faster than new meaning frameworks
form. UBI, education and community programs slow the erosion.
"""

from trajectory_kernel.accumulation.domain import (
    CrisisSpec,
    DomainDefinition,
    StockSpec,
    scale,
    shift,
)
from trajectory_kernel.models.society import GovernmentType

SOCIAL = "social"


def _has_ubi(state) -> bool:
    return state.metrics.economic_stage >= 3.0 or state.government.ubi_enabled


def _social_deltas(state, record, config):
    s = record.stocks
    gov = state.government
    stage = state.metrics.economic_stage
    unemployment = state.society.unemployment_level
    trust = state.society.trust_in_ai
    avg_cap = state.average_capability()

    ubi = _has_ubi(state)
    education = gov.total_research > 20.0
    community = state.metrics.social_stability > 0.7

    # Meaning crisis
    meaning = unemployment * 0.010
    if 2.0 <= stage < 3.5:
        meaning += 0.012
    meaning += avg_cap * 0.004
    if ubi:
        meaning *= 0.7
    if education:
        meaning *= 0.8
    if s["cultural_adaptation"] > 0.5:
        meaning *= 0.5

    # Institutional legitimacy
    surveillance = gov.surveillance_level
    erosion = (avg_cap + stage * 0.2) * 0.006
    if gov.legitimacy < 0.5:
        erosion += 0.008
    if trust < 0.4:
        erosion += 0.006
    erosion += surveillance * 0.008
    if gov.legitimacy * (1 - surveillance) > 0.6:
        erosion *= 0.5
    legitimacy_recovery = 0.0
    if ubi and unemployment > 0.3:
        legitimacy_recovery += 0.005
    if 0 < gov.regulation_count < 8:
        legitimacy_recovery += 0.003

    # Cohesion
    cohesion_loss = (1 - state.metrics.wealth_distribution) * 0.008
    cohesion_loss += unemployment * 0.006
    if avg_cap > 0.5:
        cohesion_loss += 0.005
    cohesion_loss += s["meaning_crisis"] * 0.006
    if s["institutional_legitimacy"] < 0.4:
        cohesion_loss += 0.008
    cohesion_recovery = 0.0
    if community:
        cohesion_recovery += 0.008
    if ubi:
        cohesion_recovery += 0.004
    if state.metrics.quality_of_life > 0.75:
        cohesion_recovery += 0.005

    # Cultural adaptation: slow, generational; paced by society-wide adaptation
    adaptation = 0.002 + state.society.social_adaptation * 0.004
    if stage >= 3.0:
        adaptation += 0.008
    if unemployment > 0.4:
        adaptation += 0.006
    if education:
        adaptation += 0.005
    if community:
        adaptation += 0.004
    if s["cultural_adaptation"] > 0.3:
        adaptation *= 1 + s["cultural_adaptation"]
    if s["institutional_legitimacy"] < 0.3:
        adaptation *= 0.5

    return {
        "meaning_crisis": meaning,
        "institutional_legitimacy": legitimacy_recovery - erosion,
        "social_cohesion": cohesion_recovery - cohesion_loss,
        "cultural_adaptation": adaptation,
    }


# --- Crises ---

def _meaning_shock(state, record, rng):
    scale(state.qol, "mental_health", 0.65)
    scale(state.qol, "meaning_and_purpose", 0.4)
    scale(state.qol, "social_connection", 0.7)
    shift(state.society, "paranoia_level", 0.35)
    shift(state.metrics, "quality_of_life", -0.35)


def _meaning_drag(state, record, amp):
    shift(state.qol, "mental_health", -0.012 * amp)
    shift(state.qol, "meaning_and_purpose", -0.015 * amp)


def _institutional_shock(state, record, rng):
    scale(state.qol, "political_freedom", 0.6)
    scale(state.qol, "autonomy", 0.7)
    shift(state.metrics, "social_stability", -0.6)
    state.government.legitimacy = min(state.government.legitimacy, 0.25)
    if rng.random() < 0.4:
        state.government.government_type = GovernmentType.AUTHORITARIAN


def _institutional_drag(state, record, amp):
    shift(state.qol, "political_freedom", -0.01 * amp)
    shift(state.metrics, "social_stability", -0.012 * amp)


def _unrest_shock(state, record, rng):
    scale(state.qol, "physical_safety", 0.5)
    scale(state.qol, "community_strength", 0.4)
    scale(state.qol, "political_freedom", 0.7)
    shift(state.metrics, "social_stability", -0.5)
    shift(state.government, "control_desire", 0.3)
    shift(state.government, "surveillance_level", 0.2)


def _unrest_drag(state, record, amp):
    shift(state.qol, "physical_safety", -0.015 * amp)
    shift(state.qol, "community_strength", -0.01 * amp)


SOCIAL_DOMAIN = DomainDefinition(
    id=SOCIAL,
    stocks=[
        StockSpec("meaning_crisis", 0.22),
        StockSpec("institutional_legitimacy", 0.65),
        StockSpec("social_cohesion", 0.60),
        StockSpec("cultural_adaptation", 0.10),
    ],
    delta_rule=_social_deltas,
    crises=[
        CrisisSpec(
            "meaning_collapse", "Meaning Collapse",
            lambda state, r, rng: r.stocks["meaning_crisis"] > 0.6,
            _meaning_shock, _meaning_drag,
        ),
        CrisisSpec(
            "institutional_failure", "Institutional Failure",
            lambda state, r, rng: r.stocks["institutional_legitimacy"] < 0.3,
            _institutional_shock, _institutional_drag,
        ),
        CrisisSpec(
            "social_unrest", "Social Unrest",
            lambda state, r, rng: r.stocks["social_cohesion"] < 0.3,
            _unrest_shock, _unrest_drag,
        ),
    ],
)


def social_sustainability(stocks: dict) -> float:
    return (
        (1 - stocks["meaning_crisis"]) * 0.3
        + stocks["institutional_legitimacy"] * 0.25
        + stocks["social_cohesion"] * 0.3
        + stocks["cultural_adaptation"] * 0.15
    )
