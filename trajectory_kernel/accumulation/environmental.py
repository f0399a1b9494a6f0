"""
Environmental accumulation: resource depletion, pollution, climate and
biodiversity.

Degradation outpaces recovery. Technology deployment slows depletion and
adds regeneration, boosted by AI coordination.
"""

from trajectory_kernel.accumulation.domain import (
    CrisisSpec,
    DomainDefinition,
    StockSpec,
    apply_mitigations,
    scale,
    shift,
)

ENVIRONMENTAL = "environmental"

# Technology ids read from WorldState.deployed_technologies
ADVANCED_MATERIALS = "advanced_materials"
NANOTECH = "nanotechnology"
SUSTAINABLE_AGRICULTURE = "sustainable_agriculture"
RECYCLING = "advanced_recycling"
CLEAN_ENERGY = "clean_energy"
FUSION = "fusion_power"
ECOSYSTEM_MANAGEMENT = "ecosystem_management"


def _environmental_deltas(state, record, config):
    s = record.stocks
    stage = state.metrics.economic_stage
    mfg = state.metrics.manufacturing_capacity
    tech = state.deployment
    coordination = 1.0 + state.average_capability() * 0.1 * config.ai_coordination_multiplier

    depletion = stage * 0.008 + mfg * 0.004
    depletion = apply_mitigations(
        depletion, (tech(ADVANCED_MATERIALS), 0.5), (tech(NANOTECH), 0.25)
    )
    regeneration = (
        tech(SUSTAINABLE_AGRICULTURE) * 0.01
        + tech(RECYCLING) * 0.02
        + tech(CLEAN_ENERGY) * 0.015
        + tech(ECOSYSTEM_MANAGEMENT) * 0.008
    ) * coordination

    pollution = stage * 0.006 + mfg * 0.005
    if 2.0 < stage < 3.5:
        pollution += 0.01  # industrial transition peak
    pollution = apply_mitigations(
        pollution, (tech(CLEAN_ENERGY), 0.4), (tech(RECYCLING), 0.6), (tech(NANOTECH), 0.5)
    )
    pollution -= 0.003

    climate = state.metrics.energy_use * 0.0008
    if stage > 3.0:
        climate += 0.0016
    climate = apply_mitigations(climate, (tech(FUSION), 0.2), (tech(CLEAN_ENERGY), 0.5))
    climate_recovery = 0.001

    managed = tech(ECOSYSTEM_MANAGEMENT)
    biodiversity_loss = (
        stage * 0.0004
        + mfg * 0.0003
        + (1 - s["resource_reserves"]) * 0.0008
        + s["pollution_level"] * 0.0004
        + (1 - s["climate_stability"]) * 0.0006
    )
    biodiversity_loss = apply_mitigations(biodiversity_loss, (managed, 0.7))
    biodiversity_recovery = 0.001 + managed * 0.004

    return {
        "resource_reserves": regeneration - depletion,
        "pollution_level": pollution,
        "climate_stability": climate_recovery - climate,
        "biodiversity": biodiversity_recovery - biodiversity_loss,
    }


# --- Crises ---

def _resource_shock(state, record, rng):
    scale(state.qol, "material_abundance", 0.7)
    scale(state.qol, "energy_availability", 0.8)
    shift(state.metrics, "social_stability", -0.3)


def _resource_drag(state, record, amp):
    shift(state.qol, "material_abundance", -0.01 * amp)
    shift(state.metrics, "social_stability", -0.01 * amp)


def _pollution_shock(state, record, rng):
    scale(state.qol, "healthcare_quality", 0.75)
    shift(state.qol, "disease_burden", 0.3)
    scale(state.qol, "ecosystem_health", 0.6)
    shift(state.metrics, "quality_of_life", -0.25)


def _pollution_drag(state, record, amp):
    shift(state.qol, "healthcare_quality", -0.008 * amp)
    shift(state.qol, "disease_burden", 0.01 * amp)


def _climate_shock(state, record, rng):
    scale(state.qol, "physical_safety", 0.6)
    scale(state.qol, "material_abundance", 0.5)
    scale(state.qol, "ecosystem_health", 0.4)
    shift(state.metrics, "social_stability", -0.5)


def _climate_drag(state, record, amp):
    shift(state.qol, "physical_safety", -0.012 * amp)
    shift(state.qol, "material_abundance", -0.015 * amp)


def _ecosystem_shock(state, record, rng):
    scale(state.qol, "material_abundance", 0.95)
    scale(state.qol, "healthcare_quality", 0.97)
    scale(state.qol, "ecosystem_health", 0.9)
    shift(state.metrics, "quality_of_life", -0.05)


def _ecosystem_drag(state, record, amp):
    shift(state.qol, "ecosystem_health", -0.01 * amp)
    shift(state.qol, "material_abundance", -0.01 * amp)


ENVIRONMENTAL_DOMAIN = DomainDefinition(
    id=ENVIRONMENTAL,
    stocks=[
        StockSpec("resource_reserves", 0.65),
        StockSpec("pollution_level", 0.30),
        StockSpec("climate_stability", 0.75),
        StockSpec("biodiversity", 0.35),
    ],
    delta_rule=_environmental_deltas,
    crises=[
        CrisisSpec(
            "resource_crisis", "Resource Crisis",
            lambda state, r, rng: r.stocks["resource_reserves"] < 0.3,
            _resource_shock, _resource_drag,
        ),
        CrisisSpec(
            "pollution_crisis", "Pollution Crisis",
            lambda state, r, rng: r.stocks["pollution_level"] > 0.7,
            _pollution_shock, _pollution_drag,
        ),
        CrisisSpec(
            "climate_crisis", "Climate Crisis",
            lambda state, r, rng: r.stocks["climate_stability"] < 0.4,
            _climate_shock, _climate_drag,
        ),
        CrisisSpec(
            "ecosystem_crisis", "Ecosystem Collapse",
            lambda state, r, rng: r.stocks["biodiversity"] < 0.2,
            _ecosystem_shock, _ecosystem_drag,
        ),
    ],
)


def environmental_sustainability(stocks: dict) -> float:
    return (
        stocks["resource_reserves"]
        + (1 - stocks["pollution_level"])
        + stocks["climate_stability"]
        + stocks["biodiversity"]
    ) / 4
