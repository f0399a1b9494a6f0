"""
Planetary boundaries: nine Earth-system control variables and the tipping
point risk they produce together.

Boundary values are normalized so 1.0 is the safe-operating limit. Climate,
biosphere integrity and novel entities are derived from the environmental
domain each month; the rest drift slowly on their own.

A tipping cascade, once triggered, is irreversible: it starts a rapid
extinction scenario and degrades every Earth system each month after.
"""

from typing import Dict, List

from trajectory_kernel.accumulation.domain import (
    CrisisSpec,
    DomainDefinition,
    StockSpec,
    clamp,
)
from trajectory_kernel.accumulation.environmental import ENVIRONMENTAL, ENVIRONMENTAL_DOMAIN

PLANETARY = "planetary"
TIPPING_RISK = "tipping_point_risk"

# Tipping risk by number of boundaries breached (index = count)
BASE_RISK_BY_BREACHES = [0.0, 0.02, 0.05, 0.10, 0.20, 0.30, 0.45, 0.60, 0.80, 0.95]
CORE_BREACH_RISK = 0.50
HIGH_RISK_INCREMENT = 0.08
WORSENING_INCREMENT = 0.03
MAX_TIPPING_RISK = 0.98
CASCADE_RISK_THRESHOLD = 0.70
CASCADE_MONTHLY_CHANCE = 0.10


class BoundarySpec:
    def __init__(self, name: str, initial: float, high_risk: float,
                 core: bool = False, drift: float = 0.0):
        self.name = name
        self.initial = initial
        self.high_risk = high_risk
        self.core = core
        self.drift = drift


BOUNDARIES: List[BoundarySpec] = [
    BoundarySpec("climate_change", 1.21, 1.4, core=True),
    BoundarySpec("biosphere_integrity", 10.0, 1.5, core=True),
    BoundarySpec("land_system_change", 1.17, 1.4, drift=0.0002),
    BoundarySpec("freshwater_change", 1.15, 1.5, drift=0.0002),
    BoundarySpec("biogeochemical_flows", 2.94, 1.5, drift=0.0003),
    BoundarySpec("novel_entities", 1.5, 2.0),
    BoundarySpec("ocean_acidification", 1.05, 1.3, drift=0.0002),
    BoundarySpec("stratospheric_ozone", 0.85, 1.2, drift=-0.0005),
    BoundarySpec("atmospheric_aerosols", 0.70, 1.5, drift=-0.0003),
]
_BOUNDARY_INDEX = {b.name: b for b in BOUNDARIES}


def boundary_status(name: str, value: float) -> str:
    spec = _BOUNDARY_INDEX[name]
    if value < 1.0:
        return "safe"
    if value < 1.2:
        return "beyond_boundary"
    if value < spec.high_risk:
        return "increasing_risk"
    return "high_risk"


def calculate_tipping_risk(values: Dict[str, float], worsening: int) -> float:
    statuses = {name: boundary_status(name, v) for name, v in values.items()}
    breached = sum(1 for s in statuses.values() if s != "safe")
    high_risk = sum(1 for s in statuses.values() if s == "high_risk")
    core_breached = all(
        statuses[b.name] != "safe" for b in BOUNDARIES if b.core
    )

    risk = BASE_RISK_BY_BREACHES[min(breached, len(BASE_RISK_BY_BREACHES) - 1)]
    if core_breached:
        risk += CORE_BREACH_RISK
    risk += high_risk * HIGH_RISK_INCREMENT
    risk += worsening * WORSENING_INCREMENT
    return min(MAX_TIPPING_RISK, risk)


def _environmental_stocks(state) -> dict:
    record = state.accumulation.get(ENVIRONMENTAL)
    if record is None:
        return ENVIRONMENTAL_DOMAIN.initial_record().stocks
    return record.stocks


def _planetary_deltas(state, record, config):
    env = _environmental_stocks(state)
    current = record.stocks

    targets = {}
    for spec in BOUNDARIES:
        targets[spec.name] = max(0.0, current[spec.name] + spec.drift)
    targets["climate_change"] = max(0.0, 1.21 - env["climate_stability"] * 0.21)
    targets["biosphere_integrity"] = max(0.0, 10.0 * (1 - env["biodiversity"]))
    targets["novel_entities"] = max(0.0, 1.5 + (env["pollution_level"] - 0.3) * 0.5)

    worsening = sum(1 for name, v in targets.items() if v > current[name])
    risk = calculate_tipping_risk(targets, worsening)

    deltas = {name: v - current[name] for name, v in targets.items()}
    deltas[TIPPING_RISK] = risk - current[TIPPING_RISK]
    return deltas


# --- Cascade ---

def _cascade_trigger(state, record, rng) -> bool:
    if record.stocks[TIPPING_RISK] <= CASCADE_RISK_THRESHOLD:
        return False
    return rng.random() < CASCADE_MONTHLY_CHANCE


def _cascade_shock(state, record, rng):
    extinction = state.extinction
    if extinction.active:
        return
    extinction.active = True
    extinction.type = "rapid"
    extinction.mechanism = "climate_tipping_point"
    extinction.start_month = state.month
    extinction.severity = clamp(record.stocks[TIPPING_RISK])


def _cascade_drag(state, record, amp):
    env = state.accumulation.get(ENVIRONMENTAL)
    if env is not None:
        s = env.stocks
        s["climate_stability"] = clamp(s["climate_stability"] * 0.98 ** amp)
        s["biodiversity"] = clamp(s["biodiversity"] * 0.97 ** amp)
        s["resource_reserves"] = clamp(s["resource_reserves"] * 0.985 ** amp)
        s["pollution_level"] = clamp(s["pollution_level"] * 1.01 ** amp)

    state.survival.food_security = clamp(state.survival.food_security * 0.96 ** amp)
    qol = state.qol
    qol.healthcare_quality = clamp(qol.healthcare_quality * 0.98 ** amp)
    qol.physical_safety = clamp(qol.physical_safety * 0.97 ** amp)
    qol.social_connection = clamp(qol.social_connection * 0.97 ** amp)
    qol.mental_health = clamp(qol.mental_health * 0.96 ** amp)


PLANETARY_DOMAIN = DomainDefinition(
    id=PLANETARY,
    stocks=[StockSpec(b.name, b.initial, 0.0, 20.0) for b in BOUNDARIES]
    + [StockSpec(TIPPING_RISK, 0.0)],
    delta_rule=_planetary_deltas,
    crises=[
        CrisisSpec(
            "tipping_cascade", "Tipping Point Cascade",
            _cascade_trigger, _cascade_shock, _cascade_drag,
        ),
    ],
)
