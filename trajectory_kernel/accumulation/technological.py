"""
Technological risk accumulation: misalignment risk, safety debt, capability
concentration and complacency.

Capability growth without matching alignment research builds debt that is
invisible until it crosses a threshold.
"""

from trajectory_kernel.accumulation.domain import (
    CrisisSpec,
    DomainDefinition,
    StockSpec,
    scale,
    shift,
)

TECHNOLOGICAL = "technological"


def _technological_deltas(state, record, config):
    s = record.stocks
    growth = max(0.0, state.average_capability() - 0.5) * 0.1
    alignment_research = state.government.research_investment.get("alignment", 0.0)

    misalignment = growth * 0.015
    if state.average_alignment() < 0.5:
        misalignment += 0.01
    if state.max_capability() > 1.5:
        misalignment += 0.008
    if alignment_research > 3.0:
        misalignment *= 0.7

    safety_debt = max(0.0, growth - alignment_research * 0.01) * 0.05

    org_count = len(state.organizations)
    if org_count < 5:
        floor = 0.8
    elif org_count < 10:
        floor = 0.5
    else:
        floor = 0.3
    concentration = max(s["capability_concentration"], floor) - s["capability_concentration"]

    complacency = 0.015 if state.golden_age.active else -0.005

    return {
        "misalignment_risk": misalignment,
        "safety_debt": safety_debt,
        "capability_concentration": concentration,
        "complacency": complacency,
    }


# --- Crises ---

def _control_loss_shock(state, record, rng):
    scale(state.qol, "physical_safety", 0.7)
    scale(state.qol, "autonomy", 0.6)
    shift(state.metrics, "social_stability", -0.4)


def _control_loss_drag(state, record, amp):
    shift(state.qol, "physical_safety", -0.01 * amp)


def _corporate_shock(state, record, rng):
    scale(state.qol, "political_freedom", 0.5)
    scale(state.qol, "autonomy", 0.6)
    scale(state.qol, "information_integrity", 0.6)


def _corporate_drag(state, record, amp):
    shift(state.qol, "autonomy", -0.008 * amp)


def _complacency_shock(state, record, rng):
    # Neglect compounds the domain's own debts; the caller re-clamps.
    record.stocks["misalignment_risk"] += 0.2
    record.stocks["safety_debt"] += 0.15


TECHNOLOGICAL_DOMAIN = DomainDefinition(
    id=TECHNOLOGICAL,
    stocks=[
        StockSpec("misalignment_risk", 0.10),
        StockSpec("safety_debt", 0.05),
        StockSpec("capability_concentration", 0.25),
        StockSpec("complacency", 0.30),
    ],
    delta_rule=_technological_deltas,
    crises=[
        CrisisSpec(
            "control_loss", "Loss of Control",
            lambda state, r, rng: (
                r.stocks["misalignment_risk"] > 0.7 or r.stocks["safety_debt"] > 0.6
            ),
            _control_loss_shock, _control_loss_drag,
        ),
        CrisisSpec(
            "corporate_dystopia", "Corporate Capture",
            lambda state, r, rng: (
                r.stocks["capability_concentration"] > 0.7
                and state.metrics.private_capital / 1e6 > 50
            ),
            _corporate_shock, _corporate_drag,
        ),
        CrisisSpec(
            "complacency_crisis", "Complacency Crisis",
            lambda state, r, rng: r.stocks["complacency"] > 0.6,
            _complacency_shock,
        ),
    ],
)


def technological_safety(stocks: dict) -> float:
    return (
        (1 - stocks["misalignment_risk"]) * 0.35
        + (1 - stocks["safety_debt"]) * 0.35
        + (1 - stocks["capability_concentration"]) * 0.15
        + (1 - stocks["complacency"]) * 0.15
    )
