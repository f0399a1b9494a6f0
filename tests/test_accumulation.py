"""Tests for the accumulation-crisis domains."""

import random

import pytest

from trajectory_kernel.accumulation.domain import apply_mitigations, cascade_amplifier
from trajectory_kernel.accumulation.environmental import ENVIRONMENTAL
from trajectory_kernel.accumulation.planetary import (
    BOUNDARIES,
    PLANETARY,
    TIPPING_RISK,
    boundary_status,
    calculate_tipping_risk,
)
from trajectory_kernel.accumulation.registry import DOMAINS, get_domain, stock_bounds
from trajectory_kernel.accumulation.social import SOCIAL
from trajectory_kernel.engine.orchestrator import PhaseContext
from trajectory_kernel.engine.simulation import SimulationEngine
from trajectory_kernel.models.agents import AIAgent
from trajectory_kernel.models.config import SimulationConfig
from trajectory_kernel.models.world import WorldState
from trajectory_kernel.world.initialization import create_default_world_state


class _FixedRandom(random.Random):
    """Always draws the same value."""

    value = 0.0

    def random(self):
        return self.value


def _fixed_rng(value: float) -> random.Random:
    rng = _FixedRandom(0)
    rng.value = value
    return rng


def _context(month: int = 1, phase_id: str = "test") -> PhaseContext:
    return PhaseContext(month, SimulationConfig()).for_phase(phase_id)


def _make_state_with_environment(**stocks) -> WorldState:
    state = WorldState()
    record = get_domain(ENVIRONMENTAL).record(state)
    record.stocks.update(stocks)
    return state


class TestAmplifier:
    @pytest.mark.parametrize("count", [0, 1, 2])
    def test_no_amplification_at_or_below_baseline(self, count):
        assert cascade_amplifier(count) == 1.0

    def test_amplifier_grows_quadratically(self):
        assert cascade_amplifier(3) == pytest.approx(1.25)
        assert cascade_amplifier(4) == pytest.approx(2.0)
        assert cascade_amplifier(6) == pytest.approx(5.0)


class TestMitigations:
    def test_single_mitigation(self):
        assert apply_mitigations(1.0, (1.0, 0.5)) == pytest.approx(0.5)

    def test_diminishing_returns(self):
        once = apply_mitigations(1.0, (1.0, 0.5))
        twice = apply_mitigations(1.0, (1.0, 0.5), (1.0, 0.5))
        assert twice == pytest.approx(0.25)
        assert (1.0 - once) > (once - twice)

    def test_deployment_clamped(self):
        assert apply_mitigations(1.0, (3.0, 0.5)) == pytest.approx(0.5)

    def test_undeployed_technology_has_no_effect(self):
        assert apply_mitigations(0.02, (0.0, 0.9)) == pytest.approx(0.02)


class TestAccumulationDomain:
    def test_record_initialized_lazily(self):
        state = WorldState()
        assert ENVIRONMENTAL not in state.accumulation
        get_domain(ENVIRONMENTAL).update(state, random.Random(1), _context())
        record = state.accumulation[ENVIRONMENTAL]
        assert set(record.stocks) == set(stock_bounds(ENVIRONMENTAL))

    def test_stocks_clamped_after_update(self):
        state = _make_state_with_environment(
            resource_reserves=-0.5, pollution_level=4.0, climate_stability=1.7,
        )
        get_domain(ENVIRONMENTAL).update(state, random.Random(1), _context())
        for name, value in state.accumulation[ENVIRONMENTAL].stocks.items():
            lo, hi = stock_bounds(ENVIRONMENTAL)[name]
            assert lo <= value <= hi

    def test_crisis_triggers_once_with_shock_and_event(self):
        state = _make_state_with_environment(resource_reserves=0.1)
        domain = get_domain(ENVIRONMENTAL)

        events = domain.update(state, random.Random(1), _context(month=4))

        record = state.accumulation[ENVIRONMENTAL]
        assert record.is_active("resource_crisis")
        assert record.crisis_months["resource_crisis"] == 4
        assert state.qol.material_abundance == pytest.approx(0.7)
        assert len(events) == 1
        assert events[0].type == "crisis"
        assert events[0].is_critical
        assert events[0].data["crisis"] == "resource_crisis"

    def test_crisis_flag_is_sticky(self):
        state = _make_state_with_environment(resource_reserves=0.1)
        domain = get_domain(ENVIRONMENTAL)
        domain.update(state, random.Random(1), _context(month=4))

        # Recovery of the underlying stock does not clear the flag
        state.accumulation[ENVIRONMENTAL].stocks["resource_reserves"] = 0.95
        events = domain.update(state, random.Random(1), _context(month=5))

        record = state.accumulation[ENVIRONMENTAL]
        assert record.is_active("resource_crisis")
        assert record.crisis_months["resource_crisis"] == 4
        assert events == []

    def test_drag_applies_after_trigger_month(self):
        state = _make_state_with_environment(resource_reserves=0.1)
        domain = get_domain(ENVIRONMENTAL)
        domain.update(state, random.Random(1), _context(month=4))
        assert state.qol.material_abundance == pytest.approx(0.7)

        domain.update(state, random.Random(1), _context(month=5))
        assert state.qol.material_abundance == pytest.approx(0.69)

    def test_drag_scaled_by_cross_domain_amplifier(self):
        state = _make_state_with_environment(resource_reserves=0.1)
        state.accumulation[ENVIRONMENTAL].trigger("resource_crisis", 1)
        social = get_domain(SOCIAL).record(state)
        for crisis in ("meaning_collapse", "institutional_failure", "social_unrest"):
            social.trigger(crisis, 1)

        get_domain(ENVIRONMENTAL).update(state, random.Random(1), _context(month=2))

        # Four active crises: amplifier 2.0 doubles the 0.01 drag
        assert state.qol.material_abundance == pytest.approx(0.98)
        assert state.metrics.social_stability == pytest.approx(0.58)


class TestConfigKnobs:
    def _update(self, domain_id: str, state: WorldState, **config) -> dict:
        context = PhaseContext(1, SimulationConfig(**config)).for_phase(domain_id)
        get_domain(domain_id).update(state, random.Random(1), context)
        return state.accumulation[domain_id].stocks

    def _recycling_state(self) -> WorldState:
        state = WorldState(
            agents=[AIAgent(id="ai_1", capability=1.0, alignment=0.6)],
            deployed_technologies={"advanced_recycling": 1.0},
        )
        get_domain(ENVIRONMENTAL).record(state).stocks["resource_reserves"] = 0.5
        return state

    def test_coordination_multiplier_scales_regeneration(self):
        base = self._update(ENVIRONMENTAL, self._recycling_state())
        boosted = self._update(ENVIRONMENTAL, self._recycling_state(),
                               ai_coordination_multiplier=3.0)
        # recycling 0.02 x (1 + 1.0 x 0.1 x multiplier)
        assert boosted["resource_reserves"] - base["resource_reserves"] == pytest.approx(0.004)

    def test_social_adaptation_paces_cultural_adaptation(self):
        slow, fast = WorldState(), WorldState()
        slow.society.social_adaptation = 0.0
        fast.society.social_adaptation = 1.0
        slow_stocks = self._update(SOCIAL, slow)
        fast_stocks = self._update(SOCIAL, fast)
        assert (fast_stocks["cultural_adaptation"] - slow_stocks["cultural_adaptation"]
                == pytest.approx(0.004))


class TestPlanetaryBoundaries:
    def test_boundary_status(self):
        assert boundary_status("climate_change", 0.9) == "safe"
        assert boundary_status("climate_change", 1.1) == "beyond_boundary"
        assert boundary_status("climate_change", 1.3) == "increasing_risk"
        assert boundary_status("climate_change", 1.5) == "high_risk"

    def test_all_safe_means_no_risk(self):
        values = {b.name: 0.5 for b in BOUNDARIES}
        assert calculate_tipping_risk(values, worsening=0) == 0.0

    def test_core_breach_adds_risk(self):
        values = {b.name: 0.5 for b in BOUNDARIES}
        values["climate_change"] = 1.1
        values["biosphere_integrity"] = 1.1
        assert calculate_tipping_risk(values, worsening=0) == pytest.approx(0.55)

    def test_worsening_adds_risk(self):
        values = {b.name: 0.5 for b in BOUNDARIES}
        assert calculate_tipping_risk(values, worsening=2) == pytest.approx(0.06)

    def test_risk_capped(self):
        values = {b.name: 15.0 for b in BOUNDARIES}
        assert calculate_tipping_risk(values, worsening=9) == 0.98

    def test_cascade_starts_rapid_extinction(self):
        state = create_default_world_state()
        get_domain(PLANETARY).update(state, _fixed_rng(0.0), _context(month=3))

        record = state.accumulation[PLANETARY]
        assert record.stocks[TIPPING_RISK] > 0.7
        assert record.is_active("tipping_cascade")
        assert state.extinction.active
        assert state.extinction.type == "rapid"
        assert state.extinction.mechanism == "climate_tipping_point"

    def test_cascade_needs_the_monthly_draw(self):
        state = create_default_world_state()
        get_domain(PLANETARY).update(state, _fixed_rng(0.99), _context(month=3))
        assert not state.accumulation[PLANETARY].is_active("tipping_cascade")
        assert not state.extinction.active


class TestClampingProperty:
    def test_every_stock_within_bounds_each_month(self):
        engine = SimulationEngine(config=SimulationConfig(seed=7))
        state = create_default_world_state(seed=7)
        for _ in range(36):
            state = engine.step(state).state
            for domain_id in DOMAINS:
                bounds = stock_bounds(domain_id)
                for name, value in state.accumulation[domain_id].stocks.items():
                    lo, hi = bounds[name]
                    assert lo <= value <= hi, f"{domain_id}.{name}={value}"

    def test_crisis_flags_never_clear(self):
        engine = SimulationEngine()
        state = create_default_world_state(seed=3)
        seen = set()
        for _ in range(36):
            state = engine.step(state).state
            current = {
                (domain_id, name)
                for domain_id, record in state.accumulation.items()
                for name in record.active_crises()
            }
            assert seen <= current
            seen = current
