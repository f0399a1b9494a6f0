"""Tests for the Outcome Determiner and Golden Age tracking."""

import pytest

from trajectory_kernel.accumulation.environmental import ENVIRONMENTAL
from trajectory_kernel.accumulation.registry import ensure_records
from trajectory_kernel.accumulation.social import SOCIAL
from trajectory_kernel.accumulation.technological import TECHNOLOGICAL
from trajectory_kernel.endgame.machine import lock_outcome
from trajectory_kernel.engine.orchestrator import PhaseContext
from trajectory_kernel.models.config import SimulationConfig
from trajectory_kernel.models.endgame import OutcomeType
from trajectory_kernel.models.quality import Distribution, SurvivalFundamentals
from trajectory_kernel.models.society import GlobalMetrics, Society
from trajectory_kernel.models.spirals import SpiralName
from trajectory_kernel.models.world import WorldState
from trajectory_kernel.outcomes.determiner import (
    ACTIVE,
    determine_actual_outcome,
    overall_sustainability,
)
from trajectory_kernel.outcomes.golden_age import golden_age_conditions_met, update_golden_age


def _make_flourishing_state(month: int = 60) -> WorldState:
    """A world that satisfies every utopia requirement."""
    state = WorldState(
        month=month,
        survival=SurvivalFundamentals(food_security=0.9, water_security=0.9,
                                      thermal_habitability=0.9, shelter_security=0.9),
        distribution=Distribution(gini=0.3, best_region_qol=0.85, worst_region_qol=0.6),
    )
    ensure_records(state)
    state.accumulation[ENVIRONMENTAL].stocks.update(
        resource_reserves=0.9, pollution_level=0.1, climate_stability=0.9, biodiversity=0.9,
    )
    state.accumulation[SOCIAL].stocks.update(
        meaning_crisis=0.1, institutional_legitimacy=0.8, social_cohesion=0.8,
        cultural_adaptation=0.8,
    )
    for name in (SpiralName.ABUNDANCE, SpiralName.COGNITIVE,
                 SpiralName.DEMOCRATIC, SpiralName.ECOLOGICAL):
        spiral = state.spirals.get(name)
        spiral.active = True
        spiral.months_active = 13
    state.golden_age.active = True
    state.golden_age.duration = 12
    return state


def _context(month: int) -> PhaseContext:
    return PhaseContext(month, SimulationConfig()).for_phase("golden-age")


class TestUtopiaDetermination:
    def test_sustained_golden_age_is_utopia(self):
        state = _make_flourishing_state()
        assert overall_sustainability(state) > 0.65

        result = determine_actual_outcome(state)

        assert result.outcome == "utopia"
        assert 0.85 <= result.confidence <= 1.0

    def test_short_golden_age_is_not_enough(self):
        state = _make_flourishing_state()
        state.golden_age.duration = 11
        assert determine_actual_outcome(state).outcome == ACTIVE

    def test_single_crisis_vetoes_utopia(self):
        state = _make_flourishing_state()
        state.accumulation[TECHNOLOGICAL].trigger("complacency_crisis", 50)
        assert determine_actual_outcome(state).outcome == ACTIVE

    def test_utopia_gate_required(self):
        state = _make_flourishing_state()
        state.spirals.get(SpiralName.COGNITIVE).active = False
        state.spirals.get(SpiralName.DEMOCRATIC).active = False
        assert determine_actual_outcome(state).outcome == ACTIVE

    def test_low_sustainability_is_not_utopia(self):
        state = _make_flourishing_state()
        state.accumulation[ENVIRONMENTAL].stocks.update(
            resource_reserves=0.35, pollution_level=0.65, climate_stability=0.45,
            biodiversity=0.25,
        )
        state.accumulation[SOCIAL].stocks.update(meaning_crisis=0.5, social_cohesion=0.35)
        assert overall_sustainability(state) <= 0.65
        assert determine_actual_outcome(state).outcome == ACTIVE


class TestPriority:
    def test_locked_end_game_wins(self):
        state = _make_flourishing_state()
        lock_outcome(state.end_game, OutcomeType.DYSTOPIA, "Frozen conflict", 40)

        result = determine_actual_outcome(state)

        assert result.outcome == "dystopia"
        assert result.reason == "Frozen conflict"
        assert result.confidence == 1.0

    def test_extinction_in_progress_reports_active(self):
        state = _make_flourishing_state()
        state.extinction.active = True
        state.extinction.type = "rapid"
        state.extinction.mechanism = "climate_tipping_point"
        state.extinction.severity = 0.4

        result = determine_actual_outcome(state)

        assert result.outcome == ACTIVE
        assert "in progress" in result.reason

    def test_completed_extinction(self):
        state = _make_flourishing_state()
        state.extinction.active = True
        state.extinction.completed = True
        state.extinction.type = "rapid"
        state.extinction.mechanism = "climate_tipping_point"
        assert determine_actual_outcome(state).outcome == "extinction"

    def test_dystopia_path_beats_utopia(self):
        state = _make_flourishing_state()
        state.accumulation[TECHNOLOGICAL].trigger("corporate_dystopia", 30)
        state.metrics = GlobalMetrics(wealth_distribution=0.2)
        result = determine_actual_outcome(state)
        assert result.outcome == "dystopia"
        assert "Corporate" in result.reason


class TestDystopiaPaths:
    def test_surveillance_state_needs_time(self):
        state = WorldState()
        state.government.surveillance_level = 0.8
        state.qol.autonomy = 0.2
        state.qol.political_freedom = 0.2

        assert determine_actual_outcome(state, month=24).outcome == ACTIVE
        result = determine_actual_outcome(state, month=25)
        assert result.outcome == "dystopia"
        assert result.confidence == pytest.approx(0.85)

    def test_social_collapse(self):
        state = WorldState()
        ensure_records(state)
        state.golden_age.active = True
        state.accumulation[SOCIAL].trigger("institutional_failure", 10)
        assert determine_actual_outcome(state).outcome == ACTIVE

        state.accumulation[SOCIAL].trigger("social_unrest", 11)
        assert determine_actual_outcome(state).outcome == "dystopia"

    def test_social_collapse_needs_golden_age(self):
        state = WorldState()
        ensure_records(state)
        state.accumulation[SOCIAL].trigger("institutional_failure", 10)
        state.accumulation[SOCIAL].trigger("social_unrest", 11)
        assert determine_actual_outcome(state).outcome == ACTIVE

    def test_corporate_capture_needs_golden_age(self):
        state = WorldState(metrics=GlobalMetrics(wealth_distribution=0.2))
        ensure_records(state)
        state.accumulation[TECHNOLOGICAL].trigger("corporate_dystopia", 10)
        assert determine_actual_outcome(state).outcome == ACTIVE

        state.golden_age.active = True
        result = determine_actual_outcome(state)
        assert result.outcome == "dystopia"
        assert result.confidence == pytest.approx(0.75)

    def test_default_world_is_active(self):
        assert determine_actual_outcome(WorldState()).outcome == ACTIVE

    def test_pure_query(self):
        state = WorldState()
        determine_actual_outcome(state)
        assert state.accumulation == {}

    def test_pure_query_leaves_spirals_alone(self):
        state = _make_flourishing_state()
        del state.spirals.spirals[SpiralName.MEANING]
        determine_actual_outcome(state)
        assert SpiralName.MEANING not in state.spirals.spirals


class TestGoldenAge:
    def _prosperous(self) -> WorldState:
        return WorldState(
            metrics=GlobalMetrics(quality_of_life=0.75, economic_stage=3.2, social_stability=0.6),
            society=Society(paranoia_level=0.2),
        )

    def test_conditions(self):
        assert golden_age_conditions_met(self._prosperous())
        assert not golden_age_conditions_met(WorldState())

    def test_entry_then_duration(self):
        state = self._prosperous()
        events = update_golden_age(state, _context(5))
        assert state.golden_age.active
        assert state.golden_age.entry_month == 5
        assert state.golden_age.duration == 0
        assert [e.title for e in events] == ["Golden Age Begins"]

        update_golden_age(state, _context(6))
        update_golden_age(state, _context(7))
        assert state.golden_age.duration == 2

    def test_lapse_resets(self):
        state = self._prosperous()
        update_golden_age(state, _context(5))
        update_golden_age(state, _context(6))
        state.metrics.quality_of_life = 0.5

        events = update_golden_age(state, _context(7))

        assert not state.golden_age.active
        assert state.golden_age.duration == 0
        assert [e.title for e in events] == ["Golden Age Ends"]

    def test_extinction_blocks_golden_age(self):
        state = self._prosperous()
        state.extinction.active = True
        assert not golden_age_conditions_met(state)
