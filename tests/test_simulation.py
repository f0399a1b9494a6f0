"""Tests for the Simulation Engine driver."""

import json
import logging

import pytest

from trajectory_kernel.endgame.machine import lock_outcome
from trajectory_kernel.engine.errors import PhaseExecutionError
from trajectory_kernel.engine.orchestrator import FunctionPhase, PhaseRegistry
from trajectory_kernel.engine.simulation import (
    INCONCLUSIVE,
    SimulationEngine,
    fallback_outcome,
    take_snapshot,
)
from trajectory_kernel.engine.sinks import ListEventSink, LoggingEventSink
from trajectory_kernel.history.store import RunHistoryStore
from trajectory_kernel.models.agents import AIAgent
from trajectory_kernel.models.config import LogLevel, SimulationConfig
from trajectory_kernel.models.endgame import EndGamePhase, OutcomeType
from trajectory_kernel.models.events import EventSeverity, SimulationEvent
from trajectory_kernel.models.society import GlobalMetrics, Government, Society
from trajectory_kernel.models.world import WorldState
from trajectory_kernel.world.initialization import create_default_world_state
from trajectory_kernel.world.serialization import restore_world_state


def _engine(**config) -> SimulationEngine:
    config.setdefault("check_actual_outcomes", False)
    return SimulationEngine(config=SimulationConfig(**config))


def _make_state(capability: float, alignment: float, qol: float, paranoia: float,
                control_desire: float = 0.3, capability_to_control: float = 0.5) -> WorldState:
    return WorldState(
        agents=[AIAgent(id="ai_1", capability=capability, alignment=alignment)],
        government=Government(control_desire=control_desire,
                              capability_to_control=capability_to_control),
        society=Society(paranoia_level=paranoia),
        metrics=GlobalMetrics(quality_of_life=qol),
    )


class TestStep:
    def test_advances_one_month(self):
        state = create_default_world_state(seed=3)
        result = _engine().step(state)
        assert result.month == 0
        assert result.state.month == 1

    def test_input_state_untouched(self):
        state = create_default_world_state(seed=3)
        before = state.model_dump()
        _engine().step(state)
        assert state.model_dump() == before
        assert state.month == 0

    def test_accepts_json_dict(self):
        state = create_default_world_state(seed=3)
        result = _engine().step(state.model_dump(mode="json"))
        assert isinstance(result.state, WorldState)
        assert result.state.month == 1

    def test_same_seed_same_month(self):
        state = create_default_world_state(seed=11)
        first = _engine().step(state)
        second = _engine().step(state)
        assert first.state.model_dump() == second.state.model_dump()
        assert [e.id for e in first.events] == [e.id for e in second.events]

    def test_sink_receives_month_events(self):
        sink = ListEventSink()
        engine = SimulationEngine(config=SimulationConfig(check_actual_outcomes=False), sink=sink)
        state = create_default_world_state(seed=5)
        collected = []
        for _ in range(6):
            result = engine.step(state)
            collected.extend(result.events)
            state = result.state
        assert [e.id for e in sink.events] == [e.id for e in collected]

    def test_phase_failure_propagates(self):
        def broken(state, rng, context):
            raise RuntimeError("boom")

        registry = PhaseRegistry()
        registry.register(FunctionPhase("broken", "Broken", 1, broken))
        engine = SimulationEngine(registry=registry)

        with pytest.raises(PhaseExecutionError) as exc_info:
            engine.step(WorldState(month=4))
        assert exc_info.value.phase_id == "broken"
        assert exc_info.value.month == 4


class TestDeterminism:
    def test_same_seed_same_run(self):
        state = create_default_world_state(seed=11)
        first = _engine(log_level=LogLevel.FULL).run(state, max_months=24, run_id="a")
        second = _engine(log_level=LogLevel.FULL).run(state, max_months=24, run_id="a")

        assert first.final_state.model_dump() == second.final_state.model_dump()
        assert [e.id for e in first.log.events] == [e.id for e in second.log.events]
        assert first.summary == second.summary

    def test_run_leaves_input_untouched(self):
        state = create_default_world_state(seed=11)
        before = state.model_dump()
        _engine().run(state, max_months=6)
        assert state.model_dump() == before


class TestRestoration:
    def test_pairs_and_lists_restore_to_same_state(self):
        state = create_default_world_state(seed=9)
        state.unlocked_breakthroughs = {"fusion", "interpretability"}
        state.deployed_technologies = {"fusion": 0.4}
        state.extension("climate")["seeded"] = True

        data = json.loads(state.model_dump_json())
        data["deployed_technologies"] = [["fusion", 0.4]]
        data["accumulation"] = [
            [domain_id, dict(record, stocks=list(record["stocks"].items()))]
            for domain_id, record in data["accumulation"].items()
        ]
        restored = restore_world_state(data)

        assert restored.model_dump() == state.model_dump()
        assert isinstance(restored.unlocked_breakthroughs, set)

    def test_json_text(self):
        state = create_default_world_state(seed=9)
        restored = restore_world_state(state.model_dump_json())
        assert restored.model_dump() == state.model_dump()

    def test_set_as_membership_object(self):
        restored = restore_world_state({"unlocked_breakthroughs": {"fusion": True, "agi": False}})
        assert restored.unlocked_breakthroughs == {"fusion"}

    def test_missing_records_created(self):
        restored = restore_world_state({})
        assert restored.accumulation
        assert len(restored.spirals.spirals) == 6

    def test_uninterpretable_mapping_rejected(self):
        with pytest.raises(ValueError):
            restore_world_state({"deployed_technologies": 3})


class TestRunLogging:
    def test_summary_level_keeps_endpoints(self):
        result = _engine(log_level=LogLevel.SUMMARY).run(
            create_default_world_state(), max_months=10)
        assert [s.month for s in result.log.snapshots] == [0, 10]

    def test_monthly_level(self):
        result = _engine(log_level=LogLevel.MONTHLY).run(
            create_default_world_state(), max_months=10)
        assert [s.month for s in result.log.snapshots] == list(range(11))
        assert result.log.events == []

    def test_quartile_level(self):
        result = _engine(log_level=LogLevel.QUARTILE).run(
            create_default_world_state(), max_months=12)
        assert [s.month for s in result.log.snapshots] == [0, 3, 6, 9, 12]

    def test_full_level_keeps_events(self):
        result = _engine(log_level=LogLevel.FULL).run(
            create_default_world_state(), max_months=10)
        assert len(result.log.events) == sum(result.log.events_by_type.values())
        assert result.log.log_level == "full"

    def test_trajectory_deltas(self):
        result = _engine().run(create_default_world_state(), max_months=10)
        first, last = result.log.snapshots[0], result.log.snapshots[-1]
        assert result.log.trajectory["trust_change"] == pytest.approx(
            last.trust_in_ai - first.trust_in_ai)
        assert result.log.trajectory["capability_growth"] == pytest.approx(
            last.total_capability - first.total_capability)

    def test_default_run_id(self):
        result = _engine().run(create_default_world_state(), max_months=1)
        assert result.log.run_id.startswith("run_")

    def test_snapshot_lists_active_crises(self):
        state = create_default_world_state()
        domain_id = sorted(state.accumulation)[0]
        state.accumulation[domain_id].trigger("test_crisis", 0)
        snapshot = take_snapshot(state)
        assert f"{domain_id}.test_crisis" in snapshot.active_crises


class TestRunTermination:
    def test_halts_on_locked_outcome(self):
        state = create_default_world_state()
        lock_outcome(state.end_game, OutcomeType.DYSTOPIA, "Frozen conflict", 0)

        result = SimulationEngine().run(state, max_months=50)

        assert result.summary.total_months == 1
        assert result.summary.final_outcome == "dystopia"
        assert result.summary.final_outcome_probability == 1.0
        assert result.summary.final_outcome_reason == "Frozen conflict"
        assert result.summary.end_game_entered
        assert result.final_state.end_game.phase == EndGamePhase.RESOLVED

    def test_should_continue_cancels_between_months(self):
        result = _engine().run(
            create_default_world_state(), max_months=50,
            should_continue=lambda s: s.month < 5,
        )
        assert result.summary.total_months == 5
        assert result.final_state.month == 5

    def test_max_months_respected(self):
        result = _engine().run(create_default_world_state(), max_months=7)
        assert result.summary.total_months == 7

    def test_max_months_defaults_to_config(self):
        result = _engine(max_months=3).run(create_default_world_state())
        assert result.summary.total_months == 3

    def test_critical_events_capped(self):
        def alarm(state, rng, context):
            return [context.event("alarm", f"Alarm {i}", severity=EventSeverity.CRITICAL)
                    for i in range(3)]

        registry = PhaseRegistry()
        registry.register(FunctionPhase("alarm", "Alarm", 1, alarm))
        registry.register(FunctionPhase("tick", "Tick", 2, _advance_month))
        engine = SimulationEngine(registry=registry,
                                  config=SimulationConfig(check_actual_outcomes=False))

        result = engine.run(WorldState(), max_months=6)

        assert result.log.events_by_type == {"alarm": 18}
        assert len(result.summary.critical_events) == 10
        assert result.summary.critical_events[0].id == "alarm-0-1"


def _advance_month(state, rng, context):
    state.month += 1
    return []


class TestFallbackOutcome:
    def test_no_signal_is_inconclusive(self):
        state = _make_state(capability=0.5, alignment=0.6, qol=0.5, paranoia=0.5,
                            control_desire=0.9, capability_to_control=0.8)
        assert fallback_outcome(state) == (INCONCLUSIVE, 0.0)

    def test_utopia_leaning(self):
        state = _make_state(capability=1.2, alignment=0.8, qol=0.8, paranoia=0.1,
                            control_desire=1.0, capability_to_control=1.0)
        outcome, probability = fallback_outcome(state)
        assert outcome == "utopia"
        assert probability > 0.6

    def test_extinction_leaning(self):
        state = _make_state(capability=3.5, alignment=0.2, qol=0.5, paranoia=0.5)
        outcome, probability = fallback_outcome(state)
        assert outcome == "extinction"
        assert probability > 0.3


class TestHistoryRecording:
    def test_run_is_stored(self):
        store = RunHistoryStore()
        engine = SimulationEngine(config=SimulationConfig(check_actual_outcomes=False),
                                  history_store=store)

        result = engine.run(create_default_world_state(), max_months=6, run_id="stored")

        assert store.count("stored") == 7
        assert store.verify_chain_integrity("stored")
        assert store.get_summary("stored") == result.summary
        assert [s.month for s in store.get_snapshots("stored")] == list(range(7))

    def test_same_seed_same_chain(self):
        stores = [RunHistoryStore(), RunHistoryStore()]
        for store in stores:
            engine = SimulationEngine(config=SimulationConfig(check_actual_outcomes=False),
                                      history_store=store)
            engine.run(create_default_world_state(seed=21), max_months=5, run_id="same")

        first, second = (store.get_run("same") for store in stores)
        assert [e.signature for e in first] == [e.signature for e in second]


class TestLoggingEventSink:
    def test_severity_mapping(self, caplog):
        logger = logging.getLogger("trajectory_kernel.events.test")
        sink = LoggingEventSink(logger)
        events = [
            SimulationEvent(id="e1", month=2, type="routine", severity=EventSeverity.INFO,
                            title="Routine"),
            SimulationEvent(id="e2", month=2, type="crisis", severity=EventSeverity.CRITICAL,
                            title="Crisis"),
        ]
        with caplog.at_level(logging.DEBUG, logger="trajectory_kernel.events.test"):
            sink.publish(events)

        levels = [(r.levelno, r.getMessage()) for r in caplog.records]
        assert levels == [
            (logging.DEBUG, "[month 2] routine: Routine"),
            (logging.WARNING, "[month 2] crisis: Crisis"),
        ]
