"""Tests for the FastAPI API endpoints."""

import pytest
from fastapi.testclient import TestClient

from trajectory_kernel.api.app import create_app
from trajectory_kernel.engine.simulation import SimulationEngine
from trajectory_kernel.history.store import RunHistoryStore
from trajectory_kernel.models.config import SimulationConfig
from trajectory_kernel.models.quality import Distribution, SurvivalFundamentals
from trajectory_kernel.models.spirals import SpiralName
from trajectory_kernel.phases.defaults import DEFAULT_PHASE_ORDER
from trajectory_kernel.world.initialization import create_default_world_state


@pytest.fixture
def client():
    """Create a test client with a fresh history store."""
    return TestClient(create_app(history_store=RunHistoryStore()))


def _default_state_json(seed: int = 42) -> dict:
    return create_default_world_state(seed=seed).model_dump(mode="json")


class TestPhaseEndpoints:
    def test_list_phases_in_order(self, client):
        response = client.get("/phases")
        assert response.status_code == 200
        data = response.json()
        assert [p["id"] for p in data] == list(DEFAULT_PHASE_ORDER)
        orders = [p["order"] for p in data]
        assert orders == sorted(orders)


class TestStateEndpoints:
    def test_default_state(self, client):
        response = client.get("/state/default", params={"seed": 7})
        assert response.status_code == 200
        data = response.json()
        assert data["seed"] == 7
        assert data["month"] == 0
        assert len(data["agents"]) == 5


class TestSimulationEndpoints:
    def test_step(self, client):
        response = client.post("/simulation/step", json=_default_state_json())
        assert response.status_code == 200
        data = response.json()
        assert data["month"] == 0
        assert data["state"]["month"] == 1
        assert isinstance(data["events"], list)

    def test_step_is_deterministic(self, client):
        first = client.post("/simulation/step", json=_default_state_json(seed=3)).json()
        second = client.post("/simulation/step", json=_default_state_json(seed=3)).json()
        assert first == second

    def test_step_output_can_be_stepped_again(self, client):
        first = client.post("/simulation/step", json=_default_state_json()).json()
        second = client.post("/simulation/step", json=first["state"])
        assert second.status_code == 200
        assert second.json()["state"]["month"] == 2

    def test_step_rejects_invalid_state(self, client):
        response = client.post("/simulation/step", json={"deployed_technologies": 3})
        assert response.status_code == 422

    def test_step_rejects_out_of_range_field(self, client):
        response = client.post("/simulation/step", json={"month": -1})
        assert response.status_code == 422

    def test_run_default_state(self, client):
        response = client.post("/simulation/run", json={"max_months": 5, "seed": 3})
        assert response.status_code == 200
        data = response.json()
        assert data["run_id"].startswith("run_")
        assert data["summary"]["seed"] == 3
        assert data["snapshot_count"] == data["summary"]["total_months"] + 1

    def test_run_posted_state(self, client):
        response = client.post("/simulation/run", json={
            "state": _default_state_json(seed=8),
            "max_months": 3,
        })
        assert response.status_code == 200
        assert response.json()["summary"]["seed"] == 8

    def test_run_max_months_bounds(self, client):
        response = client.post("/simulation/run", json={"max_months": 0})
        assert response.status_code == 422


class TestRunHistoryEndpoints:
    def test_run_is_listed_and_retrievable(self, client):
        run_id = client.post("/simulation/run", json={"max_months": 4}).json()["run_id"]

        assert client.get("/runs").json() == [run_id]

        response = client.get(f"/runs/{run_id}")
        assert response.status_code == 200
        data = response.json()
        assert data["run_id"] == run_id
        assert data["snapshots"][0]["month"] == 0
        assert data["summary"]["total_months"] == data["snapshots"][-1]["month"]

    def test_verify_run(self, client):
        run_id = client.post("/simulation/run", json={"max_months": 4}).json()["run_id"]
        response = client.get(f"/runs/{run_id}/verify")
        assert response.status_code == 200
        data = response.json()
        assert data["integrity_valid"] is True
        assert data["total_records"] >= 2

    def test_unknown_run(self, client):
        assert client.get("/runs/nonexistent").status_code == 404
        assert client.get("/runs/nonexistent/verify").status_code == 404

    def test_engine_without_store_gets_one(self):
        engine = SimulationEngine(config=SimulationConfig(check_actual_outcomes=False))
        app_client = TestClient(create_app(engine=engine))
        run_id = app_client.post("/simulation/run", json={"max_months": 2}).json()["run_id"]
        assert app_client.get(f"/runs/{run_id}").status_code == 200


class TestOutcomeEndpoints:
    def test_probabilities_sum_to_one(self, client):
        response = client.post("/outcomes/probabilities", json=_default_state_json())
        assert response.status_code == 200
        data = response.json()
        total = (data["utopia_probability"] + data["dystopia_probability"]
                 + data["extinction_probability"])
        assert total == pytest.approx(1.0)

    def test_determine_default_is_active(self, client):
        response = client.post("/outcomes/determine", json={
            "state": _default_state_json(),
            "month": 0,
        })
        assert response.status_code == 200
        assert response.json()["outcome"] == "active"

    def test_determine_requires_state(self, client):
        response = client.post("/outcomes/determine", json={"month": 3})
        assert response.status_code == 422


class TestUtopiaGateEndpoint:
    def test_default_world_cannot_declare(self, client):
        response = client.post("/spirals/utopia-gate", json=_default_state_json())
        assert response.status_code == 200
        data = response.json()
        assert data["can"] is False
        assert data["spiral_count"] == 0

    def test_flourishing_world_can_declare(self, client):
        state = create_default_world_state()
        state.survival = SurvivalFundamentals(food_security=0.9, water_security=0.9,
                                              thermal_habitability=0.9, shelter_security=0.9)
        state.distribution = Distribution(gini=0.3, worst_region_qol=0.6)
        for name in (SpiralName.ABUNDANCE, SpiralName.COGNITIVE, SpiralName.DEMOCRATIC):
            spiral = state.spirals.get(name)
            spiral.active = True
            spiral.months_active = 12

        response = client.post("/spirals/utopia-gate", json=state.model_dump(mode="json"))

        data = response.json()
        assert data["can"] is True
        assert data["spiral_count"] == 3
