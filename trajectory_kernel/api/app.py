"""
Trajectory Kernel API — FastAPI endpoints.

Exposes the kernel via a REST API for:
- Phase registry inspection
- Stepping and running simulations
- Run history queries and chain verification
- Pure outcome and utopia-gate queries
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from trajectory_kernel.engine.simulation import SimulationEngine
from trajectory_kernel.history.store import RunHistoryStore
from trajectory_kernel.models.world import WorldState
from trajectory_kernel.outcomes.determiner import determine_actual_outcome
from trajectory_kernel.outcomes.probabilities import calculate_outcome_probabilities
from trajectory_kernel.spirals.tracker import can_declare_utopia
from trajectory_kernel.world.initialization import create_default_world_state
from trajectory_kernel.world.serialization import restore_world_state

logger = logging.getLogger("trajectory_kernel.api")


# --- Request/Response Models ---

class RunRequest(BaseModel):
    state: Optional[dict] = None
    max_months: int = Field(ge=1, le=1000, default=120)
    seed: Optional[int] = None


class DetermineRequest(BaseModel):
    state: dict
    month: Optional[int] = None


class StepResponse(BaseModel):
    month: int
    state: dict
    events: list


class RunResponse(BaseModel):
    run_id: str
    summary: dict
    snapshot_count: int


def _restore(data: dict) -> WorldState:
    """Rebuild a world state from a request body, mapping bad input to 422."""
    try:
        return restore_world_state(data)
    except (ValueError, TypeError) as exc:
        raise HTTPException(422, f"Invalid world state: {exc}") from exc


# --- Application Factory ---

def create_app(
    engine: Optional[SimulationEngine] = None,
    history_store: Optional[RunHistoryStore] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Trajectory Kernel API",
        description="Monthly AI-trajectory simulation kernel",
        version="0.1.0",
    )

    hs = history_store or (engine.history_store if engine else None) or RunHistoryStore()
    eng = engine or SimulationEngine(history_store=hs)
    if eng.history_store is None:
        eng.history_store = hs

    # Store components on app state for access in endpoints
    app.state.engine = eng
    app.state.history_store = hs

    # === PHASES ===

    @app.get("/phases")
    def list_phases():
        """Registered phases in execution order."""
        return [
            {"id": p.id, "name": p.name, "order": p.order}
            for p in eng.registry.ordered()
        ]

    # === STATE ===

    @app.get("/state/default")
    def get_default_state(seed: int = 42):
        """A fresh default world state."""
        return create_default_world_state(seed=seed).model_dump(mode="json")

    # === SIMULATION ===

    @app.post("/simulation/step")
    def step_simulation(state: dict):
        """Advance a posted world state by one month."""
        result = eng.step(_restore(state))
        return StepResponse(
            month=result.month,
            state=result.state.model_dump(mode="json"),
            events=[e.model_dump(mode="json") for e in result.events],
        )

    @app.post("/simulation/run")
    def run_simulation(req: RunRequest):
        """Run to an outcome or max_months, storing snapshots in the history."""
        if req.state is not None:
            state = _restore(req.state)
        else:
            state = create_default_world_state(seed=req.seed if req.seed is not None else 42)
        if req.seed is not None:
            state.seed = req.seed

        result = eng.run(state, max_months=req.max_months)
        logger.info("API run %s: %s", result.log.run_id, result.summary.final_outcome)
        return RunResponse(
            run_id=result.log.run_id,
            summary=result.summary.model_dump(mode="json"),
            snapshot_count=len(result.log.snapshots),
        )

    # === RUN HISTORY ===

    @app.get("/runs")
    def list_runs():
        """Ids of all stored runs, oldest first."""
        return hs.list_runs()

    @app.get("/runs/{run_id}")
    def get_run(run_id: str):
        """Stored snapshots and summary for a run."""
        entries = hs.get_run(run_id)
        if not entries:
            raise HTTPException(404, "Run not found")
        summary = hs.get_summary(run_id)
        return {
            "run_id": run_id,
            "snapshots": [e.snapshot.model_dump(mode="json") for e in entries],
            "summary": summary.model_dump(mode="json") if summary else None,
        }

    @app.get("/runs/{run_id}/verify")
    def verify_run(run_id: str):
        """Verify a run's snapshot chain."""
        if hs.count(run_id) == 0:
            raise HTTPException(404, "Run not found")
        return {
            "run_id": run_id,
            "integrity_valid": hs.verify_chain_integrity(run_id),
            "total_records": hs.count(run_id),
        }

    # === OUTCOMES ===

    @app.post("/outcomes/probabilities")
    def outcome_probabilities(state: dict):
        """Soft outcome probabilities for a posted state."""
        return calculate_outcome_probabilities(_restore(state)).model_dump(mode="json")

    @app.post("/outcomes/determine")
    def determine_outcome(req: DetermineRequest):
        """Hard outcome determination for a posted state."""
        state = _restore(req.state)
        return determine_actual_outcome(state, req.month).model_dump(mode="json")

    # === SPIRALS ===

    @app.post("/spirals/utopia-gate")
    def utopia_gate(state: dict):
        """Whether utopia could be declared for a posted state."""
        return can_declare_utopia(_restore(state)).model_dump(mode="json")

    return app
