"""Run logs, snapshots and summaries."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from trajectory_kernel.models.events import SimulationEvent


class MetricSnapshot(BaseModel):
    """Key metrics at the start of a month."""

    month: int
    total_capability: float
    average_alignment: float
    unemployment: float
    economic_stage: float
    wealth_distribution: float
    quality_of_life: float
    trust_in_ai: float
    social_stability: float
    effective_control: float
    regulation_count: int
    government_legitimacy: float
    utopia_probability: float
    dystopia_probability: float
    extinction_probability: float
    active_crises: List[str] = []
    end_game_phase: str
    human_relevance: float


class RunSummary(BaseModel):
    seed: int
    total_months: int
    final_outcome: str                  # utopia | dystopia | extinction | inconclusive
    final_outcome_reason: str
    final_outcome_probability: float
    economic_stage_reached: float
    end_game_entered: bool
    critical_events: List[SimulationEvent] = []


class SimulationLog(BaseModel):
    seed: int
    log_level: str
    total_months: int
    outcome: str
    snapshots: List[MetricSnapshot] = []
    events: List[SimulationEvent] = []      # every event at "full", else empty
    events_by_type: Dict[str, int] = {}
    critical_events: List[SimulationEvent] = []
    trajectory: Dict[str, float] = {}
    run_id: Optional[str] = None


class HistoryEntry(BaseModel):
    """One stored snapshot of a run, chained to the entry before it."""

    run_id: str
    sequence: int = Field(ge=0)
    snapshot: MetricSnapshot
    signature: str = ""
    prior_record_hash: Optional[str] = None
