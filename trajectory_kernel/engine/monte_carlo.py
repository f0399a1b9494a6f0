"""
Monte-Carlo ensembles — many independent runs from one starting world.

Behavioral Contract:
- Trial i runs on a deep copy of the initial state with seed base_seed + i.
- No mutable object is shared between trials; a trial cannot observe another.
- The distribution counts each final outcome, with "inconclusive" for runs
  that neither reached an outcome nor leaned clearly toward one.
"""

import logging
from typing import Dict, List, Optional

from trajectory_kernel.engine.orchestrator import PhaseRegistry
from trajectory_kernel.engine.rng import derive_seed
from trajectory_kernel.engine.simulation import INCONCLUSIVE, SimulationEngine
from trajectory_kernel.models.config import LogLevel, SimulationConfig
from trajectory_kernel.models.run import RunSummary
from trajectory_kernel.models.world import WorldState

logger = logging.getLogger("trajectory_kernel.monte_carlo")

OUTCOME_KEYS = ("utopia", "dystopia", "extinction", INCONCLUSIVE)


class MonteCarloResult:
    """Outcome counts and fractions across an ensemble."""

    def __init__(self, summaries: List[RunSummary]):
        self.summaries = summaries
        self.counts: Dict[str, int] = {key: 0 for key in OUTCOME_KEYS}
        for summary in summaries:
            self.counts[summary.final_outcome] = self.counts.get(summary.final_outcome, 0) + 1

    @property
    def runs(self) -> int:
        return len(self.summaries)

    @property
    def distribution(self) -> Dict[str, float]:
        if not self.summaries:
            return {key: 0.0 for key in self.counts}
        return {key: count / self.runs for key, count in self.counts.items()}

    def average_months(self) -> float:
        if not self.summaries:
            return 0.0
        return sum(s.total_months for s in self.summaries) / self.runs


def run_monte_carlo(
    initial_state: WorldState,
    runs: int,
    base_seed: int = 42,
    max_months: int = 120,
    registry: Optional[PhaseRegistry] = None,
    config: Optional[SimulationConfig] = None,
) -> MonteCarloResult:
    """Run `runs` independent trials and collect their summaries."""
    if runs < 0:
        raise ValueError(f"runs must be non-negative, got {runs}")

    base_config = config or SimulationConfig(log_level=LogLevel.SUMMARY)
    summaries = []
    for trial in range(runs):
        seed = derive_seed(base_seed, trial)
        trial_state = initial_state.model_copy(deep=True)
        trial_state.seed = seed
        trial_config = base_config.model_copy(update={"seed": seed})
        engine = SimulationEngine(registry=registry, config=trial_config)
        result = engine.run(trial_state, max_months=max_months, run_id=f"trial_{trial}")
        summaries.append(result.summary)
        logger.debug("Trial %d (seed=%d): %s after %d months",
                     trial, seed, result.summary.final_outcome, result.summary.total_months)

    result = MonteCarloResult(summaries)
    logger.info("Monte-Carlo ensemble of %d runs: %s", runs, result.counts)
    return result
