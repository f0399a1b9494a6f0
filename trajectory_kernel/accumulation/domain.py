"""
Accumulation Domain — silent accumulation, then threshold crisis.

One parameterized implementation shared by every domain (environmental,
social, technological, planetary). A domain is described by a
DomainDefinition table: its stocks, a monthly delta rule, and its crises.

Behavioral Contract:
- The domain's record is created lazily on first access; an update never
  fails because an earlier phase did not initialize it.
- Deltas are applied, then every stock is clamped to its declared range.
  Clamping is unconditional and happens every month.
- A crisis predicate that becomes true for the first time sets a sticky
  flag, applies its one-time shock, and emits a crisis event.
- Every crisis that was already active applies its per-month drag, scaled
  by the cross-domain amplifier so simultaneous crises compound
  multiplicatively.
- Crisis flags never clear.
"""

import logging
import random
from typing import Callable, Dict, List, Optional

from trajectory_kernel.models.accumulation import AccumulationRecord
from trajectory_kernel.models.config import SimulationConfig
from trajectory_kernel.models.events import EventSeverity, SimulationEvent
from trajectory_kernel.models.quality import ABUNDANCE_FIELDS
from trajectory_kernel.models.world import WorldState

logger = logging.getLogger("trajectory_kernel.accumulation")

# Crisis count that compounds without amplification
AMPLIFIER_BASELINE = 2


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def apply_mitigations(rate: float, *mitigations) -> float:
    """
    Reduce `rate` by each (deployment, max_reduction) pair.

    Mitigations stack multiplicatively, so each additional one removes a
    smaller absolute amount than the last.
    """
    for deployment, max_reduction in mitigations:
        rate *= 1.0 - max_reduction * clamp(deployment)
    return rate


def cascade_amplifier(active_count: int, baseline: int = AMPLIFIER_BASELINE) -> float:
    """1 + ((active - baseline) / 2)^2; no amplification at or below baseline."""
    excess = max(0, active_count - baseline)
    return 1.0 + (excess / 2.0) ** 2


def count_active_crises(state: WorldState) -> int:
    return sum(len(record.active_crises()) for record in state.accumulation.values())


def has_any_crisis(state: WorldState) -> bool:
    return count_active_crises(state) > 0


# --- Linked-field writers (always clamped) ---

def _field_upper(name: str) -> float:
    return 2.0 if name in ABUNDANCE_FIELDS else 1.0


def shift(target, name: str, delta: float, upper: Optional[float] = None) -> None:
    hi = upper if upper is not None else _field_upper(name)
    setattr(target, name, clamp(getattr(target, name) + delta, 0.0, hi))


def scale(target, name: str, factor: float, upper: Optional[float] = None) -> None:
    hi = upper if upper is not None else _field_upper(name)
    setattr(target, name, clamp(getattr(target, name) * factor, 0.0, hi))


# --- Definition tables ---

class StockSpec:
    """A bounded stock variable."""

    def __init__(self, name: str, initial: float, minimum: float = 0.0, maximum: float = 1.0):
        self.name = name
        self.initial = initial
        self.minimum = minimum
        self.maximum = maximum

    def clamp(self, value: float) -> float:
        return clamp(value, self.minimum, self.maximum)


CrisisPredicate = Callable[[WorldState, AccumulationRecord, random.Random], bool]
CrisisShock = Callable[[WorldState, AccumulationRecord, random.Random], None]
CrisisDrag = Callable[[WorldState, AccumulationRecord, float], None]


class CrisisSpec:
    def __init__(
        self,
        name: str,
        title: str,
        predicate: CrisisPredicate,
        shock: CrisisShock,
        drag: Optional[CrisisDrag] = None,
    ):
        self.name = name
        self.title = title
        self.predicate = predicate
        self.shock = shock
        self.drag = drag


DeltaRule = Callable[[WorldState, AccumulationRecord, SimulationConfig], Dict[str, float]]


class DomainDefinition:
    def __init__(
        self,
        id: str,
        stocks: List[StockSpec],
        delta_rule: DeltaRule,
        crises: List[CrisisSpec],
    ):
        self.id = id
        self.stocks = stocks
        self.delta_rule = delta_rule
        self.crises = crises
        self._stock_index = {s.name: s for s in stocks}

    def stock(self, name: str) -> StockSpec:
        return self._stock_index[name]

    def initial_record(self) -> AccumulationRecord:
        return AccumulationRecord(
            domain=self.id,
            stocks={s.name: s.initial for s in self.stocks},
            crises={c.name: False for c in self.crises},
        )


class AccumulationDomain:
    """Runs one DomainDefinition against the world state."""

    def __init__(self, definition: DomainDefinition):
        self.definition = definition

    @property
    def id(self) -> str:
        return self.definition.id

    def record(self, state: WorldState) -> AccumulationRecord:
        """The domain's record, initialized on first access."""
        record = state.accumulation.get(self.id)
        if record is None:
            record = self.definition.initial_record()
            state.accumulation[self.id] = record
            logger.debug("Initialized accumulation record for %s", self.id)
        for spec in self.definition.stocks:
            record.stocks.setdefault(spec.name, spec.initial)
        return record

    def clamp_stocks(self, record: AccumulationRecord) -> None:
        for spec in self.definition.stocks:
            record.stocks[spec.name] = spec.clamp(record.stocks[spec.name])

    def update(self, state: WorldState, rng: random.Random, context) -> List[SimulationEvent]:
        record = self.record(state)
        events: List[SimulationEvent] = []

        # 1. Deltas, then unconditional clamp
        deltas = self.definition.delta_rule(state, record, context.config)
        for name, delta in deltas.items():
            record.stocks[name] = record.stocks.get(name, self.definition.stock(name).initial) + delta
        self.clamp_stocks(record)

        # 2. Threshold crossings
        previously_active = set(record.active_crises())
        for crisis in self.definition.crises:
            if record.is_active(crisis.name):
                continue
            if not crisis.predicate(state, record, rng):
                continue
            record.trigger(crisis.name, context.month)
            crisis.shock(state, record, rng)
            self.clamp_stocks(record)
            logger.info("%s crisis triggered in month %d", crisis.name, context.month)
            events.append(context.event(
                "crisis",
                crisis.title,
                description=f"{self.id} domain crossed the {crisis.name} threshold",
                severity=EventSeverity.CRITICAL,
                data={"domain": self.id, "crisis": crisis.name,
                      "stocks": dict(record.stocks)},
            ))

        # 3. Ongoing drag from earlier crises, compounded across domains
        if previously_active:
            amplifier = cascade_amplifier(count_active_crises(state))
            for crisis in self.definition.crises:
                if crisis.name in previously_active and crisis.drag is not None:
                    crisis.drag(state, record, amplifier)
            self.clamp_stocks(record)

        return events
