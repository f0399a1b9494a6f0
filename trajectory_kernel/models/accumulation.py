"""Accumulation records: bounded stocks plus sticky crisis flags."""

from typing import Dict, List

from pydantic import BaseModel


class AccumulationRecord(BaseModel):
    """
    Per-domain accumulation state.

    Crisis flags only move false -> true. `trigger()` is the single write
    path and returns whether this call was the first crossing.
    """

    domain: str
    stocks: Dict[str, float] = {}
    crises: Dict[str, bool] = {}
    crisis_months: Dict[str, int] = {}

    def trigger(self, crisis: str, month: int) -> bool:
        if self.crises.get(crisis):
            return False
        self.crises[crisis] = True
        self.crisis_months[crisis] = month
        return True

    def is_active(self, crisis: str) -> bool:
        return bool(self.crises.get(crisis))

    def active_crises(self) -> List[str]:
        return [name for name, active in self.crises.items() if active]
