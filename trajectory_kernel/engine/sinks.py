"""
Event sinks — where structured simulation events go.

The simulation core never prints. Diagnostics are emitted as
SimulationEvent objects and handed to whichever sink the driver was
given: collected in memory for tests, or forwarded to `logging`.
"""

import logging
from typing import List, Optional

from trajectory_kernel.models.events import EventSeverity, SimulationEvent


class EventSink:
    """Receives each month's events once the month has completed."""

    def publish(self, events: List[SimulationEvent]) -> None:
        raise NotImplementedError


class NullEventSink(EventSink):
    def publish(self, events: List[SimulationEvent]) -> None:
        return None


class ListEventSink(EventSink):
    def __init__(self):
        self.events: List[SimulationEvent] = []

    def publish(self, events: List[SimulationEvent]) -> None:
        self.events.extend(events)

    def of_type(self, event_type: str) -> List[SimulationEvent]:
        return [e for e in self.events if e.type == event_type]


_LEVELS = {
    EventSeverity.INFO: logging.DEBUG,
    EventSeverity.WARNING: logging.INFO,
    EventSeverity.CRITICAL: logging.WARNING,
}


class LoggingEventSink(EventSink):
    """Forwards events to a logger; routine events at DEBUG, crises at WARNING."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("trajectory_kernel.events")

    def publish(self, events: List[SimulationEvent]) -> None:
        for event in events:
            self.logger.log(
                _LEVELS[event.severity],
                "[month %d] %s: %s",
                event.month,
                event.type,
                event.title,
            )
