"""Simulation engine exceptions."""


class SimulationError(Exception):
    """Base class for engine failures."""
    pass


class PhaseConfigurationError(SimulationError):
    """Raised when a phase registry is built with a duplicate id or an invalid order."""
    pass


class PhaseExecutionError(SimulationError):
    """
    Raised when a phase fails mid-month.

    The remainder of the month is aborted. Mutations applied by earlier
    phases in the same month are not rolled back.
    """

    def __init__(self, phase_id: str, month: int, message: str):
        self.phase_id = phase_id
        self.month = month
        super().__init__(f"Phase '{phase_id}' failed in month {month}: {message}")
