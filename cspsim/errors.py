""" Error kinds raised by the solver, the components and the PV module.

Fatal errors derive from ValueError. Convergence problems are not raised: they are
collected as ConvergenceWarningRecord entries in the run diagnostics.
"""
# clean
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


class ConfigurationError(ValueError):

    """An input parameter is missing or violates its declared constraint."""


class InputValidationError(ConfigurationError):

    """A PV direct-compute parameter or input array is invalid."""

    def __init__(self, field_name: str, message: str) -> None:
        """Initializes the error with the offending field."""
        super().__init__(f"Invalid value for '{field_name}': {message}")
        self.field = field_name


class ComponentInitError(ConfigurationError):

    """A bound component failed during preparation or returned unusable design values."""

    def __init__(self, component_name: str, message: str) -> None:
        """Initializes the error with the failing component."""
        super().__init__(f"Initialization of component '{component_name}' failed: {message}")
        self.component_name = component_name


class PhysicalInvariantError(ValueError):

    """A component produced a physically impossible value.

    The solver completes the timestep and the diagnostics before the error reaches the caller.
    """

    def __init__(
        self,
        component_name: str,
        variable_name: str,
        value: Any,
        timestep: Optional[int] = None,
    ) -> None:
        """Initializes the error."""
        super().__init__()
        self.component_name = component_name
        self.variable_name = variable_name
        self.value = value
        self.timestep = timestep
        self.diagnostics: Optional[SimulationDiagnostics] = None

    def __str__(self) -> str:
        """Builds the message from the current context."""
        location = "before the simulation loop" if self.timestep is None else f"in timestep {self.timestep}"
        return (
            f"Physically impossible value {self.value!r} for '{self.variable_name}' "
            f"of component '{self.component_name}' {location}."
        )


class ConvergenceWarning(UserWarning):

    """Category of the non-fatal convergence failure of a single timestep."""


@dataclass
class ConvergenceWarningRecord:

    """Non-fatal record of a timestep that hit the iteration cap."""

    timestep: int
    time_in_seconds: float
    iterations: int
    mismatch_in_mw: float
    field_control: float
    category = ConvergenceWarning

    def get_message(self) -> str:
        """Gets a readable description of the record."""
        return (
            f"No convergence in timestep {self.timestep} (time {self.time_in_seconds:.0f} s) after "
            f"{self.iterations} iterations: thermal power mismatch {self.mismatch_in_mw:.4f} MW "
            f"at field control {self.field_control:.4f}. The last iterate was accepted."
        )


@dataclass
class SimulationDiagnostics:

    """Diagnostics returned alongside (or instead of) the annual results."""

    warnings: List[ConvergenceWarningRecord] = field(default_factory=list)
    completed_timesteps: int = 0
    failed_timestep: Optional[int] = None
    message: str = ""
    # result rows of the completed timesteps, only set for failed runs
    partial_results: Any = None
