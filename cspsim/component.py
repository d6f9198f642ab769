"""Defines the component class and helpers.

The component class is the base class for the weather source, the collector/receiver and the power cycle.
"""

# clean

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Optional
from dataclass_wizard import JSONWizard

from cspsim import loadtypes as lt
from cspsim import log
from cspsim.errors import ConfigurationError
from cspsim.simulationparameters import SimulationParameters


@dataclass
class ConfigBase(JSONWizard):
    """Base class for all configurations."""

    name: str

    def __init__(self, name: str):
        """Initializes."""
        self.name = name

    @classmethod
    def get_main_classname(cls):
        """Returns the fully qualified class name for the class that is getting configured. Used for Json."""
        raise NotImplementedError("Missing a definition of the main class name for " + cls.__name__)

    def get_string_dict(self) -> List[str]:
        """Turns the config into a str list for the report."""
        my_dict = self.to_dict()
        my_list = []
        if len(my_dict) > 0:
            for entry in my_dict.items():
                first_entry = entry[0].rsplit("_")
                first_entry = " ".join(first_entry)
                first_entry = first_entry.capitalize()
                my_list.append(first_entry + ": " + str(entry[1]))
        return my_list


@dataclass
class SimulationInfo:
    """Time information of the current timestep, owned by the solver.

    time is the end of the timestep in seconds since the start of the simulation.
    """

    time: float = 0.0
    step: float = 3600.0


class ComponentOutput:  # noqa: too-few-public-methods
    """Used in the component class for defining an output column of the result log."""

    def __init__(
        self,
        object_name: str,
        field_name: str,
        load_type: lt.LoadTypes,
        unit: lt.Units,
        output_description: Optional[str] = None,
    ):
        """Defines a component output."""
        self.full_name: str = object_name + " # " + field_name
        self.component_name: str = object_name
        self.field_name: str = field_name
        self.display_name: str = field_name
        self.load_type: lt.LoadTypes = load_type
        self.unit: lt.Units = unit
        self.global_index: int = -1
        self.output_description: Optional[str] = output_description

    def get_pretty_name(self) -> str:
        """Gets a pretty name for a component output."""
        return self.component_name + " - " + self.display_name + " [" + self.load_type + " - " + self.unit + "]"


class SingleTimeStepValues:
    """Contains the values for a single time step."""

    def __init__(self, number_of_values: int):
        """Initializes a new single time step values class."""
        self.values = [0.0] * number_of_values

    def get_output_value(self, output: ComponentOutput) -> float:
        """Gets the value of an output."""
        return self.values[output.global_index]

    def set_output_value(self, output: ComponentOutput, value: float) -> None:
        """Sets a single output value in the single time step values array."""
        if output.global_index < 0:
            raise ValueError("The output " + output.full_name + " was never registered.")
        self.values[output.global_index] = value


class Component:
    """Base class for all components driven by the CSP solver.

    Lifecycle, called by the solver:

    * ``i_prepare_simulation`` once before the loop,
    * ``i_save_state`` at the beginning of every timestep,
    * ``i_restore_state`` before every convergence iteration of a timestep,
    * ``i_doublecheck`` after the timestep was accepted.
    """

    @classmethod
    def get_classname(cls):
        """Gets the class name."""
        return cls.__name__

    @classmethod
    def get_full_classname(cls):
        """Gets the fully qualified class name."""
        return cls.__module__ + "." + cls.__name__

    def __init__(
        self,
        name: str,
        my_simulation_parameters: SimulationParameters,
        my_config: ConfigBase,
    ) -> None:
        """Initializes the component class."""
        self.component_name: str = name
        self.outputs: List[ComponentOutput] = []
        if my_simulation_parameters is None:
            raise ValueError("My Simulation parameters was None.")
        self.my_simulation_parameters: SimulationParameters = my_simulation_parameters
        if isinstance(my_config, ConfigBase):
            self.config = my_config
        else:
            raise ValueError(
                "The argument my_config is not a ConfigBase object.",
                "Please check your components' configuration classes and inherit from ConfigBase.",
            )
        self.bound_solver: Optional[Any] = None

    def bind_to_solver(self, solver: Any) -> None:
        """Registers the solver that exclusively drives this component."""
        if self.bound_solver is not None and self.bound_solver is not solver:
            raise ConfigurationError(
                f"The component {self.component_name} is already bound to another solver. "
                "Release it before creating a new solver with it."
            )
        self.bound_solver = solver

    def release_from_solver(self) -> None:
        """Frees the component for use by another solver."""
        self.bound_solver = None

    def add_output(
        self,
        object_name: str,
        field_name: str,
        load_type: lt.LoadTypes,
        unit: lt.Units,
        output_description: Optional[str] = None,
    ) -> ComponentOutput:
        """Adds an output definition."""
        if output_description is None:
            raise ValueError("Missing an output description for " + object_name + " - " + field_name)
        log.debug("adding output: " + field_name + " to component " + object_name)
        outp = ComponentOutput(
            object_name,
            field_name,
            load_type,
            unit,
            output_description,
        )
        self.outputs.append(outp)
        return outp

    def get_outputs(self) -> List[ComponentOutput]:
        """Delivers a list of outputs."""
        if len(self.outputs) == 0:
            raise ValueError("Error: Component " + self.component_name + " has no outputs defined")
        return self.outputs

    def i_prepare_simulation(self) -> None:
        """Gets called before the simulation to prepare the calculation."""
        raise NotImplementedError(
            "Simulation preparation is missing for " + self.component_name + " (" + self.get_full_classname() + ")"
        )

    def i_save_state(self) -> None:
        """Abstract. Gets called at the beginning of a timestep to save the state."""
        raise NotImplementedError()

    def i_restore_state(self) -> None:
        """Abstract. Restores the state of the component. Can be called many times while iterating."""
        raise NotImplementedError()

    def write_outputs(self, stsv: SingleTimeStepValues) -> None:
        """Abstract. Writes the result of the latest call into the result row."""
        raise NotImplementedError()

    def write_to_report(self) -> List[str]:
        """Writes the report entry for this component."""
        return [self.component_name] + self.config.get_string_dict()

    def i_doublecheck(self, timestep: int, stsv: SingleTimeStepValues) -> None:
        """Abstract. Gets called after the iterations are finished at each time step for potential debugging purposes."""
        pass  # noqa
