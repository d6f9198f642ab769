""" Contains various utility functions. """
# clean
import math
from functools import wraps
from timeit import default_timer as timer

from cspsim import log
from cspsim.errors import PhysicalInvariantError

ABSOLUTE_ZERO_IN_CELSIUS = -273.15


def measure_execution_time(my_function):  # noqa
    """Utility function that works as decorator for measuring execution time."""

    @wraps(my_function)
    def function_wrapper_for_measuring_execution_time(*args, **kwargs):
        """Inner function for the time measuring utility decorator."""
        start = timer()
        result = my_function(*args, **kwargs)
        end = timer()
        diff = end - start
        log.profile(
            "Executing " + my_function.__module__ + "." + my_function.__name__ + " took " + f"{diff:1.2f}" + " seconds"
        )
        return result

    return function_wrapper_for_measuring_execution_time


def celsius_to_kelvin(temperature_in_celsius: float) -> float:
    """Converts a temperature from °C to K."""
    return temperature_in_celsius - ABSOLUTE_ZERO_IN_CELSIUS


def kelvin_to_celsius(temperature_in_kelvin: float) -> float:
    """Converts a temperature from K to °C."""
    return temperature_in_kelvin + ABSOLUTE_ZERO_IN_CELSIUS


def check_finite(component_name: str, variable_name: str, value: float) -> float:
    """Raises a PhysicalInvariantError for NaN or infinite values."""
    if value is None or not math.isfinite(value):
        raise PhysicalInvariantError(component_name, variable_name, value)
    return value


def check_absolute_temperature_in_celsius(component_name: str, variable_name: str, value: float) -> float:
    """Raises a PhysicalInvariantError for temperatures at or below absolute zero."""
    check_finite(component_name, variable_name, value)
    if value <= ABSOLUTE_ZERO_IN_CELSIUS:
        raise PhysicalInvariantError(component_name, variable_name, value)
    return value


def check_non_negative(component_name: str, variable_name: str, value: float, tolerance: float = 1e-9) -> float:
    """Raises a PhysicalInvariantError for negative values, small numerical noise is tolerated."""
    check_finite(component_name, variable_name, value)
    if value < -tolerance:
        raise PhysicalInvariantError(component_name, variable_name, value)
    return value
