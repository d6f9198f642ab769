"""PVWatts system performance from plane of array irradiance.

Calculates cell temperature, DC and AC power of a PV system for a time series of plane of array
irradiance components. Weather file reading and transposition are left to the caller.
"""
# clean
from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Dict, List

import numpy as np
import pandas as pd
from dataclasses_json import dataclass_json

from cspsim import log
from cspsim import utils
from cspsim.component import ConfigBase
from cspsim.errors import InputValidationError
from cspsim.pv import pvwatts_formulas
from cspsim.pv.cell_temperature import PVWattsCellTemperature

# average array height in m
ARRAY_HEIGHT_IN_M = 5.0
REFERENCE_IRRADIANCE_IN_W_PER_M2 = 1000.0
# module NOCT the cell temperature model is calibrated against needs to be above 20 °C ambient
NOCT_REFERENCE_AMBIENT_IN_CELSIUS = 20.0

VARIABLE_INFO: List[Dict[str, Any]] = [
    {"kind": "input", "name": "beam", "label": "Direct normal radiation", "unit": "W/m2", "group": "Weather",
     "required": True, "default": None, "constraint": ""},
    {"kind": "input", "name": "poa_beam", "label": "Incident direct normal radiation", "unit": "W/m2",
     "group": "Weather", "required": True, "default": None, "constraint": "LENGTH_EQUAL=beam"},
    {"kind": "input", "name": "poa_skydiff", "label": "Incident sky diffuse radiation", "unit": "W/m2",
     "group": "Weather", "required": True, "default": None, "constraint": "LENGTH_EQUAL=beam"},
    {"kind": "input", "name": "poa_gnddiff", "label": "Incident ground diffuse irradiance", "unit": "W/m2",
     "group": "Weather", "required": True, "default": None, "constraint": "LENGTH_EQUAL=beam"},
    {"kind": "input", "name": "tdry", "label": "Dry bulb temperature", "unit": "°C", "group": "Weather",
     "required": True, "default": None, "constraint": "LENGTH_EQUAL=beam"},
    {"kind": "input", "name": "wspd", "label": "Wind speed", "unit": "m/s", "group": "Weather",
     "required": True, "default": None, "constraint": "LENGTH_EQUAL=beam"},
    {"kind": "input", "name": "incidence", "label": "Incidence angle to surface", "unit": "deg",
     "group": "Weather", "required": True, "default": None, "constraint": "LENGTH_EQUAL=beam"},
    {"kind": "input", "name": "step", "label": "Time step of input data", "unit": "sec", "group": "PVWatts",
     "required": False, "default": 3600.0, "constraint": "POSITIVE"},
    {"kind": "input", "name": "system_size", "label": "Nameplate capacity", "unit": "kW", "group": "PVWatts",
     "required": True, "default": None, "constraint": "MIN=0.5,MAX=100000"},
    {"kind": "input", "name": "derate", "label": "System derate value", "unit": "frac", "group": "PVWatts",
     "required": True, "default": None, "constraint": "MIN=0,MAX=1"},
    {"kind": "input", "name": "inoct", "label": "Nominal operating cell temperature", "unit": "°C",
     "group": "PVWatts", "required": False, "default": 45.0, "constraint": "POSITIVE"},
    {"kind": "input", "name": "t_ref", "label": "Reference cell temperature", "unit": "°C", "group": "PVWatts",
     "required": False, "default": 25.0, "constraint": "POSITIVE"},
    {"kind": "input", "name": "gamma", "label": "Max power temperature coefficient", "unit": "%/°C",
     "group": "PVWatts", "required": False, "default": -0.5, "constraint": ""},
    {"kind": "input", "name": "inv_eff", "label": "Inverter efficiency at rated power", "unit": "frac",
     "group": "PVWatts", "required": False, "default": 0.92, "constraint": "MIN=0,MAX=1"},
    {"kind": "output", "name": "tcell", "label": "Cell temperature", "unit": "°C", "group": "PVWatts",
     "required": True, "default": None, "constraint": "LENGTH_EQUAL=beam"},
    {"kind": "output", "name": "dc", "label": "DC array output", "unit": "W", "group": "PVWatts",
     "required": True, "default": None, "constraint": "LENGTH_EQUAL=beam"},
    {"kind": "output", "name": "ac", "label": "AC system output", "unit": "W", "group": "PVWatts",
     "required": True, "default": None, "constraint": "LENGTH_EQUAL=beam"},
    {"kind": "output", "name": "dc_kwh", "label": "DC array energy", "unit": "kWh", "group": "PVWatts",
     "required": True, "default": None, "constraint": "LENGTH_EQUAL=beam"},
    {"kind": "output", "name": "ac_kwh", "label": "AC system energy", "unit": "kWh", "group": "PVWatts",
     "required": True, "default": None, "constraint": "LENGTH_EQUAL=beam"},
]


def describe_variables() -> pd.DataFrame:
    """Gets the inputs and outputs with label, unit and constraint as a table."""
    return pd.DataFrame(VARIABLE_INFO).set_index("name")


@dataclass_json
@dataclass
class PVWattsFromPOAConfig(ConfigBase):

    """Parameters of the PV system. Invalid values are rejected on construction."""

    @classmethod
    def get_main_classname(cls):
        """Returns the full class name of the base class."""
        return PVWattsFromPOA.__module__ + "." + PVWattsFromPOA.__name__

    name: str
    #: nameplate DC capacity in kW
    system_size: float
    #: overall derate factor including the inverter
    derate: float
    #: time step of the input data in seconds
    step: float = 3600.0
    #: installed nominal operating cell temperature in °C
    inoct: float = 45.0
    #: reference cell temperature in °C
    t_ref: float = 25.0
    #: max power temperature coefficient in %/°C
    gamma: float = -0.5
    #: inverter efficiency at rated power
    inv_eff: float = 0.92

    def __post_init__(self) -> None:
        """Checks all parameters."""
        for field_name in ["system_size", "derate", "step", "inoct", "t_ref", "gamma", "inv_eff"]:
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
                raise InputValidationError(field_name, f"{value!r} is not a finite number.")
        if not 0.5 <= self.system_size <= 100000:
            raise InputValidationError("system_size", f"{self.system_size} is outside [0.5, 100000] kW.")
        if not 0 <= self.derate <= 1:
            raise InputValidationError("derate", f"{self.derate} is outside [0, 1].")
        if self.step <= 0:
            raise InputValidationError("step", f"{self.step} is not positive.")
        if self.inoct <= 0:
            raise InputValidationError("inoct", f"{self.inoct} is not positive.")
        if self.inoct <= NOCT_REFERENCE_AMBIENT_IN_CELSIUS:
            raise InputValidationError(
                "inoct", f"{self.inoct} has to be above the nominal ambient of {NOCT_REFERENCE_AMBIENT_IN_CELSIUS} °C."
            )
        if self.t_ref <= 0:
            raise InputValidationError("t_ref", f"{self.t_ref} is not positive.")
        if not 0 < self.inv_eff <= 1:
            raise InputValidationError("inv_eff", f"{self.inv_eff} is outside (0, 1].")

    @classmethod
    def get_default_config(cls, system_size: float = 4.0, derate: float = 0.77) -> PVWattsFromPOAConfig:
        """Gets a residential system with hourly data."""
        return PVWattsFromPOAConfig(name="PVWattsFromPOA", system_size=system_size, derate=derate)


@dataclass
class PVWattsFromPOAInputs:

    """Time series of the weather and the irradiance on the plane of array."""

    beam: np.ndarray
    poa_beam: np.ndarray
    poa_skydiff: np.ndarray
    poa_gnddiff: np.ndarray
    tdry: np.ndarray
    wspd: np.ndarray
    #: incidence angle in degrees
    incidence: np.ndarray

    FIELD_NAMES = ["beam", "poa_beam", "poa_skydiff", "poa_gnddiff", "tdry", "wspd", "incidence"]

    def __post_init__(self) -> None:
        """Converts to float arrays and checks the lengths."""
        for field_name in self.FIELD_NAMES:
            try:
                array = np.asarray(getattr(self, field_name), dtype=float)
            except (TypeError, ValueError) as error:
                raise InputValidationError(field_name, "is not a numeric array.") from error
            if array.ndim != 1:
                raise InputValidationError(field_name, f"has {array.ndim} dimensions instead of 1.")
            setattr(self, field_name, array)
        for field_name in self.FIELD_NAMES[1:]:
            if len(getattr(self, field_name)) != len(self.beam):
                raise InputValidationError(
                    field_name, f"has {len(getattr(self, field_name))} entries, but beam has {len(self.beam)}."
                )

    @classmethod
    def from_data_frame(cls, data_frame: pd.DataFrame) -> PVWattsFromPOAInputs:
        """Takes the inputs from the equally named columns."""
        missing = [name for name in cls.FIELD_NAMES if name not in data_frame.columns]
        if missing:
            raise InputValidationError(missing[0], "is missing in the data frame.")
        return cls(**{name: data_frame[name].to_numpy() for name in cls.FIELD_NAMES})


class PVWattsFromPOA:

    """PVWatts v1 calculation on given plane of array irradiance."""

    def __init__(self, config: PVWattsFromPOAConfig) -> None:
        """Derives the constants of the system."""
        self.config = config
        self.rated_power_in_w = 1000.0 * config.system_size
        self.timestep_in_hours = config.step / 3600.0
        self.inoct_in_k = config.inoct + 273.15
        self.power_temperature_coefficient = config.gamma / 100.0
        # all losses except the inverter
        self.other_losses = 1.0 - config.derate / config.inv_eff

    @utils.measure_execution_time
    def calculate(self, inputs: PVWattsFromPOAInputs) -> pd.DataFrame:
        """Calculates the outputs for all timesteps.

        At night, i.e. without plane of array irradiance, the cell temperature equals the
        ambient temperature and the module temperature model is not advanced.
        """
        number_of_values = len(inputs.beam)
        log.debug(f"Calculating PVWatts for {number_of_values} timesteps of {self.config.step} s.")
        cell_temperature_model = PVWattsCellTemperature(self.inoct_in_k, ARRAY_HEIGHT_IN_M, self.timestep_in_hours)
        tcell = np.zeros(number_of_values)
        dc = np.zeros(number_of_values)
        ac = np.zeros(number_of_values)
        for index in range(number_of_values):
            poa = inputs.poa_beam[index] + inputs.poa_skydiff[index] + inputs.poa_gnddiff[index]
            if poa > 0:
                if inputs.beam[index] > 0:
                    tpoa = pvwatts_formulas.transmitted_poa(
                        poa, inputs.beam[index], math.radians(inputs.incidence[index])
                    )
                else:
                    # no beam, no glass cover correction
                    tpoa = poa
                tcell[index] = cell_temperature_model(poa, inputs.wspd[index], inputs.tdry[index])
                dc[index] = pvwatts_formulas.dc_power(
                    self.config.t_ref,
                    self.rated_power_in_w,
                    self.power_temperature_coefficient,
                    self.other_losses,
                    tpoa,
                    tcell[index],
                    REFERENCE_IRRADIANCE_IN_W_PER_M2,
                )
                ac[index] = pvwatts_formulas.ac_power(self.rated_power_in_w, self.config.inv_eff, dc[index])
            else:
                tcell[index] = inputs.tdry[index]
        energy_factor = self.timestep_in_hours / 1000.0
        return pd.DataFrame(
            {
                "tcell": tcell,
                "dc": dc,
                "ac": ac,
                "dc_kwh": dc * energy_factor,
                "ac_kwh": ac * energy_factor,
            }
        )
