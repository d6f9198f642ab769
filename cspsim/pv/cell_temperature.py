"""Transient module temperature model of Fuentes as used by PVWatts.

The model is a first order filter: the module temperature of a timestep depends on the module
temperature and the absorbed irradiance of the previous call. One instance has to be used for
one time series in order.

Fuentes, M. K., 1987, "A Simplified Thermal Model for Flat-Plate Photovoltaic Arrays",
SAND85-0330, Sandia National Laboratories.
"""
# clean
from __future__ import annotations

import math

STEFAN_BOLTZMANN = 5.669e-8
ABSORPTANCE = 0.83
EMISSIVITY = 0.84
# characteristic module length in m
MODULE_LENGTH = 0.5
# thermal capacitance of the module in J/(m2 K)
MODULE_CAPACITANCE = 11000.0
INITIAL_MODULE_TEMPERATURE_IN_K = 293.15
ITERATIONS = 10


def _air_properties(average_temperature_in_k: float):
    """Density, kinematic viscosity and conductivity of air."""
    density = 0.003484 * 101325.0 / average_temperature_in_k
    viscosity = 0.24237e-6 * average_temperature_in_k**0.76 / density
    conductivity = 2.1695e-4 * average_temperature_in_k**0.84
    return density, viscosity, conductivity


def _convection_coefficient(
    average_temperature_in_k: float, temperature_difference: float, wind_speed: float, turbulent: bool
) -> float:
    """Combined free and forced convection coefficient of the module top."""
    density, viscosity, conductivity = _air_properties(average_temperature_in_k)
    reynolds = wind_speed * MODULE_LENGTH / viscosity
    forced = 0.8600 / reynolds**0.5 * density * wind_speed * 1007.0 / 0.71**0.67
    if turbulent and reynolds > 1.2e5:
        forced = 0.0282 / reynolds**0.2 * density * wind_speed * 1007.0 / 0.71**0.4
    grashof = 9.8 / average_temperature_in_k * abs(temperature_difference) * MODULE_LENGTH**3 / viscosity**2 * 0.5
    free = 0.21 * (grashof * 0.71) ** 0.32 * conductivity / MODULE_LENGTH
    return (free**3 + forced**3) ** (1.0 / 3.0)


class PVWattsCellTemperature:

    """Module temperature filter.

    The installed nominal operating cell temperature (INOCT) calibrates the ratio of total to top
    side convection and the ground temperature. The filter starts at 20 °C without irradiance.
    """

    def __init__(self, inoct_in_k: float, height_in_m: float, timestep_in_hours: float) -> None:
        """Precalculates the coefficients at nominal operating conditions."""
        self.inoct_in_k = inoct_in_k
        self.height_in_m = height_in_m
        self.timestep_in_hours = timestep_in_hours

        # nominal operating conditions: 800 W/m2, 20 °C ambient, 1 m/s wind
        ambient = INITIAL_MODULE_TEMPERATURE_IN_K
        hconv = _convection_coefficient((inoct_in_k + ambient) / 2.0, inoct_in_k - ambient, 1.0, turbulent=False)
        hground = EMISSIVITY * STEFAN_BOLTZMANN * (inoct_in_k**2 + ambient**2) * (inoct_in_k + ambient)
        back_ratio = (
            ABSORPTANCE * 800.0
            - EMISSIVITY * STEFAN_BOLTZMANN * (inoct_in_k**4 - 282.21**4)
            - hconv * (inoct_in_k - ambient)
        ) / ((hground + hconv) * (inoct_in_k - ambient))
        ground_temperature = (inoct_in_k**4 - back_ratio * (inoct_in_k**4 - ambient**4)) ** 0.25
        ground_temperature = min(max(ground_temperature, ambient), inoct_in_k)
        self.ground_temperature_ratio = (ground_temperature - ambient) / (inoct_in_k - ambient)
        self.convection_ratio = (
            ABSORPTANCE * 800.0
            - EMISSIVITY * STEFAN_BOLTZMANN * (2.0 * inoct_in_k**4 - 282.21**4 - ground_temperature**4)
        ) / (hconv * (inoct_in_k - ambient))

        self.capacitance = MODULE_CAPACITANCE
        if inoct_in_k > 321.15:
            self.capacitance = self.capacitance * (1.0 + (inoct_in_k - 321.15) / 12.0)

        self.module_temperature_in_k = INITIAL_MODULE_TEMPERATURE_IN_K
        self.absorbed_irradiance = 0.0

    def reset(self) -> None:
        """Goes back to the initial state."""
        self.module_temperature_in_k = INITIAL_MODULE_TEMPERATURE_IN_K
        self.absorbed_irradiance = 0.0

    def __call__(self, poa: float, wind_speed: float, ambient_temperature: float) -> float:
        """Advances the filter by one timestep and returns the cell temperature in °C."""
        ambient = ambient_temperature + 273.15
        absorbed = poa * ABSORPTANCE
        sky_temperature = 0.68 * (0.0552 * ambient**1.5) + 0.32 * ambient
        # wind at module height after Menicucci and Hall
        module_wind_speed = wind_speed * (self.height_in_m / 9.144) ** 0.2 + 0.0001

        previous_temperature = self.module_temperature_in_k
        previous_absorbed = self.absorbed_irradiance
        module_temperature = previous_temperature
        for _ in range(ITERATIONS):
            hconv = self.convection_ratio * _convection_coefficient(
                (module_temperature + ambient) / 2.0, module_temperature - ambient, module_wind_speed, turbulent=True
            )
            hsky = EMISSIVITY * STEFAN_BOLTZMANN * (module_temperature**2 + sky_temperature**2) * (
                module_temperature + sky_temperature
            )
            ground_temperature = ambient + self.ground_temperature_ratio * (module_temperature - ambient)
            hground = EMISSIVITY * STEFAN_BOLTZMANN * (module_temperature**2 + ground_temperature**2) * (
                module_temperature + ground_temperature
            )
            htotal = hconv + hsky + hground
            eigen = -htotal / self.capacitance * self.timestep_in_hours * 3600.0
            ex = math.exp(eigen) if eigen > -10.0 else 0.0
            module_temperature = (
                previous_temperature * ex
                + (
                    (1.0 - ex)
                    * (
                        hconv * ambient
                        + hsky * sky_temperature
                        + hground * ground_temperature
                        + previous_absorbed
                        + (absorbed - previous_absorbed) / eigen
                    )
                    + absorbed
                    - previous_absorbed
                )
                / htotal
            )

        self.module_temperature_in_k = module_temperature
        self.absorbed_irradiance = absorbed
        return module_temperature - 273.15
