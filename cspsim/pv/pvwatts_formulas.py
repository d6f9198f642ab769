"""PVWatts v1 formulas for a single timestep.

All powers are in W, irradiances in W/m2 and temperatures in °C.
"""
# clean
import math

# King polynomial of the glass cover transmittance over the incidence angle in degrees
GLASS_TRANSMITTANCE_COEFFICIENTS = [1.0, -2.438e-3, 3.103e-4, -1.246e-5, 2.112e-7, -1.359e-9]
# below this irradiance the module efficiency drops linearly
LOW_IRRADIANCE_THRESHOLD_IN_W_PER_M2 = 125.0
# inverter part load efficiency relative to the rated efficiency, over the fraction of rated DC input
INVERTER_PART_LOAD_COEFFICIENTS = [0.774, 0.663, -0.952, 0.515]


def transmitted_poa(poa: float, beam: float, incidence_in_radians: float) -> float:
    """Plane of array irradiance transmitted through the glass cover.

    Only the beam share is reduced, and only for incidence angles between 50° and 90°.
    """
    incidence_in_degrees = math.degrees(incidence_in_radians)
    if 50.0 < incidence_in_degrees < 90.0:
        transmittance = 0.0
        for power, coefficient in enumerate(GLASS_TRANSMITTANCE_COEFFICIENTS):
            transmittance += coefficient * incidence_in_degrees**power
        poa = poa - (1.0 - transmittance) * beam * math.cos(incidence_in_radians)
        if poa < 0.0:
            poa = 0.0
    return poa


def dc_power(
    reference_temperature: float,
    reference_power: float,
    power_temperature_coefficient: float,
    other_losses: float,
    poa: float,
    cell_temperature: float,
    reference_irradiance: float = 1000.0,
) -> float:
    """DC output of the array.

    :param power_temperature_coefficient: relative change of power per Kelvin, e.g. -0.005
    :param other_losses: all losses except the inverter as fraction
    """
    temperature_factor = 1.0 + power_temperature_coefficient * (cell_temperature - reference_temperature)
    if poa > LOW_IRRADIANCE_THRESHOLD_IN_W_PER_M2:
        dc = reference_power * temperature_factor * poa / reference_irradiance
    else:
        dc = reference_power * temperature_factor * 0.008 * poa * poa / reference_irradiance
    dc = dc * (1.0 - other_losses)
    return max(dc, 0.0)


def ac_power(rated_ac_power: float, rated_efficiency: float, dc: float) -> float:
    """AC output of the inverter, limited to its rating."""
    rated_dc_power = rated_ac_power / rated_efficiency
    load_ratio = dc / rated_dc_power
    if load_ratio <= 0.0:
        return 0.0
    if load_ratio >= 1.0:
        return rated_ac_power
    relative_efficiency = 0.0
    for power, coefficient in enumerate(INVERTER_PART_LOAD_COEFFICIENTS):
        relative_efficiency += coefficient * load_ratio**power
    return dc * rated_efficiency * relative_efficiency
