"""  PV example. Transposes clear sky irradiance on a tilted array and runs PVWatts on it. """

# clean

from typing import Optional

import pandas as pd
import pvlib

from cspsim import log
from cspsim.components import weather
from cspsim.pv.pvwatts_from_poa import PVWattsFromPOA, PVWattsFromPOAConfig, PVWattsFromPOAInputs
from cspsim.simulationparameters import SimulationParameters

__authors__ = "cspsim developers"
__license__ = "MIT"
__version__ = "1.0"
__status__ = "development"


def pv_from_poa(
    my_simulation_parameters: Optional[SimulationParameters] = None,
    surface_tilt: float = 30.0,
    surface_azimuth: float = 180.0,
) -> pd.DataFrame:
    """Residential PV system in Daggett facing south.

    Returns the weather, the plane of array irradiance and the PVWatts results per timestep.
    """

    if my_simulation_parameters is None:
        my_simulation_parameters = SimulationParameters.full_year(year=2021, seconds_per_timestep=3600)

    my_weather = weather.ClearSkyWeather(
        my_simulation_parameters=my_simulation_parameters,
        config=weather.ClearSkyWeatherConfig.get_default_daggett(),
    )
    my_weather.i_prepare_simulation()

    zenith = pd.Series(my_weather.zenith_list)
    azimuth = pd.Series(my_weather.azimuth_list)
    dni = pd.Series(my_weather.dni_list)
    irradiance = pvlib.irradiance.get_total_irradiance(
        surface_tilt=surface_tilt,
        surface_azimuth=surface_azimuth,
        solar_zenith=zenith,
        solar_azimuth=azimuth,
        dni=dni,
        ghi=pd.Series(my_weather.ghi_list),
        dhi=pd.Series(my_weather.dhi_list),
        albedo=0.2,
    )
    incidence = pvlib.irradiance.aoi(surface_tilt, surface_azimuth, zenith, azimuth)

    inputs = PVWattsFromPOAInputs(
        beam=dni.to_numpy(),
        poa_beam=irradiance["poa_direct"].fillna(0.0).clip(lower=0.0).to_numpy(),
        poa_skydiff=irradiance["poa_sky_diffuse"].fillna(0.0).clip(lower=0.0).to_numpy(),
        poa_gnddiff=irradiance["poa_ground_diffuse"].fillna(0.0).clip(lower=0.0).to_numpy(),
        tdry=my_weather.temperature_list,
        wspd=my_weather.wind_speed_list,
        incidence=incidence.to_numpy(),
    )
    my_pv_system = PVWattsFromPOA(
        PVWattsFromPOAConfig.get_default_config(system_size=4.0, derate=0.77)
    )
    results = my_pv_system.calculate(inputs)
    results.index = pd.date_range(
        start=my_simulation_parameters.start_date,
        periods=my_simulation_parameters.timesteps,
        freq=f"{my_simulation_parameters.seconds_per_timestep}s",
    )
    log.information(f"Annual AC energy: {results['ac_kwh'].sum():.0f} kWh")
    return results


if __name__ == "__main__":
    my_results = pv_from_poa()
    log.information(my_results.resample("MS").sum()[["dc_kwh", "ac_kwh"]].to_string())
