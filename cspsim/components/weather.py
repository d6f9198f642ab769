"""Weather sources for the CSP solver.

The records for all timesteps are computed or copied in ``i_prepare_simulation``, so the
per-timestep call never blocks. Both sources keep everything in memory.
"""
# clean
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

import numpy as np
import pandas as pd
import pvlib
from dataclasses_json import dataclass_json

from cspsim import loadtypes as lt
from cspsim import log
from cspsim.component import Component, ComponentOutput, ConfigBase, SimulationInfo, SingleTimeStepValues
from cspsim.errors import ConfigurationError
from cspsim.simulationparameters import SimulationParameters


@dataclass
class WeatherOutputs:

    """Weather record of a single timestep."""

    dni_w_m2: float = 0.0
    ghi_w_m2: float = 0.0
    dhi_w_m2: float = 0.0
    t_dry_c: float = 15.0
    wind_speed_m_s: float = 0.0
    solar_zenith_deg: float = 90.0
    solar_azimuth_deg: float = 180.0


class Weather(Component):

    """Base class of the weather sources: provides irradiance, ambient temperature and wind speed.

    Subclasses fill the per-timestep lists in ``load_weather_lists``.
    ``timestep_call`` may be repeated within a timestep and then returns the same record,
    but the weather pointer can only move forward one timestep per call.
    """

    # Outputs
    DirectNormalIrradiance = "DirectNormalIrradiance"
    GlobalHorizontalIrradiance = "GlobalHorizontalIrradiance"
    DiffuseHorizontalIrradiance = "DiffuseHorizontalIrradiance"
    TemperatureOutside = "TemperatureOutside"
    WindSpeed = "WindSpeed"
    SolarZenith = "SolarZenith"
    SolarAzimuth = "SolarAzimuth"

    def __init__(self, my_simulation_parameters: SimulationParameters, config: ConfigBase) -> None:
        """Initializes the entire class."""
        super().__init__(
            name=config.name,
            my_simulation_parameters=my_simulation_parameters,
            my_config=config,
        )
        self.last_timestep_with_update = -1
        self.ms_outputs = WeatherOutputs()

        self.dni_output: ComponentOutput = self.add_output(
            self.component_name,
            self.DirectNormalIrradiance,
            lt.LoadTypes.IRRADIANCE,
            lt.Units.WATT_PER_SQUARE_METER,
            output_description="Direct normal irradiance.",
        )
        self.ghi_output: ComponentOutput = self.add_output(
            self.component_name,
            self.GlobalHorizontalIrradiance,
            lt.LoadTypes.IRRADIANCE,
            lt.Units.WATT_PER_SQUARE_METER,
            output_description="Global horizontal irradiance.",
        )
        self.dhi_output: ComponentOutput = self.add_output(
            self.component_name,
            self.DiffuseHorizontalIrradiance,
            lt.LoadTypes.IRRADIANCE,
            lt.Units.WATT_PER_SQUARE_METER,
            output_description="Diffuse horizontal irradiance.",
        )
        self.air_temperature_output: ComponentOutput = self.add_output(
            self.component_name,
            self.TemperatureOutside,
            lt.LoadTypes.TEMPERATURE,
            lt.Units.CELSIUS,
            output_description="Dry bulb ambient temperature.",
        )
        self.wind_speed_output: ComponentOutput = self.add_output(
            self.component_name,
            self.WindSpeed,
            lt.LoadTypes.SPEED,
            lt.Units.METER_PER_SECOND,
            output_description="Wind speed.",
        )
        self.zenith_output: ComponentOutput = self.add_output(
            self.component_name,
            self.SolarZenith,
            lt.LoadTypes.ANY,
            lt.Units.DEGREES,
            output_description="Solar zenith angle.",
        )
        self.azimuth_output: ComponentOutput = self.add_output(
            self.component_name,
            self.SolarAzimuth,
            lt.LoadTypes.ANY,
            lt.Units.DEGREES,
            output_description="Solar azimuth angle.",
        )

        self.dni_list: List[float] = []
        self.ghi_list: List[float] = []
        self.dhi_list: List[float] = []
        self.temperature_list: List[float] = []
        self.wind_speed_list: List[float] = []
        self.zenith_list: List[float] = []
        self.azimuth_list: List[float] = []

    def load_weather_lists(self) -> None:
        """Abstract. Fills the per-timestep lists."""
        raise NotImplementedError()

    def i_prepare_simulation(self) -> None:
        """Generates the lists to be used later."""
        log.information("Preparing weather " + self.component_name)
        self.last_timestep_with_update = -1
        self.load_weather_lists()
        timesteps = self.my_simulation_parameters.timesteps
        for list_name in ["dni_list", "ghi_list", "dhi_list", "temperature_list", "wind_speed_list", "zenith_list"]:
            if len(getattr(self, list_name)) < timesteps:
                raise ConfigurationError(
                    f"The weather {self.component_name} has only {len(getattr(self, list_name))} "
                    f"entries in {list_name}, but {timesteps} timesteps are simulated."
                )

    def timestep_call(self, sim_info: SimulationInfo) -> WeatherOutputs:
        """Returns the weather record of the timestep that ends at sim_info.time."""
        timestep = int(round(sim_info.time / sim_info.step)) - 1
        if timestep == self.last_timestep_with_update:
            return self.ms_outputs
        if timestep != self.last_timestep_with_update + 1:
            raise ValueError(
                f"The weather {self.component_name} was asked for timestep {timestep} after timestep "
                f"{self.last_timestep_with_update}. It can only advance by one timestep per call."
            )
        if timestep >= len(self.dni_list):
            raise ValueError(f"The weather {self.component_name} has no record for timestep {timestep}.")
        self.ms_outputs = WeatherOutputs(
            dni_w_m2=self.dni_list[timestep],
            ghi_w_m2=self.ghi_list[timestep],
            dhi_w_m2=self.dhi_list[timestep],
            t_dry_c=self.temperature_list[timestep],
            wind_speed_m_s=self.wind_speed_list[timestep],
            solar_zenith_deg=self.zenith_list[timestep],
            solar_azimuth_deg=self.azimuth_list[timestep] if self.azimuth_list else 180.0,
        )
        self.last_timestep_with_update = timestep
        return self.ms_outputs

    def i_save_state(self) -> None:
        """The weather pointer is not part of the iterated state."""
        pass

    def i_restore_state(self) -> None:
        """The weather pointer is not part of the iterated state."""
        pass

    def write_outputs(self, stsv: SingleTimeStepValues) -> None:
        """Writes the current record into the result row."""
        stsv.set_output_value(self.dni_output, self.ms_outputs.dni_w_m2)
        stsv.set_output_value(self.ghi_output, self.ms_outputs.ghi_w_m2)
        stsv.set_output_value(self.dhi_output, self.ms_outputs.dhi_w_m2)
        stsv.set_output_value(self.air_temperature_output, self.ms_outputs.t_dry_c)
        stsv.set_output_value(self.wind_speed_output, self.ms_outputs.wind_speed_m_s)
        stsv.set_output_value(self.zenith_output, self.ms_outputs.solar_zenith_deg)
        stsv.set_output_value(self.azimuth_output, self.ms_outputs.solar_azimuth_deg)


@dataclass_json
@dataclass
class TimeSeriesWeatherConfig(ConfigBase):

    """Configuration class for TimeSeriesWeather."""

    name: str

    @classmethod
    def get_main_classname(cls):
        """Get the name of the main class."""
        return TimeSeriesWeather.get_full_classname()

    @classmethod
    def get_default(cls) -> TimeSeriesWeatherConfig:
        """Gets the default configuration."""
        return TimeSeriesWeatherConfig(name="Weather")


class TimeSeriesWeather(Weather):

    """Weather from a pre-loaded data frame.

    Required columns: dni, ghi, dhi, tdry, wspd, zenith. Optional: azimuth.
    Reading weather files is left to the caller.
    """

    REQUIRED_COLUMNS = ["dni", "ghi", "dhi", "tdry", "wspd", "zenith"]

    def __init__(
        self,
        my_simulation_parameters: SimulationParameters,
        config: TimeSeriesWeatherConfig,
        weather_data: pd.DataFrame,
    ) -> None:
        """Initializes the entire class."""
        super().__init__(my_simulation_parameters=my_simulation_parameters, config=config)
        missing_columns = [column for column in self.REQUIRED_COLUMNS if column not in weather_data.columns]
        if missing_columns:
            raise ConfigurationError(f"The weather data is missing the columns {missing_columns}.")
        self.weather_data = weather_data

    def load_weather_lists(self) -> None:
        """Copies the columns of the data frame."""
        self.dni_list = self.weather_data["dni"].astype(float).tolist()
        self.ghi_list = self.weather_data["ghi"].astype(float).tolist()
        self.dhi_list = self.weather_data["dhi"].astype(float).tolist()
        self.temperature_list = self.weather_data["tdry"].astype(float).tolist()
        self.wind_speed_list = self.weather_data["wspd"].astype(float).tolist()
        self.zenith_list = self.weather_data["zenith"].astype(float).tolist()
        if "azimuth" in self.weather_data.columns:
            self.azimuth_list = self.weather_data["azimuth"].astype(float).tolist()


@dataclass_json
@dataclass
class ClearSkyWeatherConfig(ConfigBase):

    """Configuration class for ClearSkyWeather."""

    name: str
    latitude: float
    longitude: float
    altitude_in_m: float
    #: time zone of the simulation start date, e.g. "Etc/GMT+8" for local standard time in California
    timezone: str
    #: annual mean of the ambient temperature
    mean_temperature_in_celsius: float
    #: half of the difference between the warmest and the coldest day
    annual_temperature_amplitude_in_celsius: float
    #: half of the difference between afternoon maximum and night minimum
    daily_temperature_amplitude_in_celsius: float
    wind_speed_in_m_per_s: float

    @classmethod
    def get_main_classname(cls):
        """Get the name of the main class."""
        return ClearSkyWeather.get_full_classname()

    @classmethod
    def get_default_daggett(cls) -> ClearSkyWeatherConfig:
        """Gets a clear sky configuration for Daggett, California."""
        return ClearSkyWeatherConfig(
            name="Weather",
            latitude=34.85,
            longitude=-116.78,
            altitude_in_m=588.0,
            timezone="Etc/GMT+8",
            mean_temperature_in_celsius=19.5,
            annual_temperature_amplitude_in_celsius=10.0,
            daily_temperature_amplitude_in_celsius=7.0,
            wind_speed_in_m_per_s=3.5,
        )


class ClearSkyWeather(Weather):

    """Synthetic clear sky year.

    Global horizontal irradiance follows the Haurwitz clear sky model and is split into
    direct and diffuse parts with the Erbs model. The ambient temperature is a sinusoidal
    profile with an annual and a daily period.
    """

    def __init__(self, my_simulation_parameters: SimulationParameters, config: ClearSkyWeatherConfig) -> None:
        """Initializes the entire class."""
        super().__init__(my_simulation_parameters=my_simulation_parameters, config=config)
        self.weather_config = config

    def load_weather_lists(self) -> None:
        """Calculates solar position, irradiance and temperature for all timesteps."""
        seconds_per_timestep = self.my_simulation_parameters.seconds_per_timestep
        times = pd.date_range(
            start=self.my_simulation_parameters.start_date,
            periods=self.my_simulation_parameters.timesteps,
            freq=f"{seconds_per_timestep}s",
            tz=self.weather_config.timezone,
        )
        # sun position in the middle of each timestep
        mid_times = times + pd.Timedelta(seconds=seconds_per_timestep / 2)
        location = pvlib.location.Location(
            latitude=self.weather_config.latitude,
            longitude=self.weather_config.longitude,
            tz=self.weather_config.timezone,
            altitude=self.weather_config.altitude_in_m,
        )
        solpos = location.get_solarposition(mid_times)
        ghi = pvlib.clearsky.haurwitz(solpos["apparent_zenith"])["ghi"].fillna(0.0)
        components = pvlib.irradiance.erbs(ghi, solpos["zenith"], mid_times)
        dni = pd.Series(components["dni"], index=mid_times).fillna(0.0).clip(lower=0.0)
        dhi = pd.Series(components["dhi"], index=mid_times).fillna(0.0).clip(lower=0.0)

        day_of_year = mid_times.dayofyear.to_numpy()
        hour_of_day = (mid_times.hour + mid_times.minute / 60.0).to_numpy()
        # coldest around mid January, warmest in the afternoon
        annual_shape = -np.cos(2 * math.pi * (day_of_year - 15) / 365.0)
        if self.weather_config.latitude < 0:
            annual_shape = -annual_shape
        daily_shape = np.cos(2 * math.pi * (hour_of_day - 15.0) / 24.0)
        temperature = (
            self.weather_config.mean_temperature_in_celsius
            + self.weather_config.annual_temperature_amplitude_in_celsius * annual_shape
            + self.weather_config.daily_temperature_amplitude_in_celsius * daily_shape
        )

        self.dni_list = dni.tolist()
        self.ghi_list = ghi.tolist()
        self.dhi_list = dhi.tolist()
        self.temperature_list = temperature.tolist()
        self.wind_speed_list = [self.weather_config.wind_speed_in_m_per_s] * len(times)
        self.zenith_list = solpos["apparent_zenith"].tolist()
        self.azimuth_list = solpos["azimuth"].tolist()
