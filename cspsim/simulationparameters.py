""" Defines the simulation parameters class. This defines how the simulation will proceed. """
# clean
from __future__ import annotations
from typing import List
import datetime
from dataclasses import dataclass
from dataclass_wizard import JSONWizard

from cspsim import log
from cspsim.errors import ConfigurationError

SECONDS_PER_YEAR = 365 * 24 * 3600


@dataclass()
class SimulationParameters(JSONWizard):

    """Defines HOW the simulation is going to proceed: Time resolution and time span.

    The annual series always has 365 days, so an hourly year has exactly 8760 timesteps,
    also for leap years.
    """

    start_date: datetime.datetime
    end_date: datetime.datetime
    seconds_per_timestep: int
    logging_level: int

    def __init__(
        self,
        start_date: datetime.datetime,
        end_date: datetime.datetime,
        seconds_per_timestep: int,
        logging_level: int = log.LogPrio.INFORMATION,
    ):
        """Initializes the class."""
        if seconds_per_timestep <= 0:
            raise ConfigurationError(f"seconds_per_timestep must be positive, got {seconds_per_timestep}.")
        self.start_date: datetime.datetime = start_date
        self.end_date: datetime.datetime = end_date
        self.seconds_per_timestep = seconds_per_timestep
        self.duration = end_date - start_date
        total_seconds = self.duration.total_seconds()
        if total_seconds <= 0:
            raise ConfigurationError("The end date has to be after the start date.")
        if total_seconds % seconds_per_timestep != 0:
            raise ConfigurationError(
                f"The simulated period of {total_seconds:.0f} s is not a multiple of the "
                f"step size of {seconds_per_timestep} s."
            )
        self.timesteps: int = int(total_seconds / seconds_per_timestep)
        self.year: int = int(start_date.year)
        self.logging_level: int = logging_level  # Info # noqa

    @classmethod
    def full_year(cls, year: int, seconds_per_timestep: int = 3600) -> SimulationParameters:
        """Generates a parameter set for a full year of 365 days."""
        start_date = datetime.datetime(year, 1, 1)
        return cls(
            start_date,
            start_date + datetime.timedelta(seconds=SECONDS_PER_YEAR),
            seconds_per_timestep,
        )

    @classmethod
    def january_only(cls, year: int, seconds_per_timestep: int = 3600) -> SimulationParameters:
        """Generates a parameter set for a single january, primarily for unit testing."""
        return cls(
            datetime.datetime(year, 1, 1),
            datetime.datetime(year, 2, 1),
            seconds_per_timestep,
        )

    @classmethod
    def one_week_only(cls, year: int, seconds_per_timestep: int = 3600) -> SimulationParameters:
        """Generates a parameter set for a single week, primarily for unit testing."""
        return cls(
            datetime.datetime(year, 1, 1),
            datetime.datetime(year, 1, 8),
            seconds_per_timestep,
        )

    @classmethod
    def one_day_only(cls, year: int, seconds_per_timestep: int = 3600, month: int = 6) -> SimulationParameters:
        """Generates a parameter set for a single day, primarily for unit testing."""
        start_date = datetime.datetime(year, month, 1)
        return cls(
            start_date,
            start_date + datetime.timedelta(days=1),
            seconds_per_timestep,
        )

    def get_unique_key_as_list(self) -> List[str]:
        """Gets unique key from a simulation parameter class as list."""
        lines = []
        lines.append(f"Start date: {self.start_date}")
        lines.append(f"End date: {self.end_date}")
        lines.append(f"Seconds per timestep: {self.seconds_per_timestep}")
        lines.append(f"Total number of timesteps: {self.timesteps}")
        return lines
