"""Test for the simulation parameters."""

# clean

import pytest

from cspsim.errors import ConfigurationError
from cspsim.simulationparameters import SimulationParameters


@pytest.mark.base
def test_full_year_has_8760_hourly_timesteps():
    """A year has 365 days, also leap years."""
    assert SimulationParameters.full_year(2021).timesteps == 8760
    assert SimulationParameters.full_year(2020).timesteps == 8760
    assert SimulationParameters.full_year(2021, seconds_per_timestep=900).timesteps == 8760 * 4


@pytest.mark.base
def test_one_day_only():
    """One day starts on June 1 by default."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    assert my_simulation_parameters.timesteps == 24
    assert my_simulation_parameters.start_date.month == 6
    assert "Total number of timesteps: 24" in my_simulation_parameters.get_unique_key_as_list()


@pytest.mark.base
def test_invalid_step_is_rejected():
    """Steps have to be positive and divide the period."""
    with pytest.raises(ConfigurationError):
        SimulationParameters.one_day_only(2021, seconds_per_timestep=0)
    with pytest.raises(ConfigurationError):
        SimulationParameters.one_day_only(2021, seconds_per_timestep=7000)
