"""Test for the aggregation of the result log."""

# clean

import pytest

from cspsim import postprocessing
from cspsim.operating_policy import AlwaysAllowPermissionPolicy
from cspsim.simulationparameters import SimulationParameters
from tests import functions_for_testing as fft


@pytest.fixture(name="january_results")
def fixture_january_results():
    """Runs the default plant for January with 30 minute steps."""
    my_simulation_parameters = SimulationParameters.january_only(2021, seconds_per_timestep=1800)
    my_weather = fft.make_time_series_weather(my_simulation_parameters)
    my_receiver = fft.make_receiver(my_simulation_parameters)
    my_power_cycle = fft.make_power_cycle(my_simulation_parameters)
    my_solver = fft.make_solver(
        my_simulation_parameters, my_weather, my_receiver, my_power_cycle, AlwaysAllowPermissionPolicy()
    )
    my_solver.init()
    return my_solver.simulate(), my_receiver, my_power_cycle


@pytest.mark.base
def test_power_is_summed_up_as_energy(january_results):
    """MW columns become MWh, temperatures are averaged."""
    results, my_receiver, my_power_cycle = january_results
    cumulative, monthly = postprocessing.get_std_results(results)
    thermal_column = my_receiver.thermal_power_output.get_pretty_name()
    temperature_column = my_receiver.outlet_temperature_output.get_pretty_name()

    expected_energy = results.get_series(my_receiver.thermal_power_output).sum() * 0.5
    assert cumulative[thermal_column].iloc[0] == pytest.approx(expected_energy)
    assert monthly[thermal_column].sum() == pytest.approx(expected_energy)
    assert len(monthly.index) == 1
    assert cumulative[temperature_column].iloc[0] == pytest.approx(
        results.get_series(my_receiver.outlet_temperature_output).mean()
    )


@pytest.mark.base
def test_annual_summary(january_results):
    """Capacity factor and operating hours are consistent with the result log."""
    results, _, my_power_cycle = january_results
    summary = postprocessing.compute_annual_summary(results)
    electric_energy = results.get_series(my_power_cycle.electric_power_output).sum() * 0.5
    assert summary["simulated_hours"] == 31 * 24
    assert summary["gross_electric_energy_in_mwh"] == pytest.approx(electric_energy)
    assert summary["capacity_factor"] == pytest.approx(electric_energy / (100.0 * 31 * 24))
    assert 0 < summary["cycle_operating_hours"] <= summary["simulated_hours"]
    assert summary["receiver_defocus_hours"] <= summary["receiver_operating_hours"]
    assert summary["non_converged_timesteps"] == len(results.warnings)
