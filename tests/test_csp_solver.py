"""Test for the CSP solver."""

# clean

import math

import numpy as np
import pandas as pd
import pytest

from cspsim.components import collector_receiver
from cspsim.components import power_cycle
from cspsim.components import weather
from cspsim.csp_solver import CspSolver, CspSolverConfig
from cspsim.errors import ComponentInitError, ConfigurationError, PhysicalInvariantError
from cspsim.operating_policy import AlwaysAllowPermissionPolicy
from cspsim.simulationparameters import SimulationParameters
from tests import functions_for_testing as fft


class FullFieldCollectorReceiver(collector_receiver.GenericCollectorReceiver):

    """Receiver that ignores the field control."""

    def call(self, weather_outputs, htf_state_in, inputs, sim_info):
        return super().call(
            weather_outputs, htf_state_in, collector_receiver.CollectorReceiverInputs(1.0), sim_info
        )


class BrokenPowerCycle(power_cycle.GenericPowerCycle):

    """Power cycle that returns NaN from a given timestep on."""

    def __init__(self, my_simulation_parameters, config, failing_timestep):
        super().__init__(my_simulation_parameters, config)
        self.failing_timestep = failing_timestep

    def call(self, q_thermal_mw, permission_flags, sim_info):
        outputs = super().call(q_thermal_mw, permission_flags, sim_info)
        if round(sim_info.time / sim_info.step) - 1 >= self.failing_timestep:
            outputs.w_dot_mw = math.nan
        return outputs


def build_default_plant(my_simulation_parameters, dni_peak=900.0):
    my_weather = fft.make_time_series_weather(my_simulation_parameters, dni_peak=dni_peak)
    my_receiver = fft.make_receiver(my_simulation_parameters)
    my_power_cycle = fft.make_power_cycle(my_simulation_parameters)
    return my_weather, my_receiver, my_power_cycle


@pytest.mark.base
def test_annual_run_has_8760_records():
    """One record per hour of the year, time increases by one step."""
    my_simulation_parameters = SimulationParameters.full_year(2021)
    my_weather, my_receiver, my_power_cycle = build_default_plant(my_simulation_parameters)
    my_solver = fft.make_solver(my_simulation_parameters, my_weather, my_receiver, my_power_cycle)
    my_solver.init()
    results = my_solver.simulate()

    assert results.number_of_timesteps == 8760
    time = results.get_series(my_solver.time_output).to_numpy()
    assert time[0] == 3600
    assert np.all(np.diff(time) == 3600)
    assert results.data_frame.index[0] == my_simulation_parameters.start_date
    assert len(results.warnings) == 0
    assert results.get_series(my_power_cycle.electric_power_output).max() > 90


@pytest.mark.base
def test_one_day_is_defocused_at_noon():
    """Around noon the receiver delivers more than the cycle takes and is defocused."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    my_weather, my_receiver, my_power_cycle = build_default_plant(my_simulation_parameters)
    my_solver = fft.make_solver(
        my_simulation_parameters, my_weather, my_receiver, my_power_cycle, AlwaysAllowPermissionPolicy()
    )
    solved_parameters = my_solver.init()
    results = my_solver.simulate()

    field_control = results.get_series(my_solver.field_control_output)
    thermal_power = results.get_series(my_receiver.thermal_power_output)
    electric_power = results.get_series(my_power_cycle.electric_power_output)
    q_max = solved_parameters.cycle_max_frac * solved_parameters.cycle_q_dot_des_mw
    tolerance = my_solver.config.tolerance * solved_parameters.cycle_q_dot_des_mw

    assert len(results.warnings) == 0
    assert results.get_series(my_solver.converged_output).min() == 1
    assert field_control.iloc[12] < 1
    assert thermal_power.iloc[12] == pytest.approx(q_max, abs=tolerance)
    assert (thermal_power <= q_max + tolerance).all()
    assert field_control.iloc[0] == 1
    assert electric_power.iloc[0] == 0
    assert 0 < electric_power.iloc[12] <= solved_parameters.cycle_w_dot_des_mw * solved_parameters.cycle_max_frac
    assert results.get_series(my_receiver.operating_mode_output).iloc[12] == int(
        collector_receiver.CollectorReceiverModes.DEFOCUS
    )


@pytest.mark.base
def test_receiver_ignoring_field_control_gives_warnings():
    """Every timestep above the maximum load is recorded as non converged, the run completes."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    my_weather = fft.make_time_series_weather(my_simulation_parameters)
    my_receiver = FullFieldCollectorReceiver(
        my_simulation_parameters, collector_receiver.GenericCollectorReceiverConfig.get_default_config()
    )
    my_power_cycle = fft.make_power_cycle(my_simulation_parameters)
    my_solver = fft.make_solver(my_simulation_parameters, my_weather, my_receiver, my_power_cycle)
    solved_parameters = my_solver.init()
    results = my_solver.simulate()

    q_max = solved_parameters.cycle_max_frac * solved_parameters.cycle_q_dot_des_mw
    thermal_power = results.get_series(my_receiver.thermal_power_output)
    over_max_timesteps = [timestep for timestep, value in enumerate(thermal_power) if value > q_max]
    assert len(over_max_timesteps) > 0
    assert [record.timestep for record in results.warnings] == over_max_timesteps
    for record in results.warnings:
        assert record.iterations == my_solver.config.max_iterations
        assert record.mismatch_in_mw > 0
        assert record.time_in_seconds == 3600 * (record.timestep + 1)
    dumped = results.get_series(my_power_cycle.thermal_power_dumped_output)
    assert (dumped.iloc[over_max_timesteps] > 0).all()
    assert results.number_of_timesteps == 24


@pytest.mark.base
def test_nan_weather_aborts_with_diagnostics():
    """The error names the timestep and carries the results computed so far."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    data = fft.make_weather_data(24)
    data.loc[5, "dni"] = math.nan
    my_weather = weather.TimeSeriesWeather(
        my_simulation_parameters, weather.TimeSeriesWeatherConfig.get_default(), data
    )
    my_solver = fft.make_solver(
        my_simulation_parameters,
        my_weather,
        fft.make_receiver(my_simulation_parameters),
        fft.make_power_cycle(my_simulation_parameters),
    )
    my_solver.init()
    with pytest.raises(PhysicalInvariantError) as error_info:
        my_solver.simulate()
    error = error_info.value
    assert error.timestep == 5
    assert error.component_name == my_weather.component_name
    assert error.diagnostics.failed_timestep == 5
    assert error.diagnostics.completed_timesteps == 5
    assert len(error.diagnostics.partial_results) == 5
    assert "timestep 5" in str(error)


@pytest.mark.base
def test_nan_power_aborts():
    """NaN from the power cycle is a physical invariant violation."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    my_power_cycle = BrokenPowerCycle(
        my_simulation_parameters, power_cycle.GenericPowerCycleConfig.get_default_config(), failing_timestep=10
    )
    my_solver = fft.make_solver(
        my_simulation_parameters,
        fft.make_time_series_weather(my_simulation_parameters),
        fft.make_receiver(my_simulation_parameters),
        my_power_cycle,
    )
    my_solver.init()
    with pytest.raises(PhysicalInvariantError) as error_info:
        my_solver.simulate()
    assert error_info.value.timestep == 10
    assert error_info.value.component_name == my_power_cycle.component_name
    assert error_info.value.variable_name == "electric power"


@pytest.mark.base
def test_components_are_bound_to_one_solver():
    """A second solver can only use the components after the first released them."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    my_weather, my_receiver, my_power_cycle = build_default_plant(my_simulation_parameters)
    first_solver = fft.make_solver(my_simulation_parameters, my_weather, my_receiver, my_power_cycle)
    other_receiver = fft.make_receiver(my_simulation_parameters)
    other_weather = fft.make_time_series_weather(my_simulation_parameters)
    with pytest.raises(ConfigurationError):
        fft.make_solver(my_simulation_parameters, other_weather, other_receiver, my_power_cycle)
    # the failed solver must not keep the components it bound before the failure
    assert other_weather.bound_solver is None
    assert other_receiver.bound_solver is None

    first_solver.release()
    second_solver = fft.make_solver(my_simulation_parameters, my_weather, my_receiver, my_power_cycle)
    assert my_power_cycle.bound_solver is second_solver


@pytest.mark.base
def test_init_failures():
    """Invalid design values are reported with the failing component."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    my_weather, my_receiver, my_power_cycle = build_default_plant(my_simulation_parameters)
    my_receiver.receiver_config.t_htf_hot_des_in_celsius = 200.0
    my_solver = fft.make_solver(my_simulation_parameters, my_weather, my_receiver, my_power_cycle)
    with pytest.raises(ComponentInitError) as error_info:
        my_solver.init()
    assert error_info.value.component_name == my_receiver.component_name
    assert isinstance(error_info.value, ConfigurationError)
    with pytest.raises(ConfigurationError):
        my_solver.simulate()
    my_solver.release()

    my_weather, my_receiver, my_power_cycle = build_default_plant(my_simulation_parameters)
    my_power_cycle.cycle_config.cycle_cutoff_frac = 1.5
    my_solver = fft.make_solver(my_simulation_parameters, my_weather, my_receiver, my_power_cycle)
    with pytest.raises(ComponentInitError) as error_info:
        my_solver.init()
    assert error_info.value.component_name == my_power_cycle.component_name


@pytest.mark.base
def test_solver_configuration_is_checked():
    """Iteration cap and tolerance have to be positive."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    my_weather, my_receiver, my_power_cycle = build_default_plant(my_simulation_parameters)
    with pytest.raises(ConfigurationError):
        CspSolver(
            my_simulation_parameters,
            CspSolverConfig(name="CspSolver", max_iterations=0, tolerance=1e-3),
            my_weather,
            my_receiver,
            my_power_cycle,
        )
    assert my_weather.bound_solver is None


@pytest.mark.base
def test_report_lists_all_components():
    """The report starts with the simulation parameters, followed by one block per component."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    my_weather, my_receiver, my_power_cycle = build_default_plant(my_simulation_parameters)
    my_solver = fft.make_solver(my_simulation_parameters, my_weather, my_receiver, my_power_cycle)
    my_solver.init()
    report = my_solver.get_report()

    assert report[0] == f"Start date: {my_simulation_parameters.start_date}"
    assert "Total number of timesteps: 24" in report
    for component in [my_weather, my_receiver, my_power_cycle]:
        assert component.component_name in report
        assert f"Name: {component.config.name}" in report
    my_solver.release()


@pytest.mark.base
def test_receiver_startup_is_kept_when_the_cycle_can_not_take_the_rest():
    """A startup finishing late in the timestep is not defocused away, the plant runs in the next hours."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    my_weather, my_receiver, my_power_cycle = build_default_plant(my_simulation_parameters, dni_peak=300.0)
    my_solver = fft.make_solver(
        my_simulation_parameters, my_weather, my_receiver, my_power_cycle, AlwaysAllowPermissionPolicy()
    )
    my_solver.init()
    results = my_solver.simulate()

    receiver_mode = results.get_series(my_receiver.operating_mode_output)
    field_control = results.get_series(my_solver.field_control_output)
    thermal_power = results.get_series(my_receiver.thermal_power_output)
    dumped = results.get_series(my_power_cycle.thermal_power_dumped_output)
    electric_power = results.get_series(my_power_cycle.electric_power_output)

    # hour 10: the startup energy takes almost the whole hour, the rest is below the cycle cutoff
    assert receiver_mode.iloc[10] == int(collector_receiver.CollectorReceiverModes.ON)
    assert field_control.iloc[10] == 1
    assert 0 < thermal_power.iloc[10] < my_solver.get_cutoff_power()
    assert dumped.iloc[10] == pytest.approx(thermal_power.iloc[10])
    for hour in range(11, 15):
        assert receiver_mode.iloc[hour] == int(collector_receiver.CollectorReceiverModes.ON)
    assert electric_power.iloc[12:15].min() > 0
    assert len(results.warnings) == 0


@pytest.mark.base
def test_cycle_goes_to_standby_below_the_cutoff():
    """Between standby and cutoff power the field is defocused to the standby demand."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    dni_values = [0.0] * 6 + [900.0] * 5 + [200.0] + [0.0] * 12
    my_weather = weather.TimeSeriesWeather(
        my_simulation_parameters,
        weather.TimeSeriesWeatherConfig.get_default(),
        fft.make_hourly_weather_data(dni_values),
    )
    receiver_config = collector_receiver.GenericCollectorReceiverConfig.get_default_config()
    receiver_config.f_rec_min = 0.1
    my_receiver = collector_receiver.GenericCollectorReceiver(my_simulation_parameters, receiver_config)
    my_power_cycle = fft.make_power_cycle(my_simulation_parameters)
    my_solver = fft.make_solver(
        my_simulation_parameters, my_weather, my_receiver, my_power_cycle, AlwaysAllowPermissionPolicy()
    )
    solved_parameters = my_solver.init()
    results = my_solver.simulate()

    q_standby = solved_parameters.cycle_sb_frac * solved_parameters.cycle_q_dot_des_mw
    tolerance = my_solver.config.tolerance * solved_parameters.cycle_q_dot_des_mw
    cycle_mode = results.get_series(my_power_cycle.operating_mode_output)
    thermal_power = results.get_series(my_receiver.thermal_power_output)

    assert cycle_mode.iloc[10] == int(power_cycle.PowerCycleModes.ON)
    assert cycle_mode.iloc[11] == int(power_cycle.PowerCycleModes.STANDBY)
    assert q_standby <= thermal_power.iloc[11] <= q_standby + 2 * tolerance
    assert results.get_series(my_solver.field_control_output).iloc[11] < 1
    assert results.get_series(my_receiver.operating_mode_output).iloc[11] == int(
        collector_receiver.CollectorReceiverModes.DEFOCUS
    )
    assert results.get_series(my_power_cycle.thermal_power_used_output).iloc[11] == pytest.approx(q_standby)
    assert results.get_series(my_power_cycle.electric_power_output).iloc[11] == 0
    assert results.get_series(my_solver.converged_output).iloc[11] == 1


@pytest.mark.base
def test_receiver_restart_is_blocked_during_the_cooldown():
    """After a shutdown the field stays off for the cooldown, then the receiver starts again."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    dni_values = [0.0] * 6 + [900.0] * 3 + [0.0] + [900.0] * 4 + [0.0] * 10
    my_weather = weather.TimeSeriesWeather(
        my_simulation_parameters,
        weather.TimeSeriesWeatherConfig.get_default(),
        fft.make_hourly_weather_data(dni_values),
    )
    my_receiver = fft.make_receiver(my_simulation_parameters)
    my_power_cycle = fft.make_power_cycle(my_simulation_parameters)
    # default cooldown policy with one hour of receiver cooldown
    my_solver = fft.make_solver(my_simulation_parameters, my_weather, my_receiver, my_power_cycle)
    my_solver.init()
    results = my_solver.simulate()

    receiver_mode = results.get_series(my_receiver.operating_mode_output)
    startup_allowed = results.get_series(my_solver.receiver_startup_allowed_output)
    field_control = results.get_series(my_solver.field_control_output)

    assert receiver_mode.iloc[8] != int(collector_receiver.CollectorReceiverModes.OFF)
    assert receiver_mode.iloc[9] == int(collector_receiver.CollectorReceiverModes.OFF)
    # sun is back, but the cooldown is not over
    assert startup_allowed.iloc[10] == 0
    assert field_control.iloc[10] == 0
    assert receiver_mode.iloc[10] == int(collector_receiver.CollectorReceiverModes.OFF)
    assert results.get_series(my_receiver.thermal_power_output).iloc[10] == 0
    assert startup_allowed.iloc[11] == 1
    assert receiver_mode.iloc[11] in (
        int(collector_receiver.CollectorReceiverModes.ON),
        int(collector_receiver.CollectorReceiverModes.DEFOCUS),
    )


@pytest.mark.base
def test_every_run_needs_init():
    """A second simulate without init is rejected, after init the run is repeated exactly."""
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    my_weather, my_receiver, my_power_cycle = build_default_plant(my_simulation_parameters)
    my_solver = fft.make_solver(my_simulation_parameters, my_weather, my_receiver, my_power_cycle)
    my_solver.init()
    first_results = my_solver.simulate()
    with pytest.raises(ConfigurationError):
        my_solver.simulate()

    my_solver.init()
    second_results = my_solver.simulate()
    pd.testing.assert_frame_equal(first_results.data_frame, second_results.data_frame)
