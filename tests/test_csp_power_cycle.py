"""Test for the generic power cycle."""

# clean

import pytest

from cspsim.components.power_cycle import PowerCycleModes
from cspsim.errors import ConfigurationError, PhysicalInvariantError
from cspsim.operating_policy import PermissionFlags
from cspsim.simulationparameters import SimulationParameters
from tests import functions_for_testing as fft

Q_DES = 100.0 / 0.41
STARTUP_ENERGY = 0.5 * Q_DES


def relative_efficiency(load_fraction: float) -> float:
    return 0.8 + 0.4 * load_fraction - 0.2 * load_fraction**2


def prepared_power_cycle():
    my_simulation_parameters = SimulationParameters.one_day_only(2021)
    my_power_cycle = fft.make_power_cycle(my_simulation_parameters)
    my_power_cycle.i_prepare_simulation()
    return my_power_cycle


def running_power_cycle():
    """Cycle that finished its startup with design input."""
    my_power_cycle = prepared_power_cycle()
    outputs = my_power_cycle.call(Q_DES, PermissionFlags(), fft.hourly_sim_info(0))
    assert outputs.mode == PowerCycleModes.ON
    my_power_cycle.i_save_state()
    return my_power_cycle


@pytest.mark.base
def test_design_parameters():
    """The design thermal input follows from power and efficiency."""
    design = prepared_power_cycle().get_design_parameters()
    assert design.q_dot_des_mw == pytest.approx(Q_DES)
    assert design.cycle_sb_frac <= design.cycle_cutoff_frac <= design.cycle_max_frac


@pytest.mark.base
def test_startup_needs_permission():
    """Without permission an offline cycle rejects all heat."""
    my_power_cycle = prepared_power_cycle()
    outputs = my_power_cycle.call(200.0, PermissionFlags(is_pc_su_allowed=False), fft.hourly_sim_info(0))
    assert outputs.mode == PowerCycleModes.OFF
    assert outputs.q_dot_used_mw == 0
    assert outputs.q_dot_dumped_mw == 200.0
    assert outputs.w_dot_mw == 0


@pytest.mark.base
def test_startup_energy_is_taken_first():
    """The startup completes within the hour and the remaining heat is converted."""
    my_power_cycle = prepared_power_cycle()
    outputs = my_power_cycle.call(200.0, PermissionFlags(), fft.hourly_sim_info(0))
    assert outputs.mode == PowerCycleModes.ON
    assert outputs.q_dot_used_mw == 200.0
    assert outputs.q_startup_mw == pytest.approx(STARTUP_ENERGY)
    assert outputs.w_dot_mw == pytest.approx((200.0 - STARTUP_ENERGY) * 0.41 * relative_efficiency(200.0 / Q_DES))


@pytest.mark.base
def test_heat_above_maximum_is_dumped():
    """Input is limited to the maximum fraction."""
    my_power_cycle = running_power_cycle()
    outputs = my_power_cycle.call(300.0, PermissionFlags(), fft.hourly_sim_info(1))
    assert outputs.mode == PowerCycleModes.ON
    assert outputs.q_dot_used_mw == pytest.approx(1.05 * Q_DES)
    assert outputs.q_dot_dumped_mw == pytest.approx(300.0 - 1.05 * Q_DES)
    assert outputs.w_dot_mw == pytest.approx(1.05 * Q_DES * 0.41 * relative_efficiency(1.05))
    assert outputs.t_htf_cold_c == 290.0
    assert my_power_cycle.calculate_efficiency(1.0) == pytest.approx(0.41)


@pytest.mark.base
def test_standby_between_standby_and_cutoff_fraction():
    """A running cycle holds standby if allowed, otherwise it shuts down."""
    my_power_cycle = running_power_cycle()
    outputs = my_power_cycle.call(55.0, PermissionFlags(), fft.hourly_sim_info(1))
    assert outputs.mode == PowerCycleModes.STANDBY
    assert outputs.q_dot_used_mw == pytest.approx(0.2 * Q_DES)
    assert outputs.w_dot_mw == 0

    my_power_cycle.i_restore_state()
    outputs = my_power_cycle.call(55.0, PermissionFlags(is_pc_sb_allowed=False), fft.hourly_sim_info(1))
    assert outputs.mode == PowerCycleModes.OFF
    assert outputs.q_dot_dumped_mw == 55.0
    assert my_power_cycle.state.startup_energy_remaining_in_mwh == pytest.approx(STARTUP_ENERGY)


@pytest.mark.base
def test_return_temperature_rises_at_part_load():
    """Half load returns the HTF warmer than design."""
    my_power_cycle = running_power_cycle()
    outputs = my_power_cycle.call(0.5 * Q_DES, PermissionFlags(), fft.hourly_sim_info(1))
    assert outputs.t_htf_cold_c == pytest.approx(295.0)


@pytest.mark.base
def test_invalid_input_and_configuration():
    """Negative heat is impossible, inconsistent fractions are a configuration error."""
    my_power_cycle = prepared_power_cycle()
    with pytest.raises(PhysicalInvariantError):
        my_power_cycle.call(-5.0, PermissionFlags(), fft.hourly_sim_info(0))
    my_power_cycle.cycle_config.cycle_sb_frac = 0.5
    with pytest.raises(ConfigurationError):
        my_power_cycle.i_prepare_simulation()
