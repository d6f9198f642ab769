"""Test for the permission policies."""

# clean

import pytest

from cspsim.components.collector_receiver import CollectorReceiverModes
from cspsim.components.power_cycle import PowerCycleModes
from cspsim.errors import ConfigurationError
from cspsim.operating_policy import (
    AlwaysAllowPermissionPolicy,
    CooldownPermissionPolicy,
    CooldownPermissionPolicyConfig,
)
from cspsim.simulationparameters import SimulationParameters

ON = CollectorReceiverModes.ON
OFF = CollectorReceiverModes.OFF


def make_policy(**kwargs) -> CooldownPermissionPolicy:
    config = CooldownPermissionPolicyConfig.get_default_config()
    for key, value in kwargs.items():
        setattr(config, key, value)
    return CooldownPermissionPolicy(SimulationParameters.one_day_only(2021), config)


@pytest.mark.base
def test_receiver_cooldown():
    """After a shutdown the receiver may not restart for the cooldown time."""
    policy = make_policy(rec_startup_cooldown_in_seconds=3 * 3600)
    assert policy.initial_flags().is_rec_su_allowed
    assert policy.update(0, ON, PowerCycleModes.ON).is_rec_su_allowed
    assert not policy.update(1, OFF, PowerCycleModes.ON).is_rec_su_allowed
    assert not policy.update(2, OFF, PowerCycleModes.ON).is_rec_su_allowed
    assert not policy.update(3, OFF, PowerCycleModes.ON).is_rec_su_allowed
    assert policy.update(4, OFF, PowerCycleModes.ON).is_rec_su_allowed


@pytest.mark.base
def test_cycle_minimum_idle_time():
    """A cycle that went off has to rest for one hour."""
    policy = make_policy()
    assert policy.update(0, ON, PowerCycleModes.ON).is_pc_su_allowed
    assert not policy.update(1, ON, PowerCycleModes.OFF).is_pc_su_allowed
    assert policy.update(2, ON, PowerCycleModes.OFF).is_pc_su_allowed


@pytest.mark.base
def test_standby_is_limited():
    """Standby is allowed for two hours in a row."""
    policy = make_policy()
    policy.update(0, ON, PowerCycleModes.ON)
    assert policy.update(1, ON, PowerCycleModes.STANDBY).is_pc_sb_allowed
    assert not policy.update(2, ON, PowerCycleModes.STANDBY).is_pc_sb_allowed
    assert policy.update(3, ON, PowerCycleModes.ON).is_pc_sb_allowed


@pytest.mark.base
def test_reset_and_validation():
    """Reset forgets the history, negative durations are rejected."""
    policy = make_policy()
    policy.update(0, ON, PowerCycleModes.ON)
    policy.update(1, OFF, PowerCycleModes.OFF)
    policy.reset()
    flags = policy.update(2, OFF, PowerCycleModes.OFF)
    assert flags.is_rec_su_allowed and flags.is_pc_su_allowed

    with pytest.raises(ConfigurationError):
        make_policy(pc_min_idle_time_in_seconds=-1)

    always = AlwaysAllowPermissionPolicy()
    flags = always.update(0, OFF, PowerCycleModes.OFF)
    assert flags.is_rec_su_allowed and flags.is_pc_su_allowed and flags.is_pc_sb_allowed
