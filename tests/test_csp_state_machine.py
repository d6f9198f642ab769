"""Test for the operating mode state machine."""

# clean

import pytest

from cspsim.components.collector_receiver import RECEIVER_TRANSITIONS, CollectorReceiverModes
from cspsim.components.power_cycle import POWER_CYCLE_TRANSITIONS, PowerCycleModes
from cspsim.state_machine import IllegalTransitionError, ModeStateMachine


@pytest.mark.base
def test_time_in_mode_is_counted():
    """Staying in a mode adds up the time, a transition restarts it."""
    machine = ModeStateMachine(PowerCycleModes.OFF, POWER_CYCLE_TRANSITIONS, "PowerCycle")
    machine.transition(PowerCycleModes.OFF, 3600)
    machine.transition(PowerCycleModes.OFF, 3600)
    assert machine.seconds_in_mode == 7200
    machine.transition(PowerCycleModes.STARTUP, 3600)
    assert machine.mode == PowerCycleModes.STARTUP
    assert machine.seconds_in_mode == 3600


@pytest.mark.base
def test_illegal_transitions_are_rejected():
    """A cycle can not go from off to standby, a running receiver not back to startup."""
    machine = ModeStateMachine(PowerCycleModes.OFF, POWER_CYCLE_TRANSITIONS, "PowerCycle")
    assert not machine.can_transition(PowerCycleModes.STANDBY)
    with pytest.raises(IllegalTransitionError):
        machine.transition(PowerCycleModes.STANDBY, 3600)
    assert machine.mode == PowerCycleModes.OFF

    receiver_machine = ModeStateMachine(CollectorReceiverModes.ON, RECEIVER_TRANSITIONS, "Receiver")
    with pytest.raises(IllegalTransitionError):
        receiver_machine.transition(CollectorReceiverModes.STARTUP, 3600)


@pytest.mark.base
def test_clone_is_independent():
    """Restoring a clone undoes later transitions."""
    machine = ModeStateMachine(CollectorReceiverModes.OFF, RECEIVER_TRANSITIONS, "Receiver")
    saved = machine.clone()
    machine.transition(CollectorReceiverModes.ON, 3600)
    assert saved.mode == CollectorReceiverModes.OFF
    assert saved.seconds_in_mode == 0
