"""Permission flags and the policies that update them between timesteps.

The solver owns the flags. After each accepted timestep the policy derives the flags of the
next timestep from the operating modes the receiver and the power cycle ended up in.
"""

# clean
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from dataclasses_json import dataclass_json

from cspsim import log
from cspsim.component import ConfigBase
from cspsim.components.collector_receiver import CollectorReceiverModes
from cspsim.components.power_cycle import PowerCycleModes
from cspsim.errors import ConfigurationError
from cspsim.simulationparameters import SimulationParameters


@dataclass
class PermissionFlags:

    """Operating permissions for the next timestep."""

    is_rec_su_allowed: bool = True
    is_pc_su_allowed: bool = True
    is_pc_sb_allowed: bool = True


class PermissionPolicy:

    """Base class of the permission policies.

    ``update`` is called exactly once per accepted timestep, never inside the convergence loop.
    """

    def reset(self) -> None:
        """Forgets the operating history, called at the start of a simulation."""
        pass

    def initial_flags(self) -> PermissionFlags:
        """Flags of the first timestep."""
        return PermissionFlags()

    def update(
        self,
        timestep: int,
        receiver_mode: CollectorReceiverModes,
        cycle_mode: PowerCycleModes,
    ) -> PermissionFlags:
        """Computes the flags of the next timestep."""
        raise NotImplementedError()


class AlwaysAllowPermissionPolicy(PermissionPolicy):

    """Allows every startup and unlimited standby."""

    def update(
        self,
        timestep: int,
        receiver_mode: CollectorReceiverModes,
        cycle_mode: PowerCycleModes,
    ) -> PermissionFlags:
        """All flags stay set."""
        return PermissionFlags()


@dataclass_json
@dataclass
class CooldownPermissionPolicyConfig(ConfigBase):

    """Configuration of the CooldownPermissionPolicy."""

    @classmethod
    def get_main_classname(cls):
        """Returns the full class name of the base class."""
        return CooldownPermissionPolicy.__module__ + "." + CooldownPermissionPolicy.__name__

    name: str
    #: time the receiver stays off after a shutdown
    rec_startup_cooldown_in_seconds: int
    #: time the power cycle stays off after a shutdown
    pc_min_idle_time_in_seconds: int
    #: longest uninterrupted standby of the power cycle
    pc_max_standby_time_in_seconds: int

    @classmethod
    def get_default_config(cls) -> CooldownPermissionPolicyConfig:
        """Gets a default policy with one hour cooldowns."""
        return CooldownPermissionPolicyConfig(
            name="PermissionPolicy",
            rec_startup_cooldown_in_seconds=3600,
            pc_min_idle_time_in_seconds=3600,
            pc_max_standby_time_in_seconds=3600 * 2,
        )


class CooldownPermissionPolicyState:

    """Operating history the policy needs."""

    def __init__(self) -> None:
        """Nothing has been switched yet."""
        self.receiver_on: bool = False
        self.receiver_deactivation_time_step: Optional[int] = None
        self.cycle_on: bool = False
        self.cycle_deactivation_time_step: Optional[int] = None
        self.standby_activation_time_step: Optional[int] = None

    def update_receiver(self, timestep: int, is_on: bool) -> None:
        """Remembers the timestep of the receiver shutdown."""
        if self.receiver_on and not is_on:
            self.receiver_deactivation_time_step = timestep
        self.receiver_on = is_on

    def update_cycle(self, timestep: int, is_on: bool, is_standby: bool) -> None:
        """Remembers the timesteps of the cycle shutdown and the begin of standby."""
        if self.cycle_on and not is_on:
            self.cycle_deactivation_time_step = timestep
        self.cycle_on = is_on
        if not is_standby:
            self.standby_activation_time_step = None
        elif self.standby_activation_time_step is None:
            self.standby_activation_time_step = timestep


class CooldownPermissionPolicy(PermissionPolicy):

    """Blocks restarts for a while after a shutdown and limits the standby duration.

    The durations are rounded down to whole timesteps.
    """

    def __init__(
        self,
        my_simulation_parameters: SimulationParameters,
        config: CooldownPermissionPolicyConfig,
    ) -> None:
        """Converts the durations into timesteps."""
        self.config = config
        seconds_per_timestep = my_simulation_parameters.seconds_per_timestep
        for name in [
            "rec_startup_cooldown_in_seconds",
            "pc_min_idle_time_in_seconds",
            "pc_max_standby_time_in_seconds",
        ]:
            if getattr(config, name) < 0:
                raise ConfigurationError(f"{name} of {config.name} is negative.")
        self.receiver_cooldown_in_timesteps = int(config.rec_startup_cooldown_in_seconds / seconds_per_timestep)
        self.cycle_idle_in_timesteps = int(config.pc_min_idle_time_in_seconds / seconds_per_timestep)
        self.max_standby_in_timesteps = int(config.pc_max_standby_time_in_seconds / seconds_per_timestep)
        self.state = CooldownPermissionPolicyState()

    def reset(self) -> None:
        """Forgets the operating history."""
        self.state = CooldownPermissionPolicyState()

    def update(
        self,
        timestep: int,
        receiver_mode: CollectorReceiverModes,
        cycle_mode: PowerCycleModes,
    ) -> PermissionFlags:
        """Computes the flags of timestep + 1."""
        self.state.update_receiver(timestep, receiver_mode != CollectorReceiverModes.OFF)
        self.state.update_cycle(
            timestep, cycle_mode != PowerCycleModes.OFF, cycle_mode == PowerCycleModes.STANDBY
        )
        next_timestep = timestep + 1
        flags = PermissionFlags()
        if self.state.receiver_deactivation_time_step is not None and not self.state.receiver_on:
            # mandatory off, cooldown not over
            flags.is_rec_su_allowed = (
                next_timestep > self.state.receiver_deactivation_time_step + self.receiver_cooldown_in_timesteps
            )
        if self.state.cycle_deactivation_time_step is not None and not self.state.cycle_on:
            # mandatory off, minimum idle time not reached
            flags.is_pc_su_allowed = (
                next_timestep > self.state.cycle_deactivation_time_step + self.cycle_idle_in_timesteps
            )
        if self.state.standby_activation_time_step is not None:
            standby_timesteps = next_timestep - self.state.standby_activation_time_step
            flags.is_pc_sb_allowed = standby_timesteps < self.max_standby_in_timesteps
            if not flags.is_pc_sb_allowed:
                log.trace(f"Maximum standby time of the power cycle reached in timestep {timestep}.")
        return flags
