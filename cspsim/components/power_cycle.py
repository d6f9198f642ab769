"""Power cycle contract and a generic steam Rankine cycle.

The cycle converts the thermal power of the HTF into gross electric power. It runs between its
cutoff fraction and its maximum fraction of the design thermal input, can hold a standby mode
for small inputs and has to absorb a startup energy before it generates electricity.
"""

# clean
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, FrozenSet, List

from dataclasses_json import dataclass_json

from cspsim import loadtypes as lt
from cspsim import utils
from cspsim.component import Component, ComponentOutput, ConfigBase, SimulationInfo, SingleTimeStepValues
from cspsim.errors import ConfigurationError
from cspsim.simulationparameters import SimulationParameters
from cspsim.state_machine import ModeStateMachine

if TYPE_CHECKING:
    from cspsim.operating_policy import PermissionFlags


class PowerCycleModes(enum.IntEnum):

    """Operating modes of the power cycle."""

    OFF = 0
    STARTUP = 1
    ON = 2
    STANDBY = 3


POWER_CYCLE_TRANSITIONS: Dict[PowerCycleModes, FrozenSet[PowerCycleModes]] = {
    PowerCycleModes.OFF: frozenset({PowerCycleModes.STARTUP, PowerCycleModes.ON}),
    PowerCycleModes.STARTUP: frozenset({PowerCycleModes.OFF, PowerCycleModes.ON}),
    PowerCycleModes.ON: frozenset({PowerCycleModes.OFF, PowerCycleModes.STANDBY}),
    PowerCycleModes.STANDBY: frozenset({PowerCycleModes.OFF, PowerCycleModes.ON}),
}


@dataclass(frozen=True)
class PowerCycleSolvedParameters:

    """Design values the solver queries once during init."""

    w_dot_des_mw: float
    eta_des: float
    q_dot_des_mw: float
    cycle_max_frac: float
    cycle_cutoff_frac: float
    cycle_sb_frac: float


@dataclass
class PowerCycleOutputs:

    """Result of a power cycle call."""

    w_dot_mw: float = 0.0
    q_dot_used_mw: float = 0.0
    q_dot_dumped_mw: float = 0.0
    eta: float = 0.0
    mode: PowerCycleModes = PowerCycleModes.OFF
    t_htf_cold_c: float = 0.0
    q_startup_mw: float = 0.0


class PowerCycle(Component):

    """Contract of a power cycle driven by the CSP solver."""

    def get_design_parameters(self) -> PowerCycleSolvedParameters:
        """Returns the design values, only valid after i_prepare_simulation."""
        raise NotImplementedError()

    def call(
        self, q_thermal_mw: float, permission_flags: PermissionFlags, sim_info: SimulationInfo
    ) -> PowerCycleOutputs:
        """Solves the power cycle for one timestep."""
        raise NotImplementedError()


@dataclass_json
@dataclass
class GenericPowerCycleConfig(ConfigBase):

    """Configuration of the GenericPowerCycle."""

    @classmethod
    def get_main_classname(cls):
        """Returns the full class name of the base class."""
        return GenericPowerCycle.get_full_classname()

    name: str
    #: gross electric design power
    w_dot_des_in_mw: float
    #: gross efficiency at design load
    eta_des: float
    #: maximum thermal input as fraction of the design input
    cycle_max_frac: float
    #: minimum thermal input for operation as fraction of the design input
    cycle_cutoff_frac: float
    #: thermal input needed to keep the cycle in standby as fraction of the design input
    cycle_sb_frac: float
    #: minimum startup duration
    startup_time_in_hours: float
    #: startup energy as fraction of one hour at design thermal input
    startup_frac: float
    t_htf_cold_des_in_celsius: float
    #: rise of the HTF return temperature when the load approaches zero
    part_load_return_temperature_rise_in_k: float
    #: polynomial of the relative efficiency over the load fraction, lowest order first
    part_load_efficiency_coefficients: List[float] = field(default_factory=lambda: [0.8, 0.4, -0.2])

    @classmethod
    def get_default_config(cls) -> GenericPowerCycleConfig:
        """Gets a 100 MW steam cycle."""
        return GenericPowerCycleConfig(
            name="PowerCycle",
            w_dot_des_in_mw=100.0,
            eta_des=0.41,
            cycle_max_frac=1.05,
            cycle_cutoff_frac=0.25,
            cycle_sb_frac=0.2,
            startup_time_in_hours=0.5,
            startup_frac=0.5,
            t_htf_cold_des_in_celsius=290.0,
            part_load_return_temperature_rise_in_k=10.0,
            part_load_efficiency_coefficients=[0.8, 0.4, -0.2],
        )


@dataclass
class GenericPowerCycleState:

    """Iterated state of the power cycle."""

    machine: ModeStateMachine[PowerCycleModes]
    startup_energy_remaining_in_mwh: float
    startup_time_remaining_in_hours: float

    def clone(self) -> GenericPowerCycleState:
        """Copies the current instance."""
        return GenericPowerCycleState(
            machine=self.machine.clone(),
            startup_energy_remaining_in_mwh=self.startup_energy_remaining_in_mwh,
            startup_time_remaining_in_hours=self.startup_time_remaining_in_hours,
        )


class GenericPowerCycle(PowerCycle):

    """Rankine cycle with a quadratic part-load efficiency.

    Input above the maximum fraction is dumped. Between the standby and the cutoff fraction a
    running cycle can hold standby if it is allowed; otherwise it shuts down and has to start
    again. A startup from OFF needs the permission of the operating policy.
    """

    # Outputs
    ElectricPowerOutput = "ElectricPowerOutput"
    ThermalPowerUsed = "ThermalPowerUsed"
    ThermalPowerDumped = "ThermalPowerDumped"
    EfficiencyOutput = "EfficiencyOutput"
    OperatingModeOutput = "OperatingModeOutput"
    ReturnTemperatureOutput = "ReturnTemperatureOutput"

    def __init__(self, my_simulation_parameters: SimulationParameters, config: GenericPowerCycleConfig) -> None:
        """Constructs all the neccessary attributes."""
        self.cycle_config = config
        super().__init__(
            name=config.name,
            my_simulation_parameters=my_simulation_parameters,
            my_config=config,
        )
        self.state = self.get_initial_state()
        self.previous_state = self.state.clone()
        self.last_outputs = PowerCycleOutputs(t_htf_cold_c=config.t_htf_cold_des_in_celsius)

        self.electric_power_output: ComponentOutput = self.add_output(
            object_name=self.component_name,
            field_name=self.ElectricPowerOutput,
            load_type=lt.LoadTypes.ELECTRICITY,
            unit=lt.Units.MEGAWATT,
            output_description="Gross electric power.",
        )
        self.thermal_power_used_output: ComponentOutput = self.add_output(
            object_name=self.component_name,
            field_name=self.ThermalPowerUsed,
            load_type=lt.LoadTypes.HEATING,
            unit=lt.Units.MEGAWATT,
            output_description="Thermal power taken from the HTF, including startup and standby.",
        )
        self.thermal_power_dumped_output: ComponentOutput = self.add_output(
            object_name=self.component_name,
            field_name=self.ThermalPowerDumped,
            load_type=lt.LoadTypes.HEATING,
            unit=lt.Units.MEGAWATT,
            output_description="Offered thermal power the cycle could not take.",
        )
        self.efficiency_output: ComponentOutput = self.add_output(
            object_name=self.component_name,
            field_name=self.EfficiencyOutput,
            load_type=lt.LoadTypes.ANY,
            unit=lt.Units.ANY,
            output_description="Gross efficiency of the timestep.",
        )
        self.operating_mode_output: ComponentOutput = self.add_output(
            object_name=self.component_name,
            field_name=self.OperatingModeOutput,
            load_type=lt.LoadTypes.OPERATING_MODE,
            unit=lt.Units.ANY,
            output_description="Operating mode, see PowerCycleModes.",
        )
        self.return_temperature_output: ComponentOutput = self.add_output(
            object_name=self.component_name,
            field_name=self.ReturnTemperatureOutput,
            load_type=lt.LoadTypes.TEMPERATURE,
            unit=lt.Units.CELSIUS,
            output_description="HTF temperature returned to the receiver.",
        )

    @property
    def q_dot_des_in_mw(self) -> float:
        """Design thermal input."""
        return self.cycle_config.w_dot_des_in_mw / self.cycle_config.eta_des

    def get_initial_state(self) -> GenericPowerCycleState:
        """Cycle is off and needs a full startup."""
        return GenericPowerCycleState(
            machine=ModeStateMachine(PowerCycleModes.OFF, POWER_CYCLE_TRANSITIONS, self.component_name),
            startup_energy_remaining_in_mwh=self.cycle_config.startup_frac * self.q_dot_des_in_mw,
            startup_time_remaining_in_hours=self.cycle_config.startup_time_in_hours,
        )

    def i_prepare_simulation(self) -> None:
        """Checks the configuration and resets the state."""
        config = self.cycle_config
        if not config.w_dot_des_in_mw > 0:
            raise ConfigurationError(f"w_dot_des_in_mw of {self.component_name} has to be positive.")
        if not 0 < config.eta_des <= 1:
            raise ConfigurationError(f"eta_des of {self.component_name} has to be in (0, 1].")
        if not 0 <= config.cycle_sb_frac <= config.cycle_cutoff_frac <= config.cycle_max_frac:
            raise ConfigurationError(
                f"{self.component_name} needs 0 <= cycle_sb_frac <= cycle_cutoff_frac <= cycle_max_frac."
            )
        if config.startup_frac < 0 or config.startup_time_in_hours < 0:
            raise ConfigurationError(f"The startup requirements of {self.component_name} are negative.")
        if len(config.part_load_efficiency_coefficients) == 0:
            raise ConfigurationError(f"{self.component_name} has no part load efficiency coefficients.")
        self.state = self.get_initial_state()
        self.previous_state = self.state.clone()

    def get_design_parameters(self) -> PowerCycleSolvedParameters:
        """Returns the design values."""
        config = self.cycle_config
        return PowerCycleSolvedParameters(
            w_dot_des_mw=config.w_dot_des_in_mw,
            eta_des=config.eta_des,
            q_dot_des_mw=self.q_dot_des_in_mw,
            cycle_max_frac=config.cycle_max_frac,
            cycle_cutoff_frac=config.cycle_cutoff_frac,
            cycle_sb_frac=config.cycle_sb_frac,
        )

    def i_save_state(self) -> None:
        """Saves the current state."""
        self.previous_state = self.state.clone()

    def i_restore_state(self) -> None:
        """Restores previous state."""
        self.state = self.previous_state.clone()

    def calculate_efficiency(self, load_fraction: float) -> float:
        """Gross efficiency at the given fraction of the design thermal input."""
        relative = 0.0
        for power, coefficient in enumerate(self.cycle_config.part_load_efficiency_coefficients):
            relative += coefficient * load_fraction**power
        return max(self.cycle_config.eta_des * relative, 0.0)

    def calculate_return_temperature(self, load_fraction: float) -> float:
        """HTF return temperature, rising towards low load."""
        config = self.cycle_config
        load_fraction = min(max(load_fraction, 0.0), 1.0)
        return config.t_htf_cold_des_in_celsius + config.part_load_return_temperature_rise_in_k * (1 - load_fraction)

    def reset_startup(self) -> None:
        """The next start needs the full startup energy and time."""
        self.state.startup_energy_remaining_in_mwh = self.cycle_config.startup_frac * self.q_dot_des_in_mw
        self.state.startup_time_remaining_in_hours = self.cycle_config.startup_time_in_hours

    def call(
        self, q_thermal_mw: float, permission_flags: PermissionFlags, sim_info: SimulationInfo
    ) -> PowerCycleOutputs:
        """Solves the cycle for one timestep, starting from the restored state."""
        config = self.cycle_config
        q_in = utils.check_non_negative(self.component_name, "thermal input", q_thermal_mw)
        q_in = max(q_in, 0.0)
        q_des = self.q_dot_des_in_mw
        q_max = config.cycle_max_frac * q_des
        q_cutoff = config.cycle_cutoff_frac * q_des
        q_standby = config.cycle_sb_frac * q_des
        step_in_hours = sim_info.step / 3600
        previous_mode = self.state.machine.mode
        is_running = previous_mode in (PowerCycleModes.ON, PowerCycleModes.STANDBY)

        w_dot = 0.0
        q_used = 0.0
        q_startup = 0.0
        if q_in >= q_cutoff and (is_running or previous_mode == PowerCycleModes.STARTUP):
            new_mode = PowerCycleModes.ON if is_running else PowerCycleModes.STARTUP
        elif q_in >= q_cutoff and permission_flags.is_pc_su_allowed:
            new_mode = PowerCycleModes.STARTUP
        elif q_in >= q_standby and is_running and permission_flags.is_pc_sb_allowed:
            new_mode = PowerCycleModes.STANDBY
        else:
            new_mode = PowerCycleModes.OFF

        if new_mode == PowerCycleModes.ON:
            q_used = min(q_in, q_max)
            w_dot = q_used * self.calculate_efficiency(q_used / q_des)
        elif new_mode == PowerCycleModes.STARTUP:
            q_used = min(q_in, q_max)
            hours_needed = max(
                self.state.startup_time_remaining_in_hours,
                self.state.startup_energy_remaining_in_mwh / q_used,
            )
            if hours_needed <= step_in_hours:
                new_mode = PowerCycleModes.ON
                q_startup = self.state.startup_energy_remaining_in_mwh / step_in_hours
                q_to_power = q_used * (step_in_hours - hours_needed) / step_in_hours
                w_dot = q_to_power * self.calculate_efficiency(q_used / q_des)
                self.state.startup_energy_remaining_in_mwh = 0.0
                self.state.startup_time_remaining_in_hours = 0.0
            else:
                q_startup = q_used
                self.state.startup_energy_remaining_in_mwh = max(
                    self.state.startup_energy_remaining_in_mwh - q_used * step_in_hours, 0.0
                )
                self.state.startup_time_remaining_in_hours = max(
                    self.state.startup_time_remaining_in_hours - step_in_hours, 0.0
                )
        elif new_mode == PowerCycleModes.STANDBY:
            q_used = q_standby
        else:
            self.reset_startup()

        self.state.machine.transition(new_mode, sim_info.step)

        if q_used > 0:
            t_htf_cold_c = self.calculate_return_temperature(q_used / q_des)
        else:
            t_htf_cold_c = config.t_htf_cold_des_in_celsius
        self.last_outputs = PowerCycleOutputs(
            w_dot_mw=w_dot,
            q_dot_used_mw=q_used,
            q_dot_dumped_mw=q_in - q_used,
            eta=w_dot / q_used if q_used > 0 else 0.0,
            mode=new_mode,
            t_htf_cold_c=t_htf_cold_c,
            q_startup_mw=q_startup,
        )
        return self.last_outputs

    def write_outputs(self, stsv: SingleTimeStepValues) -> None:
        """Writes the result of the latest call into the result row."""
        stsv.set_output_value(self.electric_power_output, self.last_outputs.w_dot_mw)
        stsv.set_output_value(self.thermal_power_used_output, self.last_outputs.q_dot_used_mw)
        stsv.set_output_value(self.thermal_power_dumped_output, self.last_outputs.q_dot_dumped_mw)
        stsv.set_output_value(self.efficiency_output, self.last_outputs.eta)
        stsv.set_output_value(self.operating_mode_output, int(self.last_outputs.mode))
        stsv.set_output_value(self.return_temperature_output, self.last_outputs.t_htf_cold_c)

    def i_doublecheck(self, timestep: int, stsv: SingleTimeStepValues) -> None:
        """Checks the accepted result of the timestep."""
        utils.check_non_negative(self.component_name, "electric power", self.last_outputs.w_dot_mw)
        utils.check_non_negative(self.component_name, "dumped thermal power", self.last_outputs.q_dot_dumped_mw)
