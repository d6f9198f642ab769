"""Collector/receiver contract and a generic tower receiver.

The generic receiver converts direct normal irradiance into thermal power of the heat transfer
fluid (HTF). It has to absorb a startup energy before it delivers heat and shuts down below
its minimum turndown fraction. The field control signal scales the concentrated irradiance.
"""

# clean
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, FrozenSet

from dataclasses_json import dataclass_json

from cspsim import loadtypes as lt
from cspsim import utils
from cspsim.component import Component, ComponentOutput, ConfigBase, SimulationInfo, SingleTimeStepValues
from cspsim.components.weather import WeatherOutputs
from cspsim.errors import ConfigurationError, PhysicalInvariantError
from cspsim.simulationparameters import SimulationParameters
from cspsim.state_machine import ModeStateMachine


class CollectorReceiverModes(enum.IntEnum):

    """Operating modes of the collector/receiver."""

    OFF = 0
    STARTUP = 1
    ON = 2
    DEFOCUS = 3


RECEIVER_TRANSITIONS: Dict[CollectorReceiverModes, FrozenSet[CollectorReceiverModes]] = {
    CollectorReceiverModes.OFF: frozenset(
        {CollectorReceiverModes.STARTUP, CollectorReceiverModes.ON, CollectorReceiverModes.DEFOCUS}
    ),
    CollectorReceiverModes.STARTUP: frozenset(
        {CollectorReceiverModes.OFF, CollectorReceiverModes.ON, CollectorReceiverModes.DEFOCUS}
    ),
    CollectorReceiverModes.ON: frozenset({CollectorReceiverModes.OFF, CollectorReceiverModes.DEFOCUS}),
    CollectorReceiverModes.DEFOCUS: frozenset({CollectorReceiverModes.OFF, CollectorReceiverModes.ON}),
}


@dataclass
class HtfState:

    """Thermal state of the heat transfer fluid at the receiver inlet."""

    temp_in_c: float


@dataclass
class CollectorReceiverInputs:

    """Control inputs of the collector/receiver."""

    #: defocus signal, 1 means the whole field tracks the receiver
    field_control: float = 1.0


@dataclass
class CollectorReceiverOutputs:

    """Result of a collector/receiver call."""

    q_thermal_mw: float = 0.0
    htf_state_out: HtfState = field(default_factory=lambda: HtfState(temp_in_c=0.0))
    mode: CollectorReceiverModes = CollectorReceiverModes.OFF
    q_startup_mw: float = 0.0
    m_dot_htf_kg_s: float = 0.0


@dataclass(frozen=True)
class CollectorReceiverSolvedParameters:

    """Design values the solver queries once during init."""

    t_htf_cold_des_k: float
    q_dot_rec_des_mw: float


class CollectorReceiver(Component):

    """Contract of a collector/receiver driven by the CSP solver."""

    def get_design_parameters(self) -> CollectorReceiverSolvedParameters:
        """Returns the design values, only valid after i_prepare_simulation."""
        raise NotImplementedError()

    def call(
        self,
        weather: WeatherOutputs,
        htf_state_in: HtfState,
        inputs: CollectorReceiverInputs,
        sim_info: SimulationInfo,
    ) -> CollectorReceiverOutputs:
        """Solves the collector/receiver for one timestep."""
        raise NotImplementedError()


@dataclass_json
@dataclass
class GenericCollectorReceiverConfig(ConfigBase):

    """Configuration of the GenericCollectorReceiver."""

    @classmethod
    def get_main_classname(cls):
        """Returns the full class name of the base class."""
        return GenericCollectorReceiver.get_full_classname()

    name: str
    #: reflective aperture area of the collector field in m2
    field_aperture_area_in_m2: float
    #: product of field and receiver optical efficiency at solar noon
    optical_efficiency: float
    #: thermal loss of the receiver per Kelvin difference between mean HTF and ambient temperature
    heat_loss_coefficient_in_mw_per_k: float
    #: design thermal power delivered to the HTF
    q_dot_rec_des_in_mw: float
    t_htf_cold_des_in_celsius: float
    t_htf_hot_des_in_celsius: float
    #: specific heat capacity of the HTF
    cp_htf_in_kj_per_kg_k: float
    #: minimum turndown: receiver shuts down below this fraction of the design power
    f_rec_min: float
    #: startup energy as fraction of one hour at design power
    rec_qf_delay: float
    #: minimum startup duration
    rec_su_delay_in_hours: float

    @classmethod
    def get_default_config(cls) -> GenericCollectorReceiverConfig:
        """Gets a molten salt tower receiver for a 100 MW cycle."""
        return GenericCollectorReceiverConfig(
            name="CollectorReceiver",
            field_aperture_area_in_m2=620000.0,
            optical_efficiency=0.55,
            heat_loss_coefficient_in_mw_per_k=0.035,
            q_dot_rec_des_in_mw=290.0,
            t_htf_cold_des_in_celsius=290.0,
            t_htf_hot_des_in_celsius=574.0,
            cp_htf_in_kj_per_kg_k=1.52,
            f_rec_min=0.25,
            rec_qf_delay=0.25,
            rec_su_delay_in_hours=0.2,
        )


@dataclass
class GenericCollectorReceiverState:

    """Iterated state of the receiver."""

    machine: ModeStateMachine[CollectorReceiverModes]
    startup_energy_remaining_in_mwh: float
    startup_time_remaining_in_hours: float

    def clone(self) -> GenericCollectorReceiverState:
        """Copies the current instance."""
        return GenericCollectorReceiverState(
            machine=self.machine.clone(),
            startup_energy_remaining_in_mwh=self.startup_energy_remaining_in_mwh,
            startup_time_remaining_in_hours=self.startup_time_remaining_in_hours,
        )


class GenericCollectorReceiver(CollectorReceiver):

    """Collector field with a central receiver.

    Incident power is DNI times aperture area, optical efficiency and field control, as long as the
    sun is above the horizon. Thermal losses are linear in the difference between the mean HTF
    temperature and the ambient temperature. The receiver controls the mass flow so that the HTF
    leaves at the hot design temperature.
    """

    # Outputs
    ThermalPowerOutput = "ThermalPowerOutput"
    StartupPowerOutput = "StartupPowerOutput"
    MassFlowOutput = "MassFlowOutput"
    OutletTemperatureOutput = "OutletTemperatureOutput"
    OperatingModeOutput = "OperatingModeOutput"

    def __init__(
        self,
        my_simulation_parameters: SimulationParameters,
        config: GenericCollectorReceiverConfig,
    ) -> None:
        """Constructs all the neccessary attributes."""
        self.receiver_config = config
        super().__init__(
            name=config.name,
            my_simulation_parameters=my_simulation_parameters,
            my_config=config,
        )
        self.state = self.get_initial_state()
        self.previous_state = self.state.clone()
        self.last_outputs = CollectorReceiverOutputs(
            htf_state_out=HtfState(temp_in_c=config.t_htf_cold_des_in_celsius)
        )

        self.thermal_power_output: ComponentOutput = self.add_output(
            object_name=self.component_name,
            field_name=self.ThermalPowerOutput,
            load_type=lt.LoadTypes.HEATING,
            unit=lt.Units.MEGAWATT,
            output_description="Thermal power delivered to the HTF.",
        )
        self.startup_power_output: ComponentOutput = self.add_output(
            object_name=self.component_name,
            field_name=self.StartupPowerOutput,
            load_type=lt.LoadTypes.HEATING,
            unit=lt.Units.MEGAWATT,
            output_description="Absorbed power used for the receiver startup.",
        )
        self.mass_flow_output: ComponentOutput = self.add_output(
            object_name=self.component_name,
            field_name=self.MassFlowOutput,
            load_type=lt.LoadTypes.MASS_FLOW,
            unit=lt.Units.KG_PER_SEC,
            output_description="HTF mass flow through the receiver.",
        )
        self.outlet_temperature_output: ComponentOutput = self.add_output(
            object_name=self.component_name,
            field_name=self.OutletTemperatureOutput,
            load_type=lt.LoadTypes.TEMPERATURE,
            unit=lt.Units.CELSIUS,
            output_description="HTF temperature at the receiver outlet.",
        )
        self.operating_mode_output: ComponentOutput = self.add_output(
            object_name=self.component_name,
            field_name=self.OperatingModeOutput,
            load_type=lt.LoadTypes.OPERATING_MODE,
            unit=lt.Units.ANY,
            output_description="Operating mode, see CollectorReceiverModes.",
        )

    def get_initial_state(self) -> GenericCollectorReceiverState:
        """Receiver is off and needs a full startup."""
        return GenericCollectorReceiverState(
            machine=ModeStateMachine(CollectorReceiverModes.OFF, RECEIVER_TRANSITIONS, self.component_name),
            startup_energy_remaining_in_mwh=self.get_startup_energy_in_mwh(),
            startup_time_remaining_in_hours=self.receiver_config.rec_su_delay_in_hours,
        )

    def get_startup_energy_in_mwh(self) -> float:
        """Energy the receiver absorbs before it delivers heat."""
        return self.receiver_config.rec_qf_delay * self.receiver_config.q_dot_rec_des_in_mw

    def i_prepare_simulation(self) -> None:
        """Checks the configuration and resets the state."""
        config = self.receiver_config
        for name in [
            "field_aperture_area_in_m2",
            "optical_efficiency",
            "q_dot_rec_des_in_mw",
            "cp_htf_in_kj_per_kg_k",
        ]:
            if not getattr(config, name) > 0:
                raise ConfigurationError(f"{name} of {self.component_name} has to be positive.")
        if config.heat_loss_coefficient_in_mw_per_k < 0:
            raise ConfigurationError(f"heat_loss_coefficient_in_mw_per_k of {self.component_name} is negative.")
        if config.t_htf_hot_des_in_celsius <= config.t_htf_cold_des_in_celsius:
            raise ConfigurationError(f"The hot HTF temperature of {self.component_name} is not above the cold one.")
        if not 0 <= config.f_rec_min <= 1 or config.optical_efficiency > 1:
            raise ConfigurationError(f"The fractions of {self.component_name} have to be between 0 and 1.")
        if config.rec_qf_delay < 0 or config.rec_su_delay_in_hours < 0:
            raise ConfigurationError(f"The startup requirements of {self.component_name} are negative.")
        self.state = self.get_initial_state()
        self.previous_state = self.state.clone()

    def get_design_parameters(self) -> CollectorReceiverSolvedParameters:
        """Returns the design values."""
        return CollectorReceiverSolvedParameters(
            t_htf_cold_des_k=utils.celsius_to_kelvin(self.receiver_config.t_htf_cold_des_in_celsius),
            q_dot_rec_des_mw=self.receiver_config.q_dot_rec_des_in_mw,
        )

    def i_save_state(self) -> None:
        """Saves the current state."""
        self.previous_state = self.state.clone()

    def i_restore_state(self) -> None:
        """Restores previous state."""
        self.state = self.previous_state.clone()

    def calculate_absorbed_power(self, weather: WeatherOutputs, temp_in_c: float, field_control: float) -> float:
        """Absorbed power after optical and thermal losses, never negative."""
        config = self.receiver_config
        if weather.solar_zenith_deg >= 90 or weather.dni_w_m2 <= 0:
            return 0.0
        q_incident = (
            weather.dni_w_m2 * config.field_aperture_area_in_m2 * config.optical_efficiency * field_control * 1e-6
        )
        t_mean_c = (temp_in_c + config.t_htf_hot_des_in_celsius) / 2
        q_loss = config.heat_loss_coefficient_in_mw_per_k * (t_mean_c - weather.t_dry_c)
        return max(q_incident - q_loss, 0.0)

    def call(
        self,
        weather: WeatherOutputs,
        htf_state_in: HtfState,
        inputs: CollectorReceiverInputs,
        sim_info: SimulationInfo,
    ) -> CollectorReceiverOutputs:
        """Solves the receiver for one timestep, starting from the restored state."""
        config = self.receiver_config
        if not 0 <= inputs.field_control <= 1:
            raise ValueError(f"Field control {inputs.field_control} of {self.component_name} is outside [0, 1].")
        temp_in_c = utils.check_absolute_temperature_in_celsius(
            self.component_name, "htf inlet temperature", htf_state_in.temp_in_c
        )
        if temp_in_c >= config.t_htf_hot_des_in_celsius:
            raise PhysicalInvariantError(self.component_name, "htf inlet temperature", temp_in_c)

        step_in_hours = sim_info.step / 3600
        q_absorbed = self.calculate_absorbed_power(weather, temp_in_c, inputs.field_control)
        q_min = config.f_rec_min * config.q_dot_rec_des_in_mw
        previous_mode = self.state.machine.mode
        running_mode = CollectorReceiverModes.ON if inputs.field_control >= 1 else CollectorReceiverModes.DEFOCUS
        q_thermal = 0.0
        q_startup = 0.0

        if q_absorbed <= 0 or q_absorbed < q_min:
            new_mode = CollectorReceiverModes.OFF
            self.state.startup_energy_remaining_in_mwh = self.get_startup_energy_in_mwh()
            self.state.startup_time_remaining_in_hours = config.rec_su_delay_in_hours
        elif previous_mode in (CollectorReceiverModes.ON, CollectorReceiverModes.DEFOCUS):
            new_mode = running_mode
            q_thermal = q_absorbed
        else:
            # startup is finished when both the energy and the minimum duration are reached
            hours_needed = max(
                self.state.startup_time_remaining_in_hours,
                self.state.startup_energy_remaining_in_mwh / q_absorbed,
            )
            if hours_needed <= step_in_hours:
                new_mode = running_mode
                q_startup = self.state.startup_energy_remaining_in_mwh / step_in_hours
                q_thermal = q_absorbed * (step_in_hours - hours_needed) / step_in_hours
                self.state.startup_energy_remaining_in_mwh = 0.0
                self.state.startup_time_remaining_in_hours = 0.0
            else:
                new_mode = CollectorReceiverModes.STARTUP
                q_startup = q_absorbed
                self.state.startup_energy_remaining_in_mwh = max(
                    self.state.startup_energy_remaining_in_mwh - q_absorbed * step_in_hours, 0.0
                )
                self.state.startup_time_remaining_in_hours = max(
                    self.state.startup_time_remaining_in_hours - step_in_hours, 0.0
                )

        self.state.machine.transition(new_mode, sim_info.step)

        if q_thermal > 0:
            m_dot = q_thermal * 1e3 / (config.cp_htf_in_kj_per_kg_k * (config.t_htf_hot_des_in_celsius - temp_in_c))
            temp_out_c = config.t_htf_hot_des_in_celsius
        else:
            m_dot = 0.0
            temp_out_c = temp_in_c

        self.last_outputs = CollectorReceiverOutputs(
            q_thermal_mw=q_thermal,
            htf_state_out=HtfState(temp_in_c=temp_out_c),
            mode=new_mode,
            q_startup_mw=q_startup,
            m_dot_htf_kg_s=m_dot,
        )
        return self.last_outputs

    def write_outputs(self, stsv: SingleTimeStepValues) -> None:
        """Writes the result of the latest call into the result row."""
        stsv.set_output_value(self.thermal_power_output, self.last_outputs.q_thermal_mw)
        stsv.set_output_value(self.startup_power_output, self.last_outputs.q_startup_mw)
        stsv.set_output_value(self.mass_flow_output, self.last_outputs.m_dot_htf_kg_s)
        stsv.set_output_value(self.outlet_temperature_output, self.last_outputs.htf_state_out.temp_in_c)
        stsv.set_output_value(self.operating_mode_output, int(self.last_outputs.mode))

    def i_doublecheck(self, timestep: int, stsv: SingleTimeStepValues) -> None:
        """Checks the accepted result of the timestep."""
        utils.check_non_negative(self.component_name, "thermal power", self.last_outputs.q_thermal_mw)
