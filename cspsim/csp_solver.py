"""Time-stepping solver of a concentrating solar power plant without storage.

The solver drives one weather source, one collector/receiver and one power cycle through the
simulated period. In every timestep the field control of the receiver is iterated until the
thermal power it delivers matches the power the cycle can accept.
"""

# clean
from __future__ import annotations

import datetime
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import pandas as pd
from dataclasses_json import dataclass_json

from cspsim import loadtypes as lt
from cspsim import log
from cspsim import utils
from cspsim.component import Component, ComponentOutput, ConfigBase, SimulationInfo, SingleTimeStepValues
from cspsim.components.collector_receiver import (
    CollectorReceiver,
    CollectorReceiverInputs,
    CollectorReceiverModes,
    CollectorReceiverOutputs,
    HtfState,
)
from cspsim.components.power_cycle import PowerCycle, PowerCycleModes, PowerCycleOutputs
from cspsim.components.weather import Weather, WeatherOutputs
from cspsim.errors import (
    ComponentInitError,
    ConfigurationError,
    ConvergenceWarningRecord,
    PhysicalInvariantError,
    SimulationDiagnostics,
)
from cspsim.operating_policy import (
    CooldownPermissionPolicy,
    CooldownPermissionPolicyConfig,
    PermissionFlags,
    PermissionPolicy,
)
from cspsim.simulationparameters import SimulationParameters


@dataclass_json
@dataclass
class CspSolverConfig(ConfigBase):

    """Configuration of the CspSolver."""

    @classmethod
    def get_main_classname(cls):
        """Returns the full class name of the base class."""
        return CspSolver.__module__ + "." + CspSolver.__name__

    name: str
    #: cap of the field control iterations per timestep
    max_iterations: int
    #: accepted thermal power mismatch as fraction of the design thermal input of the cycle
    tolerance: float

    @classmethod
    def get_default_config(cls) -> CspSolverConfig:
        """Gets the default solver settings."""
        return CspSolverConfig(name="CspSolver", max_iterations=20, tolerance=1e-3)


@dataclass(frozen=True)
class CspSolvedParameters:

    """Design values of the bound components, fixed after init."""

    t_htf_cold_des_k: float
    q_dot_rec_des_mw: float
    cycle_w_dot_des_mw: float
    cycle_eta_des: float
    cycle_q_dot_des_mw: float
    cycle_max_frac: float
    cycle_cutoff_frac: float
    cycle_sb_frac: float


@dataclass
class CspSimulationResults:

    """Result log of a simulation run."""

    data_frame: pd.DataFrame
    all_outputs: List[ComponentOutput]
    warnings: List[ConvergenceWarningRecord]
    solved_parameters: CspSolvedParameters
    seconds_per_timestep: int
    #: column names of the outputs the aggregation needs
    key_columns: Dict[str, str] = field(default_factory=dict)

    @property
    def number_of_timesteps(self) -> int:
        """Number of simulated timesteps."""
        return len(self.data_frame.index)

    def get_series(self, output: ComponentOutput) -> pd.Series:
        """Gets the time series of a single output."""
        if output.global_index < 0 or output.global_index >= len(self.data_frame.columns):
            raise ValueError("The output " + output.full_name + " is not part of these results.")
        return self.data_frame.iloc[:, output.global_index]


class CspSolver:

    """Annual simulation of weather, collector/receiver and power cycle.

    The solver binds the three components exclusively: a component that is already driven by
    another solver is rejected until that solver calls ``release``.
    """

    # Outputs
    TimeOutput = "Time"
    FieldControlOutput = "FieldControl"
    IterationsOutput = "Iterations"
    ConvergedOutput = "Converged"
    ReceiverStartupAllowed = "ReceiverStartupAllowed"
    CycleStartupAllowed = "CycleStartupAllowed"
    CycleStandbyAllowed = "CycleStandbyAllowed"

    def __init__(
        self,
        my_simulation_parameters: SimulationParameters,
        config: CspSolverConfig,
        weather: Weather,
        collector_receiver: CollectorReceiver,
        power_cycle: PowerCycle,
        permission_policy: Optional[PermissionPolicy] = None,
    ) -> None:
        """Binds the components and registers all outputs."""
        if config.max_iterations < 1:
            raise ConfigurationError("max_iterations of the solver has to be at least 1.")
        if not config.tolerance > 0:
            raise ConfigurationError("tolerance of the solver has to be positive.")
        self.my_simulation_parameters = my_simulation_parameters
        self.config = config
        log.LOGGING_LEVEL = my_simulation_parameters.logging_level
        self.components: List[Component] = [weather, collector_receiver, power_cycle]
        bound_components: List[Component] = []
        for component in self.components:
            try:
                component.bind_to_solver(self)
            except ConfigurationError:
                for bound_component in bound_components:
                    bound_component.release_from_solver()
                raise
            bound_components.append(component)
        self.weather = weather
        self.collector_receiver = collector_receiver
        self.power_cycle = power_cycle
        if permission_policy is None:
            permission_policy = CooldownPermissionPolicy(
                my_simulation_parameters, CooldownPermissionPolicyConfig.get_default_config()
            )
        self.permission_policy = permission_policy
        self.solved_parameters: Optional[CspSolvedParameters] = None
        self.sim_info = SimulationInfo(time=0.0, step=float(my_simulation_parameters.seconds_per_timestep))
        self.is_initialized = False

        self.all_outputs: List[ComponentOutput] = []
        for component in self.components:
            for output in component.get_outputs():
                self.register_output(output)
        self.time_output = self.add_solver_output(
            self.TimeOutput, lt.LoadTypes.TIME, lt.Units.SECONDS, "End of the timestep since the start."
        )
        self.field_control_output = self.add_solver_output(
            self.FieldControlOutput, lt.LoadTypes.CONTROL_SIGNAL, lt.Units.ANY, "Accepted field control."
        )
        self.iterations_output = self.add_solver_output(
            self.IterationsOutput, lt.LoadTypes.ANY, lt.Units.ANY, "Field control iterations of the timestep."
        )
        self.converged_output = self.add_solver_output(
            self.ConvergedOutput, lt.LoadTypes.ON_OFF, lt.Units.BINARY, "1 if the timestep converged."
        )
        self.receiver_startup_allowed_output = self.add_solver_output(
            self.ReceiverStartupAllowed, lt.LoadTypes.ON_OFF, lt.Units.BINARY, "Receiver startup permission."
        )
        self.cycle_startup_allowed_output = self.add_solver_output(
            self.CycleStartupAllowed, lt.LoadTypes.ON_OFF, lt.Units.BINARY, "Power cycle startup permission."
        )
        self.cycle_standby_allowed_output = self.add_solver_output(
            self.CycleStandbyAllowed, lt.LoadTypes.ON_OFF, lt.Units.BINARY, "Power cycle standby permission."
        )

    def register_output(self, output: ComponentOutput) -> None:
        """Assigns the column of an output in the result log."""
        for existing_output in self.all_outputs:
            if existing_output.full_name == output.full_name:
                raise ConfigurationError("The output " + output.full_name + " was registered twice.")
        output.global_index = len(self.all_outputs)
        self.all_outputs.append(output)

    def add_solver_output(
        self, field_name: str, load_type: lt.LoadTypes, unit: lt.Units, output_description: str
    ) -> ComponentOutput:
        """Registers an output written by the solver itself."""
        output = ComponentOutput(self.config.name, field_name, load_type, unit, output_description)
        self.register_output(output)
        return output

    def release(self) -> None:
        """Unbinds the components so that another solver can use them."""
        for component in self.components:
            if component.bound_solver is self:
                component.release_from_solver()

    def init_independent(self) -> None:
        """Prepares weather, collector/receiver and power cycle in this order."""
        for component in self.components:
            log.debug("Preparing " + component.component_name)
            try:
                component.i_prepare_simulation()
            except ComponentInitError:
                raise
            except Exception as error:
                raise ComponentInitError(component.component_name, str(error)) from error

    @utils.measure_execution_time
    def init(self) -> CspSolvedParameters:
        """Prepares the components and fixes their design values."""
        self.init_independent()
        try:
            receiver_parameters = self.collector_receiver.get_design_parameters()
        except Exception as error:
            raise ComponentInitError(self.collector_receiver.component_name, str(error)) from error
        try:
            cycle_parameters = self.power_cycle.get_design_parameters()
        except Exception as error:
            raise ComponentInitError(self.power_cycle.component_name, str(error)) from error

        receiver_name = self.collector_receiver.component_name
        self.check_design_value(receiver_name, "t_htf_cold_des_k", receiver_parameters.t_htf_cold_des_k)
        self.check_design_value(receiver_name, "q_dot_rec_des_mw", receiver_parameters.q_dot_rec_des_mw)
        cycle_name = self.power_cycle.component_name
        for name in ["w_dot_des_mw", "eta_des", "q_dot_des_mw", "cycle_max_frac"]:
            self.check_design_value(cycle_name, name, getattr(cycle_parameters, name))
        for name in ["cycle_cutoff_frac", "cycle_sb_frac"]:
            self.check_design_value(cycle_name, name, getattr(cycle_parameters, name), allow_zero=True)
        if cycle_parameters.eta_des > 1:
            raise ComponentInitError(cycle_name, f"eta_des {cycle_parameters.eta_des} is larger than 1.")
        if not cycle_parameters.cycle_sb_frac <= cycle_parameters.cycle_cutoff_frac <= cycle_parameters.cycle_max_frac:
            raise ComponentInitError(
                cycle_name, "the fractions have to fulfill cycle_sb_frac <= cycle_cutoff_frac <= cycle_max_frac."
            )

        self.solved_parameters = CspSolvedParameters(
            t_htf_cold_des_k=receiver_parameters.t_htf_cold_des_k,
            q_dot_rec_des_mw=receiver_parameters.q_dot_rec_des_mw,
            cycle_w_dot_des_mw=cycle_parameters.w_dot_des_mw,
            cycle_eta_des=cycle_parameters.eta_des,
            cycle_q_dot_des_mw=cycle_parameters.q_dot_des_mw,
            cycle_max_frac=cycle_parameters.cycle_max_frac,
            cycle_cutoff_frac=cycle_parameters.cycle_cutoff_frac,
            cycle_sb_frac=cycle_parameters.cycle_sb_frac,
        )
        self.is_initialized = True
        log.information(
            "Initialized the solver with a receiver of "
            + f"{self.solved_parameters.q_dot_rec_des_mw:.1f} MW and a power cycle of "
            + f"{self.solved_parameters.cycle_w_dot_des_mw:.1f} MW."
        )
        for line in self.get_report():
            log.debug(line)
        return self.solved_parameters

    def get_report(self) -> List[str]:
        """Lists the simulation parameters and the configuration of all components."""
        lines = self.my_simulation_parameters.get_unique_key_as_list()
        for component in [self.weather, self.collector_receiver, self.power_cycle]:
            lines.extend(component.write_to_report())
        return lines

    @staticmethod
    def check_design_value(component_name: str, name: str, value: float, allow_zero: bool = False) -> None:
        """Design values have to be finite and positive."""
        if value is None or not math.isfinite(value):
            raise ComponentInitError(component_name, f"the design value {name} is {value}.")
        if value < 0 or (value == 0 and not allow_zero):
            raise ComponentInitError(component_name, f"the design value {name} has to be positive, got {value}.")

    def get_acceptable_thermal_power(
        self, q_offered_mw: float, flags: PermissionFlags, cycle_mode: PowerCycleModes
    ) -> float:
        """Thermal power the power cycle can take in its current mode."""
        if self.solved_parameters is None:
            raise ValueError("The solver was not initialized.")
        params = self.solved_parameters
        q_des = params.cycle_q_dot_des_mw
        if cycle_mode == PowerCycleModes.OFF and not flags.is_pc_su_allowed:
            return 0.0
        if q_offered_mw >= params.cycle_cutoff_frac * q_des:
            return min(q_offered_mw, params.cycle_max_frac * q_des)
        is_running = cycle_mode in (PowerCycleModes.ON, PowerCycleModes.STANDBY)
        q_standby = params.cycle_sb_frac * q_des
        if is_running and flags.is_pc_sb_allowed and q_offered_mw >= q_standby:
            # the accepted iterate must not fall below the standby demand
            return min(q_standby + self.config.tolerance * q_des, q_offered_mw)
        return 0.0

    @staticmethod
    def is_receiver_startup_finished(
        receiver_mode: CollectorReceiverModes, receiver_outputs: CollectorReceiverOutputs
    ) -> bool:
        """True if the receiver was off or starting up and delivers power after this timestep."""
        was_starting = receiver_mode in (CollectorReceiverModes.OFF, CollectorReceiverModes.STARTUP)
        is_running = receiver_outputs.mode in (CollectorReceiverModes.ON, CollectorReceiverModes.DEFOCUS)
        return was_starting and is_running

    def get_cutoff_power(self) -> float:
        """Smallest thermal power the power cycle runs on."""
        params = self.get_solved_parameters()
        return params.cycle_cutoff_frac * params.cycle_q_dot_des_mw

    @staticmethod
    def get_initial_field_control(flags: PermissionFlags, receiver_mode: CollectorReceiverModes) -> float:
        """Full field unless the receiver is off and may not start."""
        if receiver_mode == CollectorReceiverModes.OFF and not flags.is_rec_su_allowed:
            return 0.0
        return 1.0

    @staticmethod
    def get_next_field_control(
        field_control: float,
        q_thermal_mw: float,
        previous_point: Optional[Tuple[float, float]],
        q_target_mw: float,
        upper_limit: float,
    ) -> float:
        """Secant update of the field control, proportional as long as there is only one point."""
        if q_target_mw <= 0:
            return 0.0
        if previous_point is not None:
            previous_field_control, previous_q_thermal = previous_point
            if field_control != previous_field_control:
                slope = (q_thermal_mw - previous_q_thermal) / (field_control - previous_field_control)
                if slope > 0:
                    new_field_control = field_control + (q_target_mw - q_thermal_mw) / slope
                    return min(max(new_field_control, 0.0), upper_limit)
        if q_thermal_mw > 0:
            return min(max(field_control * q_target_mw / q_thermal_mw, 0.0), upper_limit)
        # overshot into receiver shutdown
        return (field_control + upper_limit) / 2

    def solve_components(
        self,
        weather_outputs: WeatherOutputs,
        htf_state: HtfState,
        field_control: float,
        flags: PermissionFlags,
    ) -> Tuple[CollectorReceiverOutputs, PowerCycleOutputs]:
        """Restores the saved states and calls receiver and power cycle once."""
        for component in self.components:
            component.i_restore_state()
        receiver_outputs = self.collector_receiver.call(
            weather_outputs, htf_state, CollectorReceiverInputs(field_control=field_control), self.sim_info
        )
        receiver_name = self.collector_receiver.component_name
        utils.check_non_negative(receiver_name, "thermal power", receiver_outputs.q_thermal_mw)
        utils.check_absolute_temperature_in_celsius(
            receiver_name, "htf outlet temperature", receiver_outputs.htf_state_out.temp_in_c
        )
        cycle_outputs = self.power_cycle.call(receiver_outputs.q_thermal_mw, flags, self.sim_info)
        cycle_name = self.power_cycle.component_name
        utils.check_non_negative(cycle_name, "electric power", cycle_outputs.w_dot_mw)
        utils.check_absolute_temperature_in_celsius(cycle_name, "htf return temperature", cycle_outputs.t_htf_cold_c)
        return receiver_outputs, cycle_outputs

    def check_weather(self, weather_outputs: WeatherOutputs) -> None:
        """Weather values have to be finite and physical."""
        name = self.weather.component_name
        utils.check_non_negative(name, "dni", weather_outputs.dni_w_m2)
        utils.check_absolute_temperature_in_celsius(name, "ambient temperature", weather_outputs.t_dry_c)
        utils.check_non_negative(name, "wind speed", weather_outputs.wind_speed_m_s)

    def process_one_timestep(
        self,
        timestep: int,
        flags: PermissionFlags,
        htf_state: HtfState,
        receiver_mode: CollectorReceiverModes,
        cycle_mode: PowerCycleModes,
        diagnostics: SimulationDiagnostics,
    ) -> Tuple[SingleTimeStepValues, CollectorReceiverOutputs, PowerCycleOutputs, int]:
        """Executes one simulation timestep.

        The states of all components are saved first. Every iteration restores them and calls
        receiver and power cycle with a new field control, so the state that stays is the one of
        the accepted iteration.
        """
        for component in self.components:
            component.i_save_state()
        weather_outputs = self.weather.timestep_call(self.sim_info)
        self.check_weather(weather_outputs)

        upper_limit = self.get_initial_field_control(flags, receiver_mode)
        field_control = upper_limit
        receiver_outputs, cycle_outputs = self.solve_components(weather_outputs, htf_state, field_control, flags)
        q_target = self.get_acceptable_thermal_power(receiver_outputs.q_thermal_mw, flags, cycle_mode)
        if self.is_receiver_startup_finished(receiver_mode, receiver_outputs) and q_target < self.get_cutoff_power():
            # a finished receiver startup is kept, the cycle dumps what it can not use
            q_target = receiver_outputs.q_thermal_mw
        tolerance_in_mw = self.config.tolerance * self.get_solved_parameters().cycle_q_dot_des_mw
        iterations = 1
        previous_point: Optional[Tuple[float, float]] = None
        mismatch = abs(receiver_outputs.q_thermal_mw - q_target)
        while mismatch > tolerance_in_mw and iterations < self.config.max_iterations:
            new_field_control = self.get_next_field_control(
                field_control, receiver_outputs.q_thermal_mw, previous_point, q_target, upper_limit
            )
            previous_point = (field_control, receiver_outputs.q_thermal_mw)
            field_control = new_field_control
            receiver_outputs, cycle_outputs = self.solve_components(weather_outputs, htf_state, field_control, flags)
            iterations += 1
            mismatch = abs(receiver_outputs.q_thermal_mw - q_target)

        converged = mismatch <= tolerance_in_mw
        if not converged:
            record = ConvergenceWarningRecord(
                timestep=timestep,
                time_in_seconds=self.sim_info.time,
                iterations=iterations,
                mismatch_in_mw=mismatch,
                field_control=field_control,
            )
            diagnostics.warnings.append(record)
            log.warning(record.get_message())

        stsv = SingleTimeStepValues(len(self.all_outputs))
        for component in self.components:
            component.write_outputs(stsv)
        stsv.set_output_value(self.time_output, self.sim_info.time)
        stsv.set_output_value(self.field_control_output, field_control)
        stsv.set_output_value(self.iterations_output, iterations)
        stsv.set_output_value(self.converged_output, 1 if converged else 0)
        stsv.set_output_value(self.receiver_startup_allowed_output, 1 if flags.is_rec_su_allowed else 0)
        stsv.set_output_value(self.cycle_startup_allowed_output, 1 if flags.is_pc_su_allowed else 0)
        stsv.set_output_value(self.cycle_standby_allowed_output, 1 if flags.is_pc_sb_allowed else 0)
        for component in self.components:
            component.i_doublecheck(timestep, stsv)
        return stsv, receiver_outputs, cycle_outputs, iterations

    def get_solved_parameters(self) -> CspSolvedParameters:
        """Returns the design values, only available after init."""
        if self.solved_parameters is None:
            raise ConfigurationError("init() has to be called before the solved parameters are available.")
        return self.solved_parameters

    @utils.measure_execution_time
    def simulate(self) -> CspSimulationResults:
        """Performs all the timesteps of the simulation and returns the result log."""
        if not self.is_initialized:
            raise ConfigurationError("init() has to be called before every call of simulate().")
        # the run changes the prepared component states
        self.is_initialized = False
        solved_parameters = self.get_solved_parameters()
        timesteps = self.my_simulation_parameters.timesteps
        seconds_per_timestep = self.my_simulation_parameters.seconds_per_timestep
        self.sim_info.step = float(seconds_per_timestep)
        self.permission_policy.reset()
        flags = self.permission_policy.initial_flags()
        diagnostics = SimulationDiagnostics()
        htf_state = HtfState(temp_in_c=utils.kelvin_to_celsius(solved_parameters.t_htf_cold_des_k))
        receiver_mode = CollectorReceiverModes.OFF
        cycle_mode = PowerCycleModes.OFF

        all_result_lines: List[List[float]] = []
        log.information("Starting simulation for " + str(timesteps) + " timesteps")
        lastmessage = datetime.datetime.now()
        starttime = lastmessage
        last_step = 0
        total_iteration_tries_since_last_msg = 0

        for step in range(timesteps):
            self.sim_info.time = float(seconds_per_timestep * (step + 1))
            try:
                stsv, receiver_outputs, cycle_outputs, iterations = self.process_one_timestep(
                    step, flags, htf_state, receiver_mode, cycle_mode, diagnostics
                )
            except PhysicalInvariantError as error:
                if error.timestep is None:
                    error.timestep = step
                diagnostics.completed_timesteps = step
                diagnostics.failed_timestep = step
                diagnostics.message = str(error)
                diagnostics.partial_results = self.make_data_frame(all_result_lines)
                error.diagnostics = diagnostics
                log.error(str(error))
                raise
            all_result_lines.append(stsv.values)
            total_iteration_tries_since_last_msg += iterations

            receiver_mode = receiver_outputs.mode
            cycle_mode = cycle_outputs.mode
            htf_state = HtfState(temp_in_c=cycle_outputs.t_htf_cold_c)
            flags = self.permission_policy.update(step, receiver_mode, cycle_mode)

            elapsed = datetime.datetime.now() - lastmessage
            if elapsed.total_seconds() > 5 and step != 0:
                lastmessage = self.show_progress(starttime, step, total_iteration_tries_since_last_msg, last_step)
                last_step = step
                total_iteration_tries_since_last_msg = 0

        diagnostics.completed_timesteps = timesteps
        if diagnostics.warnings:
            log.warning(f"{len(diagnostics.warnings)} timesteps did not converge.")
        log.information("Finished simulation of " + str(timesteps) + " timesteps")
        return CspSimulationResults(
            data_frame=self.make_data_frame(all_result_lines),
            all_outputs=self.all_outputs,
            warnings=diagnostics.warnings,
            solved_parameters=solved_parameters,
            seconds_per_timestep=seconds_per_timestep,
            key_columns=self.get_key_columns(),
        )

    def make_data_frame(self, all_result_lines: List[List[float]]) -> pd.DataFrame:
        """Turns the result rows into a data frame with one column per output."""
        colum_names = []
        for entry in self.all_outputs:
            colum_names.append(entry.get_pretty_name())
        results_data_frame = pd.DataFrame(data=all_result_lines, columns=colum_names)
        results_data_frame.index = pd.date_range(
            start=self.my_simulation_parameters.start_date,
            periods=len(all_result_lines),
            freq=f"{self.my_simulation_parameters.seconds_per_timestep}s",
        )
        return results_data_frame

    def get_key_columns(self) -> Dict[str, str]:
        """Column names of the outputs used by the aggregation."""
        key_columns = {
            "field_control": self.field_control_output.get_pretty_name(),
            "converged": self.converged_output.get_pretty_name(),
        }
        for role, attribute, component in [
            ("thermal_power", "thermal_power_output", self.collector_receiver),
            ("receiver_mode", "operating_mode_output", self.collector_receiver),
            ("electric_power", "electric_power_output", self.power_cycle),
            ("cycle_mode", "operating_mode_output", self.power_cycle),
        ]:
            output = getattr(component, attribute, None)
            if output is not None:
                key_columns[role] = output.get_pretty_name()
        return key_columns

    def show_progress(
        self,
        starttime: datetime.datetime,
        step: int,
        total_iteration_tries: int,
        last_step: int,
    ) -> datetime.datetime:
        """Makes the pretty progress messages with time estimate."""
        elapsed = datetime.datetime.now() - starttime
        elapsed_minutes, elapsed_seconds = divmod(elapsed.seconds, 60)
        elapsed_seconds_str: str = str(elapsed_seconds).zfill(2)
        steps_per_second = step / elapsed.total_seconds()
        elapsed_steps: int = step - last_step
        if elapsed_steps == 0:
            average_iteration_tries: float = 1
        else:
            average_iteration_tries = total_iteration_tries / elapsed_steps
        time_left = datetime.timedelta(seconds=(self.my_simulation_parameters.timesteps - step) / steps_per_second)
        time_left_minutes, time_left_seconds = divmod(time_left.seconds, 60)
        simulation_status = f"Simulating... {(step / self.my_simulation_parameters.timesteps) * 100:.1f}% "
        simulation_status += f"| Elapsed Time: {elapsed_minutes}:{elapsed_seconds_str} min "
        simulation_status += f"| Speed: {steps_per_second:.0f} step/s "
        simulation_status += f"| Time Left: {time_left_minutes}:{str(time_left_seconds).zfill(2)} min"
        simulation_status += f"| Avg. iterations {average_iteration_tries:.1f}"
        log.information(simulation_status)
        return datetime.datetime.now()
