""" Aggregation of the result log of a CSP simulation. """
# clean
from typing import Dict, Tuple

import pandas as pd

from cspsim import log
from cspsim import utils
from cspsim.components.collector_receiver import CollectorReceiverModes
from cspsim.components.power_cycle import PowerCycleModes
from cspsim.csp_solver import CspSimulationResults
from cspsim.loadtypes import Units

# columns that are averaged instead of summed up as energy
UNITS_MEAN = {
    Units.CELSIUS,
    Units.KELVIN,
    Units.ANY,
    Units.BINARY,
    Units.METER_PER_SECOND,
    Units.DEGREES,
    Units.WATT_PER_SQUARE_METER,
    Units.KG_PER_SEC,
    Units.PERCENT,
    Units.SECONDS,
}


@utils.measure_execution_time
def get_std_results(results: CspSimulationResults) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Aggregates the result log to monthly values and to values of the whole period.

    Power in MW becomes energy in MWh, all other columns are averaged.
    """
    results_data_frame = results.data_frame
    hours_per_timestep = results.seconds_per_timestep / 3600
    monthly_frames = []
    cumulative_data = {}
    for i, column_name in enumerate(results_data_frame.columns):
        log.debug(f"Processing column {i + 1}/{len(results_data_frame.columns)} - {column_name}")
        col_data = results_data_frame.iloc[:, i]
        unit = results.all_outputs[i].unit
        if unit in UNITS_MEAN:
            monthly = col_data.resample("MS").mean()
            cumulative = col_data.mean()
        else:
            monthly = col_data.resample("MS").sum() * hours_per_timestep
            cumulative = col_data.sum() * hours_per_timestep
        monthly_frames.append(monthly.rename(column_name))
        cumulative_data[column_name] = cumulative

    results_merged_monthly = pd.concat(monthly_frames, axis=1)
    results_merged_cumulative = pd.DataFrame([cumulative_data])
    return results_merged_cumulative, results_merged_monthly


def compute_annual_summary(results: CspSimulationResults) -> Dict[str, float]:
    """Key figures of the simulated period."""
    data_frame = results.data_frame
    key_columns = results.key_columns
    hours_per_timestep = results.seconds_per_timestep / 3600
    simulated_hours = results.number_of_timesteps * hours_per_timestep
    summary: Dict[str, float] = {
        "simulated_hours": simulated_hours,
        "non_converged_timesteps": float(len(results.warnings)),
    }
    if "thermal_power" in key_columns:
        summary["receiver_thermal_energy_in_mwh"] = data_frame[key_columns["thermal_power"]].sum() * hours_per_timestep
    if "electric_power" in key_columns:
        electric_energy = data_frame[key_columns["electric_power"]].sum() * hours_per_timestep
        summary["gross_electric_energy_in_mwh"] = electric_energy
        summary["capacity_factor"] = electric_energy / (results.solved_parameters.cycle_w_dot_des_mw * simulated_hours)
    if "receiver_mode" in key_columns:
        receiver_mode = data_frame[key_columns["receiver_mode"]]
        summary["receiver_operating_hours"] = (
            receiver_mode.isin([CollectorReceiverModes.ON, CollectorReceiverModes.DEFOCUS]).sum() * hours_per_timestep
        )
        summary["receiver_defocus_hours"] = (receiver_mode == CollectorReceiverModes.DEFOCUS).sum() * hours_per_timestep
    if "cycle_mode" in key_columns:
        cycle_mode = data_frame[key_columns["cycle_mode"]]
        summary["cycle_operating_hours"] = (cycle_mode == PowerCycleModes.ON).sum() * hours_per_timestep
        summary["cycle_standby_hours"] = (cycle_mode == PowerCycleModes.STANDBY).sum() * hours_per_timestep
    for name, value in summary.items():
        log.information(f"{name}: {value:.2f}")
    return summary
