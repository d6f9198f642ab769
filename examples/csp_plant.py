"""  CSP plant example. Shows how to set up and run an annual simulation of a tower plant. """

# clean

from typing import Optional

from cspsim import log
from cspsim import postprocessing
from cspsim.components import collector_receiver
from cspsim.components import power_cycle
from cspsim.components import weather
from cspsim.csp_solver import CspSimulationResults, CspSolver, CspSolverConfig
from cspsim.operating_policy import CooldownPermissionPolicy, CooldownPermissionPolicyConfig
from cspsim.simulationparameters import SimulationParameters

__authors__ = "cspsim developers"
__license__ = "MIT"
__version__ = "1.0"
__status__ = "development"


def csp_plant(my_simulation_parameters: Optional[SimulationParameters] = None) -> CspSimulationResults:
    """Molten salt tower without storage.

    - Simulation Parameters
    - Components
        - Weather (clear sky year in Daggett)
        - Collector field and receiver
        - Power cycle
    - Operating policy
    """

    # =================================================================================================================================
    # Set System Parameters

    year = 2021
    seconds_per_timestep = 3600

    # =================================================================================================================================
    # Build Components

    if my_simulation_parameters is None:
        my_simulation_parameters = SimulationParameters.full_year(year=year, seconds_per_timestep=seconds_per_timestep)

    my_weather = weather.ClearSkyWeather(
        my_simulation_parameters=my_simulation_parameters,
        config=weather.ClearSkyWeatherConfig.get_default_daggett(),
    )
    my_receiver = collector_receiver.GenericCollectorReceiver(
        my_simulation_parameters=my_simulation_parameters,
        config=collector_receiver.GenericCollectorReceiverConfig.get_default_config(),
    )
    my_power_cycle = power_cycle.GenericPowerCycle(
        my_simulation_parameters=my_simulation_parameters,
        config=power_cycle.GenericPowerCycleConfig.get_default_config(),
    )
    my_policy = CooldownPermissionPolicy(
        my_simulation_parameters=my_simulation_parameters,
        config=CooldownPermissionPolicyConfig.get_default_config(),
    )

    # =================================================================================================================================
    # Run

    my_solver = CspSolver(
        my_simulation_parameters=my_simulation_parameters,
        config=CspSolverConfig.get_default_config(),
        weather=my_weather,
        collector_receiver=my_receiver,
        power_cycle=my_power_cycle,
        permission_policy=my_policy,
    )
    my_solver.init()
    results = my_solver.simulate()
    my_solver.release()
    return results


if __name__ == "__main__":
    my_results = csp_plant()
    postprocessing.compute_annual_summary(my_results)
    cumulative, monthly = postprocessing.get_std_results(my_results)
    log.information(monthly.to_string())
