"""
Contains simulation engines for reaction networks:
- Gillespie: Stochastic simulation algorithm
- ODE: Deterministic fixed-step Runge-Kutta integration
"""

from .gillespie import GillespieSimulator, run_gillespie_simulation
from .ode import RungeKuttaSimulator, simulate_ode
from .results import history_to_dataframe, time_weighted_stats

__all__ = [
    "GillespieSimulator",
    "run_gillespie_simulation",
    "RungeKuttaSimulator",
    "simulate_ode",
    "history_to_dataframe",
    "time_weighted_stats",
]
