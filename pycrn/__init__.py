"""
pycrn: A Python library for modeling and simulating chemical reaction networks.

This library provides tools for:
- Describing networks as text (initial abundances followed by reactions)
- Simulating them stochastically with Gillespie's algorithm
- Integrating their mass-action rate equations with fixed-step RK4
- Turning simulation histories into pandas DataFrames and statistics

Main classes:
    Reaction: Immutable mass-action reaction over species indices
    StochasticNetwork: Network over integer molecule counts
    DeterministicNetwork: Network over real concentrations

Simulators:
    GillespieSimulator: Stochastic simulation algorithm
    RungeKuttaSimulator: Deterministic ODE integration
"""

from .core.exceptions import (
    CRNError,
    ParseError,
    DuplicateDefinitionError,
    MalformedInputError,
    SimulationError,
    TerminalStateError,
    InsufficientPrecisionError,
)
from .core.reactions import Reaction
from .core.state import State, StochasticState, DeterministicState
from .core.models import SpeciesNames, Network, StochasticNetwork, DeterministicNetwork, parse
from .simulation.gillespie import GillespieSimulator, run_gillespie_simulation
from .simulation.ode import RungeKuttaSimulator, simulate_ode
from .simulation.results import history_to_dataframe, time_weighted_stats

__version__ = "0.1.0"

__all__ = [
    # Errors
    "CRNError",
    "ParseError",
    "DuplicateDefinitionError",
    "MalformedInputError",
    "SimulationError",
    "TerminalStateError",
    "InsufficientPrecisionError",

    # Core classes
    "Reaction",
    "State",
    "StochasticState",
    "DeterministicState",
    "SpeciesNames",
    "Network",
    "StochasticNetwork",
    "DeterministicNetwork",
    "parse",

    # Simulation
    "GillespieSimulator",
    "run_gillespie_simulation",
    "RungeKuttaSimulator",
    "simulate_ode",
    "history_to_dataframe",
    "time_weighted_stats",
]
