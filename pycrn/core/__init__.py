from .exceptions import (
    CRNError,
    ParseError,
    DuplicateDefinitionError,
    MalformedInputError,
    SimulationError,
    TerminalStateError,
    InsufficientPrecisionError,
)
from .reactions import Reaction
from .state import State, StochasticState, DeterministicState
from .models import SpeciesNames, Network, StochasticNetwork, DeterministicNetwork, parse

__all__ = [
    "CRNError",
    "ParseError",
    "DuplicateDefinitionError",
    "MalformedInputError",
    "SimulationError",
    "TerminalStateError",
    "InsufficientPrecisionError",
    "Reaction",
    "State",
    "StochasticState",
    "DeterministicState",
    "SpeciesNames",
    "Network",
    "StochasticNetwork",
    "DeterministicNetwork",
    "parse",
]
