"""
Core model classes

This module contains the containers a simulation runs on:
- SpeciesNames: Bijection between species indices and their names
- Network: Reactions, current and initial state, and species names
- StochasticNetwork / DeterministicNetwork: Networks over integer counts or
  real concentrations
"""

from typing import Dict, Iterable, Iterator, List

import networkx as nx
import numpy as np
import sympy as sp

from .parser import format_network, parse_network
from .reactions import Reaction
from .state import DeterministicState, State, StochasticState


class SpeciesNames:
    """
    Index <-> name table for the species of a network.

    The ordered list of names is authoritative; the reverse lookup is derived
    from it and never modified on its own.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._names: List[str] = []
        self._index: Dict[str, int] = {}
        for name in names:
            self.add(name)

    def add(self, name: str) -> int:
        """
        Register a new species name.

        Returns:
            int: The index assigned to ``name``
        """
        if name in self._index:
            raise ValueError(f"Species '{name}' already exists.")
        self._index[name] = len(self._names)
        self._names.append(name)
        return self._index[name]

    def index(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise KeyError(f"Unknown species '{name}'") from None

    def name(self, index: int) -> str:
        return self._names[index]

    def __getitem__(self, index: int) -> str:
        return self._names[index]

    def __contains__(self, name) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __eq__(self, other):
        if not isinstance(other, SpeciesNames):
            return NotImplemented
        return self._names == other._names

    def __repr__(self) -> str:
        return f"SpeciesNames({self._names})"


class Network:
    """
    A chemical reaction network together with its simulation state.

    Networks are usually created with ``parse``. Simulators mutate ``state``
    in place; ``init_state`` is a frozen snapshot taken at construction and
    ``reset`` returns to it.

    Args:
        reactions (Iterable[Reaction]): The reactions of the network
        state (State): Initial abundances, one per species
        names (SpeciesNames or Iterable[str]): Species names, in index order
    """

    state_class = State

    def __init__(self, reactions: Iterable[Reaction], state: State, names):
        if not isinstance(state, self.state_class):
            state = self.state_class(state.species if isinstance(state, State) else state)
        if not isinstance(names, SpeciesNames):
            names = SpeciesNames(names)
        if len(names) != len(state):
            raise ValueError(f"Got {len(names)} species names for {len(state)} abundances")

        self.reactions = tuple(reactions)
        for rxn in self.reactions:
            unknown = [s for s in rxn.species if not 0 <= s < len(state)]
            if unknown:
                raise ValueError(f"Reaction {rxn!r} references unknown species indices {unknown}")

        self.names = names
        self.init_state = state.freeze()
        self.state = state.copy()

    @classmethod
    def parse(cls, text: str) -> "Network":
        """
        Build a network from its textual description.

        Raises:
            DuplicateDefinitionError: If a species is declared twice
            MalformedInputError: If the text does not follow the grammar
        """
        parsed = parse_network(text, cls.state_class)
        return cls(parsed.reactions, cls.state_class(parsed.abundances), parsed.names)

    @property
    def species_count(self) -> int:
        return len(self.names)

    def reset(self) -> None:
        """Return the current state to the initial state, time included."""
        self.state = self.init_state.copy()

    def snapshot(self) -> State:
        """A copy of the current state that later steps will not modify."""
        return self.state.copy()

    def copy(self) -> "Network":
        """Independent copy; reactions are immutable and shared."""
        network = type(self)(self.reactions, self.init_state, SpeciesNames(self.names))
        network.state = self.state.copy()
        return network

    def to_text(self) -> str:
        """Render the network (with its current abundances) in the description grammar."""
        return format_network(self)

    def generate_stoichiometric_matrix(self) -> np.ndarray:
        """
        Generate the stoichiometric matrix S where S[i,j] is the change in
        species i due to reaction j.

        Returns:
            np.ndarray: Matrix of shape (num_species, num_reactions)
        """
        S = np.zeros((self.species_count, len(self.reactions)), dtype=int)
        for j, rxn in enumerate(self.reactions):
            for species, change in rxn.delta.items():
                S[species, j] = change
        return S

    def symbols(self) -> List[sp.Symbol]:
        """One sympy symbol per species, named after it."""
        return [sp.Symbol(name, nonnegative=True) for name in self.names]

    def generate_odes(self) -> Dict[str, sp.Expr]:
        """
        Generate the mass-action ODE system by multiplying the stoichiometric
        matrix S by the rate vector v.

        Returns:
            Dict[str, sp.Expr]: Mapping from species name to d(species)/dt
        """
        if not self.reactions:
            return {name: sp.Integer(0) for name in self.names}
        symbols = self.symbols()
        S = sp.Matrix(self.generate_stoichiometric_matrix())
        v = sp.Matrix([rxn.rate_law(symbols) for rxn in self.reactions])
        dxdt = S * v
        return {name: sp.expand(expr) for name, expr in zip(self.names, dxdt)}

    def to_graph(self) -> nx.DiGraph:
        """
        Build the species influence graph.

        Every species is a node. An edge (u, v) means some reaction consumes u
        and produces v; the edge's ``reactions`` attribute lists the indices of
        those reactions.
        """
        graph = nx.DiGraph()
        for i, name in enumerate(self.names):
            graph.add_node(name, index=i, initial=self.init_state.species[i].item())
        for j, rxn in enumerate(self.reactions):
            for reactant in rxn.reactants:
                for product in rxn.products:
                    u, v = self.names[reactant], self.names[product]
                    if graph.has_edge(u, v):
                        graph.edges[u, v]['reactions'].append(j)
                    else:
                        graph.add_edge(u, v, reactions=[j])
        return graph

    def to_stochastic(self) -> "StochasticNetwork":
        """Re-read this network's description as integer counts."""
        return StochasticNetwork.parse(self.to_text())

    def to_deterministic(self) -> "DeterministicNetwork":
        """Re-read this network's description as real concentrations."""
        return DeterministicNetwork.parse(self.to_text())

    def __str__(self) -> str:
        return self.to_text()

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return (self.reactions == other.reactions
                and self.names == other.names
                and self.init_state == other.init_state
                and self.state == other.state)

    __hash__ = None

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(species={self.species_count}, "
                f"reactions={len(self.reactions)}, "
                f"time={self.state.time})")


class StochasticNetwork(Network):
    """A network over integer molecule counts, simulated with Gillespie's algorithm."""

    state_class = StochasticState


class DeterministicNetwork(Network):
    """A network over real concentrations, integrated as an ODE system."""

    state_class = DeterministicState


NETWORK_KINDS = {
    "stochastic": StochasticNetwork,
    "deterministic": DeterministicNetwork,
}


def parse(text: str, kind: str = "stochastic") -> Network:
    """
    Parse a network description.

    Args:
        text (str): The network description
        kind (str, optional): 'stochastic' or 'deterministic'. Defaults to 'stochastic'

    Returns:
        Network: A StochasticNetwork or DeterministicNetwork
    """
    try:
        network_class = NETWORK_KINDS[kind]
    except KeyError:
        raise ValueError(f"kind must be one of {sorted(NETWORK_KINDS)}, got '{kind}'") from None
    return network_class.parse(text)

