"""
Network states.

A state is a vector of per-species abundances plus the current simulation
time. Stochastic networks count molecules with integers; deterministic
networks track real-valued concentrations. The two representations share the
container and its arithmetic but compute reaction rates differently:

- StochasticState: combinatorial propensity, ``k * n * (n-1) * ... * (n-c+1)``
- DeterministicState: mass-action flux, ``k * x**c``
"""

import math
from typing import Iterable, Sequence

import numpy as np

from .reactions import Reaction


class State:
    """
    Abundances of every species at a point in simulated time.

    Arithmetic acts on the species vector only; the result keeps the time of
    the left operand.

    Args:
        species (Sequence): Abundance per species index
        time (float, optional): Simulation time. Defaults to 0.0
    """

    dtype = np.float64

    def __init__(self, species: Sequence, time: float = 0.0):
        self.species = np.array(species, dtype=self.dtype)
        if self.species.ndim != 1:
            raise ValueError(f"Species vector must be one-dimensional, got shape {self.species.shape}")
        self.time = float(time)

    @classmethod
    def zeros(cls, n: int) -> "State":
        """Create a state with ``n`` species, all at zero abundance."""
        return cls(np.zeros(n, dtype=cls.dtype))

    @classmethod
    def coerce_abundance(cls, token: str):
        """Convert a numeric literal from a network description to an abundance."""
        value = float(token)
        if not math.isfinite(value):
            raise ValueError(f"Abundances must be finite, got {token}")
        return value

    @classmethod
    def format_abundance(cls, value) -> str:
        """Render an abundance so that ``coerce_abundance`` reads it back unchanged."""
        return repr(float(value))

    def copy(self) -> "State":
        return type(self)(self.species, self.time)

    def freeze(self) -> "State":
        """Return a copy whose species vector cannot be written to."""
        frozen = self.copy()
        frozen.species.flags.writeable = False
        return frozen

    def apply(self, reaction: Reaction) -> None:
        """Apply the net effect of one firing of ``reaction`` in place."""
        for species, change in reaction.delta.items():
            self.species[species] += change

    def rate(self, reaction: Reaction) -> float:
        raise NotImplementedError

    def rates(self, reactions: Iterable[Reaction]) -> np.ndarray:
        """Rate of every reaction, in order."""
        return np.array([self.rate(rxn) for rxn in reactions], dtype=np.float64)

    def __len__(self) -> int:
        return len(self.species)

    def __add__(self, other):
        if not isinstance(other, State):
            return NotImplemented
        return type(self)(self.species + other.species, self.time)

    def __iadd__(self, other):
        if not isinstance(other, State):
            return NotImplemented
        self.species += other.species
        return self

    def _accepts_scalar(self, scalar) -> bool:
        if not isinstance(scalar, (int, float, np.number)):
            return False
        # Integer vectors cannot hold a fractional product.
        return not np.issubdtype(self.dtype, np.integer) or float(scalar).is_integer()

    def __mul__(self, scalar):
        if not self._accepts_scalar(scalar):
            return NotImplemented
        return type(self)(self.species * scalar, self.time)

    __rmul__ = __mul__

    def __imul__(self, scalar):
        if not self._accepts_scalar(scalar):
            return NotImplemented
        self.species[...] = self.species * scalar
        return self

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.time == other.time and np.array_equal(self.species, other.species)

    __hash__ = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(species={self.species.tolist()}, time={self.time})"


class StochasticState(State):
    """Integer molecule counts, used by the Gillespie simulator."""

    dtype = np.int64

    @classmethod
    def coerce_abundance(cls, token: str) -> int:
        try:
            value = int(token)
        except ValueError:
            number = float(token)
            if not number.is_integer():
                raise ValueError(f"Molecule counts must be integers, got {token}") from None
            value = int(number)
        bounds = np.iinfo(cls.dtype)
        if not bounds.min <= value <= bounds.max:
            raise ValueError(f"Molecule count {token} is out of range for {np.dtype(cls.dtype).name}")
        return value

    @classmethod
    def format_abundance(cls, value) -> str:
        return str(int(value))

    def applicable(self, reaction: Reaction) -> bool:
        """True if every reactant is present in at least its required count."""
        return all(count <= self.species[species] for species, count in reaction.reactants.items())

    def rate(self, reaction: Reaction) -> float:
        """
        Combinatorial propensity of ``reaction``.

        Each reactant contributes the falling factorial of its count, so
        ``2A -> B`` with 5 copies of A has propensity ``k * 5 * 4``. The
        propensity is exactly zero when any reactant is below its coefficient.
        """
        rate = reaction.rate
        for species, count in reaction.reactants.items():
            n = int(self.species[species])
            if n < count:
                return 0.0
            for i in range(count):
                rate *= n - i
        return rate


class DeterministicState(State):
    """Real-valued concentrations, used by the Runge-Kutta integrator."""

    dtype = np.float64

    def rate(self, reaction: Reaction) -> float:
        """Mass-action flux ``k * prod(x**c)`` of ``reaction``."""
        rate = reaction.rate
        for species, count in reaction.reactants.items():
            rate *= float(self.species[species]) ** count
        return rate

    def species_rates(self, reactions: Iterable[Reaction]) -> "DeterministicState":
        """
        Instantaneous rate of change of every species.

        Returns:
            DeterministicState: ``sum(rate(r) * delta(r))`` over ``reactions``, at time 0
        """
        result = np.zeros(len(self.species), dtype=np.float64)
        for rxn in reactions:
            rate = self.rate(rxn)
            for species, change in rxn.delta.items():
                result[species] += change * rate
        return DeterministicState(result, 0.0)
