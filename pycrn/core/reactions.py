"""
Reaction class.

A reaction is described purely by its stoichiometry over species indices and
a rate constant. The net change applied to a state when it fires (``delta``)
is computed once, at construction.
"""

import math
from types import MappingProxyType
from typing import Mapping, Sequence

import sympy as sp


class Reaction:
    """
    An immutable mass-action reaction.

    Args:
        reactants (Mapping[int, int]): Species index -> coefficient consumed
        products (Mapping[int, int]): Species index -> coefficient produced
        rate (float, optional): Non-negative rate constant. Defaults to 1.0

    Attributes:
        reactants (Mapping[int, int]): Read-only view of the consumed species.
        products (Mapping[int, int]): Read-only view of the produced species.
        delta (Mapping[int, int]): Products minus reactants for every species
            appearing on either side, zero entries included.
        rate (float): The rate constant.
    """

    __slots__ = ("reactants", "products", "delta", "rate")

    def __init__(self, reactants: Mapping[int, int], products: Mapping[int, int], rate: float = 1.0):
        rate = float(rate)
        if math.isnan(rate) or math.isinf(rate) or rate < 0:
            raise ValueError(f"Reaction rate must be a finite non-negative number, got {rate}")

        reactants = {int(s): int(c) for s, c in reactants.items()}
        products = {int(s): int(c) for s, c in products.items()}

        delta = dict(products)
        for species, count in reactants.items():
            delta[species] = delta.get(species, 0) - count

        object.__setattr__(self, "reactants", MappingProxyType(reactants))
        object.__setattr__(self, "products", MappingProxyType(products))
        object.__setattr__(self, "delta", MappingProxyType(delta))
        object.__setattr__(self, "rate", rate)

    def __setattr__(self, name, value):
        raise AttributeError("Reaction objects are immutable")

    def __delattr__(self, name):
        raise AttributeError("Reaction objects are immutable")

    @property
    def order(self) -> int:
        """Total number of reactant molecules consumed."""
        return sum(self.reactants.values())

    @property
    def species(self) -> frozenset:
        """Indices of every species touched by the reaction."""
        return frozenset(self.reactants) | frozenset(self.products)

    def rate_law(self, symbols: Sequence[sp.Symbol]) -> sp.Expr:
        """
        Build the symbolic mass-action rate law for this reaction.

        Args:
            symbols (Sequence[sp.Symbol]): One symbol per species index

        Returns:
            sp.Expr: ``rate * prod(symbol**coefficient)`` over the reactants
        """
        law = sp.Float(self.rate) if not self.rate.is_integer() else sp.Integer(int(self.rate))
        for species, count in sorted(self.reactants.items()):
            law *= symbols[species] ** count
        return law

    def _key(self):
        return (frozenset(self.reactants.items()), frozenset(self.products.items()), self.rate)

    def __eq__(self, other):
        if not isinstance(other, Reaction):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __reduce__(self):
        return (Reaction, (dict(self.reactants), dict(self.products), self.rate))

    def __repr__(self) -> str:
        return (f"Reaction(reactants={dict(self.reactants)}, "
                f"products={dict(self.products)}, rate={self.rate})")
