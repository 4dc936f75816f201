"""
Network description parser.

A network is written as a list of initial abundances followed by a list of
reactions, each statement terminated by ``;``::

    A = 50;
    B = 50;
    2A + B -> 3A;
    A + 2B -> 3B : 0.5;

Whitespace between tokens is ignored. A rate may follow ``:`` and defaults
to 1.0. Species that are only mentioned inside reactions start at zero.
``format_network`` renders a network back into the same grammar.
"""

import logging
import math
import re
from typing import Dict, List, NamedTuple, Optional

from .exceptions import DuplicateDefinitionError, MalformedInputError
from .reactions import Reaction

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s*")
_NAME = re.compile(r"[A-Za-z][A-Za-z0-9]*")
_COEFFICIENT = re.compile(r"[0-9]+")
_NUMBER = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class ParsedNetwork(NamedTuple):
    """Components of a network, in species-index order."""
    names: List[str]
    abundances: List
    reactions: List[Reaction]


class _Scanner:
    """Cursor over the source text. Every match skips leading whitespace."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def skip_whitespace(self) -> None:
        self.pos = _WHITESPACE.match(self.text, self.pos).end()

    def at_end(self) -> bool:
        self.skip_whitespace()
        return self.pos >= len(self.text)

    def peek(self, literal: str) -> bool:
        self.skip_whitespace()
        return self.text.startswith(literal, self.pos)

    def accept(self, literal: str) -> bool:
        if self.peek(literal):
            self.pos += len(literal)
            return True
        return False

    def expect(self, literal: str) -> None:
        if not self.accept(literal):
            raise self.error(f"Expected '{literal}'")

    def match(self, pattern: re.Pattern) -> Optional[str]:
        self.skip_whitespace()
        m = pattern.match(self.text, self.pos)
        if m is None:
            return None
        self.pos = m.end()
        return m.group(0)

    def error(self, message: str, position: Optional[int] = None) -> MalformedInputError:
        if position is None:
            position = self.pos
        line = self.text.count("\n", 0, position) + 1
        column = position - (self.text.rfind("\n", 0, position) + 1) + 1
        found = self.text[position:position + 10]
        if found:
            message = f"{message}, found '{found}'"
        else:
            message = f"{message}, found end of input"
        return MalformedInputError(message, position, line, column)


def parse_network(text: str, state_class) -> ParsedNetwork:
    """
    Parse a network description.

    Args:
        text (str): The network description
        state_class (type): State subclass whose ``coerce_abundance`` converts
            the declared initial abundances

    Returns:
        ParsedNetwork: Species names, initial abundances and reactions

    Raises:
        DuplicateDefinitionError: If a species is declared twice
        MalformedInputError: If the text does not follow the grammar
    """
    scanner = _Scanner(text)
    names: List[str] = []
    abundances: List = []
    index: Dict[str, int] = {}

    def species_index(name: str) -> int:
        if name not in index:
            index[name] = len(names)
            names.append(name)
            abundances.append(state_class.coerce_abundance("0"))
        return index[name]

    # Declarations come first; the first statement that is not ``name = ...``
    # starts the reaction list.
    while True:
        start = scanner.pos
        name = scanner.match(_NAME)
        if name is None or not scanner.accept("="):
            scanner.pos = start
            break
        scanner.skip_whitespace()
        number_pos = scanner.pos
        number = scanner.match(_NUMBER)
        if number is None:
            raise scanner.error("Expected an initial abundance")
        scanner.expect(";")
        if name in index:
            raise DuplicateDefinitionError(name)
        try:
            value = state_class.coerce_abundance(number)
        except ValueError as e:
            raise scanner.error(str(e), number_pos) from e
        index[name] = len(names)
        names.append(name)
        abundances.append(value)

    reactions = []
    while not scanner.at_end():
        reactions.append(_parse_reaction(scanner, species_index))

    logger.debug("Parsed %d species and %d reactions", len(names), len(reactions))
    return ParsedNetwork(names, abundances, reactions)


def _parse_side(scanner: _Scanner, species_index) -> Dict[int, int]:
    side: Dict[int, int] = {}
    scanner.skip_whitespace()
    if scanner.pos >= len(scanner.text) or not scanner.text[scanner.pos].isalnum():
        return side
    while True:
        coefficient = scanner.match(_COEFFICIENT)
        name = scanner.match(_NAME)
        if name is None:
            raise scanner.error("Expected a species name")
        species = species_index(name)
        side[species] = side.get(species, 0) + (int(coefficient) if coefficient else 1)
        if not scanner.accept("+"):
            return side


def _parse_reaction(scanner: _Scanner, species_index) -> Reaction:
    reactants = _parse_side(scanner, species_index)
    scanner.expect("->")
    products = _parse_side(scanner, species_index)

    rate = 1.0
    if scanner.accept(":"):
        scanner.skip_whitespace()
        rate_pos = scanner.pos
        number = scanner.match(_NUMBER)
        if number is None:
            raise scanner.error("Expected a rate constant")
        rate = float(number)
        if not math.isfinite(rate) or rate < 0:
            raise scanner.error("Rate constants must be finite and non-negative", rate_pos)
    scanner.expect(";")
    return Reaction(reactants, products, rate)


def format_side(side, names) -> str:
    """Render one side of a reaction, ordered by species index."""
    terms = []
    for species, count in sorted(side.items()):
        terms.append(names[species] if count == 1 else f"{count}{names[species]}")
    return " + ".join(terms)


def format_reaction(reaction: Reaction, names) -> str:
    parts: List[str] = []
    lhs = format_side(reaction.reactants, names)
    rhs = format_side(reaction.products, names)
    if lhs:
        parts.append(lhs)
    parts.append("->")
    if rhs:
        parts.append(rhs)
    return f"{' '.join(parts)} : {reaction.rate!r};"


def format_network(network) -> str:
    """
    Render a network in the description grammar.

    Declarations use the current state, in species-index order, so reparsing
    the output reproduces the same indices.
    """
    lines: List[str] = []
    state_class = type(network.state)
    for i, value in enumerate(network.state.species):
        lines.append(f"{network.names[i]} = {state_class.format_abundance(value)};")
    for rxn in network.reactions:
        lines.append(format_reaction(rxn, network.names))
    return "\n".join(lines) + "\n" if lines else ""

