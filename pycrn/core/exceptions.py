"""
Exception hierarchy.

Parse errors are raised while turning text into a network; simulation errors
are raised by a single stochastic step. Both are surfaced to the caller and
never retried inside the library.
"""


class CRNError(Exception):
    """Base class for every error raised by pycrn."""


class ParseError(CRNError, ValueError):
    """The network description could not be turned into a network."""


class DuplicateDefinitionError(ParseError):
    """A species was given an explicit initial abundance more than once."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Species '{name}' is defined more than once")


class MalformedInputError(ParseError):
    """
    The text does not follow the network grammar.

    Args:
        message (str): What the parser expected
        position (int): Character offset into the source text
        line (int): 1-based line number of the offset
        column (int): 1-based column number of the offset
    """

    def __init__(self, message: str, position: int, line: int, column: int):
        self.message = message
        self.position = position
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, column {column}")


class SimulationError(CRNError, RuntimeError):
    """A simulation step could not be completed."""


class TerminalStateError(SimulationError):
    """No reaction has a nonzero propensity in the current state."""

    def __init__(self, message: str = "CRN has reached terminal state"):
        super().__init__(message)


class InsufficientPrecisionError(SimulationError):
    """Round-off prevented the selection of a firing reaction."""

    def __init__(self, message: str = "Insufficient precision for accurate simulation"):
        super().__init__(message)
