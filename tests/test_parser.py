"""
Tests for the network description parser and formatter.
"""

import pytest
import numpy as np

from pycrn.core.exceptions import (
    CRNError,
    DuplicateDefinitionError,
    MalformedInputError,
    ParseError,
)
from pycrn.core.models import DeterministicNetwork, StochasticNetwork
from pycrn.core.parser import format_reaction, parse_network
from pycrn.core.reactions import Reaction
from pycrn.core.state import StochasticState


class TestParseDeclarations:
    """Test the initial abundance declarations."""

    def test_indices_follow_first_appearance(self):
        """Declared species come first, then species introduced by reactions."""
        network = StochasticNetwork.parse("B = 3; A = 1; A + C -> D;")
        assert list(network.names) == ["B", "A", "C", "D"]
        np.testing.assert_array_equal(network.state.species, [3, 1, 0, 0])

    def test_undeclared_species_default_to_zero(self):
        network = DeterministicNetwork.parse("-> X : 2.5;")
        assert list(network.names) == ["X"]
        assert network.state.species[0] == 0.0

    def test_declarations_only(self):
        network = StochasticNetwork.parse("A = 1;\nB = 2;\n")
        assert network.reactions == ()
        np.testing.assert_array_equal(network.state.species, [1, 2])

    def test_empty_text(self):
        network = StochasticNetwork.parse("  \n\t ")
        assert network.species_count == 0
        assert network.reactions == ()

    def test_stochastic_counts_must_be_integral(self):
        with pytest.raises(MalformedInputError) as exc_info:
            StochasticNetwork.parse("A = 2.5;")
        assert exc_info.value.line == 1
        assert exc_info.value.column == 5

    def test_integral_float_counts(self):
        network = StochasticNetwork.parse("A = 5.0; B = 5e2;")
        np.testing.assert_array_equal(network.state.species, [5, 500])

    @pytest.mark.parametrize("text", [
        "A = 100000000000000000000; A -> ;",
        "A = 1e30;",
        "A = -9223372036854775809;",
    ])
    def test_counts_must_fit_in_int64(self, text):
        with pytest.raises(MalformedInputError, match="out of range") as exc_info:
            StochasticNetwork.parse(text)
        assert exc_info.value.column == 5

    def test_largest_count(self):
        network = StochasticNetwork.parse("A = 9223372036854775807;")
        assert network.state.species[0] == np.iinfo(np.int64).max

    def test_concentrations_must_be_finite(self):
        """A literal that overflows to inf could not be written back out."""
        with pytest.raises(MalformedInputError, match="finite") as exc_info:
            DeterministicNetwork.parse("A = 1e400; A -> ;")
        assert exc_info.value.line == 1
        assert exc_info.value.column == 5

    def test_signed_concentration(self):
        network = DeterministicNetwork.parse("A = -0.25; B = +3;")
        np.testing.assert_allclose(network.state.species, [-0.25, 3.0])

    def test_duplicate_definition(self):
        """Test that declaring a species twice is an error."""
        with pytest.raises(DuplicateDefinitionError) as exc_info:
            StochasticNetwork.parse("A = 1; B = 2; A = 3;")
        assert exc_info.value.name == "A"
        assert isinstance(exc_info.value, ParseError)
        assert isinstance(exc_info.value, ValueError)
        assert isinstance(exc_info.value, CRNError)

    def test_declaration_after_reactions(self):
        """A declaration in the reaction list is malformed, not a redefinition."""
        with pytest.raises(MalformedInputError) as exc_info:
            StochasticNetwork.parse("A = 1;\nA -> B;\nB = 2;\n")
        assert exc_info.value.line == 3
        assert exc_info.value.column == 3
        assert "line 3, column 3" in str(exc_info.value)


class TestParseReactions:
    """Test the reaction list."""

    def test_default_rate(self):
        network = StochasticNetwork.parse("A = 1; A -> B;")
        assert network.reactions[0].rate == 1.0

    @pytest.mark.parametrize("literal,expected", [
        ("2", 2.0),
        ("0.5", 0.5),
        ("1e-3", 1e-3),
        ("2.5E2", 250.0),
        (".25", 0.25),
        ("0", 0.0),
    ])
    def test_rate_literals(self, literal, expected):
        network = StochasticNetwork.parse(f"A -> B : {literal};")
        assert network.reactions[0].rate == expected

    def test_coefficients(self):
        network = StochasticNetwork.parse("A = 30; B = 20; 2A + B -> 3A;")
        assert network.reactions[0] == Reaction({0: 2, 1: 1}, {0: 3})

    def test_whitespace_is_insignificant(self):
        compact = StochasticNetwork.parse("A=1;B=2;2A+B->3C:0.5;")
        spaced = StochasticNetwork.parse("  A =\n1 ;\tB = 2 ;\n 2 A  +  B\n->  3 C :  0.5 ;  ")
        assert compact == spaced

    def test_birth_death_and_inert(self):
        network = StochasticNetwork.parse("A = 1; -> A : 2; A -> ; -> ;")
        birth, death, inert = network.reactions
        assert dict(birth.delta) == {0: 1}
        assert birth.rate == 2.0
        assert dict(death.delta) == {0: -1}
        assert dict(inert.reactants) == {} and dict(inert.products) == {}

    def test_repeated_species_accumulate(self):
        """A + A -> B is the same reaction as 2A -> B."""
        network = StochasticNetwork.parse("A + A -> B + 2B;")
        assert network.reactions[0] == Reaction({0: 2}, {1: 3})

    def test_names_with_digits(self):
        network = StochasticNetwork.parse("x1 = 4; 2x1 -> y22;")
        assert list(network.names) == ["x1", "y22"]
        assert network.reactions[0] == Reaction({0: 2}, {1: 1})

    @pytest.mark.parametrize("text", [
        "A = 1; A -> B",
        "A = 1 A -> B;",
        "A => B;",
        "A -> B : ;",
        "A -> B : fast;",
        "A + -> B;",
        "2 -> A;",
        "A = ;",
        "A = 1; A -> : 1e400;",
        "$$$",
    ])
    def test_malformed_input(self, text):
        with pytest.raises(MalformedInputError):
            StochasticNetwork.parse(text)

    def test_negative_rate(self):
        with pytest.raises(MalformedInputError, match="non-negative"):
            StochasticNetwork.parse("A -> B : -1;")

    def test_error_mentions_found_text(self):
        with pytest.raises(MalformedInputError) as exc_info:
            StochasticNetwork.parse("A -> B")
        assert "end of input" in str(exc_info.value)
        assert exc_info.value.position == len("A -> B")

    def test_parse_network_components(self):
        parsed = parse_network("A = 2; A -> B : 3;", StochasticState)
        assert parsed.names == ["A", "B"]
        assert parsed.abundances == [2, 0]
        assert parsed.reactions == [Reaction({0: 1}, {1: 1}, rate=3.0)]


class TestFormat:
    """Test rendering networks back into text."""

    def test_majority(self):
        network = StochasticNetwork.parse("A = 50; B = 50; 2A + B -> 3A; A + 2B -> 3B;")
        assert network.to_text() == (
            "A = 50;\n"
            "B = 50;\n"
            "2A + B -> 3A : 1.0;\n"
            "A + 2B -> 3B : 1.0;\n"
        )

    def test_species_ordered_by_index(self):
        network = StochasticNetwork.parse("B = 1; A = 1; A + B -> C;")
        assert network.to_text().splitlines()[-1] == "B + A -> C : 1.0;"

    def test_empty_sides(self):
        names = ["A"]
        assert format_reaction(Reaction({}, {0: 1}, rate=2.0), names) == "-> A : 2.0;"
        assert format_reaction(Reaction({0: 1}, {}), names) == "A -> : 1.0;"

    def test_renders_current_state(self):
        network = DeterministicNetwork.parse("A = 1.5; A -> B;")
        network.state.species[:] = [0.25, 1.25]
        assert network.to_text().splitlines()[:2] == ["A = 0.25;", "B = 1.25;"]

    def test_empty_network(self):
        assert StochasticNetwork.parse("").to_text() == ""

    @pytest.mark.parametrize("network_class", [StochasticNetwork, DeterministicNetwork])
    def test_round_trip(self, preset_text, network_class):
        """Parsing the rendered text gives back an equal network."""
        network = network_class.parse(preset_text)
        text = network.to_text()
        reparsed = network_class.parse(text)

        assert reparsed == network
        assert reparsed.to_text() == text
