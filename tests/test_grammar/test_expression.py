"""Tests for the three-channel root expression."""

import random

import pytest

from exprforge.grammar.nodes import (
    Divide,
    RandomConstant,
    Sine,
    VarX,
    VarY,
    get_depth,
)
from exprforge.grammar.generator import generate_node
from exprforge.grammar.expression import Expression


@pytest.fixture
def expression(sample_tree):
    """((x + (2.000 * y)), sin(x), (x / 0.000))"""
    return Expression((
        sample_tree,
        Sine(VarX()),
        Divide(VarX(), RandomConstant(0.0)),
    ))


class TestExpression:
    """Test Expression."""

    def test_evaluate(self, expression):
        """Each channel is evaluated independently."""
        values = expression.evaluate(1.0, 1.0)
        assert values[0] == 3.0
        assert values[1] == pytest.approx(0.8414709848)
        assert values[2] == 1.0
        assert isinstance(values, tuple)

    def test_render(self, expression):
        """Channels are rendered as a tuple."""
        assert expression.render() == "((x + (2.000 * y)), sin(x), (x / 0.000))"
        assert str(expression) == expression.formula == expression.render()

    def test_size_and_depth(self, expression):
        assert expression.size == 5 + 2 + 3
        assert expression.depth == 2

    def test_hash_follows_formula(self, expression):
        """Equal formulas hash equally."""
        same = Expression(expression.channels)
        assert same.hash == expression.hash
        assert len(expression.hash) == 12

    def test_wrong_channel_count(self):
        with pytest.raises(ValueError):
            Expression((VarX(), VarY()))
        with pytest.raises(ValueError):
            Expression((VarX(), VarY(), VarX(), VarY()))

    def test_non_node_channel(self):
        with pytest.raises(TypeError):
            Expression((VarX(), VarY(), 0.5))

    def test_iteration(self, expression):
        assert list(expression) == list(expression.channels)
        assert len(expression) == 3


class TestExpressionGeneration:
    """Test Expression.generate."""

    @pytest.mark.parametrize("depth", [0, 1, 4, 7])
    def test_depth_bound(self, depth):
        """Every channel respects the depth bound."""
        rng = random.Random(depth)
        for _ in range(30):
            expression = Expression.generate(depth, rng)
            assert all(get_depth(c) <= depth for c in expression.channels)

    def test_channels_drawn_in_order(self):
        """Channel i is the i-th tree drawn from the source."""
        expression = Expression.generate(4, random.Random(11))

        rng = random.Random(11)
        expected = [generate_node(4, rng).render() for _ in range(3)]
        assert [c.render() for c in expression.channels] == expected

    def test_reproducible(self):
        a = Expression.generate(6, random.Random(3))
        b = Expression.generate(6, random.Random(3))
        assert a == b
        assert a.render() == b.render()

    def test_deterministic_evaluation(self, sample_points):
        """Evaluation never consumes randomness."""
        expression = Expression.generate(6, random.Random(21))
        for x, y in sample_points:
            # repr compares NaN and signed zeros exactly
            assert repr(expression.evaluate(x, y)) == repr(expression.evaluate(x, y))

    def test_invalid_depth(self):
        with pytest.raises(ValueError):
            Expression.generate(-2, random.Random(0))
