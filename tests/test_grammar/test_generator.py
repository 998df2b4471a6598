"""Tests for weighted tree generation."""

import logging
import random

import pytest

from exprforge.grammar.types import GENERATION_ORDER, NodeKind, NodeType
from exprforge.grammar.nodes import (
    Add,
    RandomConstant,
    VarX,
    VarY,
    collect_nodes,
    get_depth,
)
from exprforge.grammar.generator import (
    GeneratorConfig,
    TreeGenerator,
    generate_atom,
    generate_node,
)


class FixedRandom:
    """Random source whose draws come from a fixed list."""

    def __init__(self, draws):
        self._draws = list(draws)

    def random(self):
        return self._draws.pop(0)

    def uniform(self, a, b):
        return a + (b - a) * self.random()


ALL_ZERO = {kind: 0.0 for kind in GENERATION_ORDER}


class TestGenerateNode:
    """Test generate_node."""

    @pytest.mark.parametrize("depth", [0, 1, 2, 3, 5, 8])
    def test_depth_bound(self, depth):
        """Generated trees never exceed the requested depth."""
        rng = random.Random(depth)
        for _ in range(200):
            node = generate_node(depth, rng)
            assert get_depth(node) <= depth

    def test_depth_zero_only_atoms(self, rng):
        """At depth 0 only atoms are produced."""
        for _ in range(300):
            node = generate_node(0, rng)
            assert node.node_type == NodeType.ATOM

    def test_all_kinds_reachable(self, rng):
        """Every production appears given enough draws."""
        seen = set()
        for _ in range(300):
            seen.update(n.kind for n in collect_nodes(generate_node(3, rng)))
        assert seen == set(GENERATION_ORDER)

    def test_reproducible(self):
        """Same seed, same trees."""
        first = [generate_node(5, random.Random(7)).render() for _ in range(3)]
        second = [generate_node(5, random.Random(7)).render() for _ in range(3)]
        assert first == second

    def test_generated_constants_in_range(self, rng):
        """Constants inside generated trees lie in [-1, 1]."""
        for _ in range(100):
            for node in collect_nodes(generate_node(4, rng)):
                if isinstance(node, RandomConstant):
                    assert -1.0 <= node.value <= 1.0

    @pytest.mark.parametrize("depth", [-1, 1.5, "3", True])
    def test_invalid_depth(self, rng, depth):
        """Depth must be a non-negative integer."""
        with pytest.raises(ValueError):
            generate_node(depth, rng)


class TestRouletteSelection:
    """Test the roulette-wheel walk order."""

    def test_first_candidate_on_zero_draw(self):
        """A zero draw selects the first candidate, x."""
        node = generate_node(0, FixedRandom([0.0]))
        assert isinstance(node, VarX)

    def test_generation_order(self):
        """Candidates are walked in the documented grammar order."""
        assert GENERATION_ORDER == (
            NodeKind.VAR_X,
            NodeKind.VAR_Y,
            NodeKind.RANDOM_CONSTANT,
            NodeKind.ADD,
            NodeKind.MULTIPLY,
            NodeKind.DIVIDE,
            NodeKind.SINE,
            NodeKind.COSINE,
            NodeKind.EXP,
            NodeKind.SQRT,
            NodeKind.MIX_UNBOUNDED,
        )

    def test_walk_order(self):
        """Draws land on candidates in fixed order: x, y, const."""
        # Atom weights are 0.33 each, total 0.99
        assert isinstance(generate_node(0, FixedRandom([0.2])), VarX)
        assert isinstance(generate_node(0, FixedRandom([0.5])), VarY)
        node = generate_node(0, FixedRandom([0.9, 0.0]))
        assert isinstance(node, RandomConstant)

    def test_operator_selected_with_depth(self):
        """With depth left, a draw past the atoms selects Add."""
        # Total weight 1.74, atoms cover the first 0.99
        draw = 1.0 / 1.74
        node = generate_node(1, FixedRandom([draw, 0.0, 0.5]))
        assert isinstance(node, Add)
        assert isinstance(node.left, VarX)
        assert isinstance(node.right, VarY)

    def test_zero_weight_kind_never_selected(self, rng):
        """Kinds weighted zero are skipped."""
        weights = {NodeKind.VAR_X: 0.0, NodeKind.RANDOM_CONSTANT: 0.0}
        for _ in range(100):
            assert isinstance(generate_atom(rng, weights), VarY)

    def test_single_operator_grammar(self, rng):
        """Only Add carries weight above depth 0."""
        weights = {kind: 0.0 for kind in GENERATION_ORDER}
        weights[NodeKind.ADD] = 1.0
        weights[NodeKind.VAR_X] = 1.0
        node = generate_node(2, rng, weights)
        kinds = {n.kind for n in collect_nodes(node)}
        assert kinds <= {NodeKind.ADD, NodeKind.VAR_X}


class TestDegenerateWeights:
    """Test the fallback for a weight table without mass."""

    @pytest.mark.parametrize("depth", [0, 1, 4])
    def test_all_zero_falls_back_to_constant(self, rng, depth):
        """All-zero weights produce a random constant."""
        node = generate_node(depth, rng, ALL_ZERO)
        assert isinstance(node, RandomConstant)
        assert -1.0 <= node.value <= 1.0

    def test_fallback_is_logged(self, rng, caplog):
        """The fallback is reported as a warning."""
        with caplog.at_level(logging.WARNING, logger="exprforge.grammar.generator"):
            generate_atom(rng, ALL_ZERO)
        assert "falling back" in caplog.text

    def test_operator_at_depth_zero_yields_atom(self, rng):
        """An operator asked to generate with no depth left returns an atom."""
        for _ in range(50):
            assert Add.generate(0, rng).node_type == NodeType.ATOM


class TestGeneratorConfig:
    """Test GeneratorConfig validation."""

    def test_defaults(self):
        config = GeneratorConfig()
        assert config.max_depth == 6
        assert config.seed is None
        assert config.weights is None

    def test_negative_depth(self):
        with pytest.raises(ValueError):
            GeneratorConfig(max_depth=-1)

    def test_negative_weight(self):
        with pytest.raises(ValueError):
            GeneratorConfig(weights={NodeKind.ADD: -0.5})

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            GeneratorConfig(weights={"add": 0.5})


class TestTreeGenerator:
    """Test TreeGenerator."""

    def test_generate_expression(self):
        """Expressions respect the configured depth."""
        generator = TreeGenerator(GeneratorConfig(max_depth=4, seed=42))
        expression = generator.generate_expression()
        assert expression.depth <= 4
        assert len(expression.channels) == 3

    def test_depth_override(self):
        """An explicit depth overrides the configured one."""
        generator = TreeGenerator(GeneratorConfig(max_depth=8, seed=1))
        for _ in range(20):
            assert generator.generate_node(depth=0).node_type == NodeType.ATOM

    def test_seeded_generators_agree(self):
        """Two generators with the same seed produce the same stream."""
        a = TreeGenerator(GeneratorConfig(max_depth=5, seed=123))
        b = TreeGenerator(GeneratorConfig(max_depth=5, seed=123))
        assert [e.formula for e in a.generate_batch(4)] == [
            e.formula for e in b.generate_batch(4)
        ]

    def test_batch_continues_stream(self):
        """Successive expressions in a batch come from consecutive draws."""
        generator = TreeGenerator(GeneratorConfig(max_depth=5, seed=9))
        batch = generator.generate_batch(5)
        assert len(batch) == 5
        assert len({e.hash for e in batch}) > 1

    def test_negative_batch(self):
        generator = TreeGenerator(GeneratorConfig(seed=0))
        with pytest.raises(ValueError):
            generator.generate_batch(-1)

    def test_config_weights_used(self):
        """Weight overrides flow into generation."""
        config = GeneratorConfig(
            max_depth=3,
            seed=5,
            weights={kind: 0.0 for kind in GENERATION_ORDER} | {NodeKind.VAR_Y: 1.0},
        )
        expression = TreeGenerator(config).generate_expression()
        assert expression.formula == "(y, y, y)"
