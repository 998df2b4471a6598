"""Depth-bounded weighted sampling of expression trees.

At each step the eligible productions are weighted by the grammar table
and one is picked by roulette-wheel selection, walking candidates in
GENERATION_ORDER. Atoms are always eligible, operators only while depth
remains, so a tree generated at depth D has at most D operator levels.

Randomness is drawn from a single `random.Random` passed through every
recursive call, depth-first and left to right, so a seeded source
reproduces the same trees.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping
import logging
import random

from exprforge.grammar.types import (
    GENERATION_ORDER,
    GRAMMAR,
    NodeKind,
    NodeType,
    get_kinds,
)
from exprforge.grammar.nodes import (
    Node,
    RandomConstant,
    count_nodes,
    get_depth,
    node_class,
)

if TYPE_CHECKING:
    from exprforge.grammar.expression import Expression

logger = logging.getLogger(__name__)

ATOM_KINDS: tuple[NodeKind, ...] = tuple(get_kinds(NodeType.ATOM))


def _check_depth(depth: int) -> None:
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise ValueError(f"Depth must be an integer, got {depth!r}")
    if depth < 0:
        raise ValueError(f"Depth must be non-negative, got {depth}")


def _kind_weight(kind: NodeKind, weights: Mapping[NodeKind, float] | None) -> float:
    if weights is not None and kind in weights:
        return weights[kind]
    return node_class(kind).weight()


def _roulette(
    candidates: tuple[NodeKind, ...] | list[NodeKind],
    rng: random.Random,
    weights: Mapping[NodeKind, float] | None,
) -> NodeKind | None:
    """Pick a kind with probability proportional to its weight.

    Returns None when no candidate carries weight or the walk is exhausted
    by floating-point residue.
    """
    weighted = [
        (kind, _kind_weight(kind, weights))
        for kind in candidates
    ]
    weighted = [(kind, w) for kind, w in weighted if w > 0]

    total_weight = sum(w for _, w in weighted)
    if total_weight <= 0:
        return None

    choice = rng.random() * total_weight
    for kind, w in weighted:
        choice -= w
        if choice <= 0:
            return kind
    return None


def _fallback(rng: random.Random) -> Node:
    logger.warning("No production carries weight, falling back to a random constant")
    return RandomConstant.generate(0, rng)


def generate_atom(
    rng: random.Random,
    weights: Mapping[NodeKind, float] | None = None,
) -> Node:
    """Generate a random atom (x, y or a constant)."""
    kind = _roulette(ATOM_KINDS, rng, weights)
    if kind is None:
        return _fallback(rng)
    return node_class(kind).generate(0, rng, weights)


def generate_node(
    depth: int,
    rng: random.Random,
    weights: Mapping[NodeKind, float] | None = None,
) -> Node:
    """Generate a random tree with at most `depth` operator levels.

    Args:
        depth: Remaining depth; at 0 only atoms are eligible
        rng: Random source, consumed depth-first left to right
        weights: Optional per-kind weight overrides (defaults to the grammar)

    Returns:
        Root node of the generated tree
    """
    _check_depth(depth)

    candidates = [
        kind for kind in GENERATION_ORDER
        if depth > 0 or GRAMMAR[kind].node_type == NodeType.ATOM
    ]
    kind = _roulette(candidates, rng, weights)
    if kind is None:
        return _fallback(rng)
    return node_class(kind).generate(depth, rng, weights)


@dataclass
class GeneratorConfig:
    """Configuration for tree generation.

    Attributes:
        max_depth: Maximum number of operator levels per channel
        seed: Random seed (None for a nondeterministic source)
        weights: Per-kind overrides of the grammar weights; kinds not
            listed keep their grammar weight
    """

    max_depth: int = 6
    seed: int | None = None
    weights: Mapping[NodeKind, float] | None = None

    def __post_init__(self) -> None:
        _check_depth(self.max_depth)
        if self.weights is not None:
            for kind, w in self.weights.items():
                if kind not in GRAMMAR:
                    raise ValueError(f"Unknown node kind: {kind}")
                if w < 0:
                    raise ValueError(f"Weight for {kind.name} must be non-negative, got {w}")
            self.weights = dict(self.weights)


class TreeGenerator:
    """Factory for random expression trees and expressions.

    Owns one random source; successive calls continue the same stream.
    """

    def __init__(self, config: GeneratorConfig | None = None):
        self.config = config or GeneratorConfig()
        self.rng = random.Random(self.config.seed)

    def generate_node(self, depth: int | None = None) -> Node:
        """Generate a single tree."""
        depth = self.config.max_depth if depth is None else depth
        node = generate_node(depth, self.rng, self.config.weights)
        logger.debug(
            f"Generated tree: size={count_nodes(node)}, depth={get_depth(node)}"
        )
        return node

    def generate_expression(self, depth: int | None = None) -> Expression:
        """Generate a three-channel expression."""
        from exprforge.grammar.expression import Expression

        depth = self.config.max_depth if depth is None else depth
        expression = Expression.generate(depth, self.rng, self.config.weights)
        logger.debug(
            f"Generated expression {expression.hash}: "
            f"size={expression.size}, depth={expression.depth}"
        )
        return expression

    def generate_batch(self, n: int, depth: int | None = None) -> list[Expression]:
        """Generate `n` expressions from consecutive draws of the source."""
        if n < 0:
            raise ValueError(f"Batch size must be non-negative, got {n}")
        return [self.generate_expression(depth) for _ in range(n)]
