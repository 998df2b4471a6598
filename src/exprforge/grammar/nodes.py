"""Expression tree nodes for random formula synthesis.

Implements the closed set of grammar productions:
- Atoms: VarX, VarY, RandomConstant
- Unary operators: Sine, Cosine, Exp, Sqrt
- Binary operators: Add, Multiply, Divide
- Quaternary operator: MixUnbounded

Nodes are immutable and exclusively own their children. Evaluation is
numerically guarded so it never raises: near-zero denominators yield 1.0,
the exponential is clamped and square roots take the absolute value.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Mapping
import math

from exprforge.grammar.types import GRAMMAR, NodeKind, NodeSignature, NodeType

if TYPE_CHECKING:
    import random


# Numeric guards
DIVISION_EPSILON = 1e-10
DIVISION_FALLBACK = 1.0
EXP_CLAMP = 1e6
_EXP_CLAMP_ARG = math.log(EXP_CLAMP)


class Node(ABC):
    """Abstract base class for expression tree nodes."""

    kind: ClassVar[NodeKind]

    @property
    def signature(self) -> NodeSignature:
        """Get the grammar signature of this node's kind."""
        return GRAMMAR[self.kind]

    @property
    def node_type(self) -> NodeType:
        return self.signature.node_type

    @property
    def arity(self) -> int:
        return self.signature.arity

    @property
    def children(self) -> tuple[Node, ...]:
        """Get child nodes in declared order."""
        return ()

    @abstractmethod
    def evaluate(self, x: float, y: float) -> float:
        """Evaluate the subtree at the point (x, y)."""
        pass

    @abstractmethod
    def render(self) -> str:
        """Convert the subtree to its formula text."""
        pass

    @classmethod
    @abstractmethod
    def generate(
        cls,
        depth: int,
        rng: random.Random,
        weights: Mapping[NodeKind, float] | None = None,
    ) -> Node:
        """Create a random node of this kind with at most `depth` operator levels."""
        pass

    @classmethod
    def weight(cls) -> float:
        """Get the relative selection weight of this kind."""
        return GRAMMAR[cls.kind].weight

    def __str__(self) -> str:
        return self.render()


# =============================================================================
# Atoms
# =============================================================================

class AtomNode(Node):
    """Leaf production. Atoms never recurse, depth is ignored."""

    @classmethod
    def generate(cls, depth, rng, weights=None) -> Node:
        return cls()


@dataclass(frozen=True)
class VarX(AtomNode):
    """The x coordinate."""

    kind: ClassVar[NodeKind] = NodeKind.VAR_X

    def evaluate(self, x: float, y: float) -> float:
        return x

    def render(self) -> str:
        return "x"


@dataclass(frozen=True)
class VarY(AtomNode):
    """The y coordinate."""

    kind: ClassVar[NodeKind] = NodeKind.VAR_Y

    def evaluate(self, x: float, y: float) -> float:
        return y

    def render(self) -> str:
        return "y"


@dataclass(frozen=True)
class RandomConstant(AtomNode):
    """Constant sampled once at generation time.

    Generated values lie in [-1, 1]. The value is fixed for the lifetime
    of the node, evaluation never re-samples it.
    """

    value: float = 0.0

    kind: ClassVar[NodeKind] = NodeKind.RANDOM_CONSTANT
    VALUE_RANGE: ClassVar[tuple[float, float]] = (-1.0, 1.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", float(self.value))

    def evaluate(self, x: float, y: float) -> float:
        return self.value

    def render(self) -> str:
        return f"{self.value:.3f}"

    @classmethod
    def generate(cls, depth, rng, weights=None) -> "RandomConstant":
        return cls(value=rng.uniform(cls.VALUE_RANGE[0], cls.VALUE_RANGE[1]))


# =============================================================================
# Operators
# =============================================================================

def _check_children(node: Node) -> None:
    for child in node.children:
        if not isinstance(child, Node):
            raise TypeError(
                f"{type(node).__name__} children must be Node, got {type(child).__name__}"
            )


class OperatorNode(Node):
    """Production with children.

    Subclasses declare their children as dataclass fields and implement
    `apply`, which combines the evaluated children.
    """

    @abstractmethod
    def apply(self, *args: float) -> float:
        """Combine evaluated children into this node's value."""
        pass

    def evaluate(self, x: float, y: float) -> float:
        return self.apply(*(c.evaluate(x, y) for c in self.children))

    @classmethod
    def generate(
        cls,
        depth: int,
        rng: random.Random,
        weights: Mapping[NodeKind, float] | None = None,
    ) -> Node:
        from exprforge.grammar.generator import generate_atom, generate_node

        if depth == 0:
            return generate_atom(rng, weights)
        # Children are drawn left to right before the parent is built
        children = [
            generate_node(depth - 1, rng, weights)
            for _ in range(GRAMMAR[cls.kind].arity)
        ]
        return cls(*children)


@dataclass(frozen=True)
class UnaryNode(OperatorNode):
    """Function application: fn(child)."""

    child: Node

    def __post_init__(self) -> None:
        _check_children(self)

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.child,)

    def render(self) -> str:
        return f"{self.signature.name}({self.child.render()})"


@dataclass(frozen=True)
class BinaryNode(OperatorNode):
    """Infix operation: (left op right)."""

    left: Node
    right: Node

    def __post_init__(self) -> None:
        _check_children(self)

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.left, self.right)

    def render(self) -> str:
        return f"({self.left.render()} {self.signature.name} {self.right.render()})"


@dataclass(frozen=True)
class Add(BinaryNode):
    kind: ClassVar[NodeKind] = NodeKind.ADD

    def apply(self, left: float, right: float) -> float:
        return left + right


@dataclass(frozen=True)
class Multiply(BinaryNode):
    kind: ClassVar[NodeKind] = NodeKind.MULTIPLY

    def apply(self, left: float, right: float) -> float:
        return left * right


@dataclass(frozen=True)
class Divide(BinaryNode):
    """Division with a near-zero denominator guard."""

    kind: ClassVar[NodeKind] = NodeKind.DIVIDE

    def apply(self, left: float, right: float) -> float:
        if abs(right) < DIVISION_EPSILON:
            return DIVISION_FALLBACK
        return left / right


@dataclass(frozen=True)
class Sine(UnaryNode):
    kind: ClassVar[NodeKind] = NodeKind.SINE

    def apply(self, value: float) -> float:
        # math.sin raises on infinities
        return math.sin(value) if math.isfinite(value) else math.nan


@dataclass(frozen=True)
class Cosine(UnaryNode):
    kind: ClassVar[NodeKind] = NodeKind.COSINE

    def apply(self, value: float) -> float:
        return math.cos(value) if math.isfinite(value) else math.nan


@dataclass(frozen=True)
class Exp(UnaryNode):
    """Exponential clamped to EXP_CLAMP."""

    kind: ClassVar[NodeKind] = NodeKind.EXP

    def apply(self, value: float) -> float:
        # NaN clamps too, like a NaN-ignoring min
        if math.isnan(value) or value >= _EXP_CLAMP_ARG:
            return EXP_CLAMP
        return min(math.exp(value), EXP_CLAMP)


@dataclass(frozen=True)
class Sqrt(UnaryNode):
    """Square root of the absolute value."""

    kind: ClassVar[NodeKind] = NodeKind.SQRT

    def apply(self, value: float) -> float:
        return math.sqrt(abs(value))

    def render(self) -> str:
        return f"sqrt(abs({self.child.render()}))"


@dataclass(frozen=True)
class MixUnbounded(OperatorNode):
    """Four-way blend: (a*b + c*d) / (1 + |a| + |b|)."""

    a: Node
    b: Node
    c: Node
    d: Node

    kind: ClassVar[NodeKind] = NodeKind.MIX_UNBOUNDED

    def __post_init__(self) -> None:
        _check_children(self)

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.a, self.b, self.c, self.d)

    def apply(self, a: float, b: float, c: float, d: float) -> float:
        return (a * b + c * d) / (1.0 + abs(a) + abs(b))

    def render(self) -> str:
        args = ", ".join(child.render() for child in self.children)
        return f"{self.signature.name}({args})"


# Kind -> class lookup, in generation order
NODE_CLASSES: dict[NodeKind, type[Node]] = {
    NodeKind.VAR_X: VarX,
    NodeKind.VAR_Y: VarY,
    NodeKind.RANDOM_CONSTANT: RandomConstant,
    NodeKind.ADD: Add,
    NodeKind.MULTIPLY: Multiply,
    NodeKind.DIVIDE: Divide,
    NodeKind.SINE: Sine,
    NodeKind.COSINE: Cosine,
    NodeKind.EXP: Exp,
    NodeKind.SQRT: Sqrt,
    NodeKind.MIX_UNBOUNDED: MixUnbounded,
}


def node_class(kind: NodeKind) -> type[Node]:
    """Get the node class implementing a grammar kind."""
    try:
        return NODE_CLASSES[kind]
    except KeyError:
        raise ValueError(f"Unknown node kind: {kind}") from None


def count_nodes(node: Node) -> int:
    """Count total nodes in a subtree."""
    return 1 + sum(count_nodes(c) for c in node.children)


def get_depth(node: Node) -> int:
    """Get the number of operator levels in a subtree (an atom has depth 0)."""
    if node.children:
        return 1 + max(get_depth(c) for c in node.children)
    return 0


def collect_nodes(node: Node) -> list[Node]:
    """Collect all nodes in a subtree (pre-order traversal)."""
    result = [node]
    for child in node.children:
        result.extend(collect_nodes(child))
    return result
