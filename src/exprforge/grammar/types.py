"""Grammar table for random expression synthesis.

Defines the closed set of node kinds and the fixed relative weights used
when sampling productions:

    C ::= x | y | const | (C + C) | (C * C) | (C / C)
        | sin(C) | cos(C) | exp(C) | sqrt(C) | mix(C, C, C, C)
"""

from enum import Enum, auto
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


class NodeType(Enum):
    """Types of nodes in expression tree."""

    ATOM = auto()        # Leaf production, never recurses
    OPERATOR = auto()    # Production with children (arity >= 1)


class NodeKind(Enum):
    """Grammar productions."""

    VAR_X = auto()
    VAR_Y = auto()
    RANDOM_CONSTANT = auto()
    ADD = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    SINE = auto()
    COSINE = auto()
    EXP = auto()
    SQRT = auto()
    MIX_UNBOUNDED = auto()


@dataclass(frozen=True)
class NodeSignature:
    """Fixed description of a production.

    Attributes:
        name: Symbol used when rendering (variable, operator or function name)
        arity: Number of children
        weight: Relative selection weight during generation
    """

    name: str
    arity: int
    weight: float

    def __post_init__(self) -> None:
        if self.arity < 0:
            raise ValueError(f"Arity must be non-negative, got {self.arity}")
        if self.weight < 0:
            raise ValueError(f"Weight must be non-negative, got {self.weight}")

    @property
    def node_type(self) -> NodeType:
        return NodeType.ATOM if self.arity == 0 else NodeType.OPERATOR


# Row order is the roulette-wheel walk order used by the generator.
GRAMMAR: Mapping[NodeKind, NodeSignature] = MappingProxyType({
    # Atoms
    NodeKind.VAR_X: NodeSignature("x", 0, 0.33),
    NodeKind.VAR_Y: NodeSignature("y", 0, 0.33),
    NodeKind.RANDOM_CONSTANT: NodeSignature("const", 0, 0.33),

    # Binary
    NodeKind.ADD: NodeSignature("+", 2, 0.15),
    NodeKind.MULTIPLY: NodeSignature("*", 2, 0.15),
    NodeKind.DIVIDE: NodeSignature("/", 2, 0.1),

    # Unary
    NodeKind.SINE: NodeSignature("sin", 1, 0.1),
    NodeKind.COSINE: NodeSignature("cos", 1, 0.1),
    NodeKind.EXP: NodeSignature("exp", 1, 0.05),
    NodeKind.SQRT: NodeSignature("sqrt", 1, 0.05),

    # Quaternary
    NodeKind.MIX_UNBOUNDED: NodeSignature("mix", 4, 0.05),
})

GENERATION_ORDER: tuple[NodeKind, ...] = tuple(GRAMMAR)


def get_kinds(node_type: NodeType) -> list[NodeKind]:
    """Get all kinds of the given node type, in generation order."""
    return [
        kind for kind in GENERATION_ORDER
        if GRAMMAR[kind].node_type == node_type
    ]

