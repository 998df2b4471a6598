"""Root expression: three independently generated channel trees.

An Expression maps a point (x, y) to a triple, e.g. one value per color
channel:

    (sin((x * y)), (0.412 + y), mix(x, y, -0.250, cos(x)))

Expressions are immutable after construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping
import hashlib
import random

from exprforge.grammar.types import NodeKind
from exprforge.grammar.nodes import Node, count_nodes, get_depth
from exprforge.grammar.generator import generate_node


N_CHANNELS = 3


@dataclass(frozen=True)
class Expression:
    """Three-channel expression.

    Attributes:
        channels: Channel trees, evaluated and rendered in order
    """

    channels: tuple[Node, Node, Node]

    def __post_init__(self) -> None:
        channels = tuple(self.channels)
        if len(channels) != N_CHANNELS:
            raise ValueError(
                f"Expression needs exactly {N_CHANNELS} channels, got {len(channels)}"
            )
        for channel in channels:
            if not isinstance(channel, Node):
                raise TypeError(f"Channel must be Node, got {type(channel).__name__}")
        object.__setattr__(self, "channels", channels)

    @classmethod
    def generate(
        cls,
        depth: int,
        rng: random.Random,
        weights: Mapping[NodeKind, float] | None = None,
    ) -> "Expression":
        """Generate three channels from consecutive draws of `rng`."""
        channels = tuple(generate_node(depth, rng, weights) for _ in range(N_CHANNELS))
        return cls(channels)

    def evaluate(self, x: float, y: float) -> tuple[float, float, float]:
        """Evaluate every channel at (x, y)."""
        return tuple(channel.evaluate(x, y) for channel in self.channels)

    def render(self) -> str:
        """Render the channels as a tuple formula."""
        return f"({', '.join(channel.render() for channel in self.channels)})"

    @property
    def formula(self) -> str:
        return self.render()

    @property
    def size(self) -> int:
        """Get total number of nodes across channels."""
        return sum(count_nodes(c) for c in self.channels)

    @property
    def depth(self) -> int:
        """Get the deepest channel's operator depth."""
        return max(get_depth(c) for c in self.channels)

    @property
    def hash(self) -> str:
        """Get a hash of the formula for deduplication."""
        return hashlib.md5(self.formula.encode()).hexdigest()[:12]

    def __iter__(self) -> Iterator[Node]:
        return iter(self.channels)

    def __len__(self) -> int:
        return N_CHANNELS

    def __str__(self) -> str:
        return self.formula

    def __repr__(self) -> str:
        return f"Expression({self.formula}, size={self.size}, depth={self.depth})"
