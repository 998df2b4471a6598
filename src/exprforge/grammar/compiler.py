"""Compiler for expressions to vectorized numpy operations.

Evaluates an Expression over whole coordinate arrays at once, e.g. every
pixel of an image. Vectorized operators follow the same numeric guards
as scalar evaluation (near-zero denominators, clamped exponential,
absolute value under square roots), so `evaluate_grid` agrees with
`Expression.evaluate` point by point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable
import logging

import numpy as np

from exprforge.grammar.types import NodeKind
from exprforge.grammar.nodes import (
    DIVISION_EPSILON,
    DIVISION_FALLBACK,
    EXP_CLAMP,
    Node,
    RandomConstant,
)
from exprforge.grammar.expression import Expression

logger = logging.getLogger(__name__)

_EXP_CLAMP_ARG = np.log(EXP_CLAMP)


def _divide(left: np.ndarray, right: np.ndarray) -> np.ndarray:
    near_zero = np.abs(right) < DIVISION_EPSILON
    safe_right = np.where(near_zero, 1.0, right)
    return np.where(near_zero, DIVISION_FALLBACK, left / safe_right)


def _exp(value: np.ndarray) -> np.ndarray:
    # fmin ignores NaN, so NaN arguments clamp like large ones
    clamped = np.fmin(np.exp(np.minimum(value, _EXP_CLAMP_ARG)), EXP_CLAMP)
    return np.where(np.isnan(value) | (value >= _EXP_CLAMP_ARG), EXP_CLAMP, clamped)


def _mix(a: np.ndarray, b: np.ndarray, c: np.ndarray, d: np.ndarray) -> np.ndarray:
    return (a * b + c * d) / (1.0 + np.abs(a) + np.abs(b))


# =============================================================================
# CompiledExpression dataclass
# =============================================================================

@dataclass
class CompiledExpression:
    """A compiled expression ready for evaluation on arrays.

    Attributes:
        expression: Original expression
        evaluate: Function mapping (x, y) arrays to an array of shape (..., 3)
    """

    expression: Expression
    evaluate: Callable[[np.ndarray, np.ndarray], np.ndarray]

    def __call__(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Evaluate the expression on coordinate arrays."""
        return self.evaluate(x, y)


# =============================================================================
# ExpressionCompiler class
# =============================================================================

class ExpressionCompiler:
    """Compiles expressions to vectorized numpy code."""

    # Operator implementations, filled per instance
    OPERATORS: dict[NodeKind, Callable[..., np.ndarray]]

    def __init__(self) -> None:
        self._register_operators()

    def _register_operators(self) -> None:
        """Register all operator implementations."""
        self.OPERATORS = {
            # Binary
            NodeKind.ADD: np.add,
            NodeKind.MULTIPLY: np.multiply,
            NodeKind.DIVIDE: _divide,

            # Unary
            NodeKind.SINE: np.sin,
            NodeKind.COSINE: np.cos,
            NodeKind.EXP: _exp,
            NodeKind.SQRT: lambda v: np.sqrt(np.abs(v)),

            # Quaternary
            NodeKind.MIX_UNBOUNDED: _mix,
        }

    def compile(self, expression: Expression) -> CompiledExpression:
        """Compile an expression to a vectorized evaluator.

        Args:
            expression: The expression to compile

        Returns:
            CompiledExpression ready for evaluation
        """
        def evaluate(x: np.ndarray, y: np.ndarray) -> np.ndarray:
            x, y = np.broadcast_arrays(
                np.asarray(x, dtype=float), np.asarray(y, dtype=float)
            )
            # Overflow and inf arithmetic are expected inside deep trees
            with np.errstate(all="ignore"):
                values = [
                    self._evaluate_node(channel, x, y)
                    for channel in expression.channels
                ]
            return np.stack(values, axis=-1)

        return CompiledExpression(expression=expression, evaluate=evaluate)

    def _evaluate_node(self, node: Node, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Recursively evaluate a node."""
        if node.kind == NodeKind.VAR_X:
            return x
        elif node.kind == NodeKind.VAR_Y:
            return y
        elif isinstance(node, RandomConstant):
            return np.full(x.shape, node.value)

        args = [self._evaluate_node(child, x, y) for child in node.children]

        op_func = self.OPERATORS.get(node.kind)
        if op_func is None:
            raise ValueError(f"Unknown node kind: {node.kind}")
        return op_func(*args)


# =============================================================================
# Grid helpers
# =============================================================================

def coordinate_grid(
    width: int,
    height: int,
    extent: float = 1.0,
) -> tuple[np.ndarray, np.ndarray]:
    """Build (x, y) coordinate arrays of shape (height, width).

    Both axes span [-extent, extent].
    """
    if width < 1 or height < 1:
        raise ValueError(f"Grid size must be positive, got {width}x{height}")
    if extent <= 0:
        raise ValueError(f"Extent must be positive, got {extent}")
    xs = np.linspace(-extent, extent, width)
    ys = np.linspace(-extent, extent, height)
    return np.meshgrid(xs, ys)


def to_rgb(values: np.ndarray) -> np.ndarray:
    """Map channel values in [-1, 1] to 8-bit intensities.

    Values outside the range are clipped, NaN maps to 0.
    """
    values = np.asarray(values, dtype=float)
    scaled = (np.clip(values, -1.0, 1.0) + 1.0) * 127.5
    scaled = np.where(np.isnan(scaled), 0.0, scaled)
    return np.rint(scaled).astype(np.uint8)


# =============================================================================
# Compiler singleton
# =============================================================================

_COMPILER: ExpressionCompiler | None = None


def get_compiler() -> ExpressionCompiler:
    """Get the singleton compiler instance."""
    global _COMPILER
    if _COMPILER is None:
        _COMPILER = ExpressionCompiler()
    return _COMPILER


def compile_expression(expression: Expression) -> CompiledExpression:
    """Convenience function to compile an expression using singleton compiler."""
    return get_compiler().compile(expression)


def evaluate_grid(
    expression: Expression,
    width: int,
    height: int,
    extent: float = 1.0,
) -> np.ndarray:
    """Evaluate an expression on a regular grid.

    Returns:
        Array of shape (height, width, 3)
    """
    x, y = coordinate_grid(width, height, extent)
    result = compile_expression(expression)(x, y)
    logger.debug(f"Evaluated {expression.hash} on {width}x{height} grid")
    return result
