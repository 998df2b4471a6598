"""
exprforge: random formula synthesis over two coordinates.

A probabilistic grammar generates expression trees in (x, y), which can be
evaluated numerically, evaluated over whole grids, or rendered as text.
Typical use is procedural pattern generation, one tree per color channel.
"""

__version__ = "0.1.0"

from exprforge.grammar.expression import Expression
from exprforge.grammar.generator import GeneratorConfig, TreeGenerator
from exprforge.grammar.compiler import evaluate_grid

__all__ = [
    "__version__",
    "Expression",
    "GeneratorConfig",
    "TreeGenerator",
    "evaluate_grid",
]
