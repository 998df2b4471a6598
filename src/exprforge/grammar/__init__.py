"""Expression grammar: node kinds, generator, root expression, compiler."""

from exprforge.grammar.types import GRAMMAR, GENERATION_ORDER, NodeKind, NodeType
from exprforge.grammar.nodes import (
    Node,
    VarX,
    VarY,
    RandomConstant,
    Add,
    Multiply,
    Divide,
    Sine,
    Cosine,
    Exp,
    Sqrt,
    MixUnbounded,
)
from exprforge.grammar.generator import (
    GeneratorConfig,
    TreeGenerator,
    generate_atom,
    generate_node,
)
from exprforge.grammar.expression import Expression
from exprforge.grammar.compiler import ExpressionCompiler, evaluate_grid

__all__ = [
    "GRAMMAR",
    "GENERATION_ORDER",
    "NodeKind",
    "NodeType",
    "Node",
    "VarX",
    "VarY",
    "RandomConstant",
    "Add",
    "Multiply",
    "Divide",
    "Sine",
    "Cosine",
    "Exp",
    "Sqrt",
    "MixUnbounded",
    "GeneratorConfig",
    "TreeGenerator",
    "generate_atom",
    "generate_node",
    "Expression",
    "ExpressionCompiler",
    "evaluate_grid",
]
