"""
Pytest fixtures for exprforge tests.

All randomness comes from seeded sources so generated trees are reproducible.
"""

import random

import pytest

from exprforge.grammar.nodes import (
    Add,
    Multiply,
    RandomConstant,
    VarX,
    VarY,
)


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(42)


@pytest.fixture
def sample_tree():
    """(x + (2.000 * y))"""
    return Add(VarX(), Multiply(RandomConstant(2.0), VarY()))


@pytest.fixture
def sample_points() -> list[tuple[float, float]]:
    """Evaluation points covering signs, zero and large magnitudes."""
    return [
        (0.0, 0.0),
        (0.6, 0.2),
        (-1.0, 1.0),
        (3.5, -2.25),
        (1e-12, -1e-12),
        (1e3, -1e3),
    ]
