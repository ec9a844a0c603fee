# stochastic/__init__.py
"""
Primitive random variables over Monte Carlo paths.

The AAD engine only records calls to these operations and reuses them to
evaluate local partial derivatives; it never re-implements the arithmetic.
"""

from .random_variable import RandomVariable
from .conditional_expectation import LinearRegressionEstimator

__all__ = [
    "RandomVariable",
    "LinearRegressionEstimator",
]
