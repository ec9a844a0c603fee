# stochastic/conditional_expectation.py
"""
Regression-based conditional expectation (least-squares Monte Carlo).

E[X | F_t] is approximated by the least-squares projection of X onto the span of
F_t-measurable basis functions B_0, ..., B_{k-1}:

    E[X | F_t] ≈ Σ_j β_j B_j,    β = argmin ||X - B β||²

The projection is linear and self-adjoint, so the reverse engine can push
adjoints through it by projecting them with the same estimator.
"""

from __future__ import annotations

import numpy as np
from typing import Sequence

from .random_variable import RandomVariable


class LinearRegressionEstimator:
    """
    Least-squares projection onto a fixed set of basis random variables.

    Args:
        basis_functions: F_t-measurable regressors (at least one stochastic).
    """

    def __init__(self, basis_functions: Sequence[RandomVariable]):
        if len(basis_functions) == 0:
            raise ValueError("LinearRegressionEstimator requires at least one basis function")

        self.basis_functions = [
            b if isinstance(b, RandomVariable) else RandomVariable(b) for b in basis_functions
        ]
        n_paths = max(b.size() for b in self.basis_functions)
        for b in self.basis_functions:
            if not b.is_deterministic() and b.size() != n_paths:
                raise ValueError(
                    f"Basis functions must share the number of paths, got {b.size()} and {n_paths}"
                )

        self.n_paths = n_paths
        # Design matrix [n_paths x n_basis]
        self._design = np.column_stack(
            [b.get_realizations(n_paths) for b in self.basis_functions]
        )

    def get_regression_coefficients(self, value: RandomVariable) -> np.ndarray:
        """β minimising ||value - B β||² (minimum-norm solution if B is rank deficient)."""
        y = value.get_realizations(self.n_paths)
        beta, *_ = np.linalg.lstsq(self._design, y, rcond=None)
        return beta

    def get_conditional_expectation(self, value: RandomVariable) -> RandomVariable:
        beta = self.get_regression_coefficients(value)
        time = max(b.time for b in self.basis_functions)
        return RandomVariable(self._design @ beta, time=time)

    def __repr__(self):
        return f"LinearRegressionEstimator(n_basis={len(self.basis_functions)}, n_paths={self.n_paths})"
