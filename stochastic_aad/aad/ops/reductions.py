# aad/ops/reductions.py
"""
Statistical reductions of path-vectors.

A reduction returns a deterministic value, while its consumers may be pathwise,
so the adjoint arriving at a reduction node is a random variable. It is
collapsed to its expectation before being propagated, and the local partials
below are stated in the expectation pairing

    d r = E[ ∂r · dX ]

which makes the gradient of a deterministic leaf a path-vector whose average is
the derivative, the same convention as for pathwise operations.

    average            ∂ = 1
    variance           ∂ = 2 (X - μ)
    sample variance    ∂ = 2 (X - μ) · N/(N-1)
    standard deviation ∂ = (X - μ) / σ
    standard error     ∂ = (X - μ) / (σ √N)
    min / max          ∂ = 1{X = extremum} / P(X = extremum)   (sub-gradient at ties)

Weighted variants use probabilities P with E[P] = 1: average E[X·P],
variance E[P·(X - m)²] with m = E[X·P].
"""

import numpy as np

from ..core import tape as tape_mod
from .catalog import ONE, ZERO, Operator, OperatorType, register


def _averaged_adjoint(adjoint, node):
    return adjoint.average()


def _projected_adjoint(adjoint, node):
    return node.parameter.get_conditional_expectation(adjoint)


def _bessel(n: int):
    return np.float64(n) / np.float64(n - 1)


def _centered(x):
    return x.sub(x.get_average())


def _extremum_indicator(x, extremum: float):
    indicator = x.indicator(lambda v: v == extremum)
    return indicator.div(indicator.get_average())


def _d_variance(x):
    return ZERO if x.is_deterministic() else _centered(x).mult(2.0)


def _d_sample_variance(x):
    if x.is_deterministic() or x.size() < 2:
        return ZERO
    return _centered(x).mult(2.0 * _bessel(x.size()))


def _d_standard_deviation(x):
    return ZERO if x.is_deterministic() else _centered(x).div(x.get_standard_deviation())


def _d_standard_error(x):
    if x.is_deterministic():
        return ZERO
    return _centered(x).div(x.get_standard_deviation() * np.sqrt(x.size()))


# ---- weighted: V = E[P (X - m)²], m = E[X P], c = E[P (X - m)] ---- #
def _weighted_moments(x, p):
    m = x.get_average(p)
    c = x.sub(m).mult(p).get_average()
    return m, c


def _d_weighted_variance_x(x, p):
    m, c = _weighted_moments(x, p)
    return p.mult(x.sub(m + c)).mult(2.0)


def _d_weighted_variance_p(x, p):
    m, c = _weighted_moments(x, p)
    return x.sub(m).squared().sub(x.mult(2.0 * c))


def _weighted_sd_scale(x, p, n: int = 1):
    return 2.0 * x.get_standard_deviation(p) * np.sqrt(n)


register(Operator(
    OperatorType.AVERAGE, 1,
    evaluate=lambda x: x.average(),
    partials=(lambda x: ONE,),
    adjoint_transform=_averaged_adjoint,
))
register(Operator(
    OperatorType.VARIANCE, 1,
    evaluate=lambda x: x.variance(),
    partials=(_d_variance,),
    adjoint_transform=_averaged_adjoint,
))
register(Operator(
    OperatorType.SVARIANCE, 1,
    evaluate=lambda x: x.sample_variance(),
    partials=(_d_sample_variance,),
    adjoint_transform=_averaged_adjoint,
))
register(Operator(
    OperatorType.STDEV, 1,
    evaluate=lambda x: x.standard_deviation(),
    partials=(_d_standard_deviation,),
    adjoint_transform=_averaged_adjoint,
))
register(Operator(
    OperatorType.STDERROR, 1,
    evaluate=lambda x: x.standard_error(),
    partials=(_d_standard_error,),
    adjoint_transform=_averaged_adjoint,
))
register(Operator(
    OperatorType.MIN, 1,
    evaluate=lambda x: x.min(),
    partials=(lambda x: _extremum_indicator(x, x.get_min()),),
    adjoint_transform=_averaged_adjoint,
))
register(Operator(
    OperatorType.MAX, 1,
    evaluate=lambda x: x.max(),
    partials=(lambda x: _extremum_indicator(x, x.get_max()),),
    adjoint_transform=_averaged_adjoint,
))
register(Operator(
    OperatorType.AVERAGE2, 2,
    evaluate=lambda x, p: x.average(p),
    partials=(lambda x, p: p, lambda x, p: x),
    adjoint_transform=_averaged_adjoint,
))
register(Operator(
    OperatorType.VARIANCE2, 2,
    evaluate=lambda x, p: x.variance(p),
    partials=(_d_weighted_variance_x, _d_weighted_variance_p),
    adjoint_transform=_averaged_adjoint,
))
register(Operator(
    OperatorType.STDEV2, 2,
    evaluate=lambda x, p: x.standard_deviation(p),
    partials=(lambda x, p: _d_weighted_variance_x(x, p).div(_weighted_sd_scale(x, p)),
              lambda x, p: _d_weighted_variance_p(x, p).div(_weighted_sd_scale(x, p))),
    adjoint_transform=_averaged_adjoint,
))
register(Operator(
    OperatorType.STDERROR2, 2,
    evaluate=lambda x, p: x.standard_error(p),
    partials=(lambda x, p: _d_weighted_variance_x(x, p).div(_weighted_sd_scale(x, p, x.size())),
              lambda x, p: _d_weighted_variance_p(x, p).div(_weighted_sd_scale(x, p, x.size()))),
    adjoint_transform=_averaged_adjoint,
))
# E[X | F] by regression: linear and self-adjoint, so the adjoint is projected too
register(Operator(
    OperatorType.CONDITIONAL_EXPECTATION, 1,
    evaluate=lambda x, estimator: x.get_conditional_expectation(estimator),
    partials=(lambda x: ONE,),
    adjoint_transform=_projected_adjoint,
    parameterized=True,
))


def average(x, probabilities=None):
    if probabilities is None:
        return tape_mod.record(OperatorType.AVERAGE, x)
    return tape_mod.record(OperatorType.AVERAGE2, x, probabilities)


def variance(x, probabilities=None):
    if probabilities is None:
        return tape_mod.record(OperatorType.VARIANCE, x)
    return tape_mod.record(OperatorType.VARIANCE2, x, probabilities)


def sample_variance(x):
    return tape_mod.record(OperatorType.SVARIANCE, x)


def standard_deviation(x, probabilities=None):
    if probabilities is None:
        return tape_mod.record(OperatorType.STDEV, x)
    return tape_mod.record(OperatorType.STDEV2, x, probabilities)


def standard_error(x, probabilities=None):
    if probabilities is None:
        return tape_mod.record(OperatorType.STDERROR, x)
    return tape_mod.record(OperatorType.STDERROR2, x, probabilities)


def minimum(x):
    return tape_mod.record(OperatorType.MIN, x)


def maximum(x):
    return tape_mod.record(OperatorType.MAX, x)


def conditional_expectation(x, estimator):
    return tape_mod.record(OperatorType.CONDITIONAL_EXPECTATION, x, parameter=estimator)
