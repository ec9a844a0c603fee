"""
Finite-difference check of every catalog operator.

Each case is a function of two scalar parameters (a, b) mixed with fixed
simulated paths. The same function is evaluated on RandomVariables (for the
bumped expectations) and on ADVars (for the adjoint); the average of the
pathwise gradient must match the central difference of E[f].
"""

import numpy as np
import pytest

from stochastic_aad.aad import Tape
from stochastic_aad.aad.core.graph_utils import iter_nodes
from stochastic_aad.aad.ops import OperatorType
from stochastic_aad.stochastic import LinearRegressionEstimator, RandomVariable

N_PATHS = 2000
A0, B0 = 1.3, 0.7
H = 1e-6

_rng = np.random.default_rng(42)
Z1 = RandomVariable(_rng.standard_normal(N_PATHS))
Z2 = RandomVariable(_rng.standard_normal(N_PATHS))
ZP = RandomVariable(1.0 + _rng.uniform(size=N_PATHS))  # in (1, 2)
ESTIMATOR = LinearRegressionEstimator([RandomVariable(1.0), Z1, Z1.squared()])


def _x(a):
    return a.mult(Z1)


def _y(b):
    return b.mult(Z2)


def _xp(a):
    return a.mult(ZP)


def _weights(b):
    return b.mult(Z2).mult(0.3).exp()


CASES = [
    (OperatorType.ADD, lambda a, b: _x(a).add(_y(b))),
    (OperatorType.SUB, lambda a, b: _x(a).sub(_y(b)).squared()),
    (OperatorType.MULT, lambda a, b: _x(a).mult(_y(b))),
    (OperatorType.DIV, lambda a, b: _y(b).div(_xp(a))),
    (OperatorType.CAP, lambda a, b: _x(a).cap(_y(b))),
    (OperatorType.FLOOR, lambda a, b: _x(a).floor(_y(b))),
    (OperatorType.POW, lambda a, b: _xp(a).pow(2.5).mult(b)),
    (OperatorType.SQUARED, lambda a, b: _x(a).add(b).squared()),
    (OperatorType.SQRT, lambda a, b: _xp(a).add(b).sqrt()),
    (OperatorType.EXP, lambda a, b: _x(a).mult(b).exp()),
    (OperatorType.LOG, lambda a, b: _xp(a).mult(b).log()),
    (OperatorType.SIN, lambda a, b: _x(a).add(b).sin()),
    (OperatorType.COS, lambda a, b: _x(a).mult(b).cos()),
    (OperatorType.ABS, lambda a, b: _x(a).add(_y(b)).abs()),
    (OperatorType.INVERT, lambda a, b: _xp(a).add(b).invert()),
    (OperatorType.AVERAGE, lambda a, b: _x(a).mult(_y(b)).average().mult(_x(a))),
    (OperatorType.VARIANCE, lambda a, b: _x(a).add(_y(b).squared()).variance()),
    (OperatorType.SVARIANCE, lambda a, b: _x(a).mult(_y(b)).sample_variance()),
    (OperatorType.STDEV, lambda a, b: _x(a).add(_y(b).exp()).standard_deviation()),
    (OperatorType.STDERROR, lambda a, b: _x(a).sub(_y(b)).standard_error().mult(b)),
    (OperatorType.MIN, lambda a, b: _x(a).add(_y(b)).min()),
    (OperatorType.MAX, lambda a, b: _x(a).mult(_y(b)).max()),
    (OperatorType.AVERAGE2, lambda a, b: _x(a).squared().average(_weights(b))),
    (OperatorType.VARIANCE2, lambda a, b: _x(a).add(_y(b)).variance(_weights(b))),
    (OperatorType.STDEV2, lambda a, b: _x(a).exp().standard_deviation(_weights(b))),
    (OperatorType.STDERROR2, lambda a, b: _x(a).mult(_y(b)).standard_error(_weights(b))),
    (OperatorType.CONDITIONAL_EXPECTATION,
     lambda a, b: _x(a).mult(_y(b)).add(_xp(a)).get_conditional_expectation(ESTIMATOR).squared()),
    (OperatorType.ADDPRODUCT, lambda a, b: _x(a).add_product(_y(b), _xp(a))),
    (OperatorType.ADDRATIO, lambda a, b: _x(a).add_ratio(_y(b), _xp(a))),
    (OperatorType.SUBRATIO, lambda a, b: _x(a).sub_ratio(_y(b), _xp(a).mult(b))),
    (OperatorType.ACCRUE, lambda a, b: _x(a).accrue(_y(b), _xp(a))),
    (OperatorType.DISCOUNT, lambda a, b: _x(a).discount(_y(b).mult(0.1), _xp(a))),
    # a > 0 keeps the sign of the trigger a·Z1 fixed under bumping
    (OperatorType.CHOOSE, lambda a, b: _x(a).choose(_y(b).squared(), _xp(a))),
]


def _expectation(f, a, b):
    return f(RandomVariable(a), RandomVariable(b)).get_average()


def _finite_difference(f):
    da = (_expectation(f, A0 + H, B0) - _expectation(f, A0 - H, B0)) / (2 * H)
    db = (_expectation(f, A0, B0 + H) - _expectation(f, A0, B0 - H)) / (2 * H)
    return da, db


def _adjoint(f):
    tape = Tape()
    a = tape.create_leaf(0.0, A0, name="a")
    b = tape.create_leaf(0.0, B0, name="b")
    gradient = f(a, b).get_gradient()
    zero = RandomVariable(0.0)
    return (gradient.get(a.get_id(), zero).get_average(),
            gradient.get(b.get_id(), zero).get_average())


def test_every_operator_has_a_case():
    assert {op for op, _ in CASES} == set(OperatorType)


@pytest.mark.parametrize("op_type,f", CASES, ids=[op.name for op, _ in CASES])
def test_adjoint_matches_finite_difference(op_type, f):
    tape = Tape()
    root = f(tape.create_leaf(0.0, A0), tape.create_leaf(0.0, B0))
    assert any(n.operator is op_type for n in iter_nodes(root))

    expected = _finite_difference(f)
    actual = _adjoint(f)
    np.testing.assert_allclose(actual, expected, rtol=1e-5, atol=1e-6)


@pytest.mark.parametrize("op_type,f", CASES, ids=[op.name for op, _ in CASES])
def test_forward_value_matches_primitive(op_type, f):
    tape = Tape()
    root = f(tape.create_leaf(0.0, A0), tape.create_leaf(0.0, B0))
    reference = f(RandomVariable(A0), RandomVariable(B0))
    np.testing.assert_allclose(root.get_realizations(N_PATHS), reference.get_realizations(N_PATHS))


def test_negation_and_reflected_operators():
    tape = Tape()
    x = tape.create_leaf(0.0, 2.0)
    g = (1.0 - x / 4.0 - (-x) + 2.0 / x).get_gradient()
    assert g[x.get_id()].double_value() == pytest.approx(-0.25 + 1.0 - 0.5)
