"""
Recording: node construction, constants, ordering and the operator catalog.
"""

import math

import numpy as np
import pytest

from stochastic_aad.aad import ADVar, Tape, TapeConfig, DiracDeltaApproximation
from stochastic_aad.aad.core.graph_utils import check_ordering, iter_nodes
from stochastic_aad.aad.ops import OperationNotSupportedError, OperatorType, catalog
from stochastic_aad.stochastic import RandomVariable


def _d(gradient, x):
    return gradient[x.get_id()].double_value()


def test_square_at_three():
    tape = Tape()
    x = tape.create_leaf(0.0, 3.0, name="x")
    y = x.squared()
    assert y.val.double_value() == 9.0
    assert _d(y.get_gradient(), x) == pytest.approx(6.0)


def test_division():
    tape = Tape()
    x = tape.create_leaf(0.0, 6.0)
    y = tape.create_leaf(0.0, 3.0)
    g = (x / y).get_gradient()
    assert _d(g, x) == pytest.approx(1.0 / 3.0)
    assert _d(g, y) == pytest.approx(-2.0 / 3.0)


def test_add_product_and_composition():
    tape = Tape()
    a = tape.create_leaf(0.0, 1.0)
    b = tape.create_leaf(0.0, 2.0)
    c = tape.create_leaf(0.0, 5.0)
    for y in (a.add_product(b, c), a + b * c):
        g = y.get_gradient()
        assert (_d(g, a), _d(g, b), _d(g, c)) == pytest.approx((1.0, 5.0, 2.0))


def test_product_plus_sine():
    tape = Tape()
    x = tape.create_leaf(0.0, 2.0)
    y = tape.create_leaf(0.0, 3.0)
    g = (x * y + x.sin()).get_gradient()
    assert _d(g, x) == pytest.approx(3.0 + math.cos(2.0))
    assert _d(g, y) == pytest.approx(2.0)


def test_literals_become_constants():
    tape = Tape()
    x = tape.create_leaf(0.0, 2.0)
    y = 3.0 * x + 1.0
    nodes = list(iter_nodes(y))
    constants = [n for n in nodes if n.is_constant]
    assert len(constants) == 2
    g = y.get_gradient()
    assert set(g) == {x.get_id()}
    assert _d(g, x) == pytest.approx(3.0)


def test_ids_increase_and_ordering_holds():
    tape = Tape()
    x = tape.create_leaf(0.0, [1.0, 2.0])
    y = tape.create_leaf(0.0, 0.5)
    z = ((x * y).exp() + x.log()).average()
    assert x.get_id() < y.get_id() < z.get_id()
    assert check_ordering(z)
    ids = [n.id for n in iter_nodes(z)]
    assert ids == sorted(ids)
    assert len(ids) == len(set(ids))


def test_node_snapshots_argument_values():
    tape = Tape()
    x = tape.create_leaf(0.0, [1.0, 2.0])
    y = x * 2.0
    node = y.node
    assert node.operator is OperatorType.MULT
    assert node.argument_values[0] is x.val
    assert node.argument_values[1].double_value() == 2.0
    np.testing.assert_allclose(node.value.get_realizations(), [2.0, 4.0])


def test_leaf_time():
    tape = Tape()
    x = tape.create_leaf(1.5, [1.0, 2.0])
    assert x.time == 1.5
    assert (x + 1.0).time == 1.5


def test_arity_mismatch_raises():
    tape = Tape()
    x = tape.create_leaf(0.0, 1.0)
    with pytest.raises(OperationNotSupportedError):
        tape.record(OperatorType.ADD, x)
    with pytest.raises(OperationNotSupportedError):
        tape.record(OperatorType.EXP, x, x)


def test_unknown_operator_raises():
    with pytest.raises(OperationNotSupportedError):
        catalog.get_operator("no_such_operator")


def test_error_is_a_value_error():
    assert issubclass(OperationNotSupportedError, ValueError)


def test_catalog_is_complete():
    catalog.validate_catalog()
    for op_type in OperatorType:
        op = catalog.get_operator(op_type)
        assert all(op.covers(k) for k in range(op.arity))


def test_incomplete_catalog_detected(monkeypatch):
    monkeypatch.delitem(catalog._REGISTRY, OperatorType.SIN)
    with pytest.raises(RuntimeError, match="SIN"):
        catalog.validate_catalog()


def test_double_registration_rejected():
    with pytest.raises(RuntimeError):
        catalog.register(catalog.get_operator(OperatorType.EXP))


def test_stochastic_exponent_rejected():
    tape = Tape()
    x = tape.create_leaf(0.0, [1.0, 2.0])
    e = tape.create_leaf(0.0, [1.0, 3.0])
    with pytest.raises(OperationNotSupportedError):
        x ** e


def test_power_with_deterministic_exponent():
    tape = Tape()
    x = tape.create_leaf(0.0, 2.0)
    e = tape.create_leaf(0.0, 3.0)
    g = (x ** e).get_gradient()
    assert _d(g, x) == pytest.approx(12.0)
    assert _d(g, e) == 0.0


def test_non_numeric_leaf_rejected():
    with pytest.raises(TypeError):
        ADVar("abc")
    with pytest.raises(TypeError):
        Tape().create_leaf(0.0, {"a": 1.0})
    with pytest.raises(TypeError):
        ADVar(["a"])
    with pytest.raises(TypeError):
        Tape().create_leaf(0.0, ["x", "y"])


def test_apply_and_tangents_not_supported():
    x = Tape().create_leaf(0.0, 1.0)
    with pytest.raises(OperationNotSupportedError):
        x.apply(np.exp)
    with pytest.raises(NotImplementedError):
        x.get_tangents()


def test_end_points_are_not_recorded():
    tape = Tape()
    x = tape.create_leaf(0.0, [1.0, 2.0, 3.0, 4.0])
    assert x.get_average() == 2.5
    assert x.get_variance() == pytest.approx(1.25)
    assert x.get_min() == 1.0
    assert x.size() == 4
    assert not x.is_deterministic()


def test_config_validation():
    with pytest.raises(ValueError):
        TapeConfig(dirac_delta_width_per_std_dev=-0.1)
    with pytest.raises(ValueError):
        TapeConfig(dirac_delta_width_per_std_dev=float("nan"))
    with pytest.raises(ValueError):
        TapeConfig(dirac_delta_approximation="zero")
    cfg = TapeConfig(dirac_delta_approximation=DiracDeltaApproximation.ONE)
    assert Tape(cfg).config is cfg
    assert Tape().config.dirac_delta_approximation is DiracDeltaApproximation.ZERO


def test_advar_accepts_random_variable():
    rv = RandomVariable([1.0, 2.0], time=2.0)
    x = ADVar(rv)
    assert x.val.equals(rv)
    assert x.requires_grad
    assert not ADVar(1.0, requires_grad=False).requires_grad
