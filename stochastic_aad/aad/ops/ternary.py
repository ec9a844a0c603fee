# aad/ops/ternary.py
import math

from ..core import tape as tape_mod
from ..core.config import DiracDeltaApproximation
from .catalog import ONE, ZERO, OperationNotSupportedError, Operator, OperatorType, register


# ---------------- X + Y·Z, X ± Y/Z ---------------- #
register(Operator(
    OperatorType.ADDPRODUCT, 3,
    evaluate=lambda x, y, z: x.add_product(y, z),
    partials=(lambda x, y, z: ONE,
              lambda x, y, z: z,
              lambda x, y, z: y),
))
register(Operator(
    OperatorType.ADDRATIO, 3,
    evaluate=lambda x, y, z: x.add_ratio(y, z),
    partials=(lambda x, y, z: ONE,
              lambda x, y, z: z.invert(),
              lambda x, y, z: y.div(z.squared()).mult(-1.0)),
))
register(Operator(
    OperatorType.SUBRATIO, 3,
    evaluate=lambda x, y, z: x.sub_ratio(y, z),
    partials=(lambda x, y, z: ONE,
              lambda x, y, z: z.invert().mult(-1.0),
              lambda x, y, z: y.div(z.squared())),
))

# ---------------- accrual: X·(1 + Y·Z), X/(1 + Y·Z) ---------------- #
def _growth(y, z):
    return y.mult(z).add(1.0)


register(Operator(
    OperatorType.ACCRUE, 3,
    evaluate=lambda x, y, z: x.accrue(y, z),
    partials=(lambda x, y, z: _growth(y, z),
              lambda x, y, z: x.mult(z),
              lambda x, y, z: x.mult(y)),
))
register(Operator(
    OperatorType.DISCOUNT, 3,
    evaluate=lambda x, y, z: x.discount(y, z),
    partials=(lambda x, y, z: _growth(y, z).invert(),
              lambda x, y, z: x.mult(z).div(_growth(y, z).squared()).mult(-1.0),
              lambda x, y, z: x.mult(y).div(_growth(y, z).squared()).mult(-1.0)),
))


# ---------------- choose(trigger, A, B) ---------------- #
def _trigger_partial(values, config):
    """
    Derivative of choose(trigger, A, B) with respect to the trigger.

    The exact derivative (A - B)·δ(trigger) is replaced by the approximation
    selected in the tape configuration.
    """
    trigger, if_non_negative, if_negative = values
    method = config.dirac_delta_approximation

    if method is DiracDeltaApproximation.ZERO:
        return ZERO
    if method is DiracDeltaApproximation.ONE:
        return if_non_negative.sub(if_negative)
    if method is DiracDeltaApproximation.DISCRETE_DELTA:
        epsilon = config.dirac_delta_width_per_std_dev * trigger.get_standard_deviation()
        jump = if_non_negative.sub(if_negative)
        if math.isinf(epsilon):
            return jump
        if epsilon > 0.0:
            half = epsilon / 2.0
            window = trigger.indicator(lambda t: (t >= -half) & (t < half))
            return jump.mult(window).div(epsilon)
        return ZERO
    raise OperationNotSupportedError(f"Dirac delta approximation {method!r} not supported.")


register(Operator(
    OperatorType.CHOOSE, 3,
    evaluate=lambda t, a, b: t.choose(a, b),
    partials=(None,
              lambda t, a, b: t.indicator(lambda v: v >= 0.0),
              lambda t, a, b: t.indicator(lambda v: v < 0.0)),
    configured_partials={0: _trigger_partial},
))


def add_product(x, factor1, factor2):
    return tape_mod.record(OperatorType.ADDPRODUCT, x, factor1, factor2)


def add_ratio(x, numerator, denominator):
    return tape_mod.record(OperatorType.ADDRATIO, x, numerator, denominator)


def sub_ratio(x, numerator, denominator):
    return tape_mod.record(OperatorType.SUBRATIO, x, numerator, denominator)


def accrue(x, rate, period_length):
    """x·(1 + rate·period_length)"""
    return tape_mod.record(OperatorType.ACCRUE, x, rate, period_length)


def discount(x, rate, period_length):
    """x/(1 + rate·period_length)"""
    return tape_mod.record(OperatorType.DISCOUNT, x, rate, period_length)


def choose(trigger, value_if_non_negative, value_if_negative):
    """
    Pathwise selection: value_if_non_negative where trigger >= 0, else value_if_negative.

    The derivative with respect to the trigger follows
    `TapeConfig.dirac_delta_approximation` of the tape the selection is
    recorded on (the trigger's tape when the trigger is tracked), whatever
    tape the differentiated root belongs to.
    """
    return tape_mod.record(OperatorType.CHOOSE, trigger, value_if_non_negative, value_if_negative)
