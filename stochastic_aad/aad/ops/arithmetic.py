# aad/ops/arithmetic.py
from ..core import tape as tape_mod  # module access: core.tape imports the catalog
from .catalog import (
    MINUS_ONE, ONE, ZERO,
    OperationNotSupportedError, Operator, OperatorType, register,
)


def _deterministic_exponent(y) -> float:
    if not y.is_deterministic():
        raise OperationNotSupportedError(
            "Operation POW not supported with a stochastic exponent."
        )
    return y.double_value()


# ---------------- binary ---------------- #
register(Operator(
    OperatorType.ADD, 2,
    evaluate=lambda x, y: x.add(y),
    partials=(lambda x, y: ONE, lambda x, y: ONE),
))
register(Operator(
    OperatorType.SUB, 2,
    evaluate=lambda x, y: x.sub(y),
    partials=(lambda x, y: ONE, lambda x, y: MINUS_ONE),
))
register(Operator(
    OperatorType.MULT, 2,
    evaluate=lambda x, y: x.mult(y),
    partials=(lambda x, y: y, lambda x, y: x),
))
register(Operator(
    OperatorType.DIV, 2,
    evaluate=lambda x, y: x.div(y),
    partials=(lambda x, y: y.invert(),
              lambda x, y: x.div(y.squared()).mult(-1.0)),
))
# cap = min(x, y), floor = max(x, y); at x == y neither branch gets the sensitivity
register(Operator(
    OperatorType.CAP, 2,
    evaluate=lambda x, y: x.cap(y),
    partials=(lambda x, y: x.sub(y).indicator(lambda d: d < 0.0),
              lambda x, y: x.sub(y).indicator(lambda d: d > 0.0)),
))
register(Operator(
    OperatorType.FLOOR, 2,
    evaluate=lambda x, y: x.floor(y),
    partials=(lambda x, y: x.sub(y).indicator(lambda d: d > 0.0),
              lambda x, y: x.sub(y).indicator(lambda d: d < 0.0)),
))
# The exponent is treated as a deterministic constant
register(Operator(
    OperatorType.POW, 2,
    evaluate=lambda x, y: x.pow(_deterministic_exponent(y)),
    partials=(lambda x, y: x.pow(_deterministic_exponent(y) - 1.0).mult(_deterministic_exponent(y)),
              lambda x, y: ZERO),
))

# ---------------- unary ---------------- #
register(Operator(
    OperatorType.SQUARED, 1,
    evaluate=lambda x: x.squared(),
    partials=(lambda x: x.mult(2.0),),
))
register(Operator(
    OperatorType.INVERT, 1,
    evaluate=lambda x: x.invert(),
    partials=(lambda x: x.squared().invert().mult(-1.0),),
))
# sign(x), 0 at x == 0
register(Operator(
    OperatorType.ABS, 1,
    evaluate=lambda x: x.abs(),
    partials=(lambda x: x.sign(),),
))


def add(x, y): return tape_mod.record(OperatorType.ADD, x, y)
def sub(x, y): return tape_mod.record(OperatorType.SUB, x, y)
def mul(x, y): return tape_mod.record(OperatorType.MULT, x, y)
def div(x, y): return tape_mod.record(OperatorType.DIV, x, y)
def cap(x, y): return tape_mod.record(OperatorType.CAP, x, y)
def floor(x, y): return tape_mod.record(OperatorType.FLOOR, x, y)


def pow(x, y):
    """
    Power x ** y with a deterministic exponent y.

    Local partials:
      ∂out/∂x = y * x^(y-1)
      ∂out/∂y = 0        (exponent is not differentiated)
    """
    return tape_mod.record(OperatorType.POW, x, y)


def neg(x):
    """Unary negation, recorded as multiplication by the constant -1."""
    return tape_mod.record(OperatorType.MULT, x, -1.0)


def squared(x): return tape_mod.record(OperatorType.SQUARED, x)
def invert(x): return tape_mod.record(OperatorType.INVERT, x)
def abs(x): return tape_mod.record(OperatorType.ABS, x)
