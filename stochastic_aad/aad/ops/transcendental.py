# aad/ops/transcendental.py
from ..core import tape as tape_mod
from .catalog import Operator, OperatorType, register

register(Operator(
    OperatorType.EXP, 1,
    evaluate=lambda x: x.exp(),
    partials=(lambda x: x.exp(),),
))
register(Operator(
    OperatorType.LOG, 1,
    evaluate=lambda x: x.log(),
    partials=(lambda x: x.invert(),),
))
register(Operator(
    OperatorType.SQRT, 1,
    evaluate=lambda x: x.sqrt(),
    partials=(lambda x: x.sqrt().invert().mult(0.5),),
))
register(Operator(
    OperatorType.SIN, 1,
    evaluate=lambda x: x.sin(),
    partials=(lambda x: x.cos(),),
))
register(Operator(
    OperatorType.COS, 1,
    evaluate=lambda x: x.cos(),
    partials=(lambda x: x.sin().mult(-1.0),),
))


def exp(x):
    return tape_mod.record(OperatorType.EXP, x)


def log(x):
    """Natural logarithm; x <= 0 propagates nan/-inf like the primitive."""
    return tape_mod.record(OperatorType.LOG, x)


def sqrt(x):
    return tape_mod.record(OperatorType.SQRT, x)


def sin(x):
    return tape_mod.record(OperatorType.SIN, x)


def cos(x):
    return tape_mod.record(OperatorType.COS, x)
