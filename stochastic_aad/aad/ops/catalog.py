# aad/ops/catalog.py
"""
Operator catalog: one entry per differentiable primitive.

Each entry carries
  - its arity,
  - how to evaluate it forward with the primitive RandomVariable type,
  - one local-partial rule per argument position, evaluated from the argument
    values snapshotted on the node,
  - optionally, a transform applied to the incoming adjoint before it is
    propagated (reductions average it, conditional expectation projects it).

Registration happens when the operator modules are imported; `validate_catalog`
then checks that every OperatorType has an entry with a rule for every
argument position, so a gap fails at import instead of during a reverse pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Mapping, Optional, Tuple

from ...stochastic import RandomVariable


class OperationNotSupportedError(ValueError):
    """Programmer error: unknown operator, wrong arity or missing derivative rule."""


class OperatorType(Enum):
    # arity 1
    SQUARED = "squared"
    SQRT = "sqrt"
    EXP = "exp"
    LOG = "log"
    SIN = "sin"
    COS = "cos"
    ABS = "abs"
    INVERT = "invert"
    AVERAGE = "average"
    VARIANCE = "variance"
    SVARIANCE = "sample_variance"
    STDEV = "standard_deviation"
    STDERROR = "standard_error"
    MIN = "min"
    MAX = "max"
    CONDITIONAL_EXPECTATION = "conditional_expectation"
    # arity 2
    ADD = "add"
    SUB = "sub"
    MULT = "mult"
    DIV = "div"
    CAP = "cap"
    FLOOR = "floor"
    POW = "pow"
    AVERAGE2 = "weighted_average"
    VARIANCE2 = "weighted_variance"
    STDEV2 = "weighted_standard_deviation"
    STDERROR2 = "weighted_standard_error"
    # arity 3
    ADDPRODUCT = "add_product"
    ADDRATIO = "add_ratio"
    SUBRATIO = "sub_ratio"
    ACCRUE = "accrue"
    DISCOUNT = "discount"
    CHOOSE = "choose"


PartialRule = Callable[..., RandomVariable]
# (argument_values, config) -> partial; for rules that depend on the tape configuration
ConfiguredPartialRule = Callable[[Tuple[RandomVariable, ...], object], RandomVariable]
AdjointTransform = Callable[[RandomVariable, object], RandomVariable]


@dataclass(frozen=True)
class Operator:
    op_type: OperatorType
    arity: int
    evaluate: Callable[..., RandomVariable]
    partials: Tuple[PartialRule, ...] = ()
    configured_partials: Mapping[int, ConfiguredPartialRule] = field(default_factory=dict)
    adjoint_transform: Optional[AdjointTransform] = None
    parameterized: bool = False

    def forward(self, values: Tuple[RandomVariable, ...], parameter=None) -> RandomVariable:
        if self.parameterized:
            return self.evaluate(*values, parameter)
        return self.evaluate(*values)

    def partial(self, index: int, values: Tuple[RandomVariable, ...], config) -> RandomVariable:
        """∂f/∂(argument `index`) evaluated at `values`."""
        if index in self.configured_partials:
            return self.configured_partials[index](values, config)
        if 0 <= index < len(self.partials) and self.partials[index] is not None:
            return self.partials[index](*values)
        raise OperationNotSupportedError(
            f"Operation {self.op_type.name} has no derivative with respect to argument {index}."
        )

    def covers(self, index: int) -> bool:
        return index in self.configured_partials or (
            0 <= index < len(self.partials) and self.partials[index] is not None
        )


_REGISTRY: Dict[OperatorType, Operator] = {}


def register(operator: Operator) -> Operator:
    if operator.op_type in _REGISTRY:
        raise RuntimeError(f"Operator {operator.op_type.name} registered twice")
    _REGISTRY[operator.op_type] = operator
    return operator


def get_operator(op_type) -> Operator:
    try:
        return _REGISTRY[op_type]
    except (KeyError, TypeError):
        raise OperationNotSupportedError(f"Operation {op_type!r} not supported.") from None


def local_derivative(op_type: OperatorType, index: int,
                     values: Tuple[RandomVariable, ...], config) -> RandomVariable:
    return get_operator(op_type).partial(index, values, config)


def validate_catalog() -> None:
    """Fail fast if any OperatorType lacks an entry or a derivative rule."""
    missing = [t.name for t in OperatorType if t not in _REGISTRY]
    if missing:
        raise RuntimeError(f"Operator catalog incomplete, no entry for: {', '.join(missing)}")
    for op in _REGISTRY.values():
        gaps = [k for k in range(op.arity) if not op.covers(k)]
        if gaps:
            raise RuntimeError(
                f"Operator {op.op_type.name} has no derivative rule for argument(s) {gaps}"
            )


# Frequently used constants
ZERO = RandomVariable(0.0)
ONE = RandomVariable(1.0)
MINUS_ONE = RandomVariable(-1.0)
