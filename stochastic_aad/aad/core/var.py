# aad/core/var.py
from __future__ import annotations

import numpy as np
from typing import Any, Dict, Iterable, Optional

from ...stochastic import RandomVariable
from ..ops.catalog import OperationNotSupportedError
from .node import Node


class ADVar:
    """
    Tracked value for reverse-mode automatic differentiation.

    An ADVar pairs the node that produced it with the tape (context) it was
    recorded on. Arithmetic on ADVars records new nodes; the gradient of any
    ADVar with respect to all leaves it depends on is obtained by one reverse
    pass (see engine.reverse).

    Attributes
    ----------
    node : Node
        Node of the operator tree holding the forward value and provenance.
    tape : Tape
        Context whose configuration applies to operations on this value.
    name : Optional[str]
        Optional debug/pretty-print name.
    """

    __array_priority__ = 1000  # numpy scalars defer to ADVar's reflected operators

    def __init__(self, val: Any, *, tape=None, requires_grad: bool = True,
                 name: Optional[str] = None, time: Optional[float] = None):
        if not isinstance(val, (int, float, list, tuple, np.ndarray, np.integer, np.floating, RandomVariable)):
            raise TypeError(
                f"ADVar only accepts numeric types (int, float, list, tuple, ndarray, RandomVariable), "
                f"but got {type(val)}"
            )
        if tape is None:
            from .tape import Tape
            tape = Tape()

        value = RandomVariable(val, time=time)
        self.node = Node(operator=None, arguments=(), argument_values=(),
                         value=value, is_constant=not requires_grad)
        self.tape = tape
        self.name = name

    @classmethod
    def from_node(cls, node: Node, tape, name: Optional[str] = None) -> "ADVar":
        out = cls.__new__(cls)
        out.node = node
        out.tape = tape
        out.name = name
        return out

    def __repr__(self):
        rg = "req" if self.requires_grad else "const"
        return f"ADVar({self.val!r}, id={self.get_id()}, {rg}, name={self.name!r})"

    # ------------------------------------------------------------------ #
    # Identity and differentiation
    # ------------------------------------------------------------------ #
    @property
    def val(self) -> RandomVariable:
        return self.node.value

    @property
    def requires_grad(self) -> bool:
        return not self.node.is_constant

    def get_id(self) -> int:
        return self.node.id

    def get_gradient(self, independent_ids: Optional[Iterable[int]] = None) -> Dict[int, RandomVariable]:
        """Map leaf id -> d(self)/d(leaf), from one reverse pass seeded at this value."""
        from .engine import reverse
        return reverse(self, independent_ids=independent_ids)

    def get_tangents(self, dependent_ids: Optional[Iterable[int]] = None):
        raise NotImplementedError("Forward-mode differentiation is not supported by the adjoint engine.")

    # ------------------------------------------------------------------ #
    # Non-differentiable end points
    # ------------------------------------------------------------------ #
    @property
    def time(self) -> float:
        return self.val.time

    def size(self) -> int:
        return self.val.size()

    def is_deterministic(self) -> bool:
        return self.val.is_deterministic()

    def get(self, path: int) -> float:
        return self.val.get(path)

    def get_realizations(self, number_of_paths: Optional[int] = None) -> np.ndarray:
        return self.val.get_realizations(number_of_paths)

    def double_value(self) -> float:
        return self.val.double_value()

    def get_average(self, probabilities=None) -> float:
        return self.val.get_average(_values_of(probabilities))

    def get_variance(self, probabilities=None) -> float:
        return self.val.get_variance(_values_of(probabilities))

    def get_sample_variance(self) -> float:
        return self.val.get_sample_variance()

    def get_standard_deviation(self, probabilities=None) -> float:
        return self.val.get_standard_deviation(_values_of(probabilities))

    def get_standard_error(self, probabilities=None) -> float:
        return self.val.get_standard_error(_values_of(probabilities))

    def get_min(self) -> float:
        return self.val.get_min()

    def get_max(self) -> float:
        return self.val.get_max()

    def apply(self, function, *arguments):
        raise OperationNotSupportedError("Applying functions is not supported (not differentiable).")

    # ------------------------------------------------------------------ #
    # Differentiable operations (mirror RandomVariable)
    # ------------------------------------------------------------------ #
    def add(self, other):
        from ..ops.arithmetic import add
        return add(self, other)

    def sub(self, other):
        from ..ops.arithmetic import sub
        return sub(self, other)

    def bus(self, other):
        from ..ops.arithmetic import sub
        return sub(other, self)

    def mult(self, other):
        from ..ops.arithmetic import mul
        return mul(self, other)

    def div(self, other):
        from ..ops.arithmetic import div
        return div(self, other)

    def vid(self, other):
        from ..ops.arithmetic import div
        return div(other, self)

    def pow(self, exponent):
        from ..ops.arithmetic import pow
        return pow(self, exponent)

    def squared(self):
        from ..ops.arithmetic import squared
        return squared(self)

    def invert(self):
        from ..ops.arithmetic import invert
        return invert(self)

    def abs(self):
        from ..ops.arithmetic import abs
        return abs(self)

    def cap(self, cap):
        from ..ops.arithmetic import cap as _cap
        return _cap(self, cap)

    def floor(self, floor):
        from ..ops.arithmetic import floor as _floor
        return _floor(self, floor)

    def sqrt(self):
        from ..ops.transcendental import sqrt
        return sqrt(self)

    def exp(self):
        from ..ops.transcendental import exp
        return exp(self)

    def log(self):
        from ..ops.transcendental import log
        return log(self)

    def sin(self):
        from ..ops.transcendental import sin
        return sin(self)

    def cos(self):
        from ..ops.transcendental import cos
        return cos(self)

    def add_product(self, factor1, factor2):
        from ..ops.ternary import add_product
        return add_product(self, factor1, factor2)

    def add_ratio(self, numerator, denominator):
        from ..ops.ternary import add_ratio
        return add_ratio(self, numerator, denominator)

    def sub_ratio(self, numerator, denominator):
        from ..ops.ternary import sub_ratio
        return sub_ratio(self, numerator, denominator)

    def accrue(self, rate, period_length):
        from ..ops.ternary import accrue
        return accrue(self, rate, period_length)

    def discount(self, rate, period_length):
        from ..ops.ternary import discount
        return discount(self, rate, period_length)

    def choose(self, value_if_non_negative, value_if_negative):
        from ..ops.ternary import choose
        return choose(self, value_if_non_negative, value_if_negative)

    def average(self, probabilities=None):
        from ..ops.reductions import average
        return average(self, probabilities)

    def variance(self, probabilities=None):
        from ..ops.reductions import variance
        return variance(self, probabilities)

    def sample_variance(self):
        from ..ops.reductions import sample_variance
        return sample_variance(self)

    def standard_deviation(self, probabilities=None):
        from ..ops.reductions import standard_deviation
        return standard_deviation(self, probabilities)

    def standard_error(self, probabilities=None):
        from ..ops.reductions import standard_error
        return standard_error(self, probabilities)

    def min(self):
        from ..ops.reductions import minimum
        return minimum(self)

    def max(self):
        from ..ops.reductions import maximum
        return maximum(self)

    def get_conditional_expectation(self, estimator):
        from ..ops.reductions import conditional_expectation
        return conditional_expectation(self, estimator)

    # Operator overloading for arithmetic operations
    def __add__(self, other):
        return self.add(other)

    def __radd__(self, other):
        from ..ops.arithmetic import add
        return add(other, self)

    def __sub__(self, other):
        return self.sub(other)

    def __rsub__(self, other):
        return self.bus(other)

    def __mul__(self, other):
        return self.mult(other)

    def __rmul__(self, other):
        from ..ops.arithmetic import mul
        return mul(other, self)

    def __truediv__(self, other):
        return self.div(other)

    def __rtruediv__(self, other):
        return self.vid(other)

    def __neg__(self):
        from ..ops.arithmetic import neg
        return neg(self)

    def __pow__(self, other):
        return self.pow(other)

    def __abs__(self):
        return self.abs()


def _values_of(x):
    return x.val if isinstance(x, ADVar) else x
