# stochastic/random_variable.py
"""
Primitive value type for Monte Carlo sensitivities.

A RandomVariable is either a deterministic number or a vector of per-path
realizations, tagged with the filtration time it is measurable at. All
operations return new instances; realization arrays are read-only.
"""

from __future__ import annotations

import math
import numpy as np
from typing import Any, Callable, Optional, Union

Number = Union[int, float]


class RandomVariable:
    """
    Immutable vector-or-scalar random variable.

    Attributes
    ----------
    time : float
        Filtration time (the time with respect to which the value is measurable).
    realizations : np.ndarray | None
        Per-path realizations (float64, read-only) or None if deterministic.
    value_if_non_stochastic : float
        The value when deterministic (NaN otherwise).
    """

    __slots__ = ("time", "realizations", "value_if_non_stochastic")
    __array_priority__ = 1000

    def __init__(self, value: Any, time: Optional[float] = None):
        if isinstance(value, RandomVariable):
            time = value.time if time is None else time
            realizations = value.realizations
            scalar = value.value_if_non_stochastic
        elif isinstance(value, (int, float, np.integer, np.floating)):
            realizations = None
            scalar = float(value)
        elif isinstance(value, (list, tuple, np.ndarray)):
            try:
                arr = np.array(value, dtype=np.float64)
            except (TypeError, ValueError) as err:
                raise TypeError(
                    f"RandomVariable only accepts numeric sequences, got {value!r}"
                ) from err
            if arr.ndim > 1:
                raise ValueError(
                    f"Realizations must be one-dimensional, got shape {arr.shape}"
                )
            if arr.ndim == 0:
                realizations = None
                scalar = float(arr)
            else:
                realizations = arr
                realizations.flags.writeable = False
                scalar = math.nan
        else:
            raise TypeError(
                f"RandomVariable only accepts numeric types (int, float, list, tuple, ndarray), "
                f"but got {type(value)}"
            )

        self.time = 0.0 if time is None else float(time)
        self.realizations = realizations
        self.value_if_non_stochastic = scalar

    @classmethod
    def scalar(cls, value: Number) -> "RandomVariable":
        return cls(float(value))

    # ------------------------------------------------------------------ #
    # Inspection
    # ------------------------------------------------------------------ #
    def is_deterministic(self) -> bool:
        return self.realizations is None

    def size(self) -> int:
        return 1 if self.realizations is None else len(self.realizations)

    def get(self, path: int) -> float:
        if self.realizations is None:
            return self.value_if_non_stochastic
        return float(self.realizations[path])

    def get_realizations(self, number_of_paths: Optional[int] = None) -> np.ndarray:
        """Return a writable copy of the realizations (broadcast if deterministic)."""
        if self.realizations is None:
            n = 1 if number_of_paths is None else number_of_paths
            return np.full(n, self.value_if_non_stochastic, dtype=np.float64)
        return np.array(self.realizations, dtype=np.float64)

    def double_value(self) -> float:
        if self.realizations is None:
            return self.value_if_non_stochastic
        if len(self.realizations) == 1:
            return float(self.realizations[0])
        raise ValueError("double_value() requires a deterministic random variable")

    def equals(self, other: "RandomVariable") -> bool:
        other = _as_rv(other)
        if self.time != other.time:
            return False
        if self.is_deterministic() and other.is_deterministic():
            return self.value_if_non_stochastic == other.value_if_non_stochastic
        if self.is_deterministic() != other.is_deterministic():
            return False
        return bool(np.array_equal(self.realizations, other.realizations))

    def _values(self):
        return self.value_if_non_stochastic if self.realizations is None else self.realizations

    # ------------------------------------------------------------------ #
    # Scalar end points (not random variables)
    # ------------------------------------------------------------------ #
    def get_min(self) -> float:
        if self.realizations is None:
            return self.value_if_non_stochastic
        return float(np.min(self.realizations))

    def get_max(self) -> float:
        if self.realizations is None:
            return self.value_if_non_stochastic
        return float(np.max(self.realizations))

    def get_average(self, probabilities: Optional["RandomVariable"] = None) -> float:
        """E[X], or E[X·P] if probabilities (weights with unit expectation) are given."""
        if probabilities is not None:
            return float(np.mean(self.mult(probabilities)._values()))
        if self.realizations is None:
            return self.value_if_non_stochastic
        if len(self.realizations) == 0:
            return math.nan
        return float(np.mean(self.realizations))

    def get_variance(self, probabilities: Optional["RandomVariable"] = None) -> float:
        """Population variance E[(X-μ)²], or E[P·(X-m)²] with m = E[X·P]."""
        if probabilities is not None:
            m = self.get_average(probabilities)
            return float(np.mean(self.sub(m).squared().mult(probabilities)._values()))
        if self.realizations is None:
            return 0.0
        if len(self.realizations) == 0:
            return math.nan
        return float(np.var(self.realizations))

    def get_sample_variance(self) -> float:
        if self.realizations is None or self.size() == 1:
            return 0.0
        return self.get_variance() * self.size() / (self.size() - 1)

    def get_standard_deviation(self, probabilities: Optional["RandomVariable"] = None) -> float:
        return math.sqrt(self.get_variance(probabilities))

    def get_standard_error(self, probabilities: Optional["RandomVariable"] = None) -> float:
        return self.get_standard_deviation(probabilities) / math.sqrt(self.size())

    # ------------------------------------------------------------------ #
    # Reductions returning deterministic random variables
    # ------------------------------------------------------------------ #
    def average(self, probabilities: Optional["RandomVariable"] = None) -> "RandomVariable":
        return RandomVariable(self.get_average(probabilities), time=self.time)

    def variance(self, probabilities: Optional["RandomVariable"] = None) -> "RandomVariable":
        return RandomVariable(self.get_variance(probabilities), time=self.time)

    def sample_variance(self) -> "RandomVariable":
        return RandomVariable(self.get_sample_variance(), time=self.time)

    def standard_deviation(self, probabilities: Optional["RandomVariable"] = None) -> "RandomVariable":
        return RandomVariable(self.get_standard_deviation(probabilities), time=self.time)

    def standard_error(self, probabilities: Optional["RandomVariable"] = None) -> "RandomVariable":
        return RandomVariable(self.get_standard_error(probabilities), time=self.time)

    def min(self) -> "RandomVariable":
        return RandomVariable(self.get_min(), time=self.time)

    def max(self) -> "RandomVariable":
        return RandomVariable(self.get_max(), time=self.time)

    def get_conditional_expectation(self, estimator) -> "RandomVariable":
        return estimator.get_conditional_expectation(self)

    # ------------------------------------------------------------------ #
    # Elementwise operations
    # ------------------------------------------------------------------ #
    def apply(self, function: Callable, *arguments) -> "RandomVariable":
        """Apply a vectorised numpy function to this and further arguments."""
        others = [_as_rv(a) for a in arguments]
        time = max([self.time] + [o.time for o in others])
        return _from_values(function(self._values(), *[o._values() for o in others]), time)

    def add(self, other) -> "RandomVariable":
        return self.apply(np.add, other)

    def sub(self, other) -> "RandomVariable":
        return self.apply(np.subtract, other)

    def bus(self, other) -> "RandomVariable":
        """other - self"""
        return _as_rv(other).sub(self)

    def mult(self, other) -> "RandomVariable":
        return self.apply(np.multiply, other)

    def div(self, other) -> "RandomVariable":
        return self.apply(np.divide, other)

    def vid(self, other) -> "RandomVariable":
        """other / self"""
        return _as_rv(other).div(self)

    def pow(self, exponent: Number) -> "RandomVariable":
        return self.apply(lambda x: np.power(x, float(exponent)))

    def squared(self) -> "RandomVariable":
        return self.apply(np.square)

    def sqrt(self) -> "RandomVariable":
        return self.apply(np.sqrt)

    def exp(self) -> "RandomVariable":
        return self.apply(np.exp)

    def log(self) -> "RandomVariable":
        return self.apply(np.log)

    def sin(self) -> "RandomVariable":
        return self.apply(np.sin)

    def cos(self) -> "RandomVariable":
        return self.apply(np.cos)

    def abs(self) -> "RandomVariable":
        return self.apply(np.abs)

    def sign(self) -> "RandomVariable":
        return self.apply(np.sign)

    def invert(self) -> "RandomVariable":
        return self.apply(lambda x: np.divide(1.0, x))

    def cap(self, cap) -> "RandomVariable":
        return self.apply(np.minimum, cap)

    def floor(self, floor) -> "RandomVariable":
        return self.apply(np.maximum, floor)

    def add_product(self, factor1, factor2) -> "RandomVariable":
        """self + factor1 * factor2"""
        return self.apply(lambda x, y, z: x + y * z, factor1, factor2)

    def add_ratio(self, numerator, denominator) -> "RandomVariable":
        """self + numerator / denominator"""
        return self.apply(lambda x, y, z: x + y / z, numerator, denominator)

    def sub_ratio(self, numerator, denominator) -> "RandomVariable":
        """self - numerator / denominator"""
        return self.apply(lambda x, y, z: x - y / z, numerator, denominator)

    def accrue(self, rate, period_length) -> "RandomVariable":
        """self * (1 + rate * period_length)"""
        return self.apply(lambda x, y, z: x * (1.0 + y * z), rate, period_length)

    def discount(self, rate, period_length) -> "RandomVariable":
        """self / (1 + rate * period_length)"""
        return self.apply(lambda x, y, z: x / (1.0 + y * z), rate, period_length)

    def choose(self, value_if_non_negative, value_if_negative) -> "RandomVariable":
        """Pathwise: value_if_non_negative where self >= 0, else value_if_negative."""
        return self.apply(lambda t, a, b: np.where(t >= 0.0, a, b),
                          value_if_non_negative, value_if_negative)

    def indicator(self, condition: Callable) -> "RandomVariable":
        """1.0 where condition(values) holds, else 0.0."""
        return self.apply(lambda x: np.where(condition(x), 1.0, 0.0))

    # ------------------------------------------------------------------ #
    # Python operators
    # ------------------------------------------------------------------ #
    # Unknown operand types (e.g. tracked values) get a chance at the reflected operator
    def __add__(self, other):
        return self.add(other) if _is_operand(other) else NotImplemented

    def __radd__(self, other):
        return self.add(other) if _is_operand(other) else NotImplemented

    def __sub__(self, other):
        return self.sub(other) if _is_operand(other) else NotImplemented

    def __rsub__(self, other):
        return self.bus(other) if _is_operand(other) else NotImplemented

    def __mul__(self, other):
        return self.mult(other) if _is_operand(other) else NotImplemented

    def __rmul__(self, other):
        return self.mult(other) if _is_operand(other) else NotImplemented

    def __truediv__(self, other):
        return self.div(other) if _is_operand(other) else NotImplemented

    def __rtruediv__(self, other):
        return self.vid(other) if _is_operand(other) else NotImplemented

    def __neg__(self):
        return self.mult(-1.0)

    def __pow__(self, exponent):
        return self.pow(exponent)

    def __float__(self):
        return self.double_value()

    def __repr__(self):
        if self.realizations is None:
            return f"RandomVariable({self.value_if_non_stochastic!r}, time={self.time})"
        return f"RandomVariable(size={self.size()}, average={self.get_average():.6g}, time={self.time})"


def _is_operand(x) -> bool:
    return isinstance(x, (RandomVariable, int, float, np.integer, np.floating, list, tuple, np.ndarray))


def _as_rv(x) -> RandomVariable:
    return x if isinstance(x, RandomVariable) else RandomVariable(x)


def _from_values(values, time: float) -> RandomVariable:
    if np.ndim(values) == 0:
        return RandomVariable(float(values), time=time)
    return RandomVariable(np.asarray(values, dtype=np.float64), time=time)
