# aad/ops/__init__.py

# Importing the operator modules registers their catalog entries
from . import arithmetic
from . import transcendental
from . import ternary
from . import reductions
from .catalog import OperationNotSupportedError, OperatorType, validate_catalog

validate_catalog()

# Convenience re-exports so users can do: from stochastic_aad.aad.ops import mul, exp, ...
from .arithmetic import add, sub, mul, div, neg, pow, squared, invert, cap, floor
from .transcendental import exp, log, sqrt, sin, cos
from .ternary import add_product, add_ratio, sub_ratio, accrue, discount, choose
from .reductions import (
    average, variance, sample_variance, standard_deviation, standard_error,
    minimum, maximum, conditional_expectation,
)

__all__ = [
    "OperatorType", "OperationNotSupportedError", "validate_catalog",
    "add", "sub", "mul", "div", "neg", "pow", "squared", "invert", "cap", "floor",
    "exp", "log", "sqrt", "sin", "cos",
    "add_product", "add_ratio", "sub_ratio", "accrue", "discount", "choose",
    "average", "variance", "sample_variance", "standard_deviation", "standard_error",
    "minimum", "maximum", "conditional_expectation",
]
