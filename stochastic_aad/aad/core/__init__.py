# aad/core/__init__.py

"""
Core public API of the adjoint engine.

Exports:
    ADVar                   : Tracked random variable recording its operations.
    Tape                    : Computation context (configuration + factory for leaves).
    TapeConfig              : Per-tape configuration (Dirac delta convention, gradient content).
    DiracDeltaApproximation : Conventions for the derivative of a conditional selection.
    reverse                 : One reverse pass from a value to all leaves it depends on.
    grad, grads, grads_list : Convenience: gradients of a function at given inputs.
    jacobian                : Expected sensitivities of several outputs to several inputs.
    value                   : Convenience: extract the value from an ADVar.
"""

from .config import DiracDeltaApproximation, TapeConfig
from .tape import Tape
from .var import ADVar
from .engine import reverse
from .seeds import get_id, grad, grads, grads_list, jacobian, value

__all__ = [
    "ADVar",
    "Tape", "TapeConfig", "DiracDeltaApproximation",
    "reverse",
    "grad", "grads", "grads_list", "jacobian",
    "get_id", "value",
]
