# aad/core/seeds.py

#-----------------------------------------------------------------------------
# We "plant" a seed (dy/dy = 1) at the output and let gradients grow
# backwards through the operator tree. Each helper builds its computation on a
# fresh Tape so independent calls never share configuration.
#-----------------------------------------------------------------------------
from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union
import numpy as np

from ...stochastic import RandomVariable
from .config import TapeConfig
from .tape import Tape
from .var import ADVar

Numeric = Union[float, np.ndarray, RandomVariable]


def value(x: Any) -> Any:
    """Return the RandomVariable value of an ADVar; pass through anything else unchanged."""
    return x.val if isinstance(x, ADVar) else x


def get_id(x: ADVar) -> int:
    return x.get_id()


def _as_output(y: Any, tape: Tape) -> ADVar:
    return y if isinstance(y, ADVar) else tape.constant(y)


def _gradient_of(y: ADVar, leaf: ADVar) -> RandomVariable:
    """∂y/∂leaf, zero if y does not depend on leaf."""
    return y.get_gradient().get(leaf.get_id(), RandomVariable(0.0))


# ----------------------------- single-input grad ----------------------------- #
def grad(f: Callable[[ADVar], ADVar], x0: Numeric,
         config: Optional[TapeConfig] = None) -> RandomVariable:
    """
    Derivative of y=f(x) at x0 (single input), one reverse pass on a fresh tape.

    For a path-vector output the result is the pathwise derivative; for a
    scalar leaf feeding a Monte Carlo expectation the result is a path-vector
    whose average is d E[y] / d x.
    """
    tape = Tape(config)
    x = tape.create_leaf(0.0, x0, name="x")
    y = _as_output(f(x), tape)
    return _gradient_of(y, x)


# ----------------------------- multi-input grads ----------------------------- #
def grads(f: Callable[[Dict[str, ADVar]], ADVar],
          inputs: Dict[str, Numeric],
          config: Optional[TapeConfig] = None) -> Dict[str, RandomVariable]:
    """
    Gradient of y=f(vars) w.r.t. ALL inputs (dict form).
    Performs ONE reverse pass to obtain all ∂y/∂var simultaneously.

    Parameters
    ----------
    f       : function taking a dict {name: ADVar} and returning an ADVar
    inputs  : dict {name: numeric}
    config  : optional TapeConfig for the fresh tape

    Returns
    -------
    dict {name: RandomVariable}  # gradients in the same key order as `inputs`
    """
    tape = Tape(config)
    vars_ad: Dict[str, ADVar] = {k: tape.create_leaf(0.0, v, name=k) for k, v in inputs.items()}
    y = _as_output(f(vars_ad), tape)
    gradient = y.get_gradient()
    return {k: gradient.get(x.get_id(), RandomVariable(0.0)) for k, x in vars_ad.items()}


def grads_list(f: Callable[[List[ADVar]], ADVar],
               x0_list: Iterable[Numeric],
               config: Optional[TapeConfig] = None) -> List[RandomVariable]:
    """
    Same as grads(), but the inputs are provided as a list and the result is a list
    of partials in the same order.

    Example
    -------
    f = lambda xs: xs[0]*xs[0] + 3*xs[1]
    [g.double_value() for g in grads_list(f, [2.0, 4.0])] -> [4.0, 3.0]
    """
    tape = Tape(config)
    xs: List[ADVar] = [tape.create_leaf(0.0, v, name=f"x{i}") for i, v in enumerate(x0_list)]
    y = _as_output(f(xs), tape)
    gradient = y.get_gradient()
    return [gradient.get(x.get_id(), RandomVariable(0.0)) for x in xs]


def jacobian(outputs: Sequence[ADVar], inputs: Sequence[ADVar]) -> np.ndarray:
    """
    Matrix J[i, j] = E[∂outputs[i]/∂inputs[j]], one reverse pass per output.

    Missing entries (output independent of input) are 0.
    """
    ids = [x.get_id() for x in inputs]
    jac = np.zeros((len(outputs), len(inputs)), dtype=float)
    for i, y in enumerate(outputs):
        gradient = y.get_gradient(independent_ids=ids)
        for j, leaf_id in enumerate(ids):
            if leaf_id in gradient:
                jac[i, j] = gradient[leaf_id].get_average()
    return jac
