# aad/__init__.py
# Adjoint Algorithmic Differentiation over Monte Carlo random variables

from .core.config import DiracDeltaApproximation, TapeConfig
from .core.var import ADVar
from .core.tape import Tape
from .core.engine import reverse
from .core.seeds import grad, grads, grads_list, jacobian, value
from .ops import OperationNotSupportedError, OperatorType

__all__ = [
    # Core
    'ADVar',
    'Tape',
    'TapeConfig',
    'DiracDeltaApproximation',
    # Engine
    'reverse',
    'grad',
    'grads',
    'grads_list',
    'jacobian',
    'value',
    # Catalog
    'OperatorType',
    'OperationNotSupportedError',
]
