# Adjoint algorithmic differentiation for Monte Carlo random variables

from .stochastic import LinearRegressionEstimator, RandomVariable
from .aad import (
    ADVar,
    DiracDeltaApproximation,
    OperationNotSupportedError,
    OperatorType,
    Tape,
    TapeConfig,
)
from .calibration import AADCalibrator, CalibrationConfig

__version__ = "0.1.0"

__all__ = [
    'RandomVariable',
    'LinearRegressionEstimator',
    'ADVar',
    'Tape',
    'TapeConfig',
    'DiracDeltaApproximation',
    'OperatorType',
    'OperationNotSupportedError',
    'AADCalibrator',
    'CalibrationConfig',
]
