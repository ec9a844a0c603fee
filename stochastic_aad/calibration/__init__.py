"""
Gradient-based calibration of Monte Carlo models.
"""

from .calibrator import AADCalibrator, CalibrationConfig

__all__ = ['AADCalibrator', 'CalibrationConfig']
