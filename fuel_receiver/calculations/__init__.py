"""
Fuel Receiver Calculation Module

Calibration, smoothing and fill/drain detection for fuel sensor readings.

Usage:
    from fuel_receiver.calculations import calibrate_fuel_level, FuelActivityDetector
    from fuel_receiver.calculations.constants import INVALID_FUEL_FREQUENCY
"""

# Calibration
from .calibration import (
    CalibrationCurve,
    CalibrationPoint,
    calibrate_fuel_level,
)

# Smoothing
from .smoothing import (
    calculate_average_level,
    select_relevant_readings,
    smooth_reading,
)

# Detection
from .detection import (
    FuelActivityDetector,
    calculate_half_means,
)

# Constants (re-export for convenience)
from .constants import (
    FUEL_ANALOG_TYPE,
    INVALID_FUEL_FREQUENCY,
    MIN_DETECTION_SAMPLE_SIZE,
)

__all__ = [
    # Calibration
    "CalibrationCurve",
    "CalibrationPoint",
    "calibrate_fuel_level",
    # Smoothing
    "calculate_average_level",
    "select_relevant_readings",
    "smooth_reading",
    # Detection
    "FuelActivityDetector",
    "calculate_half_means",
    # Constants
    "FUEL_ANALOG_TYPE",
    "INVALID_FUEL_FREQUENCY",
    "MIN_DETECTION_SAMPLE_SIZE",
]
