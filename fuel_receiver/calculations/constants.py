"""
Calculation Constants for the fuel receiver

Centralized location for sensor payload and detection constants. Tunable
thresholds and sample sizes live in Config / ProcessingSettings.
"""

from ..config import MIN_ALERT_SAMPLE_SIZE

# Digital sensor payload
FREQUENCY_PREFIX = "F="  # Frequency token prefix, hex digits follow
FUEL_POINTS_PREFIX = "N="  # Fuel points token prefix, hex digits follow
INVALID_FUEL_FREQUENCY = 0xFFF  # Frequencies above this are sensor faults
DIGITAL_PAYLOAD_TOKENS = 3  # frequency, temperature, fuel points

# Sensor linkage
FUEL_ANALOG_TYPE = "FUEL_ANALOG"  # Type name of the analog fuel sensor

# Detection
MIN_DETECTION_SAMPLE_SIZE = MIN_ALERT_SAMPLE_SIZE  # Smallest sample with a usable midpoint
