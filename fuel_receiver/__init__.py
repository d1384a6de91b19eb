"""
Fuel Receiver

Calibrates fuel sensor readings, smooths them per device sensor and
detects fuel fills and drains.
"""

__version__ = "1.0.0"
