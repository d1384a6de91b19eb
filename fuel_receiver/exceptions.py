"""
Custom exceptions for the fuel receiver.

This module provides a hierarchy of exceptions for better error handling
and more informative error messages throughout the application.
"""


class FuelReceiverError(Exception):
    """Base exception for all fuel receiver errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class CalibrationError(FuelReceiverError):
    """Calibration curve is invalid or cannot be applied."""

    def __init__(self, message: str, device_id: int = None, sensor_id: int = None):
        details = {}
        if device_id is not None:
            details['device_id'] = device_id
        if sensor_id is not None:
            details['sensor_id'] = sensor_id
        super().__init__(message, details)
        self.device_id = device_id
        self.sensor_id = sensor_id


class CalibrationRangeError(CalibrationError):
    """Raw sensor value falls below the lowest calibration breakpoint."""

    def __init__(self, message: str, raw_value: int = None, lowest_point: int = None):
        super().__init__(message)
        self.raw_value = raw_value
        self.lowest_point = lowest_point
        if raw_value is not None:
            self.details['raw_value'] = raw_value
        if lowest_point is not None:
            self.details['lowest_point'] = lowest_point


class SensorDataParseError(FuelReceiverError):
    """Failed to parse a reading submitted to the receiver."""

    def __init__(self, message: str, field: str = None, value: str = None):
        details = {}
        if field:
            details['field'] = field
        if value is not None:
            details['value'] = value
        super().__init__(message, details)
        self.field = field
        self.value = value


class WarmStartError(FuelReceiverError):
    """Loading historical readings for a device failed."""

    def __init__(self, message: str, device_id: int = None):
        details = {}
        if device_id is not None:
            details['device_id'] = device_id
        super().__init__(message, details)
        self.device_id = device_id


class ActivityPublishError(FuelReceiverError):
    """Delivering a detected fuel activity to its sink failed."""

    def __init__(self, message: str, device_id: int = None, activity_type: str = None):
        details = {}
        if device_id is not None:
            details['device_id'] = device_id
        if activity_type:
            details['activity_type'] = activity_type
        super().__init__(message, details)
        self.device_id = device_id
        self.activity_type = activity_type


class ConfigurationError(FuelReceiverError):
    """Invalid or missing configuration."""

    def __init__(self, message: str, config_key: str = None):
        details = {}
        if config_key:
            details['config_key'] = config_key
        super().__init__(message, details)
        self.config_key = config_key
