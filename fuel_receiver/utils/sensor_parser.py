"""Decode raw fuel sensor values and identify the sensor a reading came from."""

import logging
import string
from typing import List, Optional

from ..calculations.constants import (
    DIGITAL_PAYLOAD_TOKENS,
    FREQUENCY_PREFIX,
    FUEL_ANALOG_TYPE,
    FUEL_POINTS_PREFIX,
    INVALID_FUEL_FREQUENCY,
)
from ..readings import LinkedSensor, Reading

logger = logging.getLogger(__name__)


class SensorDataParser:
    """
    Parses the raw fuel value carried by a reading.

    Digital sensors send a text payload of three space separated tokens:

        F=<hex frequency> T=<temperature> N=<hex fuel points>[.<fraction>]

    e.g. ``"F=100 T=20 N=ABC.5"``. A frequency above 0xFFF flags a faulty
    sensor and the reading is discarded. The temperature token must be
    present but is not used.

    Analog sensors report a plain counter (``adc1``) which is used as-is;
    sudden voltage drops are left for the detector to smooth over.
    """

    @classmethod
    def parse_digital(cls, sensor_data: Optional[str]) -> Optional[int]:
        """
        Extract fuel points from a digital sensor payload.

        Returns:
            Fuel points, or None if the payload is blank, malformed or the
            frequency marks the sensor as invalid
        """
        if sensor_data is None or not sensor_data.strip():
            return None

        parts = sensor_data.split()
        if len(parts) != DIGITAL_PAYLOAD_TOKENS:
            logger.debug(f"Unexpected token count in sensor data: {sensor_data!r}")
            return None

        frequency_token, _temperature_token, fuel_token = parts

        frequency = cls._parse_hex_field(frequency_token, FREQUENCY_PREFIX)
        if frequency is None or frequency > INVALID_FUEL_FREQUENCY:
            return None

        fuel_digits = cls._strip_prefix(fuel_token, FUEL_POINTS_PREFIX)
        if fuel_digits is None:
            return None
        return cls._parse_hex(fuel_digits.split('.')[0])

    @staticmethod
    def parse_analog(reading: Reading) -> Optional[int]:
        """Raw analog counter, taken without validation."""
        return reading.analog_value

    @staticmethod
    def identify_sensor(reading: Reading, linked_sensors: List[LinkedSensor]) -> Optional[int]:
        """
        Find which linked sensor produced the reading.

        Digital readings name their sensor explicitly; analog readings belong
        to the device's analog fuel sensor.
        """
        if reading.sensor_id is not None:
            for sensor in linked_sensors:
                if sensor.sensor_id == reading.sensor_id:
                    return sensor.sensor_id
            return None

        if reading.has_analog_data:
            for sensor in linked_sensors:
                if sensor.type_name == FUEL_ANALOG_TYPE:
                    return sensor.sensor_id

        return None

    @staticmethod
    def _strip_prefix(token: str, prefix: str) -> Optional[str]:
        if not token.startswith(prefix):
            return None
        return token[len(prefix):]

    @classmethod
    def _parse_hex_field(cls, token: str, prefix: str) -> Optional[int]:
        digits = cls._strip_prefix(token, prefix)
        if digits is None:
            return None
        return cls._parse_hex(digits)

    @staticmethod
    def _parse_hex(digits: str) -> Optional[int]:
        if not digits or any(char not in string.hexdigits for char in digits):
            logger.debug(f"Invalid hex digits in sensor data: {digits!r}")
            return None
        return int(digits, 16)


def parse_digital_sensor_data(sensor_data: Optional[str]) -> Optional[int]:
    """Module-level shortcut for ``SensorDataParser.parse_digital``."""
    return SensorDataParser.parse_digital(sensor_data)


def read_analog_value(reading: Reading) -> Optional[int]:
    """Module-level shortcut for ``SensorDataParser.parse_analog``."""
    return SensorDataParser.parse_analog(reading)
