"""
Core value types flowing through the fuel sensor pipeline.

A ``Reading`` is created by the producer, has its ``fuel_level`` filled in
once by calibration and smoothing, and is then frozen into the per-sensor
window. Detected refuels and drains come out as ``FuelActivity`` values.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .exceptions import SensorDataParseError
from .utils.timezone import normalize_datetime, parse_timestamp

# Application event codes at or above this mark readings replayed from
# device storage rather than sent live.
STORED_EVENT_CODE = 100

WindowKey = Tuple[int, int]


def window_key(device_id: int, sensor_id: int) -> WindowKey:
    """Key identifying one device sensor's window and detector state."""
    return (device_id, sensor_id)


@dataclass
class Reading:
    """One telemetry sample carrying a raw fuel sensor value."""

    device_id: int
    device_time: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    sensor_id: Optional[int] = None
    sensor_data: Optional[str] = None
    analog_value: Optional[int] = None
    event_code: int = 0
    fuel_level: Optional[float] = None
    id: Optional[int] = None

    def __post_init__(self):
        # windows compare device times, so they are always naive UTC
        self.device_time = normalize_datetime(self.device_time)

    @property
    def is_stored_event(self) -> bool:
        return self.event_code >= STORED_EVENT_CODE

    @property
    def has_fuel_level(self) -> bool:
        """Readings loaded back from storage already carry a level."""
        return self.fuel_level is not None

    @property
    def has_digital_data(self) -> bool:
        return self.sensor_data is not None

    @property
    def has_analog_data(self) -> bool:
        return self.analog_value is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Reading":
        """
        Build a reading from a JSON-like mapping.

        Accepts both snake_case keys and the device attribute names
        (``sensorId``, ``sensorData``, ``adc1``, ``event``).

        Raises:
            SensorDataParseError: if a required field is missing or malformed
        """
        if not isinstance(data, dict):
            raise SensorDataParseError("Reading must be a JSON object")

        device_id = _parse_int(data.get('device_id'), 'device_id', required=True)

        raw_time = data.get('device_time', data.get('time'))
        if raw_time is None or raw_time == '':
            raise SensorDataParseError("Missing device timestamp", field='device_time')
        try:
            device_time = parse_timestamp(raw_time)
        except (ValueError, TypeError, OverflowError):
            raise SensorDataParseError("Invalid device timestamp", field='device_time', value=str(raw_time))

        sensor_data = data.get('sensor_data', data.get('sensorData'))
        if sensor_data is not None and not isinstance(sensor_data, str):
            raise SensorDataParseError("Sensor data must be a string", field='sensor_data', value=str(sensor_data))

        return cls(
            device_id=device_id,
            device_time=device_time,
            latitude=_parse_float(data.get('latitude'), 'latitude'),
            longitude=_parse_float(data.get('longitude'), 'longitude'),
            sensor_id=_parse_int(data.get('sensor_id', data.get('sensorId')), 'sensor_id'),
            sensor_data=sensor_data,
            analog_value=_parse_int(data.get('analog_value', data.get('adc1')), 'analog_value'),
            event_code=_parse_int(data.get('event_code', data.get('event')), 'event_code') or 0,
            fuel_level=_parse_float(data.get('fuel_level'), 'fuel_level'),
            id=_parse_int(data.get('id'), 'id'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'device_id': self.device_id,
            'device_time': self.device_time.isoformat() if self.device_time else None,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'sensor_id': self.sensor_id,
            'sensor_data': self.sensor_data,
            'analog_value': self.analog_value,
            'event_code': self.event_code,
            'fuel_level': self.fuel_level,
        }


def _parse_int(value, field: str, required: bool = False) -> Optional[int]:
    if value is None or value == '':
        if required:
            raise SensorDataParseError(f"Missing required field: {field}", field=field)
        return None
    if isinstance(value, bool):
        raise SensorDataParseError(f"{field} must be an integer", field=field, value=str(value))
    try:
        return int(value)
    except (ValueError, TypeError):
        raise SensorDataParseError(f"{field} must be an integer", field=field, value=str(value))


def _parse_float(value, field: str) -> Optional[float]:
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise SensorDataParseError(f"{field} must be a number", field=field, value=str(value))
    try:
        return float(value)
    except (ValueError, TypeError):
        raise SensorDataParseError(f"{field} must be a number", field=field, value=str(value))


@dataclass(frozen=True)
class LinkedSensor:
    """A peripheral sensor attached to a device."""

    sensor_id: int
    type_name: str


class FuelActivityType(str, Enum):
    NONE = "NONE"
    FUEL_FILL = "FUEL_FILL"
    FUEL_DRAIN = "FUEL_DRAIN"


@dataclass
class FuelActivity:
    """A confirmed refuel or drain, or ``NONE`` when nothing was detected."""

    activity_type: FuelActivityType = FuelActivityType.NONE
    change_volume: float = 0.0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    start_position: Optional[Reading] = None
    end_position: Optional[Reading] = None
    device_id: Optional[int] = None
    sensor_id: Optional[int] = None

    @property
    def detected(self) -> bool:
        return self.activity_type != FuelActivityType.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'activity_type': self.activity_type.value,
            'device_id': self.device_id,
            'sensor_id': self.sensor_id,
            'change_volume': self.change_volume,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'start_latitude': self.start_position.latitude if self.start_position else None,
            'start_longitude': self.start_position.longitude if self.start_position else None,
            'end_latitude': self.end_position.latitude if self.end_position else None,
            'end_longitude': self.end_position.longitude if self.end_position else None,
        }


@dataclass
class FuelEventMetadata:
    """State tracked for a device sensor while a level change is armed."""

    start_level: float
    start_time: datetime
    start_position: Reading
    error_check_start: float
    end_level: Optional[float] = None
    end_time: Optional[datetime] = None
    end_position: Optional[Reading] = None
    error_check_end: Optional[float] = None


class ProcessingMode(str, Enum):
    LIVE = "live"
    BACKFILL = "backfill"


class ProcessingStatus(str, Enum):
    PROCESSED = "processed"  # calibrated, smoothed and stored
    STORED = "stored"  # already had a level, stored as-is
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ProcessingResult:
    """Outcome of running one reading through the processor."""

    reading: Reading
    status: ProcessingStatus
    activity: Optional[FuelActivity] = None
    reason: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.status == ProcessingStatus.FAILED
