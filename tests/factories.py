"""
Test data factories and collaborator doubles for fuel receiver tests.

Usage:
    reading = make_reading(minutes=5, sensor_data=digital_payload(120), sensor_id=DIGITAL_SENSOR_ID)
    registry = FakeSensorRegistry({DEVICE_ID: [LinkedSensor(1, "FUEL_DIGITAL")]})
"""

import threading
from datetime import datetime, timedelta

from fuel_receiver.calculations.calibration import CalibrationCurve, CalibrationPoint
from fuel_receiver.readings import Reading
from fuel_receiver.services import CalibrationStore, ReadingHistory, SensorRegistry

DEVICE_ID = 1001
DIGITAL_SENSOR_ID = 1
ANALOG_SENSOR_ID = 2
BASE_TIME = datetime(2024, 3, 1, 8, 0, 0)


class FakeSensorRegistry(SensorRegistry):
    """Linked sensors held in a dict."""

    def __init__(self, sensors=None):
        self.sensors = sensors or {}

    def linked_sensors(self, device_id):
        return self.sensors.get(device_id)

    def device_ids(self):
        return sorted(self.sensors)


class FakeCalibrationStore(CalibrationStore):
    """Calibration curves held in a dict keyed by (device_id, sensor_id)."""

    def __init__(self, curves=None):
        self.curves = curves or {}

    def calibration(self, device_id, sensor_id):
        return self.curves.get((device_id, sensor_id))


class FakeReadingHistory(ReadingHistory):
    """Stored readings per device; devices in ``failing`` raise on load."""

    def __init__(self, readings=None, failing=()):
        self.readings = readings or {}
        self.failing = set(failing)
        self.calls = []
        self._lock = threading.Lock()

    def positions_in_range(self, device_id, start, end):
        with self._lock:
            self.calls.append((device_id, start, end))
        if device_id in self.failing:
            raise RuntimeError(f"history unavailable for device {device_id}")
        return [r for r in self.readings.get(device_id, []) if start <= r.device_time <= end]


class FailingActivitySink:
    """Activity sink that always raises."""

    def __init__(self):
        self.attempts = 0

    def publish(self, activity):
        self.attempts += 1
        raise ConnectionError("sink unavailable")


def identity_curve():
    """One litre per raw point from zero."""
    return CalibrationCurve({0: CalibrationPoint(fuel_level=0.0, points_per_unit=1.0)})


def make_reading(minutes=0, level=None, sensor_data=None, analog_value=None, sensor_id=None,
                 event_code=0, device_id=DEVICE_ID, latitude=52.37, longitude=4.89):
    """Reading ``minutes`` after BASE_TIME."""
    return Reading(
        device_id=device_id,
        device_time=BASE_TIME + timedelta(minutes=minutes),
        latitude=latitude,
        longitude=longitude,
        sensor_id=sensor_id,
        sensor_data=sensor_data,
        analog_value=analog_value,
        event_code=event_code,
        fuel_level=level,
    )


def digital_reading(minutes, points, **kwargs):
    """Digital reading from the default device's digital sensor."""
    kwargs.setdefault('sensor_id', DIGITAL_SENSOR_ID)
    return make_reading(minutes=minutes, sensor_data=digital_payload(points), **kwargs)


def digital_payload(points):
    """Digital sensor payload carrying ``points`` fuel points."""
    return f"F=100 T=20 N={points:X}"
