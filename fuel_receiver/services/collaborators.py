"""
Interfaces the fuel sensor processor depends on.

The processor never looks these up itself; they are passed into its
constructor so that storage-backed implementations (see
``sql_collaborators``) and test doubles are interchangeable.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ..calculations.calibration import CalibrationCurve
from ..readings import FuelActivity, LinkedSensor, Reading

logger = logging.getLogger(__name__)


class SensorRegistry(ABC):
    """Which peripheral sensors are linked to which device."""

    @abstractmethod
    def linked_sensors(self, device_id: int) -> Optional[List[LinkedSensor]]:
        """Sensors linked to the device, or None when it has none."""

    @abstractmethod
    def device_ids(self) -> List[int]:
        """All devices known to the registry."""


class CalibrationStore(ABC):
    """Calibration curves per device sensor."""

    @abstractmethod
    def calibration(self, device_id: int, sensor_id: int) -> Optional[CalibrationCurve]:
        """Curve for the device sensor, or None when it is not calibrated."""


class ReadingHistory(ABC):
    """Stored readings used to refill windows on start-up."""

    @abstractmethod
    def positions_in_range(self, device_id: int, start: datetime, end: datetime) -> List[Reading]:
        """Readings for the device with device time in ``[start, end]``."""


class ActivitySink(ABC):
    """Destination for detected fills and drains."""

    @abstractmethod
    def publish(self, activity: FuelActivity) -> None:
        """Deliver an activity. Failures are the caller's to log."""


class InMemoryActivitySink(ActivitySink):
    """Keeps published activities in a list."""

    def __init__(self):
        self._activities: List[FuelActivity] = []
        self._lock = threading.Lock()

    def publish(self, activity: FuelActivity) -> None:
        with self._lock:
            self._activities.append(activity)
        logger.info(
            f"Fuel activity {activity.activity_type.value} on device {activity.device_id}: "
            f"{activity.change_volume:.2f} L"
        )

    @property
    def activities(self) -> List[FuelActivity]:
        with self._lock:
            return list(self._activities)
