"""
Fuel sensor processing service.

Turns raw fuel sensor readings into calibrated, smoothed fuel levels and
detects fills and drains. One call handles one reading:

    linked sensors -> sensor id -> decode raw value -> calibrate -> smooth
    -> store in window -> detect (live mode only) -> publish activity

Readings for the same device sensor are serialized on the window store's
per-key lock; different device sensors run in parallel. Readings that
already carry a fuel level (loaded back from storage) go straight into the
window.

Every call returns a ProcessingResult holding the reading. When something
goes wrong the result is FAILED and carries the error, with the reading's
level left as it came in; callers decide whether to carry on.
"""

import logging
import threading
from typing import Dict, Optional

from ..calculations.calibration import calibrate_fuel_level
from ..calculations.detection import FuelActivityDetector
from ..calculations.smoothing import select_relevant_readings, smooth_reading
from ..config import ProcessingSettings
from ..exceptions import ActivityPublishError, CalibrationError
from ..readings import (
    FuelActivity,
    ProcessingMode,
    ProcessingResult,
    ProcessingStatus,
    Reading,
    window_key,
)
from ..utils.error_codes import ErrorCode, StructuredError
from ..utils.sensor_parser import SensorDataParser
from ..utils.wide_events import log_fuel_activity
from ..utils.window_store import ReadingWindowStore
from .collaborators import ActivitySink, CalibrationStore, InMemoryActivitySink, SensorRegistry

logger = logging.getLogger(__name__)


class FuelSensorProcessor:
    """Stream processor for fuel sensor readings from many devices."""

    def __init__(
        self,
        settings: ProcessingSettings,
        sensor_registry: SensorRegistry,
        calibration_store: CalibrationStore,
        activity_sink: Optional[ActivitySink] = None,
        window_store: Optional[ReadingWindowStore] = None,
        detector: Optional[FuelActivityDetector] = None,
    ):
        self.settings = settings
        self.sensor_registry = sensor_registry
        self.calibration_store = calibration_store
        self.activity_sink = activity_sink or InMemoryActivitySink()
        self.window_store = window_store or ReadingWindowStore(settings.max_messages_to_load)
        self.detector = detector or FuelActivityDetector()
        self._warm_start_gates: Dict[int, threading.Event] = {}
        self._gates_lock = threading.Lock()

    # Warm start gating

    def begin_warm_start(self, device_id: int) -> None:
        """Hold live readings for the device until ``finish_warm_start``."""
        with self._gates_lock:
            if device_id not in self._warm_start_gates:
                self._warm_start_gates[device_id] = threading.Event()

    def finish_warm_start(self, device_id: int) -> None:
        with self._gates_lock:
            gate = self._warm_start_gates.pop(device_id, None)
        if gate is not None:
            gate.set()

    def is_warming(self, device_id: int) -> bool:
        with self._gates_lock:
            return device_id in self._warm_start_gates

    def _wait_for_warm_start(self, device_id: int) -> None:
        with self._gates_lock:
            gate = self._warm_start_gates.get(device_id)
        if gate is not None:
            logger.debug(f"Holding live reading for device {device_id} until warm start completes")
            gate.wait()

    # Processing

    def process(self, reading: Reading, mode: ProcessingMode = ProcessingMode.LIVE) -> ProcessingResult:
        """
        Run one reading through the pipeline.

        Args:
            reading: Reading to process; its fuel_level is set in place
            mode: LIVE readings may emit activities, BACKFILL readings never do

        Returns:
            ProcessingResult with the reading and, at most, one activity
        """
        if mode == ProcessingMode.LIVE:
            self._wait_for_warm_start(reading.device_id)

        try:
            result = self._process(reading, mode)
        except CalibrationError as e:
            structured_error = StructuredError(
                ErrorCode.E410_CALIBRATION_FAILED,
                "Fuel reading could not be calibrated",
                exception=e,
                device_id=reading.device_id,
            )
            logger.warning(str(structured_error))
            return ProcessingResult(reading, ProcessingStatus.FAILED, reason="calibration_failed", error=e)
        except Exception as e:
            structured_error = StructuredError(
                ErrorCode.E411_READING_PROCESSING_FAILED,
                "Unexpected error processing fuel reading",
                exception=e,
                device_id=reading.device_id,
            )
            logger.error(str(structured_error), exc_info=True)
            return ProcessingResult(reading, ProcessingStatus.FAILED, reason="unexpected_error", error=e)

        if result.activity is not None:
            self._publish(result.activity)
        return result

    def _process(self, reading: Reading, mode: ProcessingMode) -> ProcessingResult:
        linked_sensors = self.sensor_registry.linked_sensors(reading.device_id)
        if not linked_sensors:
            return _skipped(reading, "no_linked_sensors")

        sensor_id = SensorDataParser.identify_sensor(reading, linked_sensors)
        if sensor_id is None:
            return _skipped(reading, "unknown_sensor")

        if reading.has_digital_data:
            fuel_points = SensorDataParser.parse_digital(reading.sensor_data)
            if fuel_points is None:
                return _skipped(reading, "invalid_sensor_data")
            threshold = self.settings.fuel_change_threshold_digital
        elif reading.has_analog_data:
            fuel_points = SensorDataParser.parse_analog(reading)
            threshold = self.settings.fuel_change_threshold_analog
        else:
            return _skipped(reading, "no_sensor_value")

        return self._handle_sensor_data(reading, sensor_id, fuel_points, threshold, mode)

    def _handle_sensor_data(
        self,
        reading: Reading,
        sensor_id: int,
        fuel_points: int,
        threshold: float,
        mode: ProcessingMode,
    ) -> ProcessingResult:
        key = window_key(reading.device_id, sensor_id)
        settings = self.settings

        if reading.has_fuel_level:
            with self.window_store.lock(key):
                self.window_store.upsert(key, reading)
            return ProcessingResult(reading, ProcessingStatus.STORED)

        curve = self.calibration_store.calibration(reading.device_id, sensor_id)
        if curve is None:
            return _skipped(reading, "no_calibration")

        with self.window_store.lock(key):
            in_window = False
            try:
                reading.fuel_level = calibrate_fuel_level(curve, fuel_points)
                smooth_reading(
                    self.window_store,
                    key,
                    reading,
                    settings.min_values_for_moving_average,
                    settings.stored_event_lookaround_seconds,
                    settings.current_event_lookback_seconds,
                )

                self.window_store.upsert(key, reading)
                in_window = True

                if mode == ProcessingMode.BACKFILL:
                    return ProcessingResult(reading, ProcessingStatus.PROCESSED)

                sample = select_relevant_readings(
                    self.window_store,
                    key,
                    reading,
                    settings.max_values_for_alerts,
                    settings.stored_event_lookaround_seconds,
                    settings.current_event_lookback_seconds,
                )
                if len(sample) < settings.max_values_for_alerts:
                    return ProcessingResult(reading, ProcessingStatus.PROCESSED)

                activity = self.detector.check_for_activity(key, sample, threshold, settings.fuel_error_threshold)
            except Exception:
                # failed readings leave no trace in the window
                if in_window:
                    self.window_store.remove(key, reading)
                reading.fuel_level = None
                raise

        if not activity.detected:
            return ProcessingResult(reading, ProcessingStatus.PROCESSED)

        activity.device_id = reading.device_id
        activity.sensor_id = sensor_id
        return ProcessingResult(reading, ProcessingStatus.PROCESSED, activity=activity)

    def _publish(self, activity: FuelActivity) -> None:
        start = activity.start_position
        end = activity.end_position
        logger.info(
            f"Fuel activity detected: {activity.activity_type.value} "
            f"starting at {activity.start_time} ending at {activity.end_time} "
            f"volume {activity.change_volume:.2f} "
            f"start {start.latitude}, {start.longitude} end {end.latitude}, {end.longitude}"
        )
        try:
            log_fuel_activity(activity)
        except Exception as e:
            logger.warning(f"Failed to log fuel activity event: {e}", exc_info=True)

        try:
            self.activity_sink.publish(activity)
        except Exception as e:
            error = ActivityPublishError(
                f"Failed to publish fuel activity: {e}",
                device_id=activity.device_id,
                activity_type=activity.activity_type.value,
            )
            structured_error = StructuredError(ErrorCode.E413_ACTIVITY_PUBLISH_FAILED, str(error), exception=e)
            logger.error(str(structured_error), exc_info=True)


def _skipped(reading: Reading, reason: str) -> ProcessingResult:
    logger.debug(f"Skipping fuel reading for device {reading.device_id}: {reason}")
    return ProcessingResult(reading, ProcessingStatus.SKIPPED, reason=reason)
