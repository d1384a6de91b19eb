"""
Warm start service.

Refills the in-memory reading windows from stored history before live
traffic is processed. Each device is replayed in BACKFILL mode, so no
activity is ever emitted from historical data, and live readings for the
device wait until its replay finishes. Devices are replayed in parallel;
a failure on one device is logged and does not stop the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional

from ..exceptions import WarmStartError
from ..readings import ProcessingMode, ProcessingStatus
from ..utils.error_codes import ErrorCode, StructuredError
from ..utils.timezone import utc_now
from ..utils.wide_events import track_operation
from .collaborators import ReadingHistory, SensorRegistry
from .fuel_sensor_service import FuelSensorProcessor

logger = logging.getLogger(__name__)


class WarmStartLoader:
    """Replays recent history through a FuelSensorProcessor."""

    def __init__(
        self,
        processor: FuelSensorProcessor,
        sensor_registry: SensorRegistry,
        reading_history: ReadingHistory,
        hours_of_data: Optional[int] = None,
        max_workers: Optional[int] = None,
    ):
        self.processor = processor
        self.sensor_registry = sensor_registry
        self.reading_history = reading_history
        self.hours_of_data = hours_of_data or processor.settings.hours_of_data_to_load
        self.max_workers = max_workers or processor.settings.warm_start_workers

    def load_device(self, device_id: int, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Replay one device's recent readings.

        Live readings for the device are held from the first lookup until
        this returns.

        Returns:
            Count of replayed readings per processing status

        Raises:
            WarmStartError: if the history could not be loaded
        """
        self.processor.begin_warm_start(device_id)
        try:
            linked_sensors = self.sensor_registry.linked_sensors(device_id)
            if not linked_sensors:
                return {}

            end = now or utc_now()
            start = end - timedelta(hours=self.hours_of_data)
            counts = {status.value: 0 for status in ProcessingStatus}

            with track_operation(
                "fuel_warm_start",
                device_id=device_id,
                window_start=start.isoformat(),
                window_end=end.isoformat(),
            ) as event:
                try:
                    with event.timer("load_history"):
                        readings = self.reading_history.positions_in_range(device_id, start, end)
                except Exception as e:
                    event.add_business_metric("warm_start_failed", True)
                    raise WarmStartError(f"Failed to load history: {e}", device_id=device_id) from e

                with event.timer("replay"):
                    for reading in sorted(readings, key=lambda r: r.device_time):
                        result = self.processor.process(reading, ProcessingMode.BACKFILL)
                        counts[result.status.value] += 1

                event.add_business_metric("readings_replayed", len(readings))
                event.add_business_metric("status_counts", counts)

            logger.info(f"Warm start for device {device_id}: replayed {len(readings)} readings")
            return counts
        finally:
            self.processor.finish_warm_start(device_id)

    def load_all(self, device_ids: Optional[Iterable[int]] = None, now: Optional[datetime] = None) -> Dict[int, Optional[Dict[str, int]]]:
        """
        Warm start every device in parallel.

        Every device is gated before any replay starts so that live readings
        arriving mid-load wait for their own device.

        Returns:
            Mapping of device id to status counts, or None for failed devices
        """
        if device_ids is None:
            device_ids = self.sensor_registry.device_ids()
        device_ids = list(device_ids)

        for device_id in device_ids:
            self.processor.begin_warm_start(device_id)

        results: Dict[int, Optional[Dict[str, int]]] = {}
        try:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {
                    executor.submit(self.load_device, device_id, now): device_id
                    for device_id in device_ids
                }
                for future in as_completed(futures):
                    device_id = futures[future]
                    try:
                        results[device_id] = future.result()
                    except Exception as e:
                        structured_error = StructuredError(
                            ErrorCode.E412_WARM_START_FAILED,
                            "Warm start failed for device",
                            exception=e,
                            device_id=device_id,
                        )
                        logger.error(str(structured_error), exc_info=True)
                        results[device_id] = None
        finally:
            for device_id in device_ids:
                self.processor.finish_warm_start(device_id)

        loaded = sum(1 for counts in results.values() if counts is not None)
        logger.info(f"Warm start complete: {loaded}/{len(device_ids)} devices loaded")
        return results
