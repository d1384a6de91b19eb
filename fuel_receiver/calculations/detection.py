"""
Fuel fill and drain detection

Compares the mean level of the first half of a recent sample with the mean
of an equally long span starting at the sample midpoint. A gap wider than
the change threshold arms the device sensor; once the gap closes again the
change is confirmed as a fill or drain if it passes the error check.

Per device sensor states:
    idle   -> no metadata recorded
    armed  -> metadata recorded, tracking a live deviation
    report -> activity returned, metadata cleared (back to idle)

An armed sensor whose change fails the error check stays armed until a
later sample confirms a fill or drain.
"""

import logging
from typing import Dict, Hashable, List, Optional

from ..readings import FuelActivity, FuelActivityType, FuelEventMetadata, Reading
from .constants import MIN_DETECTION_SAMPLE_SIZE

logger = logging.getLogger(__name__)


def calculate_half_means(levels: List[float]):
    """
    Return ``(mid_point, left_mean, right_mean)`` for a sample of levels.

    The left span is ``[0, mid]`` and the right span ``[mid, 2 * mid]``,
    both ``mid + 1`` long and sharing the midpoint.

    Examples:
        >>> calculate_half_means([50, 50, 50, 40, 40])
        (2, 50.0, 43.333333333333336)
    """
    mid_point = (len(levels) - 1) // 2
    span = mid_point + 1
    left_sum = 0.0
    right_sum = 0.0
    for i in range(span):
        left_sum += levels[i]
        right_sum += levels[i + mid_point]
    return mid_point, left_sum / span, right_sum / span


class FuelActivityDetector:
    """
    Tracks armed level changes per device sensor and reports activities.

    Holds no lock of its own: every call for a key is made under that key's
    window lock, and each call only touches its own key's entry.
    """

    def __init__(self):
        self._metadata: Dict[Hashable, FuelEventMetadata] = {}

    def is_armed(self, key: Hashable) -> bool:
        return key in self._metadata

    def metadata_for(self, key: Hashable) -> Optional[FuelEventMetadata]:
        return self._metadata.get(key)

    def reset(self, key: Hashable) -> None:
        self._metadata.pop(key, None)

    def check_for_activity(
        self,
        key: Hashable,
        readings: List[Reading],
        change_threshold: float,
        error_threshold: float,
    ) -> FuelActivity:
        """
        Advance the state machine for ``key`` with a new sample.

        Callers must serialize calls for the same key.

        Args:
            key: Window key of the device sensor
            readings: Time-ordered, already smoothed sample
            change_threshold: Minimum gap between means to arm (litres)
            error_threshold: Fraction of the change the sample edges must
                also move by for the change to be confirmed

        Returns:
            FuelActivity, with type NONE when nothing was confirmed
        """
        activity = FuelActivity()

        if len(readings) < MIN_DETECTION_SAMPLE_SIZE:
            return activity

        levels = [reading.fuel_level for reading in readings]
        mid_point, left_mean, right_mean = calculate_half_means(levels)
        diff_in_means = abs(left_mean - right_mean)
        mid_reading = readings[mid_point]

        if diff_in_means > change_threshold and not self.is_armed(key):
            self._metadata[key] = FuelEventMetadata(
                start_level=mid_reading.fuel_level,
                start_time=mid_reading.device_time,
                start_position=mid_reading,
                error_check_start=levels[0],
            )
            logger.debug(f"Fuel level change armed for {key} at {mid_reading.fuel_level:.2f}")

        if diff_in_means < change_threshold:
            metadata = self.metadata_for(key)
            if metadata is None:
                return activity

            metadata.end_level = mid_reading.fuel_level
            metadata.end_time = mid_reading.device_time
            metadata.end_position = mid_reading
            metadata.error_check_end = levels[-1]

            change_volume = metadata.end_level - metadata.start_level
            error_check_change = metadata.error_check_end - metadata.error_check_start
            error_check = change_volume * error_threshold

            if change_volume < 0.0 and error_check_change < error_check:
                activity_type = FuelActivityType.FUEL_DRAIN
            elif change_volume > 0.0 and error_check_change > error_check:
                activity_type = FuelActivityType.FUEL_FILL
            else:
                return activity

            activity.activity_type = activity_type
            activity.change_volume = change_volume
            activity.start_time = metadata.start_time
            activity.end_time = metadata.end_time
            activity.start_position = metadata.start_position
            activity.end_position = metadata.end_position
            self.reset(key)

        return activity
