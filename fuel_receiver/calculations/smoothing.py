"""
Fuel level smoothing

Selects the slice of a device sensor window relevant to a reading and
averages calibrated levels over it. The same selection feeds the event
detector, with a larger target size.
"""

from datetime import timedelta
from typing import Hashable, List

from ..readings import Reading
from ..utils.window_store import ReadingWindowStore


def select_relevant_readings(
    store: ReadingWindowStore,
    key: Hashable,
    reading: Reading,
    target_size: int,
    lookaround_seconds: int,
    lookback_seconds: int,
) -> List[Reading]:
    """
    Pick the window readings to use alongside ``reading``.

    - Stored events (replayed from device memory) use every reading within
      ``lookaround_seconds`` either side of the reading, whatever their count.
    - Windows holding ``target_size`` readings or fewer are used whole.
    - Otherwise readings in the trailing ``lookback_seconds`` are taken. If
      there are no more than ``target_size`` of them the whole window is
      used, else the ``target_size`` readings before the most recent one.

    Args:
        store: Window store holding the device sensor's history
        key: Window key of the device sensor
        reading: Reading being processed
        target_size: Desired sample size
        lookaround_seconds: Half-width of the stored event window
        lookback_seconds: Length of the trailing window for live readings

    Returns:
        Readings ordered by device time
    """
    reading_time = reading.device_time

    if reading.is_stored_event:
        lookaround = timedelta(seconds=lookaround_seconds)
        return store.query(key, reading_time - lookaround, reading_time + lookaround)

    if store.size(key) <= target_size:
        return store.snapshot(key)

    trailing = store.query(key, reading_time - timedelta(seconds=lookback_seconds), reading_time)
    if len(trailing) <= target_size:
        return store.snapshot(key)

    return trailing[-(target_size + 1):-1]


def calculate_average_level(reading: Reading, readings: List[Reading]) -> float:
    """
    Mean of the reading's fuel level and the levels of ``readings``.

    A reading at 14.0 L over a window at 10.0 L and 12.0 L averages to 12.0 L.
    """
    total = reading.fuel_level
    for other in readings:
        total += other.fuel_level
    return total / (len(readings) + 1.0)


def smooth_reading(
    store: ReadingWindowStore,
    key: Hashable,
    reading: Reading,
    min_values: int,
    lookaround_seconds: int,
    lookback_seconds: int,
) -> float:
    """Replace the reading's calibrated level with its moving average."""
    relevant = select_relevant_readings(
        store, key, reading, min_values, lookaround_seconds, lookback_seconds
    )
    reading.fuel_level = calculate_average_level(reading, relevant)
    return reading.fuel_level
