"""
Per device sensor window of processed readings.

Each ``(device_id, sensor_id)`` key owns a time-ordered list of readings,
capped at ``max_size``. Readings are inserted by device time, not arrival
order, so backfilled or late readings land in their sorted position. Equal
timestamps are kept in arrival order.

Every key has its own re-entrant lock. Operations on one key are
serialized; operations on different keys never wait on each other. The
processor holds ``lock(key)`` across a whole reading so that
insert-then-evict and the detector update happen as one step.
"""

import bisect
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Hashable, List, Optional

from ..readings import Reading

logger = logging.getLogger(__name__)


class _Window:
    __slots__ = ('times', 'readings', 'lock')

    def __init__(self):
        self.times: List[datetime] = []
        self.readings: List[Reading] = []
        self.lock = threading.RLock()


class ReadingWindowStore:
    """Bounded, time-ordered reading windows keyed by device sensor."""

    def __init__(self, max_size: int):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._windows: Dict[Hashable, _Window] = {}
        self._registry_lock = threading.Lock()

    def _window(self, key: Hashable) -> _Window:
        window = self._windows.get(key)
        if window is None:
            with self._registry_lock:
                window = self._windows.get(key)
                if window is None:
                    window = _Window()
                    self._windows[key] = window
        return window

    @contextmanager
    def lock(self, key: Hashable):
        """Hold the key's lock across several operations."""
        window = self._window(key)
        with window.lock:
            yield

    def upsert(self, key: Hashable, reading: Reading) -> Optional[Reading]:
        """
        Insert a reading in device time order.

        Returns:
            The evicted earliest reading when the cap was exceeded, else None
        """
        window = self._window(key)
        with window.lock:
            index = bisect.bisect_right(window.times, reading.device_time)
            window.times.insert(index, reading.device_time)
            window.readings.insert(index, reading)

            if len(window.readings) > self.max_size:
                window.times.pop(0)
                evicted = window.readings.pop(0)
                logger.debug(f"Evicted reading at {evicted.device_time} from window {key}")
                return evicted
            return None

    def remove(self, key: Hashable, reading: Reading) -> bool:
        """Take this exact reading back out of the window."""
        window = self._window(key)
        with window.lock:
            start = bisect.bisect_left(window.times, reading.device_time)
            end = bisect.bisect_right(window.times, reading.device_time)
            for index in range(start, end):
                if window.readings[index] is reading:
                    del window.times[index]
                    del window.readings[index]
                    return True
            return False

    def query(self, key: Hashable, from_exclusive: datetime, to_inclusive: datetime) -> List[Reading]:
        """Readings with device time in ``(from_exclusive, to_inclusive]``."""
        window = self._window(key)
        with window.lock:
            start = bisect.bisect_right(window.times, from_exclusive)
            end = bisect.bisect_right(window.times, to_inclusive)
            return window.readings[start:end]

    def query_last_n(self, key: Hashable, n: int, until: Optional[datetime] = None) -> List[Reading]:
        """The ``n`` most recent readings at or before ``until`` (or overall)."""
        if n <= 0:
            return []
        window = self._window(key)
        with window.lock:
            if until is None:
                end = len(window.readings)
            else:
                end = bisect.bisect_right(window.times, until)
            return window.readings[max(0, end - n):end]

    def snapshot(self, key: Hashable) -> List[Reading]:
        window = self._window(key)
        with window.lock:
            return list(window.readings)

    def size(self, key: Hashable) -> int:
        window = self._windows.get(key)
        if window is None:
            return 0
        with window.lock:
            return len(window.readings)

    def keys(self) -> List[Hashable]:
        with self._registry_lock:
            return list(self._windows)

    def clear(self, key: Hashable) -> None:
        window = self._windows.get(key)
        if window is None:
            return
        with window.lock:
            window.times.clear()
            window.readings.clear()
