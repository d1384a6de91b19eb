"""
Fuel sensor calibration

Maps raw sensor points to a fuel volume using a per device sensor
piecewise-linear curve. Each breakpoint holds the volume at that point and
the points-per-litre slope that applies until the next breakpoint.
"""

import bisect
from dataclasses import dataclass
from typing import Dict, Iterator, Mapping, Tuple

from ..exceptions import CalibrationError, CalibrationRangeError


@dataclass(frozen=True)
class CalibrationPoint:
    """Breakpoint of a calibration curve."""

    fuel_level: float
    points_per_unit: float


class CalibrationCurve:
    """
    Ordered breakpoints from raw sensor points to fuel volume.

    Lookups use the breakpoint with the greatest key at or below the raw
    value (floor lookup).
    """

    def __init__(self, points: Mapping[int, CalibrationPoint]):
        if not points:
            raise CalibrationError("Calibration curve needs at least one breakpoint")
        self._keys = sorted(int(key) for key in points)
        self._points: Dict[int, CalibrationPoint] = {int(key): value for key, value in points.items()}

    @classmethod
    def from_rows(cls, rows) -> "CalibrationCurve":
        """Build a curve from ``(sensor_points, fuel_level, points_per_unit)`` tuples."""
        return cls({
            points: CalibrationPoint(fuel_level=level, points_per_unit=slope)
            for points, level, slope in rows
        })

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[Tuple[int, CalibrationPoint]]:
        for key in self._keys:
            yield key, self._points[key]

    @property
    def lowest_point(self) -> int:
        return self._keys[0]

    def floor_entry(self, raw_points: int) -> Tuple[int, CalibrationPoint]:
        """
        Return the breakpoint whose key is the greatest key <= raw_points.

        Raises:
            CalibrationRangeError: if raw_points is below the lowest breakpoint
        """
        index = bisect.bisect_right(self._keys, raw_points) - 1
        if index < 0:
            raise CalibrationRangeError(
                f"Raw value {raw_points} is below the lowest calibration point",
                raw_value=raw_points,
                lowest_point=self.lowest_point,
            )
        key = self._keys[index]
        return key, self._points[key]


def calibrate_fuel_level(curve: CalibrationCurve, raw_points: int) -> float:
    """
    Convert raw sensor points to a fuel volume.

    Args:
        curve: Calibration curve for the device sensor
        raw_points: Raw reading (digital points or analog counter)

    Returns:
        Calibrated volume, unrounded

    Raises:
        CalibrationRangeError: raw value below the lowest breakpoint
        CalibrationError: zero slope on a breakpoint the value lies past

    Examples:
        >>> curve = CalibrationCurve({0: CalibrationPoint(0, 10), 100: CalibrationPoint(10, 20)})
        >>> calibrate_fuel_level(curve, 150)
        12.5
    """
    previous_point, breakpoint = curve.floor_entry(raw_points)

    if raw_points == previous_point:
        return float(breakpoint.fuel_level)

    if breakpoint.points_per_unit == 0:
        raise CalibrationError(f"Calibration point {previous_point} has a zero points-per-unit slope")

    return (raw_points - previous_point) / breakpoint.points_per_unit + breakpoint.fuel_level
