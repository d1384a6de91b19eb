"""
SQLAlchemy implementations of the processor's collaborators.

Each call opens its own short-lived session from ``session_factory`` (a
plain ``sessionmaker``), so these objects are safe to share between the
request threads and the warm start workers.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, OperationalError

from ..calculations.calibration import CalibrationCurve
from ..exceptions import ActivityPublishError
from ..models import CalibrationPointRecord, FuelActivityRecord, PeripheralSensor, Position
from ..readings import FuelActivity, LinkedSensor, Reading
from .collaborators import ActivitySink, CalibrationStore, ReadingHistory, SensorRegistry

logger = logging.getLogger(__name__)


@contextmanager
def session_scope(session_factory):
    """Provide a session that is closed when the block exits."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


class SqlSensorRegistry(SensorRegistry):
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def linked_sensors(self, device_id: int) -> Optional[List[LinkedSensor]]:
        with session_scope(self.session_factory) as db:
            rows = (
                db.query(PeripheralSensor)
                .filter(PeripheralSensor.device_id == device_id)
                .order_by(PeripheralSensor.peripheral_sensor_id)
                .all()
            )
            if not rows:
                return None
            return [LinkedSensor(sensor_id=row.peripheral_sensor_id, type_name=row.type_name) for row in rows]

    def device_ids(self) -> List[int]:
        with session_scope(self.session_factory) as db:
            rows = db.query(PeripheralSensor.device_id).distinct().order_by(PeripheralSensor.device_id).all()
            return [row.device_id for row in rows]


class SqlCalibrationStore(CalibrationStore):
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def calibration(self, device_id: int, sensor_id: int) -> Optional[CalibrationCurve]:
        with session_scope(self.session_factory) as db:
            rows = (
                db.query(CalibrationPointRecord)
                .filter(
                    CalibrationPointRecord.device_id == device_id,
                    CalibrationPointRecord.sensor_id == sensor_id,
                )
                .order_by(CalibrationPointRecord.sensor_points)
                .all()
            )
            if not rows:
                return None
            return CalibrationCurve.from_rows(
                (row.sensor_points, row.fuel_level, row.points_per_unit) for row in rows
            )


class SqlReadingHistory(ReadingHistory):
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def positions_in_range(self, device_id: int, start: datetime, end: datetime) -> List[Reading]:
        with session_scope(self.session_factory) as db:
            rows = (
                db.query(Position)
                .filter(
                    Position.device_id == device_id,
                    Position.device_time >= start,
                    Position.device_time <= end,
                )
                .order_by(Position.device_time, Position.id)
                .all()
            )
            return [row.to_reading() for row in rows]


class SqlActivitySink(ActivitySink):
    """Stores detected activities in the ``fuel_activities`` table."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def publish(self, activity: FuelActivity) -> None:
        with session_scope(self.session_factory) as db:
            try:
                db.add(FuelActivityRecord.from_activity(activity))
                db.commit()
            except (IntegrityError, OperationalError) as e:
                db.rollback()
                raise ActivityPublishError(
                    f"Failed to store fuel activity: {e}",
                    device_id=activity.device_id,
                    activity_type=activity.activity_type.value,
                ) from e
        logger.info(
            f"Stored fuel activity {activity.activity_type.value} for device {activity.device_id}: "
            f"{activity.change_volume:.2f} L"
        )
