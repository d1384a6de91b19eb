from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, BigInteger, String, Float,
    DateTime, Text, UniqueConstraint, Index, create_engine
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from .readings import FuelActivity, Reading


Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class PeripheralSensor(Base):
    """A fuel sensor linked to a device."""

    __tablename__ = 'peripheral_sensors'
    __table_args__ = (
        UniqueConstraint('device_id', 'peripheral_sensor_id', name='uq_device_sensor'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(BigInteger, nullable=False, index=True)
    peripheral_sensor_id = Column(Integer, nullable=False)
    type_name = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class CalibrationPointRecord(Base):
    """One breakpoint of a device sensor's calibration curve."""

    __tablename__ = 'fuel_calibration_points'
    __table_args__ = (
        UniqueConstraint('device_id', 'sensor_id', 'sensor_points', name='uq_calibration_point'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(BigInteger, nullable=False)
    sensor_id = Column(Integer, nullable=False)
    sensor_points = Column(BigInteger, nullable=False)
    fuel_level = Column(Float, nullable=False)
    points_per_unit = Column(Float, nullable=False)


class Position(Base):
    """A stored reading, with its calibrated level once computed."""

    __tablename__ = 'positions'
    __table_args__ = (
        Index('ix_positions_device_time', 'device_id', 'device_time'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(BigInteger, nullable=False)
    device_time = Column(DateTime, nullable=False)
    latitude = Column(Float)
    longitude = Column(Float)
    sensor_id = Column(Integer)
    sensor_data = Column(Text)
    analog_value = Column(BigInteger)
    event_code = Column(Integer, default=0, nullable=False)
    fuel_level = Column(Float)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    @classmethod
    def from_reading(cls, reading: Reading) -> "Position":
        return cls(
            device_id=reading.device_id,
            device_time=reading.device_time,
            latitude=reading.latitude,
            longitude=reading.longitude,
            sensor_id=reading.sensor_id,
            sensor_data=reading.sensor_data,
            analog_value=reading.analog_value,
            event_code=reading.event_code,
            fuel_level=reading.fuel_level,
        )

    def to_reading(self) -> Reading:
        return Reading(
            id=self.id,
            device_id=self.device_id,
            device_time=self.device_time,
            latitude=self.latitude,
            longitude=self.longitude,
            sensor_id=self.sensor_id,
            sensor_data=self.sensor_data,
            analog_value=self.analog_value,
            event_code=self.event_code or 0,
            fuel_level=self.fuel_level,
        )


class FuelActivityRecord(Base):
    """A detected fill or drain."""

    __tablename__ = 'fuel_activities'

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(BigInteger, nullable=False, index=True)
    sensor_id = Column(Integer, nullable=False)
    activity_type = Column(String(16), nullable=False)
    change_volume = Column(Float, nullable=False)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    start_latitude = Column(Float)
    start_longitude = Column(Float)
    end_latitude = Column(Float)
    end_longitude = Column(Float)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    @classmethod
    def from_activity(cls, activity: FuelActivity) -> "FuelActivityRecord":
        data = activity.to_dict()
        return cls(
            device_id=activity.device_id,
            sensor_id=activity.sensor_id,
            activity_type=activity.activity_type.value,
            change_volume=activity.change_volume,
            start_time=activity.start_time,
            end_time=activity.end_time,
            start_latitude=data['start_latitude'],
            start_longitude=data['start_longitude'],
            end_latitude=data['end_latitude'],
            end_longitude=data['end_longitude'],
        )

    def to_dict(self):
        return {
            'id': self.id,
            'device_id': self.device_id,
            'sensor_id': self.sensor_id,
            'activity_type': self.activity_type,
            'change_volume': self.change_volume,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'start_latitude': self.start_latitude,
            'start_longitude': self.start_longitude,
            'end_latitude': self.end_latitude,
            'end_longitude': self.end_longitude,
        }


def get_engine(database_url):
    """Create database engine."""
    if database_url.startswith('sqlite') and ':memory:' in database_url:
        # One shared connection so every thread sees the same in-memory database
        return create_engine(
            database_url,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)
