"""
Pytest fixtures for fuel receiver tests.
"""

import pytest
from sqlalchemy.orm import sessionmaker

from fuel_receiver.config import Config, ProcessingSettings
from fuel_receiver.readings import LinkedSensor
from fuel_receiver.services import FuelSensorProcessor, InMemoryActivitySink
from tests.factories import (
    ANALOG_SENSOR_ID,
    DEVICE_ID,
    DIGITAL_SENSOR_ID,
    FakeCalibrationStore,
    FakeSensorRegistry,
    identity_curve,
)


@pytest.fixture
def settings():
    """Small windows so detection kicks in after a handful of readings."""
    return ProcessingSettings(
        max_messages_to_load=50,
        min_values_for_moving_average=1,
        max_values_for_alerts=5,
        stored_event_lookaround_seconds=300,
        current_event_lookback_seconds=1800,
        fuel_change_threshold_digital=5.0,
        fuel_change_threshold_analog=10.0,
        fuel_error_threshold=0.5,
        hours_of_data_to_load=24,
        warm_start_workers=4,
    )


@pytest.fixture
def sensor_registry():
    return FakeSensorRegistry({
        DEVICE_ID: [
            LinkedSensor(sensor_id=DIGITAL_SENSOR_ID, type_name="FUEL_DIGITAL"),
            LinkedSensor(sensor_id=ANALOG_SENSOR_ID, type_name="FUEL_ANALOG"),
        ],
    })


@pytest.fixture
def calibration_store():
    return FakeCalibrationStore({
        (DEVICE_ID, DIGITAL_SENSOR_ID): identity_curve(),
        (DEVICE_ID, ANALOG_SENSOR_ID): identity_curve(),
    })


@pytest.fixture
def activity_sink():
    return InMemoryActivitySink()


@pytest.fixture
def processor(settings, sensor_registry, calibration_store, activity_sink):
    return FuelSensorProcessor(settings, sensor_registry, calibration_store, activity_sink=activity_sink)


@pytest.fixture
def app(tmp_path):
    """Create application for testing on a file-backed SQLite database."""
    from fuel_receiver.app import create_app

    class AppTestConfig(Config):
        TESTING = True
        DATABASE_URL = f"sqlite:///{tmp_path / 'fuel.db'}"
        WARM_START_ON_BOOT = False
        LOG_LEVEL = 'WARNING'
        MESSAGE_FREQUENCY_SECONDS = 60
        HOURS_OF_DATA_TO_LOAD = 1
        MIN_VALUES_FOR_MOVING_AVERAGE = 1
        MAX_VALUES_FOR_ALERTS = 5

    flask_app = create_app(AppTestConfig)
    yield flask_app
    flask_app.extensions['fuel_session_factory'].remove()
    flask_app.extensions['fuel_engine'].dispose()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def db_session(app):
    """Provide a database session for tests."""
    session = sessionmaker(bind=app.extensions['fuel_engine'])()
    yield session
    session.rollback()
    session.close()
