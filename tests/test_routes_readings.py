"""
Tests for the fuel reading API endpoints.
"""

from datetime import timedelta

import pytest

from fuel_receiver.models import CalibrationPointRecord, FuelActivityRecord, PeripheralSensor, Position
from tests.factories import BASE_TIME, DEVICE_ID, DIGITAL_SENSOR_ID


@pytest.fixture
def linked_device(db_session):
    """Device with a digital sensor calibrated one litre per point."""
    db_session.add_all([
        PeripheralSensor(device_id=DEVICE_ID, peripheral_sensor_id=DIGITAL_SENSOR_ID, type_name="FUEL_DIGITAL"),
        CalibrationPointRecord(
            device_id=DEVICE_ID, sensor_id=DIGITAL_SENSOR_ID,
            sensor_points=0, fuel_level=0.0, points_per_unit=1.0,
        ),
    ])
    db_session.commit()
    return DEVICE_ID


def reading_payload(minutes, points, **overrides):
    payload = {
        'device_id': DEVICE_ID,
        'time': (BASE_TIME + timedelta(minutes=minutes)).isoformat() + 'Z',
        'sensorId': DIGITAL_SENSOR_ID,
        'sensorData': f"F=100 T=20 N={points:X}",
        'latitude': 52.37,
        'longitude': 4.89,
    }
    payload.update(overrides)
    return payload


class TestUploadReadings:
    """Tests for POST /api/fuel/readings."""

    def test_single_reading(self, client, linked_device, db_session):
        response = client.post('/api/fuel/readings', json=reading_payload(0, 0x2A))

        assert response.status_code == 200
        data = response.get_json()
        assert data['readings'][0]['status'] == 'processed'
        assert data['readings'][0]['fuel_level'] == pytest.approx(42.0)
        assert data['activities'] == []

        stored = db_session.query(Position).one()
        assert stored.fuel_level == pytest.approx(42.0)
        assert stored.device_time == BASE_TIME

    def test_drain_detected_and_listed(self, client, linked_device):
        raw = [50] * 10 + [30] * 6
        batch = [reading_payload(minutes, points) for minutes, points in enumerate(raw)]

        response = client.post('/api/fuel/readings', json=batch)

        assert response.status_code == 200
        data = response.get_json()
        assert len(data['readings']) == 16
        assert len(data['activities']) == 1
        assert data['activities'][0]['activity_type'] == 'FUEL_DRAIN'
        assert data['activities'][0]['change_volume'] == pytest.approx(-15.0)

        listed = client.get(f'/api/fuel/activities?device_id={DEVICE_ID}').get_json()
        assert len(listed) == 1
        assert listed[0]['activity_type'] == 'FUEL_DRAIN'
        assert listed[0]['start_latitude'] == 52.37

    def test_unlinked_device_is_stored_but_skipped(self, client, db_session):
        response = client.post('/api/fuel/readings', json=reading_payload(0, 10, device_id=555))

        data = response.get_json()
        assert response.status_code == 200
        assert data['readings'][0]['status'] == 'skipped'
        assert data['readings'][0]['reason'] == 'no_linked_sensors'
        assert db_session.query(Position).count() == 1

    def test_calibration_failure_reported(self, client, db_session):
        db_session.add_all([
            PeripheralSensor(device_id=DEVICE_ID, peripheral_sensor_id=DIGITAL_SENSOR_ID, type_name="FUEL_DIGITAL"),
            CalibrationPointRecord(
                device_id=DEVICE_ID, sensor_id=DIGITAL_SENSOR_ID,
                sensor_points=100, fuel_level=5.0, points_per_unit=10.0,
            ),
        ])
        db_session.commit()

        data = client.post('/api/fuel/readings', json=reading_payload(0, 10)).get_json()

        assert data['readings'][0]['status'] == 'failed'
        assert data['readings'][0]['reason'] == 'calibration_failed'
        assert data['readings'][0]['fuel_level'] is None

    def test_invalid_json(self, client):
        response = client.post('/api/fuel/readings', data='not json', content_type='application/json')

        assert response.status_code == 400
        assert response.get_json()['error']['code'] == 'E303'

    def test_missing_device_id(self, client):
        payload = reading_payload(0, 10)
        del payload['device_id']

        response = client.post('/api/fuel/readings', json=payload)

        assert response.status_code == 400
        error = response.get_json()['error']
        assert error['code'] == 'E002'
        assert error['context']['field'] == 'device_id'

    def test_bad_timestamp(self, client, db_session):
        response = client.post('/api/fuel/readings', json=[reading_payload(0, 10), reading_payload(1, 10, time='soon')])

        assert response.status_code == 400
        error = response.get_json()['error']
        assert error['code'] == 'E003'
        assert error['context'] == {'field': 'device_time', 'value': 'soon'}
        assert db_session.query(Position).count() == 0

    def test_non_object_item(self, client):
        response = client.post('/api/fuel/readings', json=[reading_payload(0, 10), 'oops'])

        assert response.status_code == 400
        assert response.get_json()['error']['code'] == 'E305'


class TestListActivities:
    """Tests for GET /api/fuel/activities."""

    @pytest.fixture
    def activities(self, db_session):
        for i in range(5):
            db_session.add(FuelActivityRecord(
                device_id=DEVICE_ID if i % 2 == 0 else 2002,
                sensor_id=1,
                activity_type='FUEL_FILL',
                change_volume=10.0 + i,
                start_time=BASE_TIME + timedelta(hours=i),
                end_time=BASE_TIME + timedelta(hours=i, minutes=10),
            ))
        db_session.commit()

    def test_newest_first(self, client, activities):
        data = client.get('/api/fuel/activities').get_json()
        assert [a['change_volume'] for a in data] == [14.0, 13.0, 12.0, 11.0, 10.0]

    def test_filter_by_device(self, client, activities):
        data = client.get('/api/fuel/activities?device_id=2002').get_json()
        assert [a['change_volume'] for a in data] == [13.0, 11.0]

    def test_limit(self, client, activities):
        data = client.get('/api/fuel/activities?limit=2').get_json()
        assert len(data) == 2

    def test_limit_clamped(self, client, activities):
        assert len(client.get('/api/fuel/activities?limit=0').get_json()) == 1
