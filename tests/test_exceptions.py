"""Tests for custom fuel receiver exceptions."""

import pytest

from fuel_receiver.exceptions import (
    ActivityPublishError,
    CalibrationError,
    CalibrationRangeError,
    ConfigurationError,
    FuelReceiverError,
    SensorDataParseError,
    WarmStartError,
)


class TestFuelReceiverError:
    """Tests for base FuelReceiverError."""

    def test_basic_message(self):
        """Test exception with just a message."""
        error = FuelReceiverError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.details == {}

    def test_with_details(self):
        """Test exception with details dict."""
        error = FuelReceiverError("Error occurred", {"key": "value"})
        assert str(error) == "Error occurred - {'key': 'value'}"

    def test_is_exception(self):
        with pytest.raises(FuelReceiverError):
            raise FuelReceiverError("test")


class TestCalibrationErrors:
    """Tests for calibration exceptions."""

    def test_calibration_error_details(self):
        error = CalibrationError("No curve", device_id=7, sensor_id=1)
        assert error.details == {"device_id": 7, "sensor_id": 1}
        assert isinstance(error, FuelReceiverError)

    def test_range_error(self):
        error = CalibrationRangeError("Too low", raw_value=5, lowest_point=100)

        assert isinstance(error, CalibrationError)
        assert error.raw_value == 5
        assert error.details == {"raw_value": 5, "lowest_point": 100}


class TestOtherErrors:
    """Tests for the remaining exceptions."""

    def test_sensor_data_parse_error(self):
        error = SensorDataParseError("Bad value", field="sensor_id", value="abc")
        assert error.field == "sensor_id"
        assert error.details == {"field": "sensor_id", "value": "abc"}

    def test_sensor_data_parse_error_missing_value(self):
        error = SensorDataParseError("Missing", field="device_id")
        assert error.value is None
        assert error.details == {"field": "device_id"}

    def test_warm_start_error(self):
        error = WarmStartError("History failed", device_id=3)
        assert error.device_id == 3
        assert "device_id" in str(error)

    def test_activity_publish_error(self):
        error = ActivityPublishError("Sink down", device_id=3, activity_type="FUEL_FILL")
        assert error.details == {"device_id": 3, "activity_type": "FUEL_FILL"}

    def test_configuration_error(self):
        error = ConfigurationError("Bad window", config_key="MAX_VALUES_FOR_ALERTS")
        assert error.config_key == "MAX_VALUES_FOR_ALERTS"
