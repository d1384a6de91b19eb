"""
Tests for the fuel sensor payload parser.
"""

import pytest

from fuel_receiver.readings import LinkedSensor
from fuel_receiver.utils.sensor_parser import (
    SensorDataParser,
    parse_digital_sensor_data,
    read_analog_value,
)
from tests.factories import make_reading


class TestParseDigital:
    """Tests for digital payload decoding."""

    def test_hex_fuel_points_with_fraction(self):
        assert SensorDataParser.parse_digital("F=100 T=20 N=ABC.5") == 0xABC

    def test_hex_fuel_points_without_fraction(self):
        assert SensorDataParser.parse_digital("F=1F4 T=-3 N=7d0") == 0x7D0

    def test_frequency_above_limit_is_invalid(self):
        assert SensorDataParser.parse_digital("F=1000 T=20 N=10") is None

    def test_frequency_at_limit_is_accepted(self):
        assert SensorDataParser.parse_digital("F=FFF T=20 N=10") == 0x10

    @pytest.mark.parametrize("payload", [None, "", "   "])
    def test_blank_payload(self, payload):
        assert SensorDataParser.parse_digital(payload) is None

    @pytest.mark.parametrize("payload", [
        "F=100 N=10",
        "F=100 T=20 N=10 X=1",
        "100 T=20 N=10",
        "F=100 T=20 10",
        "F=100 T=20 XN=10",
        "F=10G T=20 N=10",
        "F=100 T=20 N=",
        "F=100 T=20 N=-1",
        "F=100 T=20 N=1_0",
    ])
    def test_malformed_payload(self, payload):
        assert SensorDataParser.parse_digital(payload) is None

    def test_module_shortcut(self):
        assert parse_digital_sensor_data("F=100 T=20 N=20") == 0x20


class TestParseAnalog:
    """Tests for analog counter passthrough."""

    def test_value_used_as_is(self):
        reading = make_reading(analog_value=4321)
        assert SensorDataParser.parse_analog(reading) == 4321
        assert read_analog_value(reading) == 4321

    def test_missing_value(self):
        assert read_analog_value(make_reading()) is None


class TestIdentifySensor:
    """Tests for matching a reading to a linked sensor."""

    @pytest.fixture
    def linked(self):
        return [
            LinkedSensor(sensor_id=1, type_name="FUEL_DIGITAL"),
            LinkedSensor(sensor_id=2, type_name="FUEL_ANALOG"),
        ]

    def test_digital_reading_matches_sensor_id(self, linked):
        reading = make_reading(sensor_id=1, sensor_data="F=100 T=20 N=10")
        assert SensorDataParser.identify_sensor(reading, linked) == 1

    def test_unlinked_sensor_id(self, linked):
        reading = make_reading(sensor_id=9, sensor_data="F=100 T=20 N=10")
        assert SensorDataParser.identify_sensor(reading, linked) is None

    def test_analog_reading_uses_analog_sensor(self, linked):
        reading = make_reading(analog_value=800)
        assert SensorDataParser.identify_sensor(reading, linked) == 2

    def test_analog_reading_without_analog_sensor(self):
        linked = [LinkedSensor(sensor_id=1, type_name="FUEL_DIGITAL")]
        assert SensorDataParser.identify_sensor(make_reading(analog_value=800), linked) is None

    def test_reading_without_sensor_value(self, linked):
        assert SensorDataParser.identify_sensor(make_reading(), linked) is None
