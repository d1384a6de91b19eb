"""Tests for configuration and processing settings."""

import pytest

from fuel_receiver.config import Config, ProcessingSettings
from fuel_receiver.exceptions import ConfigurationError


def make_config(**overrides):
    return type("OverrideConfig", (Config,), overrides)


class TestProcessingSettings:
    """Tests for ProcessingSettings.from_config."""

    def test_window_size_from_frequency(self):
        settings = ProcessingSettings.from_config(make_config(HOURS_OF_DATA_TO_LOAD=24, MESSAGE_FREQUENCY_SECONDS=60))
        assert settings.max_messages_to_load == 1440

    def test_window_size_rounds_down(self):
        settings = ProcessingSettings.from_config(make_config(HOURS_OF_DATA_TO_LOAD=1, MESSAGE_FREQUENCY_SECONDS=7))
        assert settings.max_messages_to_load == 514

    def test_defaults(self):
        settings = ProcessingSettings.from_config(Config)
        assert settings.min_values_for_moving_average == Config.MIN_VALUES_FOR_MOVING_AVERAGE
        assert settings.fuel_change_threshold_digital == Config.FUEL_CHANGE_THRESHOLD_LITRES_DIGITAL
        assert settings.fuel_change_threshold_analog == Config.FUEL_CHANGE_THRESHOLD_LITRES_ANALOG

    def test_zero_frequency_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ProcessingSettings.from_config(make_config(MESSAGE_FREQUENCY_SECONDS=0))
        assert exc_info.value.config_key == 'MESSAGE_FREQUENCY_SECONDS'

    def test_empty_window_rejected(self):
        with pytest.raises(ConfigurationError):
            ProcessingSettings.from_config(make_config(HOURS_OF_DATA_TO_LOAD=0))

    @pytest.mark.parametrize("key,value", [
        ('MIN_VALUES_FOR_MOVING_AVERAGE', 0),
        ('MAX_VALUES_FOR_ALERTS', 2),
        ('WARM_START_WORKERS', 0),
    ])
    def test_invalid_sizes_rejected(self, key, value):
        with pytest.raises(ConfigurationError) as exc_info:
            ProcessingSettings.from_config(make_config(**{key: value}))
        assert exc_info.value.config_key == key

    def test_settings_are_frozen(self, settings):
        with pytest.raises(AttributeError):
            settings.max_values_for_alerts = 10
