"""
Services module for the fuel receiver.

Processing logic kept separate from the Flask route handlers.
"""

from .collaborators import (
    ActivitySink,
    CalibrationStore,
    InMemoryActivitySink,
    ReadingHistory,
    SensorRegistry,
)
from .fuel_sensor_service import FuelSensorProcessor
from .sql_collaborators import (
    SqlActivitySink,
    SqlCalibrationStore,
    SqlReadingHistory,
    SqlSensorRegistry,
)
from .warm_start import WarmStartLoader

__all__ = [
    # Collaborator contracts
    'ActivitySink',
    'CalibrationStore',
    'ReadingHistory',
    'SensorRegistry',
    'InMemoryActivitySink',
    # SQL collaborators
    'SqlActivitySink',
    'SqlCalibrationStore',
    'SqlReadingHistory',
    'SqlSensorRegistry',
    # Processing
    'FuelSensorProcessor',
    'WarmStartLoader',
]
