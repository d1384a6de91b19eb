"""
Fuel Receiver - Flask Application

Receives fuel sensor readings from tracked devices, turns them into
calibrated fuel levels and records detected fills and drains.
"""

import atexit
import logging

from flask import Flask
from sqlalchemy.orm import sessionmaker

from . import database
from .config import Config, ProcessingSettings
from .routes import register_blueprints
from .services import (
    FuelSensorProcessor,
    SqlActivitySink,
    SqlCalibrationStore,
    SqlReadingHistory,
    SqlSensorRegistry,
    WarmStartLoader,
)
from .services.scheduler import schedule_warm_start, shutdown_scheduler

logger = logging.getLogger(__name__)


def configure_logging(config=Config):
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_app(config=Config):
    """
    Build the Flask application.

    Args:
        config: Configuration class or object with the ``Config`` attributes

    Returns:
        Configured Flask app; the shared processor and warm start loader are
        in ``app.extensions['fuel_processor']`` and
        ``app.extensions['fuel_warm_start']``
    """
    configure_logging(config)

    app = Flask(__name__)
    app.config.from_object(config)

    engine, scoped = database.create_session_factory(config.DATABASE_URL, create_tables=True)
    session_factory = sessionmaker(bind=engine)

    sensor_registry = SqlSensorRegistry(session_factory)
    settings = ProcessingSettings.from_config(config)
    processor = FuelSensorProcessor(
        settings,
        sensor_registry,
        SqlCalibrationStore(session_factory),
        activity_sink=SqlActivitySink(session_factory),
    )
    loader = WarmStartLoader(processor, sensor_registry, SqlReadingHistory(session_factory))

    app.extensions['fuel_engine'] = engine
    app.extensions['fuel_session_factory'] = scoped
    app.extensions['fuel_processor'] = processor
    app.extensions['fuel_warm_start'] = loader

    database.init_app(app)
    register_blueprints(app)

    if config.WARM_START_ON_BOOT:
        schedule_warm_start(loader)
        atexit.register(shutdown_scheduler)

    logger.info(
        f"Fuel receiver ready: window {settings.max_messages_to_load} readings, "
        f"moving average {settings.min_values_for_moving_average}, "
        f"detection sample {settings.max_values_for_alerts}"
    )
    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host=Config.FLASK_HOST, port=Config.FLASK_PORT, debug=Config.DEBUG)
