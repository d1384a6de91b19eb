"""
Background scheduler for the fuel receiver.

Runs the boot-time warm start off the request threads.
"""

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

scheduler = None


def schedule_warm_start(loader):
    """
    Gate every known device and queue a one-shot warm start.

    Devices are gated before the job is queued, so a live reading that
    arrives before the job starts still waits for its device's history.

    Args:
        loader: WarmStartLoader to run

    Returns:
        The BackgroundScheduler instance
    """
    global scheduler
    device_ids = loader.sensor_registry.device_ids()
    for device_id in device_ids:
        loader.processor.begin_warm_start(device_id)

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        loader.load_all,
        "date",
        run_date=datetime.now(timezone.utc),
        kwargs={"device_ids": device_ids},
        id="fuel_warm_start",
        misfire_grace_time=None,
    )
    scheduler.start()
    logger.info(f"Warm start scheduled for {len(device_ids)} devices")
    return scheduler


def shutdown_scheduler():
    """Shutdown the background scheduler gracefully."""
    global scheduler
    if scheduler:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Background scheduler shut down")
