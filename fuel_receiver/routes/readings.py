"""
Fuel reading routes.

Handles fuel sensor reading ingestion and the detected activity history.
"""

import logging

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError

from ..config import Config
from ..database import get_db
from ..exceptions import SensorDataParseError
from ..models import FuelActivityRecord, Position
from ..readings import ProcessingMode, ProcessingStatus, Reading
from ..utils.error_codes import ErrorCode, StructuredError
from ..utils.wide_events import WideEvent

logger = logging.getLogger(__name__)

readings_bp = Blueprint('readings', __name__)


def _error_response(code: ErrorCode, message: str, status: int, **context):
    structured_error = StructuredError(code, message, **context)
    return jsonify({'error': structured_error.to_dict()}), status


@readings_bp.route('/fuel/readings', methods=['POST'])
def upload_readings():
    """
    Receive one reading or a list of readings as JSON.

    Every reading is processed live and stored, whatever the processing
    outcome, so persistence never depends on calibration or detection.
    """
    event = WideEvent("fuel_readings_upload")
    event.add_context(remote_addr=request.remote_addr)

    payload = request.get_json(silent=True)
    if payload is None:
        event.mark_failure("invalid_json")
        event.emit(level="warning", force=True)
        return _error_response(ErrorCode.E303_JSON_DECODE_ERROR, "Request body must be JSON", 400)

    items = payload if isinstance(payload, list) else [payload]
    event.add_technical_metric("payload_items", len(items))

    try:
        readings = [Reading.from_dict(item) for item in items]
    except SensorDataParseError as e:
        event.add_error(e)
        event.mark_failure("invalid_reading")
        event.emit(level="warning", force=True)
        if not e.field:
            code = ErrorCode.E305_INVALID_READING
        elif e.value is None:
            code = ErrorCode.E002_MISSING_REQUIRED_FIELD
        else:
            code = ErrorCode.E003_INVALID_DATA_TYPE
        return _error_response(code, e.message, 400, **e.details)

    processor = current_app.extensions['fuel_processor']
    results = []
    with event.timer("process"):
        for reading in readings:
            result = processor.process(reading, ProcessingMode.LIVE)
            if result.status == ProcessingStatus.FAILED:
                event.increment_metric("readings_failed")
            if result.activity is not None:
                metric = f"{result.activity.activity_type.value.lower()}_detected"
                event.add_business_metric(metric, True)
            results.append(result)

    db = get_db()
    try:
        with event.timer("db_insert"):
            for result in results:
                db.add(Position.from_reading(result.reading))
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        structured_error = StructuredError(
            ErrorCode.E203_DB_TRANSACTION_ROLLBACK,
            "Failed to store fuel readings",
            exception=e,
        )
        event.add_error(e)
        event.emit(level="error", force=True)
        logger.error(str(structured_error), exc_info=True)
        return jsonify({'error': structured_error.to_dict()}), 500

    event.add_business_metric("readings", len(results))
    event.add_context(device_ids=sorted({result.reading.device_id for result in results}))
    event.mark_success()
    event.emit()

    return jsonify({
        'readings': [
            {
                **result.reading.to_dict(),
                'status': result.status.value,
                'reason': result.reason,
            }
            for result in results
        ],
        'activities': [result.activity.to_dict() for result in results if result.activity is not None],
    })


@readings_bp.route('/fuel/activities', methods=['GET'])
def get_activities():
    """Detected fills and drains, newest first."""
    db = get_db()

    device_id = request.args.get('device_id', type=int)
    limit = request.args.get('limit', Config.API_DEFAULT_PER_PAGE, type=int)
    limit = max(1, min(limit, Config.API_MAX_PER_PAGE))

    query = db.query(FuelActivityRecord)
    if device_id is not None:
        query = query.filter(FuelActivityRecord.device_id == device_id)

    activities = query.order_by(desc(FuelActivityRecord.start_time), desc(FuelActivityRecord.id)).limit(limit).all()
    return jsonify([activity.to_dict() for activity in activities])
