"""
Error Code Taxonomy for the fuel receiver

Structured error codes for alerting and debugging.

Error Code Format:
- E001-E099: Validation errors (bad input data)
- E200-E299: Database errors
- E300-E399: Parsing errors (sensor payloads, JSON)
- E400-E499: Processing errors (calibration, detection, warm start)
"""

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """High-level error categories for grouping and alerting."""

    VALIDATION = "validation"
    DATABASE = "database"
    PARSING = "parsing"
    PROCESSING = "processing"
    SYSTEM = "system"


class ErrorCode(str, Enum):
    """Structured error codes with consistent format."""

    # Validation Errors (E001-E099)
    E002_MISSING_REQUIRED_FIELD = "E002"  # Required field missing in request
    E003_INVALID_DATA_TYPE = "E003"  # Field has wrong data type

    # Database Errors (E200-E299)
    E203_DB_TRANSACTION_ROLLBACK = "E203"  # Database transaction rolled back

    # Parsing Errors (E300-E399)
    E303_JSON_DECODE_ERROR = "E303"  # Request body is not JSON
    E305_INVALID_READING = "E305"  # Reading could not be built from payload

    # Processing Errors (E400-E499)
    E410_CALIBRATION_FAILED = "E410"  # Raw value could not be mapped to a volume
    E411_READING_PROCESSING_FAILED = "E411"  # Unexpected fault while processing
    E412_WARM_START_FAILED = "E412"  # Historical load failed for a device
    E413_ACTIVITY_PUBLISH_FAILED = "E413"  # Activity sink raised


ERROR_METADATA = {
    ErrorCode.E002_MISSING_REQUIRED_FIELD: {
        "category": ErrorCategory.VALIDATION,
        "description": "Required field missing in request",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E003_INVALID_DATA_TYPE: {
        "category": ErrorCategory.VALIDATION,
        "description": "Field has wrong data type",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E203_DB_TRANSACTION_ROLLBACK: {
        "category": ErrorCategory.DATABASE,
        "description": "Database transaction rolled back",
        "severity": "error",
        "alert": True,
    },
    ErrorCode.E303_JSON_DECODE_ERROR: {
        "category": ErrorCategory.PARSING,
        "description": "Request body is not valid JSON",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E305_INVALID_READING: {
        "category": ErrorCategory.PARSING,
        "description": "Reading could not be built from payload",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E410_CALIBRATION_FAILED: {
        "category": ErrorCategory.PROCESSING,
        "description": "Raw sensor value could not be calibrated",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E411_READING_PROCESSING_FAILED: {
        "category": ErrorCategory.PROCESSING,
        "description": "Unexpected fault while processing a reading",
        "severity": "error",
        "alert": True,
    },
    ErrorCode.E412_WARM_START_FAILED: {
        "category": ErrorCategory.PROCESSING,
        "description": "Loading historical readings failed for a device",
        "severity": "error",
        "alert": True,
    },
    ErrorCode.E413_ACTIVITY_PUBLISH_FAILED: {
        "category": ErrorCategory.PROCESSING,
        "description": "Fuel activity could not be delivered",
        "severity": "error",
        "alert": True,
    },
}


def get_error_metadata(error_code: ErrorCode) -> dict:
    """Get metadata for an error code."""
    return ERROR_METADATA.get(
        error_code,
        {
            "category": ErrorCategory.SYSTEM,
            "description": "Unknown error",
            "severity": "error",
            "alert": True,
        },
    )


class StructuredError:
    """Structured error with code, category, and metadata."""

    def __init__(self, code: ErrorCode, message: str, exception: Optional[Exception] = None, **context):
        """
        Create a structured error.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            exception: Original exception (if applicable)
            **context: Additional context fields (device_id, sensor_id, etc.)
        """
        self.code = code
        self.message = message
        self.exception = exception
        self.context = context
        self.metadata = get_error_metadata(code)

    def to_dict(self) -> dict:
        error_dict = {
            "code": self.code.value,
            "category": self.metadata["category"].value,
            "message": self.message,
            "severity": self.metadata["severity"],
            "alert": self.metadata["alert"],
        }

        if self.exception:
            error_dict["exception_type"] = type(self.exception).__name__
            error_dict["exception_message"] = str(self.exception)

        if self.context:
            error_dict["context"] = self.context

        return error_dict

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"
