"""Helper functions for the application."""
from datetime import datetime, timezone
from flask import jsonify
from typing import Any

from smart_attendance.utils.validators import ValidationError

def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    return jsonify({
        'error': True,
        'message': str(error),
        'status_code': status_code
    }), status_code

def success_response(data: Any = None, message: str = "Success", status_code: int = 200, **extra):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }

    if data is not None:
        response['data'] = data
    response.update(extra)

    return jsonify(response), status_code

def error_response(message: str, status_code: int = 400, **extra):
    """Return consistent error response."""
    response = {
        'error': True,
        'message': message,
        'status_code': status_code
    }
    response.update(extra)
    return jsonify(response), status_code

def attendance_error_response(error):
    """Render an AttendanceError with its code and details."""
    payload = error.to_dict()
    return error_response(payload.pop('message'), error.status_code, **payload)

def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching stored columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def isoformat(value: datetime) -> Any:
    """ISO string for a datetime, None passes through."""
    return value.isoformat() if value is not None else None

def parse_datetime(value: str, field: str) -> datetime:
    """Parse an ISO datetime sent by a client into naive UTC."""
    if not value or not isinstance(value, str):
        raise ValidationError(f"{field} is required")
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO datetime")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
