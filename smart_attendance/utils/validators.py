"""Validation utilities for the application."""
from datetime import datetime
from typing import Any, Dict, List

class ValidationError(Exception):
    """Custom validation error."""

    status_code = 400

    def __init__(self, message: str, errors: List[str] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or [message]

class Validator:
    """Validation helper class."""

    RECORD_STATUSES = ('present', 'late', 'absent')

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            if field not in data or data[field] in (None, ''):
                errors.append(f"{field} is required")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_session_name(name: str) -> Dict[str, Any]:
        """Validate a session label."""
        errors = []

        if name is not None and not isinstance(name, str):
            errors.append("Session name must be a string")
        elif not name or not name.strip():
            errors.append("Session name is required")
        elif len(name.strip()) > 100:
            errors.append("Session name cannot exceed 100 characters")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_session_timing(
        start_time: datetime,
        end_time: datetime,
        min_minutes: int,
        max_minutes: int
    ) -> Dict[str, Any]:
        """Validate that a session starts before it ends and has a sane length."""
        errors = []

        if end_time <= start_time:
            errors.append("End time must be after start time")
        else:
            duration = (end_time - start_time).total_seconds() / 60
            if duration < min_minutes:
                errors.append(f"Session duration must be at least {min_minutes} minutes")
            elif duration > max_minutes:
                errors.append(f"Session duration cannot exceed {max_minutes // 60} hours")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_location(location: str) -> Dict[str, Any]:
        errors = []
        if location is not None and not isinstance(location, str):
            errors.append("Location must be a string")
        elif location and len(location) > 100:
            errors.append("Location cannot exceed 100 characters")
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_string(value: Any, field: str) -> Dict[str, Any]:
        errors = []
        if not isinstance(value, str):
            errors.append(f"{field} must be a string")
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_record_status(status: str) -> Dict[str, Any]:
        errors = []
        if status not in Validator.RECORD_STATUSES:
            errors.append(f"Status must be one of: {', '.join(Validator.RECORD_STATUSES)}")
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_id_list(values: Any, field: str) -> Dict[str, Any]:
        """Validate a non-empty list of integer ids."""
        errors = []
        if not isinstance(values, list) or not values:
            errors.append(f"{field} must be a non-empty list")
        elif not all(isinstance(value, int) and not isinstance(value, bool) for value in values):
            errors.append(f"{field} must contain integer ids")
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def require(*results: Dict[str, Any]) -> None:
        """Raise ValidationError if any result carries errors."""
        errors = [error for result in results for error in result["errors"]]
        if errors:
            raise ValidationError(', '.join(errors), errors)
