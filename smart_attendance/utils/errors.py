"""Typed outcomes of attendance operations.

Every failure a student or lecturer can run into is a subclass of
``AttendanceError``. Each carries a stable ``code`` for clients, the HTTP
status it maps to, whether an automatic retry of the same request could
succeed, and structured ``details`` for display.
"""
from typing import Any, Dict, Iterable, Optional


class AttendanceError(Exception):
    """Base class for attendance failures."""

    code = 'attendance_error'
    status_code = 400
    retryable = False

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'message': self.message,
            'retryable': self.retryable,
            'details': self.details,
        }


class SessionNotFound(AttendanceError):
    code = 'session_not_found'
    status_code = 404

    def __init__(self, session_id: Any) -> None:
        super().__init__(f"Attendance session {session_id} not found", session_id=session_id)


class SessionNotOpen(AttendanceError):
    """Session exists but is not accepting check-ins right now."""

    code = 'session_not_open'
    status_code = 409

    def __init__(self, session_id: Any, status: str, locked: bool = False, reason: str = None) -> None:
        if reason is None:
            reason = 'locked by the lecturer' if locked else f'session is {status}'
        super().__init__(
            f"Session is not accepting check-ins: {reason}",
            session_id=session_id,
            status=status,
            locked=locked,
            reason=reason,
        )


class InvalidTransition(AttendanceError):
    code = 'invalid_transition'
    status_code = 409

    def __init__(self, session_id: Any, current: str, attempted: str) -> None:
        super().__init__(
            f"Cannot {attempted} a session that is {current}",
            session_id=session_id,
            current=current,
            attempted=attempted,
        )
        self.current = current
        self.attempted = attempted


class InvalidOrExpiredToken(AttendanceError):
    code = 'invalid_or_expired_token'
    status_code = 400

    def __init__(self, reason: str = 'QR code expired or invalid') -> None:
        super().__init__(
            f"{reason}. Ask your lecturer to refresh the QR code and scan again",
            reason=reason,
        )


class NotEnrolled(AttendanceError):
    code = 'not_enrolled'
    status_code = 403

    def __init__(
        self,
        student_id: Any,
        required_section_id: Any,
        required_section_code: Optional[str] = None,
        other_sections: Optional[Iterable[Any]] = None,
    ) -> None:
        label = required_section_code or required_section_id
        details = {
            'student_id': student_id,
            'required_section_id': required_section_id,
            'required_section_code': required_section_code,
        }
        # Diagnostic data is only attached when the caller asked for it
        if other_sections is not None:
            other_sections = list(other_sections)
            details['other_active_enrollments'] = len(other_sections)
            details['other_sections'] = other_sections
        super().__init__(f"You are not enrolled in section {label} for this session", **details)


class InconsistentEnrollment(AttendanceError):
    """More than one active enrollment for the same student and section."""

    code = 'inconsistent_enrollment'
    status_code = 409

    def __init__(self, student_id: Any, section_id: Any, count: int) -> None:
        super().__init__(
            f"Found {count} active enrollments for student {student_id} in section {section_id}",
            student_id=student_id,
            section_id=section_id,
            count=count,
        )


class DataUnavailable(AttendanceError):
    """The data store could not be reached or timed out."""

    code = 'data_unavailable'
    status_code = 503
    retryable = True

    def __init__(self, operation: str, reason: str = None) -> None:
        super().__init__(
            f"Attendance data is temporarily unavailable ({operation}). Please try again",
            operation=operation,
            reason=reason,
        )
