"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .course import Course, Section
from .enrollment import SectionEnrollment, EnrollmentStatus
from .attendance_session import AttendanceSession, SessionStatus, AttendanceMethod
from .attendance import AttendanceRecord, AttendanceStatus
from .session_summary import SessionSummary

__all__ = [
    'BaseModel', 'User', 'UserRole',
    'Course', 'Section',
    'SectionEnrollment', 'EnrollmentStatus',
    'AttendanceSession', 'SessionStatus', 'AttendanceMethod',
    'AttendanceRecord', 'AttendanceStatus',
    'SessionSummary'
]
