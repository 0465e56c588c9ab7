"""Attendance session with QR check-in."""
from datetime import datetime, timedelta
from enum import Enum
from smart_attendance import db
from smart_attendance.models.base import BaseModel

class SessionStatus(Enum):
    """Lifecycle states. Transitions only move forward."""
    SCHEDULED = 'scheduled'
    ACTIVE = 'active'
    COMPLETED = 'completed'

class AttendanceMethod(Enum):
    QR_CODE = 'qr_code'
    MANUAL = 'manual'

class AttendanceSession(BaseModel):
    """A single class meeting during which attendance may be taken."""

    __tablename__ = 'attendance_sessions'

    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False, index=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id'), nullable=False, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    session_name = db.Column(db.String(100), nullable=False)
    session_date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    original_end_time = db.Column(db.DateTime, nullable=False)
    location = db.Column(db.String(100), nullable=True)
    method = db.Column(db.Enum(AttendanceMethod), nullable=False, default=AttendanceMethod.QR_CODE)

    # State
    status = db.Column(db.Enum(SessionStatus), nullable=False, default=SessionStatus.SCHEDULED, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=False)
    is_locked = db.Column(db.Boolean, nullable=False, default=False)
    started_at = db.Column(db.DateTime, nullable=True)
    closed_at = db.Column(db.DateTime, nullable=True)

    # Current QR token
    qr_token = db.Column(db.String(128), nullable=True)
    qr_expires_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    course = db.relationship('Course')
    section = db.relationship('Section')
    records = db.relationship(
        'AttendanceRecord',
        backref='session',
        cascade='all, delete-orphan'
    )
    summary = db.relationship(
        'SessionSummary',
        backref='session',
        uselist=False,
        cascade='all, delete-orphan'
    )

    def is_open(self) -> bool:
        """Accepting check-ins: active and not locked."""
        return self.status == SessionStatus.ACTIVE and not self.is_locked

    def checkin_opens_at(self, grace: timedelta) -> datetime:
        return self.start_time - grace

    def late_after(self, grace: timedelta) -> datetime:
        """Check-ins after this instant are late. Extensions do not move it."""
        return self.start_time + grace

    def seconds_remaining(self, now: datetime) -> int:
        return max(int((self.end_time - now).total_seconds()), 0)

    def to_dict(self, include_token: bool = False):
        """Convert to dictionary."""
        exclude = [] if include_token else ['qr_token']
        data = super().to_dict(exclude=exclude)
        data['session_date'] = self.session_date.isoformat()
        return data
