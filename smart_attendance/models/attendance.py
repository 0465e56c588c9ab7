"""Attendance record model."""
from enum import Enum
from smart_attendance import db
from smart_attendance.models.base import BaseModel
from smart_attendance.models.attendance_session import AttendanceMethod

class AttendanceStatus(Enum):
    PRESENT = 'present'
    LATE = 'late'
    ABSENT = 'absent'

class AttendanceRecord(BaseModel):
    """One student's attendance for one session."""

    __tablename__ = 'attendance_records'

    session_id = db.Column(
        db.Integer,
        db.ForeignKey('attendance_sessions.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    check_in_time = db.Column(db.DateTime, nullable=True)
    method = db.Column(db.Enum(AttendanceMethod), nullable=False, default=AttendanceMethod.QR_CODE)

    # False for legacy payloads without a token and for manual marks
    token_verified = db.Column(db.Boolean, nullable=False, default=False)
    updated_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    student = db.relationship('User', foreign_keys=[student_id])

    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )

    def __repr__(self):
        return f'<AttendanceRecord {self.student_id}-{self.session_id}>'
