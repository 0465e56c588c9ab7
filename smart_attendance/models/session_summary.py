"""Final attendance summary written when a session closes."""
from smart_attendance import db
from smart_attendance.models.base import BaseModel

class SessionSummary(BaseModel):
    """Immutable snapshot of a closed session's statistics."""

    __tablename__ = 'session_summaries'

    session_id = db.Column(
        db.Integer,
        db.ForeignKey('attendance_sessions.id', ondelete='CASCADE'),
        nullable=False,
        unique=True
    )
    total = db.Column(db.Integer, nullable=False, default=0)
    present = db.Column(db.Integer, nullable=False, default=0)
    on_time = db.Column(db.Integer, nullable=False, default=0)
    late = db.Column(db.Integer, nullable=False, default=0)
    absent = db.Column(db.Integer, nullable=False, default=0)
    attendance_rate = db.Column(db.Integer, nullable=False, default=0)
    on_time_rate = db.Column(db.Integer, nullable=False, default=0)
    late_rate = db.Column(db.Integer, nullable=False, default=0)
    absent_rate = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<SessionSummary {self.session_id}>'
