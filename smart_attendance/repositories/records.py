"""Attendance record and summary persistence."""
from typing import Iterable, List, Optional
from smart_attendance.models.attendance import AttendanceRecord
from smart_attendance.models.attendance_session import AttendanceSession
from smart_attendance.models.session_summary import SessionSummary
from smart_attendance.repositories.base import Repository, store_call

class RecordRepository(Repository):
    """Reads and writes for attendance_records."""

    @store_call('read attendance record')
    def find(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        return AttendanceRecord.query.filter_by(
            session_id=session_id,
            student_id=student_id
        ).first()

    @store_call('write attendance record')
    def insert(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert and flush; IntegrityError surfaces on a duplicate (session, student)."""
        self.session.add(record)
        self.session.flush()
        return record

    @store_call('read attendance records')
    def for_session(self, session_id: int) -> List[AttendanceRecord]:
        return AttendanceRecord.query.filter_by(session_id=session_id).all()

    @store_call('read attendance records')
    def for_students(self, session_id: int, student_ids: Iterable[int]) -> List[AttendanceRecord]:
        return AttendanceRecord.query.filter(
            AttendanceRecord.session_id == session_id,
            AttendanceRecord.student_id.in_(list(student_ids))
        ).all()

    @store_call('read attendance records')
    def for_student(self, student_id: int) -> List[AttendanceRecord]:
        return AttendanceRecord.query.join(AttendanceSession).filter(
            AttendanceRecord.student_id == student_id
        ).order_by(AttendanceSession.start_time.desc()).all()

class SummaryRepository(Repository):
    """Final per-session summaries."""

    @store_call('read session summary')
    def get(self, session_id: int) -> Optional[SessionSummary]:
        return SessionSummary.query.filter_by(session_id=session_id).first()

    @store_call('write session summary')
    def insert(self, summary: SessionSummary) -> SessionSummary:
        self.session.add(summary)
        self.session.flush()
        return summary
