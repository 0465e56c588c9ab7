"""Attendance session persistence."""
from datetime import date, datetime
from typing import List, Optional
from smart_attendance.models.attendance_session import AttendanceSession, SessionStatus
from smart_attendance.repositories.base import Repository, store_call

class SessionRepository(Repository):
    """Reads and guarded writes for attendance_sessions."""

    @store_call('read session')
    def get(self, session_id: int) -> Optional[AttendanceSession]:
        return self.session.get(AttendanceSession, session_id)

    @store_call('read session')
    def get_for_update(self, session_id: int) -> Optional[AttendanceSession]:
        """Re-read the committed row under a row lock (no-op lock on SQLite)."""
        return self.session.get(
            AttendanceSession,
            session_id,
            with_for_update=True,
            populate_existing=True
        )

    @store_call('create session')
    def add(self, attendance_session: AttendanceSession) -> AttendanceSession:
        self.session.add(attendance_session)
        self.session.flush()
        return attendance_session

    @store_call('update session')
    def update_if_status(self, session_id: int, expected: SessionStatus, **values) -> bool:
        """Apply ``values`` only if the row is still in ``expected`` status.

        Returns False when another writer changed the status first.
        """
        updated = AttendanceSession.query.filter_by(
            id=session_id,
            status=expected
        ).update(values, synchronize_session=False)
        return updated == 1

    @store_call('reload session')
    def refresh(self, attendance_session: AttendanceSession) -> AttendanceSession:
        self.session.refresh(attendance_session)
        return attendance_session

    @store_call('read sessions')
    def overlapping(
        self,
        section_id: int,
        session_date: date,
        start_time: datetime,
        end_time: datetime
    ) -> List[AttendanceSession]:
        return AttendanceSession.query.filter(
            AttendanceSession.section_id == section_id,
            AttendanceSession.session_date == session_date,
            AttendanceSession.status != SessionStatus.COMPLETED,
            AttendanceSession.start_time < end_time,
            AttendanceSession.end_time > start_time
        ).all()

    @store_call('read sessions')
    def expired_active_ids(self, now: datetime) -> List[int]:
        rows = AttendanceSession.query.with_entities(AttendanceSession.id).filter(
            AttendanceSession.status == SessionStatus.ACTIVE,
            AttendanceSession.end_time <= now
        ).all()
        return [row.id for row in rows]

    @store_call('read sessions')
    def for_course(self, course_id: int) -> List[AttendanceSession]:
        return AttendanceSession.query.filter_by(course_id=course_id).order_by(
            AttendanceSession.start_time
        ).all()

    @store_call('delete session')
    def delete(self, attendance_session: AttendanceSession) -> None:
        self.session.delete(attendance_session)
        self.session.flush()
