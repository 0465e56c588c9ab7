"""Attendance statistics derived from records and the current roster."""
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Mapping
from flask import current_app
from smart_attendance.models.attendance import AttendanceStatus
from smart_attendance.models.attendance_session import AttendanceSession, SessionStatus
from smart_attendance.models.session_summary import SessionSummary
from smart_attendance.repositories import (
    EnrollmentRepository, RecordRepository, SessionRepository, SummaryRepository
)
from smart_attendance.utils.errors import DataUnavailable, SessionNotFound

def percent(count: int, total: int) -> int:
    """Whole percentage rounded half up; 0 when there is nothing to divide by."""
    if total <= 0:
        return 0
    return (200 * count + total) // (2 * total)

@dataclass
class SessionStats:
    total: int = 0
    present: int = 0
    on_time: int = 0
    late: int = 0
    absent: int = 0
    attendance_rate: int = 0
    on_time_rate: int = 0
    late_rate: int = 0
    absent_rate: int = 0
    degraded: bool = False

    @classmethod
    def from_counts(cls, total: int, on_time: int, late: int) -> 'SessionStats':
        present = on_time + late
        absent = total - present
        return cls(
            total=total,
            present=present,
            on_time=on_time,
            late=late,
            absent=absent,
            attendance_rate=percent(present, total),
            on_time_rate=percent(on_time, total),
            late_rate=percent(late, total),
            absent_rate=percent(absent, total)
        )

    @classmethod
    def from_statuses(cls, roster: Iterable[int], statuses: Mapping[int, AttendanceStatus]) -> 'SessionStats':
        """Count each roster student once; anyone without a record is absent."""
        roster = set(roster)
        on_time = sum(1 for student_id in roster if statuses.get(student_id) == AttendanceStatus.PRESENT)
        late = sum(1 for student_id in roster if statuses.get(student_id) == AttendanceStatus.LATE)
        return cls.from_counts(len(roster), on_time, late)

    def to_dict(self) -> Dict:
        return asdict(self)

class AttendanceAggregator:
    """Pure derived views over sessions, records and enrollments.

    Nothing here is a source of truth except the close-time snapshot, which
    is written once and never updated.
    """

    def __init__(
        self,
        sessions: SessionRepository = None,
        records: RecordRepository = None,
        enrollments: EnrollmentRepository = None,
        summaries: SummaryRepository = None
    ):
        self.sessions = sessions or SessionRepository()
        self.records = records or RecordRepository()
        self.enrollments = enrollments or EnrollmentRepository()
        self.summaries = summaries or SummaryRepository()

    def summarize(self, session_id: int) -> SessionStats:
        """Live statistics for one session. Degrades to zeros if the store is down."""
        try:
            return self._compute(self._session(session_id))
        except DataUnavailable as e:
            current_app.logger.warning('Summary for session %s degraded: %s', session_id, e.message)
            return SessionStats(degraded=True)

    def summarize_course(self, course_id: int) -> Dict:
        """Totals across every started session of a course."""
        try:
            sessions = [
                attendance_session for attendance_session in self.sessions.for_course(course_id)
                if attendance_session.status != SessionStatus.SCHEDULED
            ]
            per_session = [(attendance_session, self._compute(attendance_session)) for attendance_session in sessions]
        except DataUnavailable as e:
            current_app.logger.warning('Summary for course %s degraded: %s', course_id, e.message)
            return {'course_id': course_id, 'sessions': 0, 'per_session': [], **SessionStats(degraded=True).to_dict()}

        totals = SessionStats.from_counts(
            total=sum(stats.total for _, stats in per_session),
            on_time=sum(stats.on_time for _, stats in per_session),
            late=sum(stats.late for _, stats in per_session)
        )
        return {
            'course_id': course_id,
            'sessions': len(per_session),
            'per_session': [
                {'session_id': attendance_session.id, 'session_name': attendance_session.session_name, **stats.to_dict()}
                for attendance_session, stats in per_session
            ],
            **totals.to_dict()
        }

    def snapshot(self, session_id: int) -> SessionSummary:
        """Write the final summary once; later calls return the stored one."""
        existing = self.summaries.get(session_id)
        if existing is not None:
            return existing

        stats = self._compute(self._session(session_id))
        values = stats.to_dict()
        values.pop('degraded')
        return self.summaries.insert(SessionSummary(session_id=session_id, **values))

    def final_summary(self, session_id: int) -> SessionSummary:
        return self.summaries.get(session_id)

    def export_rows(self, session_id: int) -> List[Dict]:
        """Flat rows for every roster student, absentees included."""
        attendance_session = self._session(session_id)
        records = {record.student_id: record for record in self.records.for_session(session_id)}

        rows = []
        for student in self.enrollments.roster(attendance_session.section_id):
            record = records.get(student.id)
            rows.append({
                'student_id': student.id,
                'student_name': student.name,
                'matric_number': student.matric_number,
                'status': record.status.value if record else AttendanceStatus.ABSENT.value,
                'check_in_time': record.check_in_time.isoformat() if record and record.check_in_time else None,
                'method': record.method.value if record else None
            })
        return rows

    def _session(self, session_id: int) -> AttendanceSession:
        attendance_session = self.sessions.get(session_id)
        if attendance_session is None:
            raise SessionNotFound(session_id)
        return attendance_session

    def _compute(self, attendance_session: AttendanceSession) -> SessionStats:
        roster = [student.id for student in self.enrollments.roster(attendance_session.section_id)]
        statuses = {record.student_id: record.status for record in self.records.for_session(attendance_session.id)}
        return SessionStats.from_statuses(roster, statuses)
