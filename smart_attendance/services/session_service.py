"""Attendance session lifecycle: scheduled -> active -> completed."""
from datetime import datetime, timedelta
from typing import List
from flask import current_app
from smart_attendance.models.attendance_session import AttendanceSession, SessionStatus
from smart_attendance.repositories import EnrollmentRepository, SessionRepository
from smart_attendance.services.aggregation_service import AttendanceAggregator
from smart_attendance.services.qr_service import QrToken, QrTokenIssuer
from smart_attendance.utils.errors import InvalidTransition, SessionNotFound
from smart_attendance.utils.helpers import utcnow
from smart_attendance.utils.validators import ValidationError, Validator

class SessionLifecycle:
    """
    State machine for attendance sessions.

    Every transition is a conditional UPDATE guarded on the status the
    transition starts from. If another request moved the session first, the
    update matches no row and the caller gets InvalidTransition instead of a
    silent double transition.

    ``locked`` is orthogonal to status: a locked active session keeps its
    token and records but refuses new check-ins.
    """

    def __init__(
        self,
        sessions: SessionRepository = None,
        issuer: QrTokenIssuer = None,
        aggregator: AttendanceAggregator = None,
        enrollments: EnrollmentRepository = None
    ):
        self.sessions = sessions or SessionRepository()
        self.enrollments = enrollments or EnrollmentRepository()
        self._issuer = issuer
        self.aggregator = aggregator or AttendanceAggregator(sessions=self.sessions)

    @property
    def issuer(self) -> QrTokenIssuer:
        if self._issuer is None:
            self._issuer = QrTokenIssuer.from_config()
        return self._issuer

    # =================== CREATE / READ ===================

    def create(
        self,
        course_id: int,
        section_id: int,
        session_name: str,
        start_time: datetime,
        end_time: datetime,
        location: str = None,
        created_by: int = None
    ) -> AttendanceSession:
        """Create a scheduled session after validating its timing."""
        config = current_app.config
        Validator.require(
            Validator.validate_session_name(session_name),
            Validator.validate_location(location),
            Validator.validate_session_timing(
                start_time,
                end_time,
                config['MIN_SESSION_MINUTES'],
                config['MAX_SESSION_MINUTES']
            )
        )

        section = self.enrollments.section(section_id)
        if section is None or section.course_id != course_id:
            raise ValidationError("Section does not belong to the course")

        conflicts = self.sessions.overlapping(section_id, start_time.date(), start_time, end_time)
        if conflicts:
            raise ValidationError(f"Time conflict with existing session: {conflicts[0].session_name}")

        attendance_session = AttendanceSession(
            course_id=course_id,
            section_id=section_id,
            session_name=session_name.strip(),
            session_date=start_time.date(),
            start_time=start_time,
            end_time=end_time,
            original_end_time=end_time,
            location=location,
            created_by=created_by,
            status=SessionStatus.SCHEDULED,
            is_active=False,
            is_locked=False
        )
        self.sessions.add(attendance_session)
        self.sessions.commit()

        current_app.logger.info('Session %s scheduled for section %s', attendance_session.id, section_id)
        return attendance_session

    def get(self, session_id: int) -> AttendanceSession:
        attendance_session = self.sessions.get(session_id)
        if attendance_session is None:
            raise SessionNotFound(session_id)
        return attendance_session

    def time_remaining(self, session_id: int, now: datetime = None) -> int:
        """Seconds until the current end time, clamped at zero. Display only."""
        return self.get(session_id).seconds_remaining(now or utcnow())

    def current_token(self, attendance_session: AttendanceSession) -> QrToken:
        if not attendance_session.qr_token:
            return None
        return QrToken(
            value=attendance_session.qr_token,
            session_id=attendance_session.id,
            expires_at=attendance_session.qr_expires_at
        )

    # =================== TRANSITIONS ===================

    def start(self, session_id: int, now: datetime = None) -> AttendanceSession:
        """scheduled -> active, with a fresh token valid until the scheduled end."""
        now = now or utcnow()
        attendance_session = self.get(session_id)
        self._require(attendance_session, SessionStatus.SCHEDULED, 'start')

        remaining = max(attendance_session.end_time - now, timedelta(0))
        token = self.issuer.issue(attendance_session.id, remaining, now=now)

        self._apply(
            attendance_session, SessionStatus.SCHEDULED, 'start',
            status=SessionStatus.ACTIVE,
            is_active=True,
            is_locked=False,
            started_at=now,
            qr_token=token.value,
            qr_expires_at=token.expires_at
        )
        current_app.logger.info('Session %s started, token valid until %s', session_id, token.expires_at)
        return attendance_session

    def lock(self, session_id: int) -> AttendanceSession:
        """Pause check-ins without ending the session."""
        return self._set_locked(session_id, True, 'lock')

    def unlock(self, session_id: int) -> AttendanceSession:
        return self._set_locked(session_id, False, 'unlock')

    def extend(self, session_id: int, minutes: int) -> AttendanceSession:
        """Move the end time and the token expiry forward by ``minutes``."""
        max_minutes = current_app.config['MAX_EXTENSION_MINUTES']
        if isinstance(minutes, bool) or not isinstance(minutes, int) or not 1 <= minutes <= max_minutes:
            raise ValidationError(f"Extension must be between 1 and {max_minutes} minutes")

        attendance_session = self.get(session_id)
        self._require(attendance_session, SessionStatus.ACTIVE, 'extend')

        delta = timedelta(minutes=minutes)
        values = {'end_time': attendance_session.end_time + delta}
        token = self.current_token(attendance_session)
        if token is not None:
            values['qr_expires_at'] = self.issuer.extend(token, delta).expires_at

        self._apply(attendance_session, SessionStatus.ACTIVE, 'extend', **values)
        current_app.logger.info('Session %s extended by %s minutes', session_id, minutes)
        return attendance_session

    def rotate_token(self, session_id: int, now: datetime = None) -> AttendanceSession:
        """Replace the token; the previous value stops validating in the same write."""
        now = now or utcnow()
        attendance_session = self.get(session_id)
        self._require(attendance_session, SessionStatus.ACTIVE, 'rotate token of')

        remaining = max(attendance_session.end_time - now, timedelta(0))
        token = self.issuer.issue(attendance_session.id, remaining, now=now)
        self._apply(
            attendance_session, SessionStatus.ACTIVE, 'rotate token of',
            qr_token=token.value,
            qr_expires_at=token.expires_at
        )
        current_app.logger.info('Session %s token rotated', session_id)
        return attendance_session

    def close(self, session_id: int, now: datetime = None) -> AttendanceSession:
        """active -> completed. Terminal; writes the final summary snapshot."""
        now = now or utcnow()
        attendance_session = self.get(session_id)
        self._require(attendance_session, SessionStatus.ACTIVE, 'close')

        if not self._close(attendance_session, now):
            self.sessions.refresh(attendance_session)
            raise InvalidTransition(session_id, attendance_session.status.value, 'close')
        return attendance_session

    def close_expired(self, now: datetime = None) -> List[int]:
        """Auto-close active sessions past their end time.

        Safe to run repeatedly and alongside manual closes: a session closed
        by someone else in between is skipped.
        """
        now = now or utcnow()
        closed = []
        for session_id in self.sessions.expired_active_ids(now):
            attendance_session = self.sessions.get(session_id)
            if attendance_session is not None and self._close(attendance_session, now):
                closed.append(session_id)
        return closed

    def delete(self, session_id: int) -> None:
        """Administrative delete; records and summary go with the session."""
        attendance_session = self.get(session_id)
        self.sessions.delete(attendance_session)
        self.sessions.commit()
        current_app.logger.info('Session %s deleted', session_id)

    # =================== INTERNALS ===================

    def _set_locked(self, session_id: int, locked: bool, attempted: str) -> AttendanceSession:
        attendance_session = self.get(session_id)
        self._require(attendance_session, SessionStatus.ACTIVE, attempted)
        self._apply(attendance_session, SessionStatus.ACTIVE, attempted, is_locked=locked)
        current_app.logger.info('Session %s %sed', session_id, attempted)
        return attendance_session

    @staticmethod
    def _require(attendance_session: AttendanceSession, expected: SessionStatus, attempted: str) -> None:
        if attendance_session.status != expected:
            raise InvalidTransition(attendance_session.id, attendance_session.status.value, attempted)

    def _apply(self, attendance_session: AttendanceSession, expected: SessionStatus, attempted: str, **values) -> None:
        if not self.sessions.update_if_status(attendance_session.id, expected, **values):
            self.sessions.rollback()
            raise InvalidTransition(attendance_session.id, attendance_session.status.value, attempted)
        self.sessions.commit()

    def _close(self, attendance_session: AttendanceSession, now: datetime) -> bool:
        closed = self.sessions.update_if_status(
            attendance_session.id,
            SessionStatus.ACTIVE,
            status=SessionStatus.COMPLETED,
            is_active=False,
            is_locked=True,
            closed_at=now
        )
        if not closed:
            self.sessions.rollback()
            return False

        self.aggregator.snapshot(attendance_session.id)
        self.sessions.commit()
        current_app.logger.info('Session %s closed', attendance_session.id)
        return True
