"""Check-in recording and lecturer status overrides."""
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple
from flask import current_app
from sqlalchemy.exc import IntegrityError
from smart_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from smart_attendance.models.attendance_session import AttendanceMethod, AttendanceSession
from smart_attendance.repositories import RecordRepository, SessionRepository
from smart_attendance.services.enrollment_service import EnrollmentGate
from smart_attendance.services.qr_service import QrToken, QrTokenIssuer
from smart_attendance.utils.errors import (
    InvalidOrExpiredToken, NotEnrolled, SessionNotFound, SessionNotOpen
)
from smart_attendance.utils.helpers import utcnow
from smart_attendance.utils.validators import Validator

ALREADY_MARKED = 'already_marked'

@dataclass
class CheckInResult:
    """Outcome of a check-in that did not fail.

    ``created`` is False when the student was already marked; the existing
    record is returned unchanged and the caller should not retry.
    """
    record: AttendanceRecord
    created: bool

    @property
    def already_marked(self) -> bool:
        return not self.created

    @property
    def notice(self) -> Optional[str]:
        return ALREADY_MARKED if self.already_marked else None

class AttendanceRecorder:
    """
    Validates and records check-ins.

    Pipeline, stopping at the first failure:
    1. session exists
    2. session active and not locked
    3. QR token current and valid (legacy payloads skip this, reduced trust)
    4. student actively enrolled in the session's section
    5. no record yet (otherwise: already marked, not an error)
    6. check-in time inside the window, classified present or late
    7. session re-read under lock right before the insert
    """

    def __init__(
        self,
        sessions: SessionRepository = None,
        records: RecordRepository = None,
        gate: EnrollmentGate = None,
        issuer: QrTokenIssuer = None
    ):
        self.sessions = sessions or SessionRepository()
        self.records = records or RecordRepository()
        self.gate = gate or EnrollmentGate()
        self._issuer = issuer

    @property
    def issuer(self) -> QrTokenIssuer:
        if self._issuer is None:
            self._issuer = QrTokenIssuer.from_config()
        return self._issuer

    @property
    def grace(self) -> timedelta:
        return timedelta(minutes=current_app.config['ATTENDANCE_GRACE_MINUTES'])

    def record_check_in(
        self,
        session_id: int,
        student_id: int,
        method=AttendanceMethod.QR_CODE,
        token: str = None,
        legacy: bool = False,
        now: datetime = None,
        diagnostic: bool = None
    ) -> CheckInResult:
        now = now or utcnow()
        method = AttendanceMethod(method)

        attendance_session = self.sessions.get(session_id)
        if attendance_session is None:
            raise SessionNotFound(session_id)

        self._require_open(attendance_session)

        token_verified = False
        if method == AttendanceMethod.QR_CODE:
            if legacy:
                self._accept_legacy(attendance_session, student_id)
            else:
                self._check_token(attendance_session, token, now)
                token_verified = True

        if not self.gate.is_enrolled(student_id, attendance_session.section_id):
            raise self._not_enrolled(student_id, attendance_session, diagnostic)

        existing = self.records.find(session_id, student_id)
        if existing is not None:
            return CheckInResult(record=existing, created=False)

        # Lecturer actions may have committed since the first read
        fresh = self.sessions.get_for_update(session_id)
        if fresh is None:
            raise SessionNotFound(session_id)
        self._require_open(fresh)
        status = self.classify(fresh, now)

        record = AttendanceRecord(
            session_id=session_id,
            student_id=student_id,
            status=status,
            check_in_time=now,
            method=method,
            token_verified=token_verified
        )
        try:
            self.records.insert(record)
            self.records.commit()
        except IntegrityError:
            # Uniqueness on (session, student): a parallel check-in won
            self.records.rollback()
            existing = self.records.find(session_id, student_id)
            if existing is None:
                raise
            return CheckInResult(record=existing, created=False)

        current_app.logger.info(
            'Student %s checked into session %s as %s via %s',
            student_id, session_id, status.value, method.value
        )
        return CheckInResult(record=record, created=True)

    def classify(self, attendance_session: AttendanceSession, now: datetime) -> AttendanceStatus:
        """present up to start + grace, late until the (extended) end. Never absent."""
        grace = self.grace
        if now < attendance_session.checkin_opens_at(grace):
            raise SessionNotOpen(
                attendance_session.id,
                attendance_session.status.value,
                reason='check-in has not opened yet'
            )
        if now > attendance_session.end_time:
            raise SessionNotOpen(
                attendance_session.id,
                attendance_session.status.value,
                reason='check-in window has closed'
            )
        if now <= attendance_session.late_after(grace):
            return AttendanceStatus.PRESENT
        return AttendanceStatus.LATE

    def set_status_for_selected(
        self,
        session_id: int,
        student_ids: Iterable[int],
        status,
        lecturer_id: int = None,
        now: datetime = None
    ) -> Tuple[List[AttendanceRecord], List[int]]:
        """Lecturer override of record statuses, allowed in any session state.

        Existing records are overwritten. Roster students without a record
        get a manual record for present/late; an absent override for them
        writes nothing. Returns (affected records, skipped student ids).
        """
        status_value = status.value if isinstance(status, AttendanceStatus) else status
        Validator.require(Validator.validate_record_status(status_value))
        status = AttendanceStatus(status_value)
        student_ids = list(dict.fromkeys(student_ids))
        now = now or utcnow()

        attendance_session = self.sessions.get(session_id)
        if attendance_session is None:
            raise SessionNotFound(session_id)

        try:
            result = self._apply_status(attendance_session, student_ids, status, lecturer_id, now)
        except IntegrityError:
            # A student checked in while we were writing; their row exists now
            self.records.rollback()
            result = self._apply_status(attendance_session, student_ids, status, lecturer_id, now)

        current_app.logger.info(
            'Lecturer %s set %s records to %s in session %s',
            lecturer_id, len(result[0]), status.value, session_id
        )
        return result

    def records_for_student(self, student_id: int) -> List[Dict]:
        rows = []
        for record in self.records.for_student(student_id):
            attendance_session = record.session
            rows.append({
                'id': record.id,
                'session_id': attendance_session.id,
                'session_name': attendance_session.session_name,
                'course_id': attendance_session.course_id,
                'session_date': attendance_session.session_date.isoformat(),
                'status': record.status.value,
                'check_in_time': record.check_in_time.isoformat() if record.check_in_time else None,
                'method': record.method.value
            })
        return rows

    # =================== INTERNALS ===================

    @staticmethod
    def _require_open(attendance_session: AttendanceSession) -> None:
        if not attendance_session.is_open():
            raise SessionNotOpen(
                attendance_session.id,
                attendance_session.status.value,
                locked=attendance_session.is_locked
            )

    def _check_token(self, attendance_session: AttendanceSession, token: Optional[str], now: datetime) -> None:
        if not token or not isinstance(token, str):
            raise InvalidOrExpiredToken("QR code has no check-in token")
        current = attendance_session.qr_token
        if not current or not hmac.compare_digest(token.encode(), current.encode()):
            raise InvalidOrExpiredToken("QR code is no longer current")
        presented = QrToken(value=token, session_id=attendance_session.id, expires_at=attendance_session.qr_expires_at)
        if not self.issuer.validate(presented, attendance_session.id, now):
            raise InvalidOrExpiredToken("QR code expired")

    def _accept_legacy(self, attendance_session: AttendanceSession, student_id: int) -> None:
        if not current_app.config.get('QR_ACCEPT_LEGACY_PAYLOADS', True):
            raise InvalidOrExpiredToken("This QR code format is no longer accepted")
        current_app.logger.warning(
            'Reduced-trust legacy QR check-in without token: student %s, session %s',
            student_id, attendance_session.id
        )

    def _not_enrolled(self, student_id: int, attendance_session: AttendanceSession, diagnostic: bool = None) -> NotEnrolled:
        if diagnostic is None:
            diagnostic = current_app.config.get('ENROLLMENT_DIAGNOSTICS', False)

        other_sections = None
        if diagnostic:
            other_sections = [
                {'section_id': section_id, 'section_code': code}
                for section_id, code in self.gate.active_enrollments(student_id)
                if section_id != attendance_session.section_id
            ]
        return NotEnrolled(
            student_id,
            attendance_session.section_id,
            self.gate.section_code(attendance_session.section_id),
            other_sections
        )

    def _apply_status(
        self,
        attendance_session: AttendanceSession,
        student_ids: List[int],
        status: AttendanceStatus,
        lecturer_id: Optional[int],
        now: datetime
    ) -> Tuple[List[AttendanceRecord], List[int]]:
        existing = {record.student_id: record for record in self.records.for_students(attendance_session.id, student_ids)}
        roster = {student.id for student in self.gate.roster(attendance_session.section_id)}

        # Manual records stay inside the check-in window even when written after close
        opens_at = attendance_session.checkin_opens_at(self.grace)
        check_in_time = min(max(now, opens_at), attendance_session.end_time)

        affected, skipped = [], []
        for student_id in student_ids:
            record = existing.get(student_id)
            if record is not None:
                record.status = status
                record.updated_by = lecturer_id
                affected.append(record)
            elif status != AttendanceStatus.ABSENT and student_id in roster:
                record = AttendanceRecord(
                    session_id=attendance_session.id,
                    student_id=student_id,
                    status=status,
                    check_in_time=check_in_time,
                    method=AttendanceMethod.MANUAL,
                    token_verified=False,
                    updated_by=lecturer_id
                )
                self.records.insert(record)
                affected.append(record)
            elif status != AttendanceStatus.ABSENT:
                skipped.append(student_id)

        self.records.commit()
        return affected, skipped
