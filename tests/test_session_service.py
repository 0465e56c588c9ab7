"""Tests for the session lifecycle state machine."""
from datetime import timedelta
import pytest
from smart_attendance import db
from smart_attendance.models.attendance import AttendanceRecord
from smart_attendance.models.attendance_session import AttendanceSession, SessionStatus
from smart_attendance.models.course import Course
from smart_attendance.models.session_summary import SessionSummary
from smart_attendance.services.attendance_service import AttendanceRecorder
from smart_attendance.services.session_service import SessionLifecycle
from smart_attendance.utils.errors import InvalidTransition, SessionNotFound
from smart_attendance.utils.validators import ValidationError
from conftest import T0, at

# =================== CREATE ===================

def test_create_schedules_session(make_session):
    attendance_session = make_session()

    assert attendance_session.status == SessionStatus.SCHEDULED
    assert attendance_session.is_active is False
    assert attendance_session.is_locked is False
    assert attendance_session.session_date == T0.date()
    assert attendance_session.original_end_time == at(90)
    assert attendance_session.qr_token is None

@pytest.mark.parametrize('name, minutes', [
    ('', 90),
    ('x' * 101, 90),
    ('Lecture', 10),
    ('Lecture', 9 * 60),
    ('Lecture', -30),
])
def test_create_rejects_invalid_input(course, section, name, minutes):
    with pytest.raises(ValidationError):
        SessionLifecycle().create(
            course_id=course.id,
            section_id=section.id,
            session_name=name,
            start_time=T0,
            end_time=T0 + timedelta(minutes=minutes)
        )

def test_create_rejects_section_of_other_course(section):
    other = Course(code='MA201', name='Linear Algebra').save()

    with pytest.raises(ValidationError):
        SessionLifecycle().create(
            course_id=other.id,
            section_id=section.id,
            session_name='Lecture',
            start_time=T0,
            end_time=at(90)
        )

def test_create_rejects_overlap_in_same_section(make_session, other_section):
    make_session()

    with pytest.raises(ValidationError) as exc:
        make_session(start=at(60), name='Lecture 2')
    assert 'conflict' in exc.value.message

    # Other sections and back-to-back slots are fine
    make_session(start=at(60), target_section=other_section, name='Lecture B')
    make_session(start=at(90), name='Lecture 3')

def test_get_unknown_session(app):
    with pytest.raises(SessionNotFound):
        SessionLifecycle().get(404)

# =================== TRANSITIONS ===================

def test_start_issues_token_until_end(make_session):
    attendance_session = make_session()
    started = SessionLifecycle().start(attendance_session.id, now=at(-5))

    assert started.status == SessionStatus.ACTIVE
    assert started.is_active is True
    assert started.started_at == at(-5)
    assert started.qr_token
    assert started.qr_expires_at == at(90)

def test_start_twice_is_invalid(active_session):
    with pytest.raises(InvalidTransition) as exc:
        SessionLifecycle().start(active_session.id, now=at(1))
    assert exc.value.current == 'active'
    assert exc.value.attempted == 'start'

def test_close_scheduled_session_is_invalid_and_changes_nothing(make_session):
    attendance_session = make_session()

    with pytest.raises(InvalidTransition) as exc:
        SessionLifecycle().close(attendance_session.id, now=at(0))

    assert exc.value.current == 'scheduled'
    assert SessionLifecycle().get(attendance_session.id).status == SessionStatus.SCHEDULED
    assert SessionSummary.query.count() == 0

def test_close_completes_and_snapshots(active_session):
    closed = SessionLifecycle().close(active_session.id, now=at(80))

    assert closed.status == SessionStatus.COMPLETED
    assert closed.is_active is False
    assert closed.closed_at == at(80)
    assert SessionSummary.query.filter_by(session_id=active_session.id).count() == 1

def test_completed_is_terminal(active_session):
    lifecycle = SessionLifecycle()
    lifecycle.close(active_session.id, now=at(80))

    for action in (
        lambda: lifecycle.start(active_session.id, now=at(81)),
        lambda: lifecycle.close(active_session.id, now=at(81)),
        lambda: lifecycle.lock(active_session.id),
        lambda: lifecycle.unlock(active_session.id),
        lambda: lifecycle.extend(active_session.id, 10),
        lambda: lifecycle.rotate_token(active_session.id, now=at(81)),
    ):
        with pytest.raises(InvalidTransition):
            action()
    assert lifecycle.get(active_session.id).status == SessionStatus.COMPLETED

def test_lost_close_race_raises_and_keeps_single_snapshot(active_session, monkeypatch):
    """Second closer passes the stale status check but loses the guarded update."""
    SessionLifecycle().close(active_session.id, now=at(80))
    monkeypatch.setattr(SessionLifecycle, '_require', staticmethod(lambda *args: None))

    with pytest.raises(InvalidTransition) as exc:
        SessionLifecycle().close(active_session.id, now=at(81))

    assert exc.value.current == 'completed'
    assert SessionSummary.query.filter_by(session_id=active_session.id).count() == 1
    assert SessionLifecycle().get(active_session.id).closed_at == at(80)

def test_lock_and_unlock(active_session):
    lifecycle = SessionLifecycle()

    assert lifecycle.lock(active_session.id).is_locked is True
    assert lifecycle.get(active_session.id).status == SessionStatus.ACTIVE
    assert lifecycle.unlock(active_session.id).is_locked is False

def test_lock_requires_active(make_session):
    attendance_session = make_session()
    with pytest.raises(InvalidTransition):
        SessionLifecycle().lock(attendance_session.id)

def test_extend_moves_end_and_token_expiry(active_session):
    token = active_session.qr_token
    extended = SessionLifecycle().extend(active_session.id, 10)

    assert extended.end_time == at(100)
    assert extended.original_end_time == at(90)
    assert extended.qr_expires_at == at(100)
    assert extended.qr_token == token

@pytest.mark.parametrize('minutes', [0, -5, 121, '10', 2.5, True])
def test_extend_rejects_bad_minutes(active_session, minutes):
    with pytest.raises(ValidationError):
        SessionLifecycle().extend(active_session.id, minutes)

def test_extend_scheduled_session_is_invalid(make_session):
    attendance_session = make_session()
    with pytest.raises(InvalidTransition):
        SessionLifecycle().extend(attendance_session.id, 10)

def test_rotate_token_replaces_value(active_session):
    old = active_session.qr_token
    rotated = SessionLifecycle().rotate_token(active_session.id, now=at(30))

    assert rotated.qr_token != old
    assert rotated.qr_expires_at == at(90)

def test_time_remaining_is_clamped(active_session):
    lifecycle = SessionLifecycle()
    assert lifecycle.time_remaining(active_session.id, now=at(30)) == 60 * 60
    assert lifecycle.time_remaining(active_session.id, now=at(200)) == 0

# =================== AUTO-CLOSE / DELETE ===================

def test_close_expired_closes_only_ended_sessions(active_session, make_session, other_section):
    later = make_session(start=at(120), target_section=other_section, name='Later')
    SessionLifecycle().start(later.id, now=at(120))

    lifecycle = SessionLifecycle()
    assert lifecycle.close_expired(now=at(95)) == [active_session.id]
    assert lifecycle.close_expired(now=at(95)) == []
    assert lifecycle.get(later.id).status == SessionStatus.ACTIVE

def test_close_expired_skips_scheduled(make_session):
    attendance_session = make_session()
    assert SessionLifecycle().close_expired(now=at(200)) == []
    assert SessionLifecycle().get(attendance_session.id).status == SessionStatus.SCHEDULED

def test_delete_removes_records_and_summary(active_session, student):
    AttendanceRecorder().record_check_in(
        active_session.id, student.id, token=active_session.qr_token, now=at(2)
    )
    lifecycle = SessionLifecycle()
    lifecycle.close(active_session.id, now=at(80))
    session_id = active_session.id

    lifecycle.delete(session_id)

    assert db.session.get(AttendanceSession, session_id) is None
    assert AttendanceRecord.query.count() == 0
    assert SessionSummary.query.count() == 0
