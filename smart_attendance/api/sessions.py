"""Attendance session API endpoints for lecturers."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity
from smart_attendance import limiter
from smart_attendance.models.attendance_session import SessionStatus
from smart_attendance.models.user import UserRole
from smart_attendance.services.session_service import SessionLifecycle
from smart_attendance.utils.decorators import admin_required, current_role, lecturer_required
from smart_attendance.utils.errors import SessionNotOpen
from smart_attendance.utils.helpers import isoformat, parse_datetime, success_response, utcnow
from smart_attendance.utils.validators import ValidationError, Validator

sessions_bp = Blueprint('sessions', __name__)

def _lecturer_view() -> bool:
    return current_role() in (UserRole.LECTURER.value, UserRole.ADMIN.value)

# =================== CREATE / READ ===================

@sessions_bp.route('/', methods=['POST'])
@jwt_required()
@lecturer_required
def create_session():
    """Schedule a new attendance session for a section."""
    data = request.get_json(silent=True) or {}
    Validator.require(Validator.validate_required_fields(
        data, ['course_id', 'section_id', 'session_name', 'start_time', 'end_time']
    ))

    try:
        course_id = int(data['course_id'])
        section_id = int(data['section_id'])
    except (TypeError, ValueError):
        raise ValidationError("course_id and section_id must be integers")

    attendance_session = SessionLifecycle().create(
        course_id=course_id,
        section_id=section_id,
        session_name=data['session_name'],
        start_time=parse_datetime(data['start_time'], 'start_time'),
        end_time=parse_datetime(data['end_time'], 'end_time'),
        location=data.get('location'),
        created_by=int(get_jwt_identity())
    )

    return success_response(
        data=attendance_session.to_dict(),
        message="Session created successfully",
        status_code=201
    )

@sessions_bp.route('/<int:session_id>', methods=['GET'])
@jwt_required()
def get_session(session_id):
    """Get session details. Only lecturers see the current token."""
    attendance_session = SessionLifecycle().get(session_id)
    return success_response(data=attendance_session.to_dict(include_token=_lecturer_view()))

@sessions_bp.route('/<int:session_id>', methods=['DELETE'])
@jwt_required()
@admin_required
def delete_session(session_id):
    SessionLifecycle().delete(session_id)
    return success_response(message="Session deleted successfully")

# =================== TRANSITIONS ===================

@sessions_bp.route('/<int:session_id>/start', methods=['POST'])
@jwt_required()
@lecturer_required
def start_session(session_id):
    """Open the session for check-in and issue its QR token."""
    attendance_session = SessionLifecycle().start(session_id)
    return success_response(
        data=attendance_session.to_dict(include_token=True),
        message="Session started successfully"
    )

@sessions_bp.route('/<int:session_id>/lock', methods=['POST'])
@jwt_required()
@lecturer_required
def lock_session(session_id):
    attendance_session = SessionLifecycle().lock(session_id)
    return success_response(data=attendance_session.to_dict(), message="Session locked")

@sessions_bp.route('/<int:session_id>/unlock', methods=['POST'])
@jwt_required()
@lecturer_required
def unlock_session(session_id):
    attendance_session = SessionLifecycle().unlock(session_id)
    return success_response(data=attendance_session.to_dict(), message="Session unlocked")

@sessions_bp.route('/<int:session_id>/close', methods=['POST'])
@jwt_required()
@lecturer_required
def close_session(session_id):
    """End the session and return its final summary."""
    lifecycle = SessionLifecycle()
    attendance_session = lifecycle.close(session_id)
    summary = lifecycle.aggregator.final_summary(session_id)

    return success_response(
        data={
            'session': attendance_session.to_dict(),
            'summary': summary.to_dict() if summary else None
        },
        message="Session closed successfully"
    )

@sessions_bp.route('/<int:session_id>/rotate-token', methods=['POST'])
@jwt_required()
@lecturer_required
@limiter.limit("30 per hour")
def rotate_token(session_id):
    """Invalidate the displayed QR code and issue a new one."""
    attendance_session = SessionLifecycle().rotate_token(session_id)
    return success_response(
        data=attendance_session.to_dict(include_token=True),
        message="QR code refreshed"
    )

@sessions_bp.route('/<int:session_id>/extend', methods=['POST'])
@jwt_required()
@lecturer_required
def extend_session(session_id):
    """Push the end time (and token expiry) forward."""
    data = request.get_json(silent=True) or {}
    Validator.require(Validator.validate_required_fields(data, ['minutes']))

    attendance_session = SessionLifecycle().extend(session_id, data['minutes'])
    return success_response(
        data=attendance_session.to_dict(),
        message=f"Session extended by {data['minutes']} minutes"
    )

# =================== QR / COUNTDOWN ===================

@sessions_bp.route('/<int:session_id>/qr', methods=['GET'])
@jwt_required()
@lecturer_required
def get_qr(session_id):
    """Current QR code for display in the classroom."""
    lifecycle = SessionLifecycle()
    attendance_session = lifecycle.get(session_id)
    token = lifecycle.current_token(attendance_session)
    if attendance_session.status != SessionStatus.ACTIVE or token is None:
        raise SessionNotOpen(session_id, attendance_session.status.value)

    payload = lifecycle.issuer.build_payload(session_id, token.value)
    return success_response(data={
        'session_id': session_id,
        'payload': payload,
        'qr_image': lifecycle.issuer.render_png(payload),
        'expires_at': isoformat(token.expires_at),
        'is_locked': attendance_session.is_locked
    })

@sessions_bp.route('/<int:session_id>/countdown', methods=['GET'])
@jwt_required()
def countdown(session_id):
    """Display-only time remaining; check-in decisions never use it."""
    lifecycle = SessionLifecycle()
    attendance_session = lifecycle.get(session_id)
    return success_response(data={
        'session_id': session_id,
        'status': attendance_session.status.value,
        'is_locked': attendance_session.is_locked,
        'end_time': isoformat(attendance_session.end_time),
        'seconds_remaining': lifecycle.time_remaining(session_id, utcnow())
    })
