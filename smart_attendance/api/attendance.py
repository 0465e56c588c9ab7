"""Attendance API endpoints: QR check-in and lecturer corrections."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity
from smart_attendance import limiter
from smart_attendance.models.attendance_session import AttendanceMethod
from smart_attendance.services.attendance_service import AttendanceRecorder
from smart_attendance.services.qr_service import QrTokenIssuer
from smart_attendance.utils.decorators import lecturer_required, student_required
from smart_attendance.utils.helpers import success_response
from smart_attendance.utils.validators import ValidationError, Validator

attendance_bp = Blueprint('attendance', __name__)

def _check_in_response(result):
    if result.already_marked:
        return success_response(
            data=result.record.to_dict(),
            message="Attendance already recorded for this session",
            notice=result.notice
        )
    return success_response(
        data=result.record.to_dict(),
        message=f"Attendance recorded as {result.record.status.value}",
        status_code=201
    )

@attendance_bp.route('/checkin', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("10 per minute")
def check_in():
    """Check in by scanned QR data, or by session id and token."""
    data = request.get_json(silent=True) or {}
    student_id = int(get_jwt_identity())

    if data.get('qr_data'):
        scan = QrTokenIssuer.parse_payload(data['qr_data'])
        session_id, token, legacy = scan.session_id, scan.token, scan.legacy
    else:
        Validator.require(Validator.validate_required_fields(data, ['session_id', 'token']))
        Validator.require(Validator.validate_string(data['token'], 'token'))
        try:
            session_id = int(data['session_id'])
        except (TypeError, ValueError):
            raise ValidationError("session_id must be an integer")
        token, legacy = data['token'], False

    result = AttendanceRecorder().record_check_in(
        session_id,
        student_id,
        method=AttendanceMethod.QR_CODE,
        token=token,
        legacy=legacy
    )
    return _check_in_response(result)

@attendance_bp.route('/sessions/<int:session_id>/mark', methods=['POST'])
@jwt_required()
@lecturer_required
def mark_student(session_id):
    """Manual check-in by the lecturer; same window and enrollment rules."""
    data = request.get_json(silent=True) or {}
    student_id = data.get('student_id')
    if isinstance(student_id, bool) or not isinstance(student_id, int):
        raise ValidationError("student_id must be an integer")

    result = AttendanceRecorder().record_check_in(
        session_id,
        student_id,
        method=AttendanceMethod.MANUAL
    )
    return _check_in_response(result)

@attendance_bp.route('/sessions/<int:session_id>/records', methods=['PATCH'])
@jwt_required()
@lecturer_required
def update_records(session_id):
    """Overwrite the status of selected students' records."""
    data = request.get_json(silent=True) or {}
    Validator.require(
        Validator.validate_id_list(data.get('student_ids'), 'student_ids'),
        Validator.validate_record_status(data.get('status'))
    )

    records, skipped = AttendanceRecorder().set_status_for_selected(
        session_id,
        data['student_ids'],
        data['status'],
        lecturer_id=int(get_jwt_identity())
    )
    return success_response(
        data={
            'updated': [record.to_dict() for record in records],
            'skipped': skipped
        },
        message=f"Updated {len(records)} records"
    )

@attendance_bp.route('/my-records', methods=['GET'])
@jwt_required()
@student_required
def my_records():
    """Attendance history of the current student, newest first."""
    records = AttendanceRecorder().records_for_student(int(get_jwt_identity()))
    return success_response(data=records, total=len(records))
