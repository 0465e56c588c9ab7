"""Reports API for attendance summaries and exports."""
from flask import Blueprint
from flask_jwt_extended import jwt_required
from smart_attendance.services.aggregation_service import AttendanceAggregator
from smart_attendance.utils.decorators import lecturer_required
from smart_attendance.utils.helpers import success_response

reports_bp = Blueprint('reports', __name__)

# =================== SESSION REPORTS ===================

@reports_bp.route('/sessions/<int:session_id>/summary', methods=['GET'])
@jwt_required()
@lecturer_required
def session_summary(session_id):
    """Live statistics, plus the close-time snapshot once the session is completed."""
    aggregator = AttendanceAggregator()
    stats = aggregator.summarize(session_id)
    final = None if stats.degraded else aggregator.final_summary(session_id)

    return success_response(data={
        'session_id': session_id,
        'live': stats.to_dict(),
        'final': final.to_dict() if final else None
    })

@reports_bp.route('/sessions/<int:session_id>/export', methods=['GET'])
@jwt_required()
@lecturer_required
def export_session(session_id):
    """One row per roster student, absentees included."""
    rows = AttendanceAggregator().export_rows(session_id)
    return success_response(data=rows, total=len(rows))

# =================== COURSE REPORTS ===================

@reports_bp.route('/courses/<int:course_id>/summary', methods=['GET'])
@jwt_required()
@lecturer_required
def course_summary(course_id):
    return success_response(data=AttendanceAggregator().summarize_course(course_id))
