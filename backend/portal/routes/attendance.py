from datetime import date
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from portal.services import attendance as attendance_ledger
from portal.services import reports
from portal_utils.audit import log_event
from portal_utils.access_control import scoped_student_filter
from portal_utils.decorators import role_required, student_access_required, current_account

attendance_bp = Blueprint('attendance', __name__)


@attendance_bp.route('', methods=['POST'])
@jwt_required()
@role_required('teacher', 'admin')
def mark_attendance():
    data = request.get_json(silent=True) or {}
    account = current_account()

    outcome = attendance_ledger.mark_attendance(
        course_id=data.get('course_id'),
        date=data.get('date'),
        session_type=data.get('session_type'),
        records=data.get('attendance_records'),
        marked_by=account,
    )

    log_event(
        "ATTENDANCE_MARKED", user_id=account.id, role=account.role, ip=request.remote_addr,
        description=f"course {outcome['course_id']} on {outcome['date']}: "
                    f"{outcome['created']} created, {outcome['updated']} updated, {outcome['failed']} failed"
    )
    return jsonify({
        "success": True,
        "message": f"Attendance marked for {outcome['processed'] - outcome['failed']} students",
        "data": outcome
    }), 200


@attendance_bp.route('', methods=['GET'])
@jwt_required()
@role_required()
def get_attendance():
    student_id = scoped_student_filter(current_account(), request.args.get('student_id'))

    filters = {
        "course_id": request.args.get('course_id'),
        "date": request.args.get('date'),
        "student_id": student_id,
        "status": request.args.get('status'),
    }
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', 50, type=int)

    listing = attendance_ledger.get_attendance(filters, page, limit)
    return jsonify({
        "success": True,
        "data": listing["records"],
        "pagination": listing["pagination"]
    }), 200


@attendance_bp.route('/report/<int:student_id>', methods=['GET'])
@jwt_required()
@role_required()
@student_access_required()
def attendance_report(student_id):
    return jsonify({"success": True, "data": reports.attendance_report(student_id)}), 200


@attendance_bp.route('/alerts', methods=['GET'])
@jwt_required()
@role_required('admin', 'teacher')
def attendance_alerts():
    window_days = request.args.get(
        'window_days', current_app.config["LOW_ATTENDANCE_WINDOW_DAYS"], type=int
    )
    if window_days is None or window_days < 1:
        return jsonify({"success": False, "message": "window_days must be a positive integer"}), 400

    return jsonify({"success": True, "data": reports.low_attendance_alerts(window_days)}), 200


@attendance_bp.route('/monthly-stats', methods=['GET'])
@jwt_required()
@role_required('admin', 'teacher')
def monthly_stats():
    year = request.args.get('year', date.today().year, type=int)
    if year is None or not 1900 <= year <= 9998:
        return jsonify({"success": False, "message": "Invalid year"}), 400

    return jsonify({"success": True, "data": reports.monthly_attendance_stats(year)}), 200
