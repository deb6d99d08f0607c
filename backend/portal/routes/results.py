from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from portal.services import results as result_ledger
from portal.services import reports
from portal_utils.audit import log_event
from portal_utils.decorators import role_required, student_access_required, current_account

results_bp = Blueprint('results', __name__)


@results_bp.route('/student/<int:student_id>', methods=['GET'])
@jwt_required()
@role_required()
@student_access_required()
def get_student_results(student_id):
    return jsonify({"success": True, "data": reports.student_results(student_id)}), 200


@results_bp.route('', methods=['POST'])
@jwt_required()
@role_required('teacher', 'admin')
def create_result():
    data = request.get_json(silent=True) or {}
    result, created = result_ledger.create_result(data, uploaded_by=current_account())

    return jsonify({
        "success": True,
        "message": "Result created successfully" if created else "Result updated successfully",
        "created": created,
        "data": result.to_dict()
    }), 201 if created else 200


@results_bp.route('/assessments', methods=['POST'])
@jwt_required()
@role_required('teacher', 'admin')
def upload_assessments():
    data = request.get_json(silent=True) or {}
    account = current_account()

    outcome = result_ledger.upload_assessments(
        course_id=data.get('course_id'),
        assessment_type=data.get('assessment_type'),
        assessment_name=data.get('assessment_name'),
        total_marks=data.get('total_marks'),
        records=data.get('results_data'),
        uploaded_by=account,
    )

    log_event(
        "RESULTS_UPLOADED", user_id=account.id, role=account.role, ip=request.remote_addr,
        description=f"course {outcome['course_id']} {outcome['assessment_type']}: "
                    f"{outcome['created_count']} created, {outcome['updated_count']} updated, "
                    f"{outcome['failed_count']} failed"
    )
    return jsonify({
        "success": True,
        "message": f"Uploaded {outcome['total']} results",
        "data": outcome
    }), 200


@results_bp.route('/performance-analysis', methods=['GET'])
@jwt_required()
@role_required('admin')
def performance_analysis():
    return jsonify({"success": True, "data": reports.performance_analysis()}), 200
