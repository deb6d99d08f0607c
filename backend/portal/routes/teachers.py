from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from portal.errors import ForbiddenError
from portal.services import reports
from portal_utils.decorators import role_required, current_account

teachers_bp = Blueprint('teachers', __name__)


def _check_teacher_access(teacher_id):
    viewer = current_account()
    if viewer.role == 'teacher' and viewer.id != teacher_id:
        raise ForbiddenError("You can only view your own dashboard")


@teachers_bp.route('/<int:teacher_id>/stats', methods=['GET'])
@jwt_required()
@role_required('admin', 'teacher')
def teacher_stats(teacher_id):
    _check_teacher_access(teacher_id)
    return jsonify({"success": True, "data": reports.teacher_dashboard(teacher_id)}), 200


@teachers_bp.route('/<int:teacher_id>/courses', methods=['GET'])
@jwt_required()
@role_required('admin', 'teacher')
def teacher_courses(teacher_id):
    _check_teacher_access(teacher_id)
    return jsonify({"success": True, "data": reports.teacher_courses(teacher_id)}), 200
