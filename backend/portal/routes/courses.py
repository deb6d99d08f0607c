from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from portal.extensions import db
from portal.models import Course, Teacher, Timetable, Weekday
from portal_utils.decorators import role_required
from portal_utils.pagination import apply_pagination_and_search, pagination_meta

courses_bp = Blueprint('courses', __name__)


@courses_bp.route('', methods=['GET'])
@jwt_required()
@role_required()
def list_courses():
    query = Course.query
    teacher_id = request.args.get('teacher_id', type=int)
    if teacher_id:
        query = query.filter(Course.teacher_id == teacher_id)

    paginated = apply_pagination_and_search(
        query.order_by(Course.course_code),
        Course,
        request.args.get('search', type=str),
        ["course_code", "course_title"],
        request.args.get('page', 1, type=int),
        request.args.get('limit', 50, type=int),
    )
    return jsonify({
        "success": True,
        "data": [c.to_dict() for c in paginated.items],
        "pagination": pagination_meta(paginated)
    }), 200


@courses_bp.route('/<int:course_id>', methods=['GET'])
@jwt_required()
@role_required()
def get_course(course_id):
    course = db.session.get(Course, course_id)
    if not course:
        return jsonify({"success": False, "message": "Course not found"}), 404

    data = course.to_dict()
    data["schedule"] = [slot.to_dict() for slot in course.schedule]
    return jsonify({"success": True, "data": data}), 200


def _apply_course_fields(course, data):
    for field in ('course_code', 'course_title', 'description'):
        if field in data:
            setattr(course, field, (data[field] or '').strip() or None)

    if 'credit_hours' in data:
        try:
            credit_hours = int(data['credit_hours'])
        except (TypeError, ValueError):
            return "credit_hours must be an integer"
        if credit_hours < 0:
            return "credit_hours must not be negative"
        course.credit_hours = credit_hours

    if 'teacher_id' in data:
        if data['teacher_id'] is not None and not db.session.get(Teacher, data['teacher_id']):
            return "Teacher not found"
        course.teacher_id = data['teacher_id']
    return None


@courses_bp.route('', methods=['POST'])
@jwt_required()
@role_required('admin')
def create_course():
    data = request.get_json(silent=True) or {}
    if not data.get('course_code') or not data.get('course_title'):
        return jsonify({"success": False, "message": "course_code and course_title are required"}), 400

    course = Course()
    error = _apply_course_fields(course, data)
    if error:
        return jsonify({"success": False, "message": error}), 400

    db.session.add(course)
    db.session.commit()
    return jsonify({"success": True, "message": "Course created", "data": course.to_dict()}), 201


@courses_bp.route('/<int:course_id>', methods=['PUT'])
@jwt_required()
@role_required('admin')
def update_course(course_id):
    course = db.session.get(Course, course_id)
    if not course:
        return jsonify({"success": False, "message": "Course not found"}), 404

    error = _apply_course_fields(course, request.get_json(silent=True) or {})
    if error:
        db.session.rollback()
        return jsonify({"success": False, "message": error}), 400

    db.session.commit()
    return jsonify({"success": True, "message": "Course updated", "data": course.to_dict()}), 200


@courses_bp.route('/<int:course_id>', methods=['DELETE'])
@jwt_required()
@role_required('admin')
def delete_course(course_id):
    course = db.session.get(Course, course_id)
    if not course:
        return jsonify({"success": False, "message": "Course not found"}), 404

    db.session.delete(course)
    db.session.commit()
    return jsonify({"success": True, "message": "Course deleted"}), 200


@courses_bp.route('/<int:course_id>/schedule', methods=['GET'])
@jwt_required()
@role_required()
def course_schedule(course_id):
    week = list(Weekday)
    slots = sorted(
        Timetable.query.filter_by(course_id=course_id).all(),
        key=lambda slot: (week.index(slot.day_of_week), slot.start_time)
    )
    return jsonify({"success": True, "data": [slot.to_dict() for slot in slots]}), 200
