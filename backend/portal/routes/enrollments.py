from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from portal.extensions import db, notifier
from portal.models import Course, Enrollment, EnrollmentStatus, Student
from portal.services.notifier import Scope
from portal_utils.decorators import role_required, student_access_required

enrollments_bp = Blueprint('enrollments', __name__)


@enrollments_bp.route('/student/<int:student_id>', methods=['GET'])
@jwt_required()
@role_required()
@student_access_required()
def student_enrollments(student_id):
    enrollments = (Enrollment.query
                   .filter_by(student_id=student_id)
                   .order_by(Enrollment.enrolled_at.desc())
                   .all())
    return jsonify({"success": True, "data": [e.to_dict(include_course=True) for e in enrollments]}), 200


@enrollments_bp.route('/course/<int:course_id>', methods=['GET'])
@jwt_required()
@role_required('teacher', 'admin')
def course_enrollments(course_id):
    enrollments = (Enrollment.query
                   .join(Student)
                   .filter(Enrollment.course_id == course_id)
                   .order_by(Student.name.asc())
                   .all())
    return jsonify({
        "success": True,
        "data": [e.to_dict(include_student=True) for e in enrollments],
        "count": len(enrollments)
    }), 200


@enrollments_bp.route('', methods=['POST'])
@jwt_required()
@role_required('admin')
def create_enrollment():
    data = request.get_json(silent=True) or {}
    student_id = data.get('student_id')
    course_id = data.get('course_id')

    if not student_id or not course_id:
        return jsonify({"success": False, "message": "student_id and course_id are required"}), 400

    if not db.session.get(Student, student_id):
        return jsonify({"success": False, "message": "Student not found"}), 404
    course = db.session.get(Course, course_id)
    if not course:
        return jsonify({"success": False, "message": "Course not found"}), 404

    if Enrollment.query.filter_by(student_id=student_id, course_id=course_id).first():
        return jsonify({"success": False, "message": "Student is already enrolled in this course"}), 400

    enrollment = Enrollment(student_id=student_id, course_id=course_id, status=EnrollmentStatus.active)
    db.session.add(enrollment)
    db.session.commit()

    notifier.notify(
        Scope.for_user("student", student_id),
        "enrollment:created",
        {"course_id": course.id, "message": f"You have been enrolled in {course.course_code}"}
    )
    return jsonify({"success": True, "message": "Student enrolled successfully", "data": enrollment.to_dict()}), 201


@enrollments_bp.route('/<int:enrollment_id>', methods=['PUT'])
@jwt_required()
@role_required('admin')
def update_enrollment(enrollment_id):
    enrollment = db.session.get(Enrollment, enrollment_id)
    if not enrollment:
        return jsonify({"success": False, "message": "Enrollment not found"}), 404

    data = request.get_json(silent=True) or {}
    try:
        enrollment.status = EnrollmentStatus(data.get('status'))
    except ValueError:
        return jsonify({"success": False, "message": "Invalid enrollment status"}), 400

    db.session.commit()
    return jsonify({"success": True, "message": "Enrollment updated successfully", "data": enrollment.to_dict()}), 200


@enrollments_bp.route('/<int:enrollment_id>', methods=['DELETE'])
@jwt_required()
@role_required('admin')
def delete_enrollment(enrollment_id):
    enrollment = db.session.get(Enrollment, enrollment_id)
    if not enrollment:
        return jsonify({"success": False, "message": "Enrollment not found"}), 404

    db.session.delete(enrollment)
    db.session.commit()
    return jsonify({"success": True, "message": "Enrollment deleted"}), 200
