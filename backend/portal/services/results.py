"""
Result ledger.

One row per (student, course, assessment type, assessment name). The grade is
derived from the marks every time a row is written.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from portal.errors import ValidationError, NotFoundError
from portal.extensions import db, notifier
from portal.models import AssessmentType, Course, Result, Student
from portal.services.notifier import Scope
from portal.services.notifications import store_student_notifications
from portal_utils.grading import calculate_grade
from portal_utils.parsing import parse_enum, parse_id, parse_number

logger = logging.getLogger(__name__)


def normalize_assessment_name(name):
    return (name or "").strip()


def _uploader_id(account, course):
    return account.id if account.role == "teacher" else course.teacher_id


def _find(student_id, course_id, assessment_type, assessment_name):
    return Result.query.filter_by(
        student_id=student_id,
        course_id=course_id,
        assessment_type=assessment_type,
        assessment_name=assessment_name,
    ).first()


def upsert_result(student_id, course_id, assessment_type, assessment_name,
                  marks_obtained, total_marks, uploaded_by, remarks=None):
    """Create or overwrite one result row and commit it. Returns (result, created)."""
    grade = calculate_grade(marks_obtained, total_marks)
    values = {
        "marks_obtained": marks_obtained,
        "total_marks": total_marks,
        "grade": grade,
        "uploaded_by": uploaded_by,
    }
    if remarks is not None:
        values["remarks"] = remarks

    result = _find(student_id, course_id, assessment_type, assessment_name)
    if result is None:
        result = Result(
            student_id=student_id,
            course_id=course_id,
            assessment_type=assessment_type,
            assessment_name=assessment_name,
            **values
        )
        db.session.add(result)
        try:
            db.session.commit()
            return result, True
        except IntegrityError:
            db.session.rollback()
            result = _find(student_id, course_id, assessment_type, assessment_name)
            if result is None:
                raise
            logger.info("Result insert race on (%s, %s, %s, %r); updating winner",
                        student_id, course_id, assessment_type.value, assessment_name)

    for key, value in values.items():
        setattr(result, key, value)
    db.session.commit()
    return result, False


def create_result(data, uploaded_by):
    """Single-student upsert used for ad-hoc corrections."""
    required = ("student_id", "course_id", "assessment_type", "marks_obtained", "total_marks")
    missing = [field for field in required if data.get(field) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {missing}")

    student_id = parse_id(data["student_id"], "student_id")
    course_id = parse_id(data["course_id"], "course_id")
    assessment_type = parse_enum(AssessmentType, data["assessment_type"], "assessment_type")
    total_marks = parse_number(data["total_marks"], "total_marks", strictly_positive=True)
    marks_obtained = parse_number(data["marks_obtained"], "marks_obtained", minimum=0)

    student = db.session.get(Student, student_id)
    if student is None:
        raise NotFoundError("Student not found")
    course = db.session.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course not found")

    result, created = upsert_result(
        student_id,
        course_id,
        assessment_type,
        normalize_assessment_name(data.get("assessment_name")),
        marks_obtained,
        total_marks,
        _uploader_id(uploaded_by, course),
        remarks=data.get("remarks"),
    )

    notifier.notify(
        Scope.for_user("student", student_id),
        "results:updated",
        {"course_id": course_id, "assessment_type": assessment_type.value, "message": "New results uploaded"},
    )
    return result, created


def _validate_batch(course_id, assessment_type, total_marks, records):
    if course_id in (None, "") or not assessment_type or total_marks in (None, "") or not isinstance(records, list):
        raise ValidationError(
            "Please provide course_id, assessment_type, total_marks, and results_data array"
        )

    course_id = parse_id(course_id, "course_id")
    assessment_type = parse_enum(AssessmentType, assessment_type, "assessment_type")
    total_marks = parse_number(total_marks, "total_marks", strictly_positive=True)

    parsed, errors = [], []
    for index, record in enumerate(records):
        if not isinstance(record, dict) or record.get("student_id") in (None, ""):
            errors.append({"index": index, "message": "student_id is required"})
            continue
        try:
            parsed.append((
                parse_id(record["student_id"], "student_id"),
                parse_number(record.get("marks_obtained"), "marks_obtained", minimum=0),
            ))
        except ValidationError as e:
            errors.append({"index": index, "message": e.message})

    if errors:
        raise ValidationError("Invalid results_data", details=errors)
    return course_id, assessment_type, total_marks, parsed


def upload_assessments(course_id, assessment_type, assessment_name, total_marks, records, uploaded_by):
    """
    Upsert one assessment instance for many students.

    ``total_marks`` belongs to the assessment, so it is shared by the whole
    batch. Records are committed one at a time; failures are reported per
    record and do not stop the batch.
    """
    course_id, assessment_type, total_marks, parsed = _validate_batch(
        course_id, assessment_type, total_marks, records
    )
    assessment_name = normalize_assessment_name(assessment_name)

    course = db.session.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course not found")
    uploader_id = _uploader_id(uploaded_by, course)

    outcomes = []
    for student_id, marks_obtained in parsed:
        try:
            if db.session.get(Student, student_id) is None:
                raise NotFoundError(f"Student {student_id} not found")
            result, created = upsert_result(
                student_id, course_id, assessment_type, assessment_name,
                marks_obtained, total_marks, uploader_id,
            )
            outcomes.append({
                "student_id": student_id,
                "status": "created" if created else "updated",
                "grade": result.grade,
            })
        except (NotFoundError, SQLAlchemyError) as e:
            db.session.rollback()
            logger.warning("Result for student %s in course %s failed: %s", student_id, course_id, e)
            outcomes.append({"student_id": student_id, "status": "failed", "error": str(e)})

    saved = [o for o in outcomes if o["status"] != "failed"]
    if saved:
        _announce(course, assessment_type, assessment_name, saved, uploaded_by)

    created_count = sum(1 for o in outcomes if o["status"] == "created")
    updated_count = sum(1 for o in outcomes if o["status"] == "updated")
    return {
        "course_id": course_id,
        "assessment_type": assessment_type.value,
        "assessment_name": assessment_name,
        "created_count": created_count,
        "updated_count": updated_count,
        "failed_count": len(outcomes) - created_count - updated_count,
        "total": created_count + updated_count,
        "results": outcomes,
    }


def _announce(course, assessment_type, assessment_name, saved, uploaded_by):
    student_ids = [o["student_id"] for o in saved]
    notifier.notify(
        [Scope.for_user("student", sid) for sid in student_ids],
        "results:updated",
        {
            "course_id": course.id,
            "assessment_type": assessment_type.value,
            "message": "New results uploaded",
        },
    )
    notifier.notify(
        Scope.for_role("admin"),
        "results:uploaded",
        {
            "course_id": course.id,
            "assessment_type": assessment_type.value,
            "student_count": len(student_ids),
            "uploaded_by": uploaded_by.name,
        },
    )
    label = f"{assessment_type.value} {assessment_name}".strip()
    store_student_notifications(
        student_ids,
        "result",
        "Results updated",
        f"{label} results for {course.course_code} are available",
    )
