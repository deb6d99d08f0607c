"""
Attendance ledger.

One row per (student, course, date). Re-marking a day overwrites the row in
place; the unique constraint on that key is the only concurrency control, so
a writer that loses an insert race re-reads the winner's row and updates it.
"""
import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from portal.errors import ValidationError, NotFoundError
from portal.extensions import db, notifier
from portal.models import Attendance, AttendanceStatus, Course, Student
from portal.services.notifier import Scope
from portal.services.notifications import store_student_notifications
from portal_utils.pagination import paginate, pagination_meta
from portal_utils.parsing import parse_date, parse_enum, parse_id

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TYPE = "Lecture"


def _validate_records(records):
    if not isinstance(records, list):
        raise ValidationError("Please provide course_id, date, and attendance_records array")

    parsed, errors = [], []
    for index, record in enumerate(records):
        if not isinstance(record, dict) or record.get("student_id") in (None, ""):
            errors.append({"index": index, "message": "student_id is required"})
            continue
        try:
            parsed.append((
                parse_id(record["student_id"], "student_id"),
                parse_enum(AttendanceStatus, record.get("status"), "status"),
            ))
        except ValidationError as e:
            errors.append({"index": index, "message": e.message})

    if errors:
        raise ValidationError("Invalid attendance records", details=errors)
    return parsed


def _find(student_id, course_id, date):
    return Attendance.query.filter_by(student_id=student_id, course_id=course_id, date=date).first()


def upsert_attendance(student_id, course_id, date, status, session_type, teacher_id):
    """Create or overwrite one ledger row and commit it. Returns 'created' or 'updated'."""
    if db.session.get(Student, student_id) is None:
        raise NotFoundError(f"Student {student_id} not found")

    now = datetime.utcnow()
    record = _find(student_id, course_id, date)
    if record is None:
        db.session.add(Attendance(
            student_id=student_id,
            course_id=course_id,
            date=date,
            status=status,
            session_type=session_type,
            teacher_id=teacher_id,
            marked_at=now,
        ))
        try:
            db.session.commit()
            return "created"
        except IntegrityError:
            db.session.rollback()
            record = _find(student_id, course_id, date)
            if record is None:
                raise
            logger.info("Attendance insert race on (%s, %s, %s); updating winner", student_id, course_id, date)

    record.status = status
    record.session_type = session_type
    record.marked_at = now
    db.session.commit()
    return "updated"


def mark_attendance(course_id, date, session_type, records, marked_by):
    """
    Upsert a batch of marks for one course and day.

    The whole request is validated before anything is written. After that each
    record is committed on its own: a failing record is rolled back and
    reported, the rest of the batch still goes through.
    """
    if course_id in (None, "") or not date:
        raise ValidationError("Please provide course_id, date, and attendance_records array")
    parsed = _validate_records(records)
    course_id = parse_id(course_id, "course_id")
    date = parse_date(date)
    session_type = (session_type or "").strip() or DEFAULT_SESSION_TYPE

    course = db.session.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course not found")

    teacher_id = marked_by.id if marked_by.role == "teacher" else course.teacher_id

    results = []
    for student_id, status in parsed:
        try:
            outcome = upsert_attendance(student_id, course_id, date, status, session_type, teacher_id)
            results.append({"student_id": student_id, "status": outcome, "attendance": status.value})
        except (NotFoundError, SQLAlchemyError) as e:
            db.session.rollback()
            logger.warning("Attendance for student %s in course %s failed: %s", student_id, course_id, e)
            results.append({"student_id": student_id, "status": "failed", "error": str(e)})

    marked = [r for r in results if r["status"] != "failed"]
    if marked:
        _announce(course, date, marked, marked_by)

    return {
        "course_id": course_id,
        "date": date.isoformat(),
        "session_type": session_type,
        "processed": len(results),
        "created": sum(1 for r in results if r["status"] == "created"),
        "updated": sum(1 for r in results if r["status"] == "updated"),
        "failed": sum(1 for r in results if r["status"] == "failed"),
        "results": results,
    }


def _announce(course, date, marked, marked_by):
    student_ids = [r["student_id"] for r in marked]
    payload = {
        "course_id": course.id,
        "date": date.isoformat(),
        "message": "New attendance record marked",
    }
    notifier.notify([Scope.for_user("student", sid) for sid in student_ids], "attendance:updated", payload)
    notifier.notify(
        [Scope.for_role("teacher"), Scope.for_role("admin")],
        "attendance:marked",
        {
            "course_id": course.id,
            "date": date.isoformat(),
            "student_count": len(student_ids),
            "marked_by": marked_by.name,
        },
    )
    store_student_notifications(
        student_ids,
        "attendance",
        "Attendance updated",
        f"Attendance for {course.course_code} on {date.isoformat()} has been marked",
    )


def get_attendance(filters=None, page=1, limit=50):
    """Filtered ledger rows, newest day first, then newest row first."""
    filters = filters or {}
    query = Attendance.query

    if filters.get("course_id"):
        query = query.filter(Attendance.course_id == parse_id(filters["course_id"], "course_id"))
    if filters.get("student_id"):
        query = query.filter(Attendance.student_id == parse_id(filters["student_id"], "student_id"))
    if filters.get("date"):
        query = query.filter(Attendance.date == parse_date(filters["date"]))
    if filters.get("status"):
        query = query.filter(Attendance.status == parse_enum(AttendanceStatus, filters["status"], "status"))

    query = query.order_by(Attendance.date.desc(), Attendance.created_at.desc(), Attendance.id.desc())
    paginated = paginate(query, page, limit, default_per_page=50)

    return {
        "records": [record.to_dict(include_related=True) for record in paginated.items],
        "pagination": pagination_meta(paginated),
    }
