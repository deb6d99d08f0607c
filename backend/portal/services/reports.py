"""
Read-only aggregates over the attendance and result ledgers.

Nothing here writes; every figure is recomputed from the stored rows on each
call.
"""
from collections import OrderedDict, Counter
from datetime import date, timedelta

from sqlalchemy import case, extract, func

from portal.errors import NotFoundError
from portal.extensions import db
from portal.models import (
    Attendance, AttendanceStatus, ATTENDED_STATUSES, Course, Enrollment, EnrollmentStatus,
    Result, Student, Teacher, Timetable, Weekday,
)
from portal_utils.grading import (
    display_percentage, grade_point, grade_rank, is_passing, round_half_up,
)

DEFAULT_CREDIT_HOURS = 3
ALERT_THRESHOLD = 75
CRITICAL_THRESHOLD = 50
MAX_ALERTS = 10
PENDING_ATTENDANCE_DAYS = 3
MONTHS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


def _get_student(student_id):
    student = db.session.get(Student, student_id)
    if student is None:
        raise NotFoundError("Student not found")
    return student


def attendance_report(student_id):
    """
    Attendance totals for one student, overall and per course.

    Excused sessions stay in the denominator: they count neither as attended
    nor as absent. The overall percentage is computed over all rows combined,
    not averaged across courses.
    """
    _get_student(student_id)
    records = (Attendance.query
               .filter_by(student_id=student_id)
               .order_by(Attendance.date.desc())
               .all())

    courses = OrderedDict()
    for record in records:
        entry = courses.get(record.course_id)
        if entry is None:
            entry = courses[record.course_id] = {
                **record.course.summary(),
                "course_id": record.course_id,
                "total_classes": 0,
                "attended": 0,
                "present": 0,
                "absent": 0,
                "late": 0,
                "excused": 0,
            }
        entry["total_classes"] += 1
        entry[record.status.value] += 1
        if record.status in ATTENDED_STATUSES:
            entry["attended"] += 1

    per_course = []
    for entry in courses.values():
        entry["percentage"] = display_percentage(entry["attended"], entry["total_classes"])
        per_course.append(entry)

    total_classes = len(records)
    attended = sum(1 for r in records if r.status in ATTENDED_STATUSES)
    return {
        "student_id": student_id,
        "overall_percentage": display_percentage(attended, total_classes),
        "total_classes": total_classes,
        "attended": attended,
        "absent": sum(1 for r in records if r.status == AttendanceStatus.absent),
        "excused": sum(1 for r in records if r.status == AttendanceStatus.excused),
        "per_course": per_course,
    }


def student_results(student_id):
    """
    CGPA over every result row of a student.

    Credit hours are weighted per result row, so a course with several graded
    assessments contributes its credit hours once per assessment.
    """
    _get_student(student_id)
    results = (Result.query
               .filter_by(student_id=student_id)
               .order_by(Result.created_at.desc(), Result.id.desc())
               .all())

    weighted_points = 0.0
    total_credits = 0
    for result in results:
        credits = result.course.credit_hours or DEFAULT_CREDIT_HOURS
        weighted_points += grade_point(result.grade) * credits
        total_credits += credits

    cgpa = round_half_up(weighted_points / total_credits, 2) if total_credits else 0.0
    return {
        "student_id": student_id,
        "cgpa": cgpa,
        "total_credits": total_credits,
        "results": [r.to_dict(include_related=True) for r in results],
    }


def low_attendance_alerts(window_days=30, as_of=None, limit=MAX_ALERTS):
    """
    Students under ALERT_THRESHOLD percent across all their courses within the
    trailing window.

    Sorted lowest percentage first; ties keep student_id order.
    """
    as_of = as_of or date.today()
    since = as_of - timedelta(days=window_days)
    attended_case = case((Attendance.status.in_(ATTENDED_STATUSES), 1), else_=0)

    rows = (db.session.query(
                Attendance.student_id,
                func.count(Attendance.id).label("total_sessions"),
                func.sum(attended_case).label("attended"),
            )
            .filter(Attendance.date >= since, Attendance.date <= as_of)
            .group_by(Attendance.student_id)
            .order_by(Attendance.student_id)
            .all())

    flagged = []
    for row in rows:
        pct = (row.attended or 0) / row.total_sessions * 100
        if pct < ALERT_THRESHOLD:
            flagged.append((pct, row))
    flagged.sort(key=lambda item: item[0])

    alerts = []
    for pct, row in flagged[:limit]:
        student = db.session.get(Student, row.student_id)
        percentage = round_half_up(pct, 2)
        alerts.append({
            "severity": "critical" if pct < CRITICAL_THRESHOLD else "warning",
            "title": "Low Attendance Alert",
            "message": f"{student.name} ({student.roll_number}) has {percentage}% attendance",
            "student": {"id": student.id, "name": student.name, "roll_number": student.roll_number},
            "percentage": percentage,
            "total_sessions": row.total_sessions,
            "attended": int(row.attended or 0),
        })
    return alerts


def performance_analysis():
    """System-wide snapshot over every stored result."""
    grades = [grade for (grade,) in db.session.query(Result.grade).all()]
    total = len(grades)
    passed = sum(1 for g in grades if is_passing(g))

    counts = Counter(grades)
    distribution = OrderedDict(
        (grade, counts[grade]) for grade in sorted(counts, key=grade_rank, reverse=True)
    )
    average_gpa = round_half_up(sum(grade_point(g) for g in grades) / total, 2) if total else 0.0

    return {
        "total_results": total,
        "passed": passed,
        "failed": total - passed,
        "pass_rate": display_percentage(passed, total),
        "average_gpa": average_gpa,
        "grade_distribution": distribution,
    }


def monthly_attendance_stats(year):
    """Attended share of all marks, per calendar month of ``year``."""
    attended_case = case((Attendance.status.in_(ATTENDED_STATUSES), 1), else_=0)
    month = extract('month', Attendance.date)

    rows = (db.session.query(
                month.label("month"),
                func.count(Attendance.id).label("total"),
                func.sum(attended_case).label("attended"),
            )
            .filter(Attendance.date >= date(year, 1, 1), Attendance.date < date(year + 1, 1, 1))
            .group_by(month)
            .all())
    by_month = {int(row.month): row for row in rows}

    stats = []
    for index, name in enumerate(MONTHS, start=1):
        row = by_month.get(index)
        stats.append({
            "month": name,
            "total": row.total if row else 0,
            "percentage": display_percentage(row.attended or 0, row.total) if row else 0,
        })
    return stats


def _get_teacher(teacher_id):
    teacher = db.session.get(Teacher, teacher_id)
    if teacher is None:
        raise NotFoundError("Teacher not found")
    return teacher


def teacher_dashboard(teacher_id, today=None):
    """
    Today's timetable, courses that need attendance and the attended share of
    every mark the teacher has recorded.
    """
    _get_teacher(teacher_id)
    today = today or date.today()
    courses = Course.query.filter_by(teacher_id=teacher_id).order_by(Course.course_code).all()
    course_ids = [course.id for course in courses]

    weekdays = list(Weekday)
    weekday = weekdays[today.weekday()] if today.weekday() < len(weekdays) else None
    slots = []
    if weekday is not None and course_ids:
        slots = (Timetable.query
                 .filter(Timetable.course_id.in_(course_ids), Timetable.day_of_week == weekday)
                 .order_by(Timetable.start_time)
                 .all())

    since = today - timedelta(days=PENDING_ATTENDANCE_DAYS)
    tasks = []
    for course in courses:
        recent = (Attendance.query
                  .filter(Attendance.course_id == course.id,
                          Attendance.teacher_id == teacher_id,
                          Attendance.date >= since)
                  .first())
        if recent is None:
            tasks.append({
                "type": "attendance",
                "course_id": course.id,
                "course": course.course_title,
                "message": f"Attendance not marked in last {PENDING_ATTENDANCE_DAYS} days",
            })

    marks = Attendance.query.filter(Attendance.teacher_id == teacher_id)
    if course_ids:
        marks = marks.filter(Attendance.course_id.in_(course_ids))
        total = marks.count()
        attended = marks.filter(Attendance.status.in_(ATTENDED_STATUSES)).count()
    else:
        total = attended = 0

    return {
        "teacher_id": teacher_id,
        "total_courses": len(courses),
        "todays_classes": len(slots),
        "pending_tasks": len(tasks),
        "attendance_percentage": display_percentage(attended, total),
        "todays_schedule": [{
            "course_id": slot.course_id,
            "course": slot.course.course_title,
            "code": slot.course.course_code,
            "time": f"{slot.start_time.strftime('%H:%M')} - {slot.end_time.strftime('%H:%M')}",
            "room": slot.room,
        } for slot in slots],
        "tasks": tasks,
    }


def teacher_courses(teacher_id):
    """Courses taught by ``teacher_id`` with their active enrollment counts."""
    _get_teacher(teacher_id)
    counts = dict(
        db.session.query(Enrollment.course_id, func.count(Enrollment.id))
        .join(Course, Course.id == Enrollment.course_id)
        .filter(Course.teacher_id == teacher_id, Enrollment.status == EnrollmentStatus.active)
        .group_by(Enrollment.course_id)
        .all()
    )
    courses = Course.query.filter_by(teacher_id=teacher_id).order_by(Course.course_code).all()
    return [dict(course.summary(), student_count=counts.get(course.id, 0)) for course in courses]
