from .base import (
    TimestampMixin, AttendanceStatus, AssessmentType, UserRole,
    NotificationType, EnrollmentStatus, Weekday, ATTENDED_STATUSES,
)
from .Account import AccountMixin, TokenBlocklist
from .Admin import Admin
from .Teacher import Teacher
from .Student import Student
from .Course import Course
from .Attendance import Attendance
from .Result import Result
from .Enrollment import Enrollment
from .Notification import Notification
from .Timetable import Timetable
from .AuditLog import AuditLog
from portal.extensions import db

ACCOUNT_MODELS = {
    "admin": Admin,
    "teacher": Teacher,
    "student": Student,
}


def get_account(role, user_id):
    """Resolve an Admin, Teacher or Student by (role, id). None when either is unknown."""
    model = ACCOUNT_MODELS.get(role)
    if model is None or user_id is None:
        return None
    return db.session.get(model, int(user_id))


def find_account_by_email(email):
    """Accounts are searched admin, teacher, student; emails are unique per table."""
    for model in ACCOUNT_MODELS.values():
        account = model.query.filter_by(email=email).first()
        if account:
            return account
    return None
