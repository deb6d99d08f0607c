from datetime import datetime
from portal.extensions import db
import enum

class TimestampMixin:
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


def enum_values(enum_class):
    return [member.value for member in enum_class]


class AttendanceStatus(enum.Enum):
    present = "present"
    absent = "absent"
    late = "late"
    excused = "excused"

ATTENDED_STATUSES = (AttendanceStatus.present, AttendanceStatus.late)

class AssessmentType(enum.Enum):
    midterm = "Midterm"
    final = "Final"
    quiz = "Quiz"
    assignment = "Assignment"
    project = "Project"
    lab = "Lab"

class UserRole(enum.Enum):
    student = "student"
    teacher = "teacher"
    admin = "admin"

class NotificationType(enum.Enum):
    result = "result"
    attendance = "attendance"
    announcement = "announcement"
    alert = "alert"
    system = "system"

class EnrollmentStatus(enum.Enum):
    active = "active"
    dropped = "dropped"
    completed = "completed"

class Weekday(enum.Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
