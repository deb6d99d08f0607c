from datetime import datetime
from portal.extensions import db
from .base import TimestampMixin, AttendanceStatus, enum_values

class Attendance(db.Model, TimestampMixin):
    __tablename__ = 'attendances'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False, index=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('teachers.id', ondelete='SET NULL'), nullable=True, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    status = db.Column(
        db.Enum(AttendanceStatus, name="attendance_status", values_callable=enum_values),
        nullable=False,
        default=AttendanceStatus.present,
    )
    session_type = db.Column(db.String(50), default="Lecture")
    remarks = db.Column(db.Text, nullable=True)
    marked_at = db.Column(db.DateTime, default=datetime.utcnow)

    student = db.relationship('Student', back_populates='attendance_records')
    course = db.relationship('Course', back_populates='attendance_records')
    teacher = db.relationship('Teacher')

    __table_args__ = (
        db.UniqueConstraint('student_id', 'course_id', 'date', name='uq_attendance_student_course_date'),
    )

    def to_dict(self, include_related=False):
        data = {
            "id": self.id,
            "student_id": self.student_id,
            "course_id": self.course_id,
            "teacher_id": self.teacher_id,
            "date": self.date.isoformat(),
            "status": self.status.value,
            "session_type": self.session_type,
            "remarks": self.remarks,
            "marked_at": self.marked_at.isoformat() if self.marked_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

        if include_related:
            data["student"] = {
                "id": self.student.id,
                "name": self.student.name,
                "email": self.student.email,
                "roll_number": self.student.roll_number,
            } if self.student else None
            data["course"] = self.course.summary() if self.course else None
            data["teacher"] = {"id": self.teacher.id, "name": self.teacher.name} if self.teacher else None

        return data
