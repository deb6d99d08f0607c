from datetime import datetime
from portal.extensions import db
from .base import TimestampMixin, EnrollmentStatus, enum_values

class Enrollment(db.Model, TimestampMixin):
    __tablename__ = 'enrollments'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False)
    status = db.Column(
        db.Enum(EnrollmentStatus, name="enrollment_status", values_callable=enum_values),
        nullable=False,
        default=EnrollmentStatus.active,
    )
    enrolled_at = db.Column(db.DateTime, default=datetime.utcnow)

    student = db.relationship('Student', back_populates='enrollments')
    course = db.relationship('Course', back_populates='enrollments')

    __table_args__ = (
        db.UniqueConstraint('student_id', 'course_id', name='uq_enrollment_student_course'),
    )

    def to_dict(self, include_student=False, include_course=False):
        data = {
            "id": self.id,
            "student_id": self.student_id,
            "course_id": self.course_id,
            "status": self.status.value,
            "enrolled_at": self.enrolled_at.isoformat() if self.enrolled_at else None,
        }
        if include_student:
            data["student"] = self.student.profile() if self.student else None
        if include_course:
            data["course"] = self.course.to_dict() if self.course else None
        return data
