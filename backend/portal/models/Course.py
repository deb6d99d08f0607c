from portal.extensions import db
from .base import TimestampMixin

class Course(db.Model, TimestampMixin):
    __tablename__ = 'courses'

    id = db.Column(db.Integer, primary_key=True)
    course_code = db.Column(db.String(20), unique=True, nullable=False)
    course_title = db.Column(db.String(150), nullable=False)
    credit_hours = db.Column(db.Integer, nullable=False, default=3)
    teacher_id = db.Column(db.Integer, db.ForeignKey('teachers.id', ondelete='SET NULL'), nullable=True)
    description = db.Column(db.Text, nullable=True)

    teacher = db.relationship('Teacher', back_populates='courses')
    attendance_records = db.relationship('Attendance', back_populates='course', lazy=True, cascade="all, delete-orphan")
    results = db.relationship('Result', back_populates='course', lazy=True, cascade="all, delete-orphan")
    enrollments = db.relationship('Enrollment', back_populates='course', lazy=True, cascade="all, delete-orphan")
    schedule = db.relationship('Timetable', back_populates='course', lazy=True, cascade="all, delete-orphan")

    def summary(self):
        return {
            "id": self.id,
            "course_code": self.course_code,
            "course_title": self.course_title,
            "credit_hours": self.credit_hours,
        }

    def to_dict(self):
        data = self.summary()
        data.update({
            "teacher_id": self.teacher_id,
            "teacher": {"id": self.teacher.id, "name": self.teacher.name} if self.teacher else None,
            "description": self.description,
        })
        return data
