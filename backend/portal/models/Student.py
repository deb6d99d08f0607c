from portal.extensions import db
from .Account import AccountMixin

class Student(AccountMixin, db.Model):
    __tablename__ = 'students'
    role = "student"

    roll_number = db.Column(db.String(20), unique=True, nullable=False)
    semester = db.Column(db.String(20), default="Fall 2025")
    department = db.Column(db.String(100), nullable=True)

    attendance_records = db.relationship('Attendance', back_populates='student', lazy=True, cascade="all, delete-orphan")
    results = db.relationship('Result', back_populates='student', lazy=True, cascade="all, delete-orphan")
    enrollments = db.relationship('Enrollment', back_populates='student', lazy=True, cascade="all, delete-orphan")

    def profile(self):
        data = super().profile()
        data.update({
            "roll_number": self.roll_number,
            "semester": self.semester,
            "department": self.department,
        })
        return data
