from portal.extensions import db
from .Account import AccountMixin

class Teacher(AccountMixin, db.Model):
    __tablename__ = 'teachers'
    role = "teacher"

    department = db.Column(db.String(100), nullable=True)
    designation = db.Column(db.String(100), nullable=True)

    courses = db.relationship('Course', back_populates='teacher', lazy=True)

    def profile(self):
        data = super().profile()
        data.update({
            "department": self.department,
            "designation": self.designation,
        })
        return data
