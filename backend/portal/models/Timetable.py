from portal.extensions import db
from portal_utils.serialization import to_dict
from .base import Weekday, enum_values

class Timetable(db.Model):
    __tablename__ = 'timetable'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('teachers.id', ondelete='CASCADE'), nullable=False)
    day_of_week = db.Column(db.Enum(Weekday, name="weekday", values_callable=enum_values), nullable=False)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    room = db.Column(db.String(50), nullable=True)

    course = db.relationship('Course', back_populates='schedule')
    teacher = db.relationship('Teacher')

    def to_dict(self):
        data = to_dict(self)
        data["teacher"] = {"id": self.teacher.id, "name": self.teacher.name} if self.teacher else None
        return data
