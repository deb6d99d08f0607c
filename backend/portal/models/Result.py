from portal.extensions import db
from portal_utils.grading import percentage
from .base import TimestampMixin, AssessmentType, enum_values

class Result(db.Model, TimestampMixin):
    __tablename__ = 'results'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False, index=True)
    assessment_type = db.Column(
        db.Enum(AssessmentType, name="assessment_type", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    # '' when the upload did not name the instance
    assessment_name = db.Column(db.String(100), nullable=False, default="")
    marks_obtained = db.Column(db.Float, nullable=False)
    total_marks = db.Column(db.Float, nullable=False)
    grade = db.Column(db.String(5), nullable=False)
    uploaded_by = db.Column(db.Integer, db.ForeignKey('teachers.id', ondelete='SET NULL'), nullable=True)
    remarks = db.Column(db.Text, nullable=True)

    student = db.relationship('Student', back_populates='results')
    course = db.relationship('Course', back_populates='results')
    uploader = db.relationship('Teacher')

    __table_args__ = (
        db.UniqueConstraint(
            'student_id', 'course_id', 'assessment_type', 'assessment_name',
            name='uq_result_assessment'
        ),
        db.CheckConstraint('marks_obtained >= 0', name='ck_result_marks_non_negative'),
        db.CheckConstraint('total_marks >= 0', name='ck_result_total_non_negative'),
    )

    @property
    def percentage(self):
        return percentage(self.marks_obtained, self.total_marks)

    def to_dict(self, include_related=False):
        data = {
            "id": self.id,
            "student_id": self.student_id,
            "course_id": self.course_id,
            "assessment_type": self.assessment_type.value,
            "assessment_name": self.assessment_name,
            "marks_obtained": self.marks_obtained,
            "total_marks": self.total_marks,
            "percentage": self.percentage,
            "grade": self.grade,
            "uploaded_by": self.uploaded_by,
            "remarks": self.remarks,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_related:
            data["course"] = self.course.summary() if self.course else None
            data["uploader"] = {"id": self.uploader.id, "name": self.uploader.name} if self.uploader else None

        return data
