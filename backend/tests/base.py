import unittest

from portal import create_app
from portal.config import TestConfig
from portal.extensions import db, notifier
from portal.models import Admin, Course, Student, Teacher
from portal.routes.auth import issue_token


class PortalTestCase(unittest.TestCase):
    """Fresh in-memory database, test client and in-process event sink per test."""

    config = TestConfig

    def setUp(self):
        self.app = create_app(self.config)
        self.ctx = self.app.app_context()
        self.ctx.push()
        self.client = self.app.test_client()
        self.events = notifier.sink

        self.admin = self.make_admin()
        self.teacher = self.make_teacher()
        self.course = self.make_course("CS101", teacher=self.teacher)

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def make_admin(self, email="admin@school.edu"):
        admin = Admin(name="Admin User", email=email)
        admin.set_password("admin123")
        db.session.add(admin)
        db.session.commit()
        return admin

    def make_teacher(self, name="Dr. Sarah Johnson", email="sarah@school.edu"):
        teacher = Teacher(name=name, email=email, department="Computer Science")
        teacher.set_password("teacher123")
        db.session.add(teacher)
        db.session.commit()
        return teacher

    def make_student(self, roll_number, name=None):
        student = Student(
            name=name or f"Student {roll_number}",
            email=f"{roll_number.lower()}@student.school.edu",
            roll_number=roll_number,
            department="Computer Science",
        )
        student.set_password("student123")
        db.session.add(student)
        db.session.commit()
        return student

    def make_course(self, code, teacher=None, credit_hours=3):
        course = Course(
            course_code=code,
            course_title=f"Course {code}",
            credit_hours=credit_hours,
            teacher_id=teacher.id if teacher else None,
        )
        db.session.add(course)
        db.session.commit()
        return course

    def auth_headers(self, account):
        return {"Authorization": f"Bearer {issue_token(account)}"}
