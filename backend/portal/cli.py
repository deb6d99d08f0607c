import os
from datetime import time
import click
from flask.cli import with_appcontext
from portal.extensions import db
from portal.models import Admin, Teacher, Student, Course, Enrollment, Timetable, Weekday


def seed_data():
    admin_password = os.getenv("ADMIN_PASSWORD", "admin123")
    default_password = os.getenv("SEED_PASSWORD", "password123")

    if not Admin.query.filter_by(email="admin@school.edu").first():
        admin = Admin(name="System Admin", email="admin@school.edu")
        admin.set_password(admin_password)
        db.session.add(admin)

    teachers = {}
    for name, email, department in [
        ("Ayesha Khan", "ayesha.khan@school.edu", "Computer Science"),
        ("Bilal Ahmed", "bilal.ahmed@school.edu", "Mathematics"),
    ]:
        teacher = Teacher.query.filter_by(email=email).first()
        if not teacher:
            teacher = Teacher(name=name, email=email, department=department, designation="Lecturer")
            teacher.set_password(default_password)
            db.session.add(teacher)
        teachers[email] = teacher
    db.session.commit()

    courses = []
    for code, title, credits, teacher_email in [
        ("CS101", "Introduction to Programming", 3, "ayesha.khan@school.edu"),
        ("CS201", "Data Structures", 4, "ayesha.khan@school.edu"),
        ("MA101", "Calculus I", 3, "bilal.ahmed@school.edu"),
    ]:
        course = Course.query.filter_by(course_code=code).first()
        if not course:
            course = Course(course_code=code, course_title=title, credit_hours=credits,
                            teacher_id=teachers[teacher_email].id)
            db.session.add(course)
        courses.append(course)
    db.session.commit()

    students = []
    for index in range(1, 6):
        email = f"student{index}@school.edu"
        student = Student.query.filter_by(email=email).first()
        if not student:
            student = Student(name=f"Student {index}", email=email, roll_number=f"R-{1000 + index}",
                              department="Computer Science")
            student.set_password(default_password)
            db.session.add(student)
        students.append(student)
    db.session.commit()

    for student in students:
        for course in courses:
            if not Enrollment.query.filter_by(student_id=student.id, course_id=course.id).first():
                db.session.add(Enrollment(student_id=student.id, course_id=course.id))

    for course, day in zip(courses, [Weekday.monday, Weekday.wednesday, Weekday.friday]):
        if not Timetable.query.filter_by(course_id=course.id).first():
            db.session.add(Timetable(course_id=course.id, teacher_id=course.teacher_id, day_of_week=day,
                                     start_time=time(9, 0), end_time=time(10, 30), room="Room 101"))
    db.session.commit()


def register_commands(app):
    @app.cli.command("seed")
    @with_appcontext
    def seed():
        """Creates demo admin, teachers, students, courses and enrollments"""
        seed_data()
        click.echo("Seeded demo data.")
