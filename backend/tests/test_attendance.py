import unittest
from datetime import date
from types import SimpleNamespace
from unittest import mock

from portal.errors import ForbiddenError, NotFoundError, ValidationError
from portal.extensions import db
from portal.models import Attendance, AttendanceStatus, Notification
from portal.services import attendance as ledger
from portal_utils.access_control import scoped_student_filter
from tests.base import PortalTestCase


class MarkAttendanceTests(PortalTestCase):

    def setUp(self):
        super().setUp()
        self.students = [self.make_student(f"CS-2025-00{i}") for i in range(1, 4)]

    def mark(self, statuses, date="2025-01-10", marked_by=None):
        records = [
            {"student_id": student.id, "status": status}
            for student, status in zip(self.students, statuses)
        ]
        return ledger.mark_attendance(self.course.id, date, None, records, marked_by or self.teacher)

    def test_batch_mark_creates_one_row_per_student(self):
        outcome = self.mark(["present", "absent", "late"])

        self.assertEqual(outcome["processed"], 3)
        self.assertEqual(outcome["created"], 3)
        self.assertEqual(outcome["failed"], 0)
        self.assertEqual(outcome["session_type"], "Lecture")
        self.assertEqual(Attendance.query.count(), 3)

        rows = Attendance.query.filter_by(course_id=self.course.id).all()
        self.assertTrue(all(row.teacher_id == self.teacher.id for row in rows))

    def test_marking_twice_is_idempotent(self):
        self.mark(["present", "absent", "late"])
        outcome = self.mark(["present", "absent", "late"])

        self.assertEqual(outcome["created"], 0)
        self.assertEqual(outcome["updated"], 3)
        self.assertEqual(Attendance.query.count(), 3)

    def test_losing_an_insert_race_updates_the_winner(self):
        student = self.students[0]
        day = date(2025, 1, 10)
        real_find = ledger._find
        calls = []

        def racing_find(student_id, course_id, on_date):
            if not calls:
                calls.append(on_date)
                db.session.add(Attendance(
                    student_id=student_id, course_id=course_id, date=on_date,
                    status=AttendanceStatus.present, session_type="Lecture",
                ))
                db.session.commit()
                return None
            return real_find(student_id, course_id, on_date)

        with mock.patch.object(ledger, "_find", side_effect=racing_find):
            outcome = ledger.upsert_attendance(
                student.id, self.course.id, day, AttendanceStatus.absent, "Lecture", self.teacher.id
            )

        self.assertEqual(outcome, "updated")
        rows = Attendance.query.filter_by(student_id=student.id, course_id=self.course.id, date=day).all()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].status, AttendanceStatus.absent)

    def test_remark_overwrites_status(self):
        self.mark(["present"])
        self.mark(["absent"])

        rows = Attendance.query.filter_by(student_id=self.students[0].id).all()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].status, AttendanceStatus.absent)

    def test_different_days_are_separate_rows(self):
        self.mark(["present"], date="2025-01-10")
        self.mark(["present"], date="2025-01-11")
        self.assertEqual(Attendance.query.filter_by(student_id=self.students[0].id).count(), 2)

    def test_invalid_status_rejects_whole_batch(self):
        with self.assertRaises(ValidationError) as ctx:
            self.mark(["present", "sleeping"])

        self.assertEqual(ctx.exception.details[0]["index"], 1)
        self.assertEqual(Attendance.query.count(), 0)

    def test_missing_records_rejected(self):
        with self.assertRaises(ValidationError):
            ledger.mark_attendance(self.course.id, "2025-01-10", None, None, self.teacher)
        with self.assertRaises(ValidationError):
            ledger.mark_attendance(self.course.id, "10/01/2025", None, [], self.teacher)

    def test_unknown_course(self):
        with self.assertRaises(NotFoundError):
            ledger.mark_attendance(999, "2025-01-10", None, [], self.teacher)

    def test_unknown_student_fails_alone(self):
        records = [
            {"student_id": self.students[0].id, "status": "present"},
            {"student_id": 999, "status": "absent"},
            {"student_id": self.students[1].id, "status": "late"},
        ]
        outcome = ledger.mark_attendance(self.course.id, "2025-01-10", "Lab", records, self.teacher)

        self.assertEqual(outcome["created"], 2)
        self.assertEqual(outcome["failed"], 1)
        self.assertEqual(outcome["results"][1]["status"], "failed")
        self.assertEqual(Attendance.query.count(), 2)

    def test_admin_marks_on_behalf_of_course_teacher(self):
        self.mark(["present"], marked_by=self.admin)
        self.assertEqual(Attendance.query.first().teacher_id, self.teacher.id)

    def test_announces_to_students_and_staff(self):
        self.mark(["present", "absent"])

        student_events = self.events.for_room(f"student-{self.students[0].id}")
        self.assertEqual([e["event"] for e in student_events], ["attendance:updated"])
        self.assertEqual(student_events[0]["data"]["date"], "2025-01-10")
        self.assertEqual(self.events.for_room(f"student-{self.students[2].id}"), [])

        for room in ("teacher", "admin"):
            staff_events = self.events.for_room(room)
            self.assertEqual(staff_events[0]["event"], "attendance:marked")
            self.assertEqual(staff_events[0]["data"]["student_count"], 2)

        self.assertEqual(Notification.query.filter_by(user_id=self.students[0].id).count(), 1)

    def test_broken_push_channel_does_not_fail_the_batch(self):
        def gateway_gone(event, payload):
            raise RuntimeError("socket gateway gone")

        self.events.subscribe(f"student-{self.students[0].id}", gateway_gone)

        with self.assertLogs("portal.services.notifier", level="WARNING"):
            outcome = self.mark(["present", "absent"])

        self.assertEqual(outcome["created"], 2)
        self.assertEqual(Attendance.query.count(), 2)
        self.assertEqual(Notification.query.count(), 2)
        self.assertEqual(len(self.events.for_room("teacher")), 1)


class GetAttendanceTests(PortalTestCase):

    def setUp(self):
        super().setUp()
        self.student = self.make_student("CS-2025-001")
        self.other = self.make_student("CS-2025-002")
        for day, status in (("2025-01-10", "present"), ("2025-01-12", "absent")):
            ledger.mark_attendance(
                self.course.id, day, None,
                [{"student_id": self.student.id, "status": status},
                 {"student_id": self.other.id, "status": "present"}],
                self.teacher,
            )

    def test_newest_day_first(self):
        listing = ledger.get_attendance({}, page=1, limit=50)
        self.assertEqual([r["date"] for r in listing["records"]][:2], ["2025-01-12", "2025-01-12"])
        self.assertEqual(listing["records"][-1]["date"], "2025-01-10")
        self.assertEqual(listing["pagination"]["total"], 4)

    def test_filters(self):
        listing = ledger.get_attendance({"student_id": self.student.id, "status": "absent"})
        self.assertEqual(len(listing["records"]), 1)
        self.assertEqual(listing["records"][0]["status"], "absent")

        listing = ledger.get_attendance({"date": "2025-01-10"})
        self.assertEqual(listing["pagination"]["total"], 2)

    def test_empty_result_has_zero_pages(self):
        listing = ledger.get_attendance({"course_id": 999})
        self.assertEqual(listing["records"], [])
        self.assertEqual(listing["pagination"]["total"], 0)
        self.assertEqual(listing["pagination"]["pages"], 0)

    def test_pagination(self):
        listing = ledger.get_attendance({}, page=2, limit=3)
        self.assertEqual(len(listing["records"]), 1)
        self.assertEqual(listing["pagination"]["page"], 2)
        self.assertEqual(listing["pagination"]["pages"], 2)


class AttendanceApiTests(PortalTestCase):

    def setUp(self):
        super().setUp()
        self.student = self.make_student("CS-2025-001")
        self.other = self.make_student("CS-2025-002")

    def post_marks(self, account, records):
        return self.client.post(
            "/api/attendance",
            json={"course_id": self.course.id, "date": "2025-01-10", "attendance_records": records},
            headers=self.auth_headers(account),
        )

    def test_teacher_marks_attendance(self):
        response = self.post_marks(self.teacher, [{"student_id": self.student.id, "status": "present"}])

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["created"], 1)

    def test_invalid_status_is_400(self):
        response = self.post_marks(self.teacher, [{"student_id": self.student.id, "status": "maybe"}])

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.get_json()["success"])
        self.assertEqual(Attendance.query.count(), 0)

    def test_student_cannot_mark(self):
        response = self.post_marks(self.student, [{"student_id": self.student.id, "status": "present"}])
        self.assertEqual(response.status_code, 403)

    def test_missing_token_is_401(self):
        response = self.client.get("/api/attendance")
        self.assertEqual(response.status_code, 401)

    def test_student_listing_is_scoped_to_self(self):
        self.post_marks(self.teacher, [
            {"student_id": self.student.id, "status": "present"},
            {"student_id": self.other.id, "status": "absent"},
        ])

        response = self.client.get("/api/attendance", headers=self.auth_headers(self.student))
        body = response.get_json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual([r["student_id"] for r in body["data"]], [self.student.id])

        response = self.client.get(
            f"/api/attendance?student_id={self.other.id}", headers=self.auth_headers(self.student)
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()["message"], "Access denied to the requested student's records")

    def test_report_access(self):
        self.post_marks(self.teacher, [{"student_id": self.student.id, "status": "late"}])

        own = self.client.get(f"/api/attendance/report/{self.student.id}", headers=self.auth_headers(self.student))
        self.assertEqual(own.status_code, 200)
        self.assertEqual(own.get_json()["data"]["overall_percentage"], 100)

        other = self.client.get(f"/api/attendance/report/{self.other.id}", headers=self.auth_headers(self.student))
        self.assertEqual(other.status_code, 403)

        missing = self.client.get("/api/attendance/report/999", headers=self.auth_headers(self.teacher))
        self.assertEqual(missing.status_code, 404)

    def test_alerts_are_staff_only(self):
        self.assertEqual(
            self.client.get("/api/attendance/alerts", headers=self.auth_headers(self.student)).status_code, 403
        )
        response = self.client.get("/api/attendance/alerts", headers=self.auth_headers(self.admin))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"], [])

        response = self.client.get("/api/attendance/alerts?window_days=0", headers=self.auth_headers(self.admin))
        self.assertEqual(response.status_code, 400)

    def test_rows_survive_session_reset(self):
        self.post_marks(self.teacher, [{"student_id": self.student.id, "status": "excused"}])
        db.session.expire_all()
        self.assertEqual(Attendance.query.one().status, AttendanceStatus.excused)


class StudentScopeTests(unittest.TestCase):

    def test_staff_keep_the_requested_filter(self):
        teacher = SimpleNamespace(role="teacher", id=1)
        self.assertEqual(scoped_student_filter(teacher, "7"), "7")
        self.assertIsNone(scoped_student_filter(teacher))

    def test_students_are_pinned_to_themselves(self):
        student = SimpleNamespace(role="student", id=3)
        self.assertEqual(scoped_student_filter(student), 3)
        self.assertEqual(scoped_student_filter(student, "3"), 3)

        with self.assertRaises(ForbiddenError) as ctx:
            scoped_student_filter(student, "4")
        self.assertEqual(ctx.exception.status_code, 403)
