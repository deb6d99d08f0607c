import json
import unittest

from flask import Flask
from redis.exceptions import ConnectionError as RedisConnectionError

from portal.services.notifier import (
    ChangeNotifier, MemoryEventSink, NullEventSink, RedisEventSink, Scope,
)


class FakeRedis:
    def __init__(self, fail=False):
        self.fail = fail
        self.published = []

    def publish(self, channel, message):
        if self.fail:
            raise RedisConnectionError("connection refused")
        self.published.append((channel, message))
        return 1


class ScopeTests(unittest.TestCase):

    def test_rooms(self):
        self.assertEqual(Scope.for_user("student", 7).room, "student-7")
        self.assertEqual(Scope.for_user("teacher", "3").room, "teacher-3")
        self.assertEqual(Scope.for_role("admin").room, "admin")

    def test_unknown_role_rejected(self):
        with self.assertRaises(ValueError):
            Scope.for_role("parent")

    def test_scopes_compare_by_room(self):
        self.assertEqual(Scope.for_user("student", 1), Scope("student", 1))
        self.assertNotEqual(Scope.for_user("student", 1), Scope.for_user("teacher", 1))


class ChangeNotifierTests(unittest.TestCase):

    def test_memory_sink_delivers_only_to_named_rooms(self):
        sink = MemoryEventSink()
        notifier = ChangeNotifier(sink=sink)
        received = []
        sink.subscribe("student-1", lambda event, payload: received.append(event))

        delivered = notifier.notify(
            [Scope.for_user("student", 1), Scope.for_role("admin")],
            "attendance:updated",
            {"course_id": 1},
        )

        self.assertEqual(delivered, 2)
        self.assertEqual(received, ["attendance:updated"])
        self.assertEqual(len(sink.for_room("admin")), 1)
        self.assertEqual(sink.for_room("student-2"), [])

    def test_redis_sink_publishes_json_on_prefixed_channel(self):
        client = FakeRedis()
        notifier = ChangeNotifier(sink=RedisEventSink(client, prefix="school"))

        notifier.notify(Scope.for_user("student", 4), "results:updated", {"course_id": 2})

        channel, message = client.published[0]
        self.assertEqual(channel, "school:student-4")
        self.assertEqual(json.loads(message), {
            "event": "results:updated",
            "room": "student-4",
            "data": {"course_id": 2},
        })

    def test_delivery_failure_is_dropped(self):
        notifier = ChangeNotifier(sink=RedisEventSink(FakeRedis(fail=True)))

        with self.assertLogs("portal.services.notifier", level="WARNING"):
            delivered = notifier.notify(Scope.for_role("teacher"), "attendance:marked", {})

        self.assertEqual(delivered, 0)

    def test_subscriber_failure_is_dropped(self):
        sink = MemoryEventSink()
        notifier = ChangeNotifier(sink=sink)

        def gateway_gone(event, payload):
            raise RuntimeError("socket gateway gone")

        sink.subscribe("student-1", gateway_gone)

        with self.assertLogs("portal.services.notifier", level="WARNING"):
            delivered = notifier.notify(
                [Scope.for_user("student", 1), Scope.for_user("student", 2)], "attendance:updated", {}
            )

        self.assertEqual(delivered, 1)
        self.assertEqual(len(sink.for_room("student-2")), 1)

    def test_init_app_picks_sink_from_config(self):
        app = Flask(__name__)
        app.config["EVENT_SINK"] = "none"
        notifier = ChangeNotifier(app)

        self.assertIsInstance(notifier.sink, NullEventSink)
        self.assertIs(app.extensions["change_notifier"], notifier)

        app.config["EVENT_SINK"] = "carrier-pigeon"
        with self.assertRaises(ValueError):
            ChangeNotifier(app)
