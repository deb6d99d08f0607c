"""
Push delivery of ledger changes.

The ledgers call ``notifier.notify(scope, event, payload)`` after their
commit. A scope names either a single account (``Scope.for_user("student", 7)``,
room ``student-7``) or a whole role (``Scope.for_role("admin")``, room ``admin``).
Delivery is fire-and-forget: a sink failure is logged and the event dropped.
The Notification table is the durable fallback clients poll.
"""
import json
import logging
from collections import defaultdict

from redis import Redis

logger = logging.getLogger(__name__)

ROLES = ("admin", "teacher", "student")


class Scope:
    def __init__(self, role, user_id=None):
        if role not in ROLES:
            raise ValueError(f"Unknown role '{role}'")
        self.role = role
        self.user_id = user_id

    @classmethod
    def for_user(cls, role, user_id):
        return cls(role, int(user_id))

    @classmethod
    def for_role(cls, role):
        return cls(role)

    @property
    def room(self):
        if self.user_id is None:
            return self.role
        return f"{self.role}-{self.user_id}"

    def __eq__(self, other):
        return isinstance(other, Scope) and self.room == other.room

    def __hash__(self):
        return hash(self.room)

    def __repr__(self):
        return f"Scope({self.room!r})"


class EventSink:
    """Transport the notifier hands events to."""

    def publish(self, room, event, payload):
        raise NotImplementedError


class NullEventSink(EventSink):
    def publish(self, room, event, payload):
        pass


class MemoryEventSink(EventSink):
    """In-process bus. Keeps every delivered event and fans out to subscribers."""

    def __init__(self):
        self.events = []
        self._subscribers = defaultdict(list)

    def subscribe(self, room, callback):
        self._subscribers[room].append(callback)

    def publish(self, room, event, payload):
        self.events.append({"room": room, "event": event, "data": payload})
        for callback in list(self._subscribers.get(room, [])):
            callback(event, payload)

    def for_room(self, room):
        return [e for e in self.events if e["room"] == room]

    def clear(self):
        self.events = []


class RedisEventSink(EventSink):
    """Publishes ``{"event", "room", "data"}`` JSON on ``<prefix>:<room>`` channels."""

    def __init__(self, client, prefix="portal"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url, prefix="portal"):
        return cls(Redis.from_url(url), prefix=prefix)

    def publish(self, room, event, payload):
        message = json.dumps({"event": event, "room": room, "data": payload}, default=str)
        self.client.publish(f"{self.prefix}:{room}", message)


class ChangeNotifier:
    def __init__(self, app=None, sink=None):
        self.sink = sink or NullEventSink()
        if app is not None:
            self.init_app(app)

    def init_app(self, app, sink=None):
        if sink is None:
            kind = app.config.get("EVENT_SINK", "memory")
            if kind == "redis":
                sink = RedisEventSink.from_url(
                    app.config["REDIS_URL"],
                    prefix=app.config.get("EVENT_CHANNEL_PREFIX", "portal"),
                )
            elif kind == "memory":
                sink = MemoryEventSink()
            elif kind == "none":
                sink = NullEventSink()
            else:
                raise ValueError(f"Unknown EVENT_SINK '{kind}'")
        self.sink = sink
        app.extensions["change_notifier"] = self

    def notify(self, scope, event, payload):
        scopes = scope if isinstance(scope, (list, tuple, set)) else [scope]
        delivered = 0
        for target in scopes:
            try:
                self.sink.publish(target.room, event, payload)
                delivered += 1
            except Exception as e:
                logger.warning("Dropped %s for room %s: %s", event, target.room, e, exc_info=True)
        return delivered
