import logging

from sqlalchemy.exc import SQLAlchemyError

from portal.extensions import db, notifier
from portal.models import Notification, NotificationType, UserRole
from portal.services.notifier import Scope

logger = logging.getLogger(__name__)


def create_notification(user_id, user_role, title, message, type="system", link=None):
    """Persist one notification and push ``notification:new`` to its recipient."""
    notification = Notification(
        user_id=user_id,
        user_role=UserRole(user_role),
        type=NotificationType(type),
        title=title,
        message=message,
        link=link,
    )
    db.session.add(notification)
    db.session.commit()

    notifier.notify(Scope.for_user(user_role, user_id), "notification:new", notification.to_dict())
    return notification


def store_student_notifications(student_ids, type, title, message, link=None):
    """
    Poll-able copies of a pushed ledger event, one row per student.

    Runs after the ledger rows are committed, so a failure here is logged
    and does not undo the ledger write.
    """
    rows = [
        Notification(
            user_id=sid,
            user_role=UserRole.student,
            type=NotificationType(type),
            title=title,
            message=message,
            link=link,
        )
        for sid in student_ids
    ]
    if not rows:
        return 0
    try:
        db.session.add_all(rows)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Could not store %d %s notifications: %s", len(rows), type, e)
        return 0
    return len(rows)
