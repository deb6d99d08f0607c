from datetime import datetime
from portal.extensions import db
from portal_utils.serialization import to_dict
from .base import NotificationType, UserRole, enum_values

class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    user_role = db.Column(db.Enum(UserRole, name="user_role", values_callable=enum_values), nullable=False)
    type = db.Column(
        db.Enum(NotificationType, name="notification_type", values_callable=enum_values),
        nullable=False,
        default=NotificationType.system,
    )
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    link = db.Column(db.String(255), nullable=True)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    read_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def mark_read(self):
        self.is_read = True
        self.read_at = datetime.utcnow()

    def to_dict(self):
        return to_dict(self)
