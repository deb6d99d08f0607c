from portal.extensions import db
from .Account import AccountMixin

class Admin(AccountMixin, db.Model):
    __tablename__ = 'admins'
    role = "admin"
