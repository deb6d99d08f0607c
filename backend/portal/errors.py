from flask import jsonify, current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException


class PortalError(Exception):
    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message=None, details=None, status_code=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        body = {"success": False, "message": self.message}
        if self.details is not None:
            body["errors"] = self.details
        return body


class ValidationError(PortalError):
    status_code = 400
    message = "Validation error"


class NotFoundError(PortalError):
    status_code = 404
    message = "Not found"


class ForbiddenError(PortalError):
    status_code = 403
    message = "Access forbidden: insufficient permissions"


class ConflictError(PortalError):
    status_code = 400
    message = "Duplicate entry"


def describe_integrity_error(error):
    """Sort an IntegrityError into the client-facing duplicate / bad reference classes."""
    text = str(getattr(error, "orig", error)).lower()
    if "foreign key" in text:
        return ValidationError("Invalid reference", details="Referenced record does not exist")
    if "unique" in text or "duplicate" in text:
        return ConflictError()
    return ValidationError()


def register_error_handlers(app):
    @app.errorhandler(PortalError)
    def handle_portal_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error):
        from portal.extensions import db
        db.session.rollback()
        translated = describe_integrity_error(error)
        current_app.logger.info("Integrity error translated to %s: %s", translated.message, error.orig)
        return jsonify(translated.to_dict()), translated.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        if error.response is not None:
            return error.response
        return jsonify({"success": False, "message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        current_app.logger.exception("Unhandled error: %s", error)
        return jsonify({"success": False, "message": "Internal Server Error"}), 500
