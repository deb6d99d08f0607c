from functools import wraps
from flask import jsonify, g
from flask_jwt_extended import get_jwt, get_jwt_identity
from portal.models import get_account
from portal_utils.access_control import can_access_student


def current_account():
    """The Admin, Teacher or Student behind the current JWT, resolved once per request."""
    key = (get_jwt().get("role"), get_jwt_identity())
    if g.get("current_account_key") != key:
        g.current_account = get_account(*key)
        g.current_account_key = key
    return g.current_account


def role_required(*allowed_roles):
    """
    Restrict access to accounts with specific roles.
    Usage: @role_required("admin", "teacher")
    Without arguments any resolvable account is accepted.
    Must sit below @jwt_required().
    """
    allowed_roles = set(role.lower() for role in allowed_roles)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not get_jwt_identity():
                return jsonify({"success": False, "message": "Not authorized, no token"}), 401

            account = current_account()
            if not account:
                return jsonify({"success": False, "message": "User not found"}), 401

            if allowed_roles and account.role not in allowed_roles:
                return jsonify({
                    "success": False,
                    "message": f"Role '{account.role}' is not authorized to access this route"
                }), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator


def student_access_required(param="student_id"):
    """
    Students may only reach their own records; teachers and admins reach all.
    Reads the student id from the URL parameter named ``param``.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            account = current_account()
            if not account:
                return jsonify({"success": False, "message": "User not found"}), 401

            if not can_access_student(account, kwargs.get(param)):
                return jsonify({"success": False, "message": "Unauthorized access to this student"}), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
