from datetime import date
from math import ceil
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from portal.extensions import db
from portal.models import ACCOUNT_MODELS, Notification, Student, UserRole, find_account_by_email, get_account
from portal.routes.auth import EMAIL_PATTERN
from portal_utils.audit import log_event
from portal_utils.decorators import role_required, current_account
from portal_utils.pagination import MAX_PER_PAGE

users_bp = Blueprint('users', __name__)

# profile fields each role may carry besides name, email and password
ROLE_FIELDS = {
    "admin": (),
    "teacher": ("department", "designation"),
    "student": ("roll_number", "semester", "department"),
}
MIN_PASSWORD_LENGTH = 6


def _invalid_role():
    return jsonify({"success": False, "message": "Invalid role. Must be admin, teacher, or student"}), 400


def _next_roll_number():
    year = date.today().year
    return f"STU-{year}-{Student.query.count() + 1:04d}"


def _apply_account_fields(account, data, allowed):
    """Copy the allowed fields from ``data`` onto ``account``. Returns an error message or None."""
    if 'name' in data and 'name' in allowed:
        name = str(data['name'] or '').strip()
        if not name:
            return "name must not be empty"
        account.name = name

    if 'email' in data and 'email' in allowed:
        email = str(data['email'] or '').strip().lower()
        if not EMAIL_PATTERN.match(email):
            return "Invalid email format"
        existing = find_account_by_email(email)
        if existing and (existing.role, existing.id) != (account.role, account.id):
            return "Email already in use"
        account.email = email

    if 'password' in data and 'password' in allowed:
        if len(str(data['password'] or '')) < MIN_PASSWORD_LENGTH:
            return f"password must be at least {MIN_PASSWORD_LENGTH} characters"
        account.set_password(str(data['password']))

    for field in ROLE_FIELDS[account.role]:
        if field in data and field in allowed:
            value = str(data[field] or '').strip() or None
            if field == 'roll_number':
                if not value:
                    return "roll_number must not be empty"
                taken = Student.query.filter_by(roll_number=value).first()
                if taken and taken.id != account.id:
                    return "roll_number already in use"
            setattr(account, field, value)
    return None


@users_bp.route('', methods=['GET'])
@jwt_required()
@role_required('admin', 'teacher')
def list_users():
    role = request.args.get('role')
    if role and role not in ACCOUNT_MODELS:
        return _invalid_role()

    search = (request.args.get('search') or '').strip()
    page = max(request.args.get('page', 1, type=int) or 1, 1)
    limit = request.args.get('limit', 50, type=int) or 50
    limit = min(max(limit, 1), MAX_PER_PAGE)

    users = []
    for model_role, model in ACCOUNT_MODELS.items():
        if role and role != model_role:
            continue
        query = model.query
        if search:
            query = query.filter(or_(model.name.ilike(f"%{search}%"), model.email.ilike(f"%{search}%")))
        users.extend(account.profile() for account in query.order_by(model.name, model.id).all())

    total = len(users)
    offset = (page - 1) * limit
    return jsonify({
        "success": True,
        "data": users[offset:offset + limit],
        "pagination": {
            "total": total,
            "page": page,
            "pages": ceil(total / limit),
            "limit": limit,
        }
    }), 200


@users_bp.route('/<role>/<int:user_id>', methods=['GET'])
@jwt_required()
@role_required()
def get_user(role, user_id):
    if role not in ACCOUNT_MODELS:
        return _invalid_role()

    viewer = current_account()
    if viewer.role == 'student' and (viewer.role, viewer.id) != (role, user_id):
        return jsonify({"success": False, "message": "Unauthorized access to this user"}), 403

    account = get_account(role, user_id)
    if not account:
        return jsonify({"success": False, "message": "User not found"}), 404

    return jsonify({"success": True, "data": account.profile()}), 200


@users_bp.route('', methods=['POST'])
@jwt_required()
@role_required('admin')
def create_user():
    data = request.get_json(silent=True) or {}
    role = (data.get('role') or '').lower()
    if role not in ACCOUNT_MODELS:
        return _invalid_role()

    missing = [field for field in ('name', 'email', 'password') if not data.get(field)]
    if missing:
        return jsonify({"success": False, "message": f"Missing required fields: {missing}"}), 400

    account = ACCOUNT_MODELS[role]()
    if role == 'student' and not data.get('roll_number'):
        data = dict(data, roll_number=_next_roll_number())

    allowed = ('name', 'email', 'password') + ROLE_FIELDS[role]
    error = _apply_account_fields(account, data, allowed)
    if error:
        return jsonify({"success": False, "message": error}), 400

    db.session.add(account)
    db.session.commit()

    admin = current_account()
    log_event("ACCOUNT_CREATED", user_id=admin.id, role=admin.role, ip=request.remote_addr,
              description=f"created {role}-{account.id} ({account.email})")
    return jsonify({"success": True, "message": "User created successfully", "data": account.profile()}), 201


@users_bp.route('/<role>/<int:user_id>', methods=['PUT'])
@jwt_required()
@role_required()
def update_user(role, user_id):
    if role not in ACCOUNT_MODELS:
        return _invalid_role()

    editor = current_account()
    is_self = (editor.role, editor.id) == (role, user_id)
    if editor.role != 'admin' and not is_self:
        return jsonify({"success": False, "message": "You can only update your own profile"}), 403

    account = get_account(role, user_id)
    if not account:
        return jsonify({"success": False, "message": "User not found"}), 404

    data = request.get_json(silent=True) or {}
    if not data:
        return jsonify({"success": False, "message": "No input data provided"}), 400

    # institutional fields (roll number, department...) stay with admins
    allowed = ('name', 'email', 'password')
    if editor.role == 'admin':
        allowed += ROLE_FIELDS[role]

    error = _apply_account_fields(account, data, allowed)
    if error:
        db.session.rollback()
        return jsonify({"success": False, "message": error}), 400

    db.session.commit()
    return jsonify({"success": True, "message": "User updated successfully", "data": account.profile()}), 200


@users_bp.route('/<role>/<int:user_id>', methods=['DELETE'])
@jwt_required()
@role_required('admin')
def delete_user(role, user_id):
    if role not in ACCOUNT_MODELS:
        return _invalid_role()

    admin = current_account()
    if (admin.role, admin.id) == (role, user_id):
        return jsonify({"success": False, "message": "You cannot delete your own account"}), 400

    account = get_account(role, user_id)
    if not account:
        return jsonify({"success": False, "message": "User not found"}), 404

    Notification.query.filter_by(user_id=user_id, user_role=UserRole(role)).delete()
    db.session.delete(account)
    db.session.commit()

    log_event("ACCOUNT_DELETED", user_id=admin.id, role=admin.role, ip=request.remote_addr,
              description=f"deleted {role}-{user_id}")
    return jsonify({"success": True, "message": "User deleted successfully"}), 200
