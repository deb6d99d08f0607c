from flask import Blueprint, request, jsonify
from flask_jwt_extended import create_access_token, jwt_required, get_jwt
from portal.models import TokenBlocklist, find_account_by_email
from portal.extensions import db, limiter
from portal_utils.audit import log_event
from portal_utils.decorators import role_required, current_account
from datetime import datetime
import re

auth_bp = Blueprint('auth', __name__)
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def issue_token(account):
    return create_access_token(
        identity=str(account.id),
        additional_claims={"role": account.role, "name": account.name}
    )


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    ip = request.remote_addr

    if not email or not password:
        return jsonify({"success": False, "message": "Please provide email and password"}), 400

    if not EMAIL_PATTERN.match(email):
        return jsonify({"success": False, "message": "Invalid email format"}), 400

    account = find_account_by_email(email)

    if account and account.check_password(password):
        log_event("LOGIN_SUCCESS", user_id=account.id, role=account.role, ip=ip, description=f"{email} logged in")
        return jsonify({
            "success": True,
            "data": {
                "token": issue_token(account),
                "user": account.profile()
            }
        }), 200

    log_event("LOGIN_FAILED", ip=ip, description=f"Failed login attempt for {email}", level="WARNING")
    return jsonify({"success": False, "message": "Invalid email or password"}), 401


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
@role_required()
def get_current_user():
    return jsonify({"success": True, "data": current_account().profile()}), 200


@auth_bp.route('/reset-password', methods=['PUT'])
@jwt_required()
@role_required()
def reset_password():
    data = request.get_json(silent=True) or {}
    current_password = data.get('currentPassword') or data.get('current_password')
    new_password = data.get('newPassword') or data.get('new_password')

    if not current_password or not new_password:
        return jsonify({"success": False, "message": "Please provide current and new password"}), 400

    account = current_account()
    if not account.check_password(current_password):
        return jsonify({"success": False, "message": "Current password is incorrect"}), 401

    if len(new_password) < 6:
        return jsonify({"success": False, "message": "New password must be at least 6 characters"}), 400

    account.set_password(new_password)
    db.session.commit()

    log_event("PASSWORD_RESET", user_id=account.id, role=account.role, ip=request.remote_addr)
    return jsonify({"success": True, "message": "Password updated successfully"}), 200


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
@role_required()
def logout():
    claims = get_jwt()
    account = current_account()

    token_block = TokenBlocklist(
        jti=claims["jti"],
        token_type=claims.get("type", "access"),
        user_id=account.id,
        user_role=account.role,
        expires_at=datetime.fromtimestamp(claims["exp"]),
    )
    db.session.add(token_block)
    db.session.commit()

    log_event("LOGOUT", user_id=account.id, role=account.role, ip=request.remote_addr)
    return jsonify({"success": True, "message": "Successfully logged out"}), 200
