from flask import request, jsonify, make_response
from flask_jwt_extended import get_jwt, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from datetime import datetime


def log_rate_limit_violation(request_limit):
    from portal.extensions import db
    from portal.models import AuditLog

    try:
        verify_jwt_in_request(optional=True)
        claims = get_jwt()
    except (JWTExtendedException, PyJWTError):
        claims = {}

    log = AuditLog(
        user_id=int(claims["sub"]) if claims.get("sub") else None,
        user_role=claims.get("role"),
        action=f"RATE_LIMIT_EXCEEDED: {request.method} {request.path} ({request_limit.limit})",
        ip_address=request.remote_addr,
        timestamp=datetime.utcnow(),
    )
    db.session.add(log)
    db.session.commit()

    return make_response(jsonify({
        "success": False,
        "message": "Rate limit exceeded. Please slow down."
    }), 429)
