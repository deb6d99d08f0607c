from datetime import datetime
from flask import Blueprint, jsonify, current_app

base_bp = Blueprint("base", __name__)

@base_bp.route("/health")
def health():
    return jsonify({
        "success": True,
        "message": "Server is running",
        "events": current_app.config.get("EVENT_SINK"),
        "timestamp": datetime.utcnow().isoformat()
    })
