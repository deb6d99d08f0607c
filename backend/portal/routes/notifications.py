from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from portal.extensions import db
from portal.models import Notification, NotificationType, UserRole, get_account
from portal.services.notifications import create_notification
from portal_utils.decorators import role_required, current_account
from portal_utils.pagination import paginate, pagination_meta

notifications_bp = Blueprint('notifications', __name__)


def own_notifications(account):
    return Notification.query.filter_by(user_id=account.id, user_role=UserRole(account.role))


@notifications_bp.route('', methods=['GET'])
@jwt_required()
@role_required()
def list_notifications():
    account = current_account()
    query = own_notifications(account)

    type_filter = request.args.get('type')
    if type_filter:
        try:
            query = query.filter(Notification.type == NotificationType(type_filter))
        except ValueError:
            return jsonify({"success": False, "message": "Invalid notification type"}), 400

    is_read = request.args.get('is_read')
    if is_read is not None:
        query = query.filter(Notification.is_read == (is_read.lower() == 'true'))

    paginated = paginate(
        query.order_by(Notification.created_at.desc(), Notification.id.desc()),
        request.args.get('page', 1, type=int),
        request.args.get('limit', 20, type=int),
        default_per_page=20,
    )
    unread_count = own_notifications(account).filter_by(is_read=False).count()

    return jsonify({
        "success": True,
        "data": {
            "notifications": [n.to_dict() for n in paginated.items],
            "unread_count": unread_count,
            **pagination_meta(paginated)
        }
    }), 200


@notifications_bp.route('/mark-read', methods=['PUT'])
@jwt_required()
@role_required()
def mark_read():
    data = request.get_json(silent=True) or {}
    notification_ids = data.get('notification_ids')
    account = current_account()

    if notification_ids == 'all':
        notifications = own_notifications(account).filter_by(is_read=False).all()
    elif isinstance(notification_ids, list):
        notifications = own_notifications(account).filter(Notification.id.in_(notification_ids)).all()
    else:
        return jsonify({"success": False, "message": 'notification_ids must be an array or "all"'}), 400

    for notification in notifications:
        notification.mark_read()
    db.session.commit()

    return jsonify({
        "success": True,
        "message": f"{len(notifications)} notifications marked as read",
        "updated": len(notifications)
    }), 200


@notifications_bp.route('', methods=['POST'])
@jwt_required()
@role_required('admin')
def post_notification():
    data = request.get_json(silent=True) or {}

    missing = [field for field in ('user_id', 'user_role', 'title', 'message') if not data.get(field)]
    if missing:
        return jsonify({"success": False, "message": f"Missing required fields: {missing}"}), 400

    if data['user_role'] not in ('student', 'teacher', 'admin'):
        return jsonify({"success": False, "message": "Invalid user_role"}), 400

    try:
        notification_type = NotificationType(data.get('type') or 'system').value
    except ValueError:
        return jsonify({"success": False, "message": "Invalid notification type"}), 400

    try:
        user_id = int(data['user_id'])
    except (TypeError, ValueError):
        return jsonify({"success": False, "message": "user_id must be an integer"}), 400

    if get_account(data['user_role'], user_id) is None:
        return jsonify({"success": False, "message": "Recipient not found"}), 404

    notification = create_notification(
        user_id=user_id,
        user_role=data['user_role'],
        title=data['title'],
        message=data['message'],
        type=notification_type,
        link=data.get('link'),
    )
    return jsonify({"success": True, "message": "Notification created", "data": notification.to_dict()}), 201


@notifications_bp.route('/<int:notification_id>', methods=['DELETE'])
@jwt_required()
@role_required()
def delete_notification(notification_id):
    notification = own_notifications(current_account()).filter_by(id=notification_id).first()
    if not notification:
        return jsonify({"success": False, "message": "Notification not found"}), 404

    db.session.delete(notification)
    db.session.commit()
    return jsonify({"success": True, "message": "Notification deleted"}), 200
