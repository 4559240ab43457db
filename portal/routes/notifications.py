from flask import Blueprint, current_app, jsonify, request

from portal import firestore_dao as dao
from portal.decorators import admin_required, profile_required
from portal.models import Notification

bp = Blueprint('notifications', __name__, url_prefix='/notifications')


def notify(title, message, notification_type='system'):
    """Record a notification. Failures are logged, never raised."""
    try:
        return dao.create_notification(title, message, notification_type)
    except Exception:
        current_app.logger.exception('Failed to save notification %r', title)
        return None


@bp.route('')
@profile_required
def list_notifications():
    notifications = dao.get_notifications(current_app.config.get('NOTIFICATION_LIMIT', 50))
    return jsonify({
        'notifications': [n.to_api() for n in notifications],
        'unreadCount': sum(1 for n in notifications if not n.is_read),
    })


@bp.route('', methods=['POST'])
@admin_required
def create_notification():
    payload = Notification.from_api(request.get_json(silent=True) or {}).validate()
    notification = dao.create_notification(payload.title, payload.message, payload.type)
    return jsonify({'success': True, 'notification': notification.to_api()}), 201


@bp.route('/read-all', methods=['POST'])
@profile_required
def mark_all_read():
    updated = dao.mark_all_notifications_read()
    return jsonify({'success': True, 'updated': updated, 'unreadCount': 0})
