from flask import Blueprint, render_template, request, jsonify
from flask_login import login_required, current_user
from schoollink import db
from schoollink.models.notification import Notification
from schoollink.services.notification_service import NotificationService

bp = Blueprint('notifications', __name__, url_prefix='/notifications')


@bp.route('/')
@login_required
def index():
    """Display all notifications for the current user"""
    page = request.args.get('page', 1, type=int)
    per_page = 20

    notifications = Notification.query.filter_by(recipient_id=current_user.id)\
                                    .order_by(Notification.created_at.desc())\
                                    .paginate(page=page, per_page=per_page, error_out=False)

    # Viewing the list marks everything as read
    NotificationService.mark_all_as_read(current_user.id)

    return render_template('notifications/index.html', notifications=notifications)


@bp.route('/api/unread-count')
@login_required
def get_unread_count():
    count = Notification.get_unread_count(current_user.id)
    return jsonify({'count': count})


@bp.route('/api/recent')
@login_required
def get_recent():
    limit = request.args.get('limit', 5, type=int)
    notifications = Notification.get_recent_notifications(current_user.id, limit)

    return jsonify({
        'notifications': [n.to_dict() for n in notifications],
        'unread_count': Notification.get_unread_count(current_user.id)
    })


@bp.route('/api/mark-read/<int:notification_id>', methods=['POST'])
@login_required
def mark_as_read(notification_id):
    success = NotificationService.mark_notification_as_read(notification_id, current_user.id)

    if success:
        return jsonify({'success': True, 'message': 'Notification marked as read'})
    return jsonify({'success': False, 'message': 'Notification not found'}), 404


@bp.route('/api/mark-all-read', methods=['POST'])
@login_required
def mark_all_as_read():
    count = NotificationService.mark_all_as_read(current_user.id)

    return jsonify({
        'success': True,
        'message': f'{count} notifications marked as read',
        'count': count
    })


@bp.route('/api/delete/<int:notification_id>', methods=['DELETE'])
@login_required
def delete_notification(notification_id):
    notification = Notification.query.filter_by(
        id=notification_id,
        recipient_id=current_user.id
    ).first()

    if notification:
        db.session.delete(notification)
        db.session.commit()
        return jsonify({'success': True, 'message': 'Notification deleted'})
    return jsonify({'success': False, 'message': 'Notification not found'}), 404
