from schoollink import db
from datetime import datetime
from enum import Enum


class NotificationType(Enum):
    ACCOUNT_CREATED = "account_created"
    PASSWORD_CHANGED = "password_changed"
    PASSWORD_RESET = "password_reset"
    STUDENT_ADDED = "student_added"
    STUDENT_POST = "student_post"
    CLASS_ANNOUNCEMENT = "class_announcement"
    POST_REACTION = "post_reaction"
    SECURITY_ALERT = "security_alert"


class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    recipient_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    notification_type = db.Column(db.String(50), nullable=False)  # Using string instead of Enum for compatibility
    priority = db.Column(db.String(20), default='medium')

    # Status tracking
    is_read = db.Column(db.Boolean, default=False)
    is_email_sent = db.Column(db.Boolean, default=False)
    email_sent_at = db.Column(db.DateTime)

    # Metadata
    related_entity_type = db.Column(db.String(50))  # e.g., 'student', 'post', 'class'
    related_entity_id = db.Column(db.Integer)
    action_url = db.Column(db.String(500))
    action_text = db.Column(db.String(100))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    read_at = db.Column(db.DateTime)
    expires_at = db.Column(db.DateTime)

    recipient = db.relationship('User', backref=db.backref(
        'notifications', lazy=True, cascade='all, delete',
        order_by='Notification.created_at.desc()'))

    def mark_as_read(self):
        """Mark notification as read"""
        self.is_read = True
        self.read_at = datetime.utcnow()
        db.session.commit()

    def to_dict(self):
        """Convert notification to dictionary for JSON responses"""
        return {
            'id': self.id,
            'title': self.title,
            'message': self.message,
            'type': self.notification_type,
            'priority': self.priority,
            'is_read': self.is_read,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'read_at': self.read_at.isoformat() if self.read_at else None,
            'action_url': self.action_url,
            'action_text': self.action_text,
            'related_entity_type': self.related_entity_type,
            'related_entity_id': self.related_entity_id
        }

    @staticmethod
    def get_unread_count(user_id):
        return Notification.query.filter_by(recipient_id=user_id, is_read=False).count()

    @staticmethod
    def get_recent_notifications(user_id, limit=10):
        return Notification.query.filter_by(recipient_id=user_id)\
                                .order_by(Notification.created_at.desc())\
                                .limit(limit).all()

    def __repr__(self):
        return f'<Notification {self.id}: {self.title} for User {self.recipient_id}>'
