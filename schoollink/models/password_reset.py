from schoollink import db
from datetime import datetime, timedelta
import secrets
import string

REQUEST_TTL_HOURS = 24


class PasswordResetRequest(db.Model):
    __tablename__ = 'password_reset_requests'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    token = db.Column(db.String(64), unique=True, nullable=False)
    status = db.Column(db.String(20), default='pending')  # pending, approved, rejected, completed, expired
    reason = db.Column(db.Text)
    admin_notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime)
    approved_at = db.Column(db.DateTime)
    completed_at = db.Column(db.DateTime)

    approved_by_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    user = db.relationship('User', foreign_keys=[user_id],
                           backref=db.backref('password_reset_requests', cascade='all, delete'))
    approved_by = db.relationship('User', foreign_keys=[approved_by_id])

    def __init__(self, user_id, reason=None):
        self.user_id = user_id
        self.reason = reason
        self.status = 'pending'
        self.token = self.generate_token()
        self.expires_at = datetime.utcnow() + timedelta(hours=REQUEST_TTL_HOURS)

    @staticmethod
    def generate_token():
        """Generate a secure random token"""
        return ''.join(secrets.choice(string.ascii_letters + string.digits) for _ in range(32))

    def is_expired(self):
        return datetime.utcnow() > self.expires_at

    def can_be_approved(self):
        return self.status == 'pending' and not self.is_expired()

    def approve(self, approved_by_id, admin_notes=None):
        if not self.can_be_approved():
            return False
        self.status = 'approved'
        self.approved_by_id = approved_by_id
        self.approved_at = datetime.utcnow()
        if admin_notes:
            self.admin_notes = admin_notes
        return True

    def reject(self, approved_by_id, admin_notes=None):
        if self.status != 'pending':
            return False
        self.status = 'rejected'
        self.approved_by_id = approved_by_id
        self.approved_at = datetime.utcnow()
        if admin_notes:
            self.admin_notes = admin_notes
        return True

    def complete(self):
        if self.status != 'approved':
            return False
        self.status = 'completed'
        self.completed_at = datetime.utcnow()
        return True

    def get_display_status(self):
        if self.is_expired() and self.status == 'pending':
            return 'Expired'
        return self.status.title()
