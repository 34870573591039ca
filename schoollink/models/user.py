from schoollink import db, login_manager
from schoollink.utils.names import get_display_name
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime, timedelta


MAX_LOGIN_ATTEMPTS = 3
LOCKOUT_MINUTES = 15


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256))
    name = db.Column(db.String(128), nullable=False)
    first_name = db.Column(db.String(64))
    middle_name = db.Column(db.String(64))
    last_name = db.Column(db.String(64))
    suffix = db.Column(db.String(16))
    role = db.Column(db.String(20), nullable=False)  # 'admin', 'teacher', 'parent'
    phone = db.Column(db.String(32))
    bio = db.Column(db.Text)
    avatar_url = db.Column(db.String(256), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Fields for login security
    login_attempts = db.Column(db.Integer, default=0)
    last_login_attempt = db.Column(db.DateTime)
    is_locked = db.Column(db.Boolean, default=False)
    lock_until = db.Column(db.DateTime)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)
        # Reset login attempts when password is changed
        self.login_attempts = 0
        self.is_locked = False
        self.lock_until = None

    def check_password(self, password):
        # Check if account is locked
        if self.is_locked and self.lock_until and datetime.utcnow() < self.lock_until:
            return False

        is_correct = bool(self.password_hash) and check_password_hash(self.password_hash, password or '')

        if is_correct:
            self.login_attempts = 0
            self.last_login_attempt = datetime.utcnow()
            self.is_locked = False
            self.lock_until = None
        else:
            self.login_attempts = (self.login_attempts or 0) + 1
            self.last_login_attempt = datetime.utcnow()

            if self.login_attempts >= MAX_LOGIN_ATTEMPTS:
                self.is_locked = True
                self.lock_until = datetime.utcnow() + timedelta(minutes=LOCKOUT_MINUTES)

        db.session.commit()
        return is_correct

    @property
    def is_admin(self):
        return self.role == 'admin'

    @property
    def is_teacher(self):
        return self.role == 'teacher'

    @property
    def is_parent(self):
        return self.role == 'parent'

    @property
    def display_name(self):
        return get_display_name(self.first_name, self.last_name, self.middle_name, self.suffix, self.name)

    def is_account_locked(self):
        if not self.is_locked:
            return False
        if not self.lock_until:
            return False
        return datetime.utcnow() < self.lock_until

    def get_lock_time_remaining(self):
        if not self.is_locked or not self.lock_until:
            return 0
        remaining = self.lock_until - datetime.utcnow()
        return max(0, int(remaining.total_seconds() / 60))

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.display_name,
            'email': self.email,
            'role': self.role,
            'avatar_url': self.avatar_url,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'


@login_manager.user_loader
def load_user(id):
    return db.session.get(User, int(id))
