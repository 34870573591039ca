import re
import secrets
import string
from typing import Optional, Tuple

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from schoollink import db
from schoollink.errors import DuplicateParentError, NotFoundError, ServiceError, ValidationError
from schoollink.models.user import User
from schoollink.services.email_service import EmailService
from schoollink.services.notification_service import NotificationService
from schoollink.services.policy import ensure
from schoollink.utils.names import format_full_name
from schoollink.utils.password_validator import PasswordValidator

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
NAME_FIELDS = ('first_name', 'middle_name', 'last_name', 'suffix')
PROFILE_FIELDS = NAME_FIELDS + ('name', 'phone', 'bio')

password_validator = PasswordValidator()


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class AccountService:
    """Creation and maintenance of teacher, parent and admin accounts"""

    @staticmethod
    def generate_password(length: int = 8) -> str:
        """Random letters and digits that always pass the password validator"""
        alphabet = string.ascii_letters + string.digits
        while True:
            password = ''.join(secrets.choice(alphabet) for _ in range(length))
            if password_validator.validate_password(password)[0]:
                return password

    @staticmethod
    def validate_new_password(password):
        is_valid, issues = password_validator.validate_password(password or '')
        if not is_valid:
            raise ValidationError('; '.join(issues))

    @staticmethod
    def _resolve_name(name, parts):
        name = _clean(name)
        if parts.get('first_name') and parts.get('last_name'):
            name = format_full_name(parts['first_name'], parts['last_name'],
                                    parts.get('middle_name'), parts.get('suffix'))
        if not name:
            raise ValidationError('Name is required')
        return name

    @staticmethod
    def _build_user(role, name, email, password, **parts):
        email = _clean(email)
        if not email or not EMAIL_RE.match(email):
            raise ValidationError('A valid email address is required')
        if not _clean(password):
            raise ValidationError('Password is required')
        parts = {key: _clean(parts.get(key)) for key in NAME_FIELDS}
        name = AccountService._resolve_name(name, parts)
        AccountService.validate_new_password(password)

        email = email.lower()
        existing = User.query.filter(db.func.lower(User.email) == email).first()
        if existing:
            if role == 'parent' and existing.is_parent:
                raise DuplicateParentError(existing)
            raise ValidationError('An account with this email already exists')

        user = User(name=name, email=email, role=role, **parts)
        user.set_password(password)
        return user

    @staticmethod
    def create_teacher(actor, name, email, password, **parts) -> User:
        ensure(actor.is_admin, 'Only administrators can create teacher accounts')
        teacher = AccountService._build_user('teacher', name, email, password, **parts)
        AccountService._commit_new_user(teacher)
        NotificationService.notify_account_created(teacher.id, created_by_name=actor.display_name)
        EmailService.send_account_created(teacher.email, teacher.display_name, 'teacher', actor.display_name)
        return teacher

    @staticmethod
    def create_parent_account(actor, name, email, password, commit=True, **parts) -> User:
        """Create a parent login on behalf of a teacher or admin.

        The acting user's session is untouched. With ``commit=False`` the new
        row is only flushed so callers can finish a larger unit of work.
        """
        ensure(actor.is_admin or actor.is_teacher, 'Only teachers and administrators can create parent accounts')
        parent = AccountService._build_user('parent', name, email, password, **parts)
        if not commit:
            db.session.add(parent)
            db.session.flush()
            return parent
        AccountService._commit_new_user(parent)
        AccountService.announce_parent_account(actor, parent)
        return parent

    @staticmethod
    def announce_parent_account(actor, parent):
        NotificationService.notify_account_created(parent.id, created_by_name=actor.display_name)
        EmailService.send_account_created(parent.email, parent.display_name, 'parent', actor.display_name)

    @staticmethod
    def register_teacher(name, email, password, **parts) -> User:
        """Self-service sign up; parents cannot register themselves"""
        teacher = AccountService._build_user('teacher', name, email, password, **parts)
        AccountService._commit_new_user(teacher)
        return teacher

    @staticmethod
    def create_admin(name, email, password) -> User:
        admin = AccountService._build_user('admin', name, email, password)
        AccountService._commit_new_user(admin)
        return admin

    @staticmethod
    def _commit_new_user(user):
        try:
            db.session.add(user)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error creating {user.role} account {user.email}: {str(e)}")
            raise ServiceError(f'Error creating {user.role} account')
        current_app.logger.info(f"Created {user.role} account {user.email}")

    @staticmethod
    def update_profile(user, **fields) -> User:
        changes = {key: _clean(value) for key, value in fields.items() if key in PROFILE_FIELDS}
        for key, value in changes.items():
            setattr(user, key, value)
        user.name = AccountService._resolve_name(user.name, {key: getattr(user, key) for key in NAME_FIELDS})
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error updating profile for user {user.id}: {str(e)}")
            raise ServiceError('Error updating profile')
        return user

    @staticmethod
    def change_password(user, current_password, new_password):
        if not user.check_password(current_password):
            raise ValidationError('Current password is incorrect')
        AccountService.validate_new_password(new_password)
        user.set_password(new_password)
        db.session.commit()
        NotificationService.notify_password_changed(user.id)

    @staticmethod
    def admin_reset_password(actor, user_id) -> Tuple[User, str]:
        """Issue a one-time temporary password; only its hash is stored"""
        ensure(actor.is_admin, 'Only administrators can reset passwords')
        user = db.session.get(User, user_id)
        if not user:
            raise NotFoundError('User not found')
        temp_password = AccountService.generate_password(10)
        user.set_password(temp_password)
        db.session.commit()
        NotificationService.notify_password_reset(user.id, reset_by_name=actor.display_name)
        current_app.logger.info(f"Password reset for user {user.email} by {actor.email}")
        return user, temp_password

    @staticmethod
    def get_teacher(actor, teacher_id) -> User:
        ensure(actor.is_admin or actor.id == teacher_id)
        teacher = db.session.get(User, teacher_id)
        if not teacher or not teacher.is_teacher:
            raise NotFoundError('Teacher not found')
        return teacher

    @staticmethod
    def list_teachers(actor, search: Optional[str] = None):
        ensure(actor.is_admin)
        query = User.query.filter_by(role='teacher')
        if search:
            query = query.filter(User.name.ilike(f'%{search.strip()}%'))
        return query.order_by(User.name).all()

    @staticmethod
    def delete_teacher(actor, teacher_id):
        """Remove a teacher with their classes and posts; their students become unassigned"""
        teacher = AccountService.get_teacher(actor, teacher_id)
        ensure(actor.is_admin, 'Only administrators can delete teachers')
        name = teacher.display_name
        try:
            for klass in list(teacher.classes):
                db.session.delete(klass)
            db.session.flush()
            db.session.expire(teacher, ['classes', 'posts'])
            db.session.delete(teacher)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error deleting teacher {teacher_id}: {str(e)}")
            raise ServiceError('Error deleting teacher')
        return name
