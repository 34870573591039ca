from flask import current_app, url_for
from schoollink import db
from schoollink.models.user import User
from schoollink.models.password_reset import PasswordResetRequest
from schoollink.models.notification import NotificationType
from schoollink.services.account_service import AccountService
from schoollink.services.email_service import EmailService
from schoollink.services.notification_service import NotificationService
from schoollink.services.policy import ensure
from datetime import datetime
from typing import List, Optional, Tuple


class PasswordResetService:
    """Forgot-password requests reviewed by an administrator"""

    @staticmethod
    def create_reset_request(user_id: int, reason: Optional[str] = None) -> Tuple[Optional[PasswordResetRequest], str]:
        try:
            user = db.session.get(User, user_id)
            if not user:
                return None, "User not found"

            existing_request = PasswordResetRequest.query.filter_by(user_id=user_id, status='pending').first()
            if existing_request and not existing_request.is_expired():
                return None, "You already have a pending password reset request"

            reset_request = PasswordResetRequest(user_id=user_id, reason=reason)
            db.session.add(reset_request)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Error creating password reset request: {str(e)}")
            return None, "An error occurred while processing your request"

        PasswordResetService._notify_admins(reset_request)
        return reset_request, "Password reset request submitted successfully"

    @staticmethod
    def _notify_admins(reset_request: PasswordResetRequest) -> None:
        user = reset_request.user
        for admin in User.query.filter_by(role='admin').all():
            message = f"{user.role.title()} {user.display_name} ({user.email}) has requested a password reset."
            if reset_request.reason:
                message += f"\n\nReason: {reset_request.reason}"
            message += "\n\nPlease review and approve/reject this request."

            NotificationService.create_notification(
                recipient_id=admin.id,
                title="Password Reset Request",
                message=message,
                notification_type=NotificationType.SECURITY_ALERT.value,
                priority='high',
                related_entity_type='password_reset',
                related_entity_id=reset_request.id,
                action_url=url_for('admin.reset_requests'),
                action_text="Review Request"
            )
            EmailService.send_admin_notification(admin.email, admin.display_name, user.display_name, user.role)

    @staticmethod
    def approve_request(request_id: int, admin: User) -> Tuple[bool, str, Optional[str]]:
        """Approve a request and issue a temporary password.

        Returns (success, message, temporary password). The password is emailed
        to the user and returned once so the admin can pass it on.
        """
        ensure(admin.is_admin, 'Only administrators can review password reset requests')
        reset_request = db.session.get(PasswordResetRequest, request_id)
        if not reset_request:
            return False, "Request not found", None
        if not reset_request.approve(admin.id):
            return False, "Request cannot be approved (expired or already processed)", None

        user, temp_password = AccountService.admin_reset_password(admin, reset_request.user_id)
        reset_request.complete()
        db.session.commit()

        EmailService.send_password_reset_approved(user.email, user.display_name, temp_password)
        current_app.logger.info(f"Password reset request {request_id} approved by {admin.email}")
        return True, f"Request approved. Temporary password for {user.email}: {temp_password}", temp_password

    @staticmethod
    def reject_request(request_id: int, admin: User, admin_notes: Optional[str] = None) -> Tuple[bool, str]:
        ensure(admin.is_admin, 'Only administrators can review password reset requests')
        reset_request = db.session.get(PasswordResetRequest, request_id)
        if not reset_request:
            return False, "Request not found"
        if not reset_request.reject(admin.id, admin_notes):
            return False, "Request has already been processed"
        db.session.commit()

        user = reset_request.user
        message = "Your password reset request has been rejected."
        if admin_notes:
            message += f"\n\nReason: {admin_notes}"
        NotificationService.create_notification(
            recipient_id=user.id,
            title="Password Reset Request Rejected",
            message=message,
            notification_type=NotificationType.SECURITY_ALERT.value,
            priority='medium'
        )
        EmailService.send_password_reset_denied(user.email, user.display_name, admin_notes)
        return True, "Request rejected and user notified"

    @staticmethod
    def get_requests(admin: User, pending_only: bool = True, limit: int = 50) -> List[PasswordResetRequest]:
        ensure(admin.is_admin)
        query = PasswordResetRequest.query
        if pending_only:
            query = query.filter(PasswordResetRequest.status == 'pending',
                                 PasswordResetRequest.expires_at >= datetime.utcnow())
        return query.order_by(PasswordResetRequest.created_at.desc()).limit(limit).all()

    @staticmethod
    def cleanup_expired_requests() -> int:
        """Mark stale pending requests as expired"""
        try:
            expired_requests = PasswordResetRequest.query\
                .filter(PasswordResetRequest.status == 'pending',
                        PasswordResetRequest.expires_at < datetime.utcnow())\
                .all()
            for reset_request in expired_requests:
                reset_request.status = 'expired'
            db.session.commit()
            return len(expired_requests)
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Error cleaning up expired requests: {str(e)}")
            return 0
