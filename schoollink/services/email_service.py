from flask import current_app
from flask_mail import Message
from schoollink import mail


class EmailService:
    """Service for handling email notifications"""

    @staticmethod
    def send_email(to=None, subject=None, body=None, html_body=None, *, recipients=None):
        """
        Send an email.

        Accepts either a single ``to`` address or a ``recipients`` list. When
        ``MAIL_ENABLED`` is off the message is written to the application log
        instead. Returns True on success, False on failure; callers never fail
        a request because of email.
        """
        recipient_list = list(recipients) if recipients else ([to] if to else [])
        if not recipient_list:
            current_app.logger.error("No recipients specified for email")
            return False

        if not current_app.config.get('MAIL_ENABLED'):
            return EmailService._log_email(recipient_list, subject, body)

        try:
            current_app.logger.info(f"Preparing to send email to: {', '.join(recipient_list)}")
            msg = Message(subject=subject, recipients=recipient_list, body=body, html=html_body)
            mail.send(msg)
            current_app.logger.info(f"Email sent successfully to {', '.join(recipient_list)}")
            return True
        except Exception as e:
            current_app.logger.error(f"Failed to send email to {recipient_list[0]}: {str(e)}")
            return False

    @staticmethod
    def _log_email(recipient_list, subject, body):
        """Fallback used when mail delivery is disabled"""
        current_app.logger.info("EMAIL NOTIFICATION (delivery disabled):")
        current_app.logger.info(f"To: {', '.join(recipient_list)}")
        current_app.logger.info(f"Subject: {subject}")
        return True

    @staticmethod
    def send_account_created(user_email, user_name, role, created_by_name=None):
        """Tell a new teacher or parent that an account exists for them.

        The password is handed over by the person who created the account and
        is never included in the email.
        """
        subject = "Your SchoolLink account"
        body = f"""
Hello {user_name},

A {role} account has been created for you by {created_by_name or 'your school'}.

You can sign in with this email address and the password you were given.
Please change it after your first login.

Best regards,
SchoolLink
        """
        return EmailService.send_email(user_email, subject, body)

    @staticmethod
    def send_admin_notification(admin_email, admin_name, user_name, user_role):
        """Let an admin know that a password reset request is waiting for review"""
        subject = f"Password Reset Request - {user_name} ({user_role})"
        body = f"""
Hello {admin_name},

A password reset request has been submitted by:
- Name: {user_name}
- Role: {user_role.title()}

Please sign in to SchoolLink to review and process this request.

Best regards,
SchoolLink
        """
        return EmailService.send_email(admin_email, subject, body)

    @staticmethod
    def send_password_reset_approved(user_email, user_name, new_password):
        subject = "Password Reset Approved - SchoolLink"
        body = f"""
Hello {user_name},

Your password has been reset.

Your new temporary password is: {new_password}

Please log in with this password and change it immediately.

Best regards,
SchoolLink
        """
        return EmailService.send_email(user_email, subject, body)

    @staticmethod
    def send_password_reset_denied(user_email, user_name, reason=None):
        subject = "Password Reset Request Denied - SchoolLink"
        body = f"""
Hello {user_name},

Your password reset request has been denied.

{f"Reason: {reason}" if reason else ""}

Please contact your school if you need further assistance.

Best regards,
SchoolLink
        """
        return EmailService.send_email(user_email, subject, body)
