from schoollink import db
from schoollink.models.notification import Notification, NotificationType
from schoollink.models.user import User
from schoollink.models.student import Student
from schoollink.models.post import REACTION_EMOJI
from schoollink.services.email_service import EmailService
from flask import url_for, current_app
from datetime import datetime, timedelta


class NotificationService:

    @staticmethod
    def create_notification(recipient_id, title, message, notification_type,
                            priority='medium', related_entity_type=None,
                            related_entity_id=None, action_url=None, action_text=None,
                            send_email=False, expires_in_days=30):
        """
        Create a new notification for a user
        """
        try:
            if not recipient_id:
                current_app.logger.warning("Cannot create notification: recipient_id is None")
                return None

            recipient = db.session.get(User, recipient_id)
            if not recipient:
                current_app.logger.warning(f"Cannot create notification: recipient with ID {recipient_id} not found")
                return None

            expires_at = datetime.utcnow() + timedelta(days=expires_in_days) if expires_in_days else None

            notification = Notification(
                recipient_id=recipient_id,
                title=title,
                message=message,
                notification_type=notification_type,
                priority=priority,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
                action_url=action_url,
                action_text=action_text,
                expires_at=expires_at
            )

            db.session.add(notification)
            db.session.commit()

            if send_email:
                NotificationService._send_email_notification(notification, recipient)

            return notification

        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Error creating notification: {str(e)}")
            return None

    @staticmethod
    def notify_account_created(user_id, created_by_name=None):
        """Welcome a newly created teacher or parent"""
        user = db.session.get(User, user_id)
        if not user:
            return

        message = f"Your account has been created by {created_by_name or 'an administrator'}."
        message += "\n\nPlease change your password after your first login."

        NotificationService.create_notification(
            recipient_id=user_id,
            title="Welcome to SchoolLink!",
            message=message,
            notification_type=NotificationType.ACCOUNT_CREATED.value,
            priority='high',
            action_url=url_for('account.profile'),
            action_text="Update Profile"
        )

    @staticmethod
    def notify_password_reset(user_id, reset_by_name=None):
        """Tell a user that their password was reset by an administrator"""
        message = f"Your password has been reset by {reset_by_name or 'an administrator'}."
        message += "\n\nIf you did not request this change, please contact your school immediately."

        NotificationService.create_notification(
            recipient_id=user_id,
            title="Password Reset",
            message=message,
            notification_type=NotificationType.PASSWORD_RESET.value,
            priority='high'
        )

    @staticmethod
    def notify_password_changed(user_id):
        NotificationService.create_notification(
            recipient_id=user_id,
            title="Password Changed",
            message="Your password was changed. If this was not you, contact your school right away.",
            notification_type=NotificationType.PASSWORD_CHANGED.value,
            priority='high'
        )

    @staticmethod
    def notify_student_added(student_id, added_by_name=None):
        """Notify linked parents that their child was enrolled"""
        student = db.session.get(Student, student_id)
        if not student:
            return

        for parent in student.parents:
            message = f"{student.display_name} has been added by {added_by_name or 'a teacher'}."
            message += f"\n\nClass: {student.class_name}"
            NotificationService.create_notification(
                recipient_id=parent.id,
                title="Child Added",
                message=message,
                notification_type=NotificationType.STUDENT_ADDED.value,
                priority='medium',
                related_entity_type='student',
                related_entity_id=student.id,
                action_url=url_for('parent.child_detail', student_id=student.id),
                action_text="View Profile"
            )

    @staticmethod
    def notify_post_created(post):
        """Notify the parents a post is addressed to"""
        teacher_name = post.teacher.display_name if post.teacher else 'A teacher'

        if post.class_id is not None:
            students = Student.query.filter_by(class_id=post.class_id).all()
            title = f"New announcement in {post.school_class.name}"
            notification_type = NotificationType.CLASS_ANNOUNCEMENT.value
        else:
            students = post.tagged_students
            title = "New update about your child"
            notification_type = NotificationType.STUDENT_POST.value

        preview = post.content if len(post.content) <= 140 else post.content[:137] + '...'
        notified = set()
        for student in students:
            for parent in student.parents:
                if parent.id in notified:
                    continue
                notified.add(parent.id)
                NotificationService.create_notification(
                    recipient_id=parent.id,
                    title=title,
                    message=f"{teacher_name}: {preview}",
                    notification_type=notification_type,
                    priority='medium',
                    related_entity_type='post',
                    related_entity_id=post.id,
                    action_url=url_for('parent.posts'),
                    action_text="View Post",
                    send_email=True
                )
        return len(notified)

    @staticmethod
    def notify_reaction(post, parent, reaction_type):
        """Let the author know a parent reacted to their post"""
        if not post.teacher_id:
            return None
        preview = post.content if len(post.content) <= 60 else post.content[:57] + '...'
        return NotificationService.create_notification(
            recipient_id=post.teacher_id,
            title="New reaction",
            message=f"{parent.display_name} reacted {REACTION_EMOJI.get(reaction_type, reaction_type)} to: {preview}",
            notification_type=NotificationType.POST_REACTION.value,
            priority='low',
            related_entity_type='post',
            related_entity_id=post.id,
            action_url=url_for('teacher.reactors', post_id=post.id, reaction_type=reaction_type),
            action_text="See who reacted"
        )

    @staticmethod
    def _send_email_notification(notification, recipient):
        body = f"""
Dear {recipient.display_name},

{notification.message}

---
This is an automated notification from SchoolLink.
        """
        sent = EmailService.send_email(recipient.email, f"SchoolLink - {notification.title}", body)
        if sent and current_app.config.get('MAIL_ENABLED'):
            notification.is_email_sent = True
            notification.email_sent_at = datetime.utcnow()
            db.session.commit()

    @staticmethod
    def mark_notification_as_read(notification_id, user_id):
        """Mark a notification as read"""
        notification = Notification.query.filter_by(id=notification_id, recipient_id=user_id).first()
        if notification:
            notification.mark_as_read()
            return True
        return False

    @staticmethod
    def mark_all_as_read(user_id):
        """Mark all notifications as read for a user"""
        notifications = Notification.query.filter_by(recipient_id=user_id, is_read=False).all()
        for notification in notifications:
            notification.is_read = True
            notification.read_at = datetime.utcnow()
        db.session.commit()
        return len(notifications)

    @staticmethod
    def cleanup_old_notifications(days=90):
        """Delete notifications older than ``days``; returns how many were removed"""
        cutoff_date = datetime.utcnow() - timedelta(days=days)
        count = Notification.query.filter(Notification.created_at < cutoff_date)\
                                  .delete(synchronize_session=False)
        db.session.commit()
        return count
