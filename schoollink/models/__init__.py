from schoollink.models.user import User
from schoollink.models.school_class import SchoolClass
from schoollink.models.student import Student, student_parent
from schoollink.models.post import Post, PostReaction, post_student_tags, REACTION_TYPES
from schoollink.models.notification import Notification, NotificationType
from schoollink.models.user_activity import UserActivity
from schoollink.models.password_reset import PasswordResetRequest
