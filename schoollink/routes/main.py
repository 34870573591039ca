from flask import Blueprint, redirect, url_for, render_template, current_app, send_from_directory
from flask_login import current_user, login_required
from schoollink import db
from schoollink.models.user_activity import UserActivity
from schoollink.services.post_service import PostService
from schoollink.services.roster_service import RosterService


def log_activity(user_id, activity_type, description, ip_address=None):
    if user_id:  # Only log if user is authenticated
        activity = UserActivity(user_id=user_id, activity_type=activity_type, description=description, ip_address=ip_address)
        db.session.add(activity)
        db.session.commit()


bp = Blueprint('main', __name__)


@bp.route('/')
def index():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))
    return render_template('landing.html')


@bp.route('/dashboard')
@login_required
def dashboard():
    stats = RosterService.dashboard_stats(current_user)
    recent_posts = []
    if current_user.is_parent:
        recent_posts = PostService.parent_feed(current_user)[:5]
    elif current_user.is_teacher:
        recent_posts = PostService.teacher_posts(current_user)[:5]
    return render_template('dashboard.html', stats=stats, recent_posts=recent_posts)


@bp.route('/uploads/<path:filename>')
def uploaded_file(filename):
    """Serve avatars and post attachments from the upload folder"""
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)


@bp.route('/forgot-password')
def forgot_password_redirect():
    """Redirect to auth forgot password page"""
    return redirect(url_for('auth.forgot_password'))
