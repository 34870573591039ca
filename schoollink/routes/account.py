from flask import Blueprint, render_template, flash, redirect, url_for, request
from flask_login import login_required, current_user
from schoollink.errors import ServiceError
from schoollink.services.account_service import AccountService, PROFILE_FIELDS
from schoollink.services.storage_service import upload_parent_avatar, upload_teacher_avatar
from schoollink.routes.main import log_activity

bp = Blueprint('account', __name__, url_prefix='/account')


@bp.route('/profile', methods=['GET', 'POST'])
@login_required
def profile():
    if request.method == 'POST':
        try:
            AccountService.update_profile(current_user, **{key: request.form.get(key)
                                                           for key in PROFILE_FIELDS if key in request.form})
            log_activity(current_user.id, 'update_profile', 'Updated account information', request.remote_addr)
            flash('Your profile has been updated successfully!', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return redirect(url_for('account.profile'))

    return render_template('account/profile.html', user=current_user)


@bp.route('/avatar', methods=['POST'])
@login_required
def upload_avatar():
    upload = upload_parent_avatar if current_user.is_parent else upload_teacher_avatar
    try:
        upload(current_user, request.files.get('avatar'))
        log_activity(current_user.id, 'update_profile', 'Updated profile picture', request.remote_addr)
        flash('Profile picture updated!', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(url_for('account.profile'))


@bp.route('/password', methods=['POST'])
@login_required
def change_password():
    if request.form.get('new_password') != request.form.get('confirm_password'):
        flash('New passwords do not match', 'danger')
        return redirect(url_for('account.profile'))
    try:
        AccountService.change_password(current_user, request.form.get('current_password'),
                                       request.form.get('new_password'))
        log_activity(current_user.id, 'password_change', 'Changed account password', request.remote_addr)
        flash('Your password has been changed.', 'success')
    except ServiceError as e:
        log_activity(current_user.id, 'password_change_failed', 'Failed password change attempt', request.remote_addr)
        flash(e.message, 'danger')
    return redirect(url_for('account.profile'))
