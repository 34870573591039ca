from flask import Blueprint, render_template, flash, redirect, url_for, request
from flask_login import current_user
from schoollink.errors import ServiceError
from schoollink.services.account_service import AccountService
from schoollink.services.password_reset_service import PasswordResetService
from schoollink.services.roster_service import RosterService
from schoollink.utils.decorators import admin_required
from schoollink.routes.main import log_activity
from schoollink.routes.roster import name_parts, register_roster_routes

bp = Blueprint('admin', __name__, url_prefix='/admin')

register_roster_routes(bp, admin_required)


@bp.route('/teachers')
@admin_required
def teachers():
    search = request.args.get('search', '')
    return render_template('admin/teachers.html', teachers=AccountService.list_teachers(current_user, search),
                           search=search)


@bp.route('/teachers/create', methods=['POST'])
@admin_required
def create_teacher():
    password = (request.form.get('password') or '').strip()
    generated = not password
    if generated:
        password = AccountService.generate_password()
    try:
        teacher = AccountService.create_teacher(current_user, request.form.get('name'), request.form.get('email'),
                                                password, **name_parts(request.form))
        log_activity(current_user.id, 'create_teacher', f'Created teacher account: {teacher.email}', request.remote_addr)
        if generated:
            flash(f'Teacher account created for {teacher.email} with password: {password}. '
                  'Share it now; the password will not be shown again.', 'success')
        else:
            flash(f'Teacher account created for {teacher.email}.', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(url_for('admin.teachers'))


@bp.route('/teachers/<int:teacher_id>')
@admin_required
def teacher_detail(teacher_id):
    try:
        detail = RosterService.teacher_detail(current_user, teacher_id)
    except ServiceError as e:
        flash(e.message, 'danger')
        return redirect(url_for('admin.teachers'))
    return render_template('admin/teacher_detail.html', **detail)


@bp.route('/teachers/<int:teacher_id>/delete', methods=['POST'])
@admin_required
def delete_teacher(teacher_id):
    try:
        name = AccountService.delete_teacher(current_user, teacher_id)
        log_activity(current_user.id, 'delete_teacher', f'Deleted teacher: {name}', request.remote_addr)
        flash(f'Teacher "{name}" deleted successfully!', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(url_for('admin.teachers'))


@bp.route('/users/<int:user_id>/reset-password', methods=['POST'])
@admin_required
def reset_password(user_id):
    """Issue a temporary password, shown once to the admin"""
    try:
        user, temp_password = AccountService.admin_reset_password(current_user, user_id)
        log_activity(current_user.id, 'reset_password', f'Reset password for {user.email}', request.remote_addr)
        flash(f'Temporary password for {user.email}: {temp_password}. '
              'It will not be shown again.', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(request.referrer or url_for('admin.teachers'))


@bp.route('/reset-requests')
@admin_required
def reset_requests():
    PasswordResetService.cleanup_expired_requests()
    return render_template('admin/reset_requests.html',
                           pending_requests=PasswordResetService.get_requests(current_user),
                           all_requests=PasswordResetService.get_requests(current_user, pending_only=False, limit=20))


@bp.route('/reset-requests/<int:request_id>/approve', methods=['POST'])
@admin_required
def approve_reset_request(request_id):
    try:
        success, message, _ = PasswordResetService.approve_request(request_id, current_user)
    except ServiceError as e:
        success, message = False, e.message
    if success:
        log_activity(current_user.id, 'approve_password_reset', f'Approved password reset request {request_id}', request.remote_addr)
    flash(message, 'success' if success else 'danger')
    return redirect(url_for('admin.reset_requests'))


@bp.route('/reset-requests/<int:request_id>/reject', methods=['POST'])
@admin_required
def reject_reset_request(request_id):
    success, message = PasswordResetService.reject_request(request_id, current_user,
                                                           request.form.get('admin_notes', '').strip() or None)
    if success:
        log_activity(current_user.id, 'reject_password_reset', f'Rejected password reset request {request_id}', request.remote_addr)
    flash(message, 'success' if success else 'danger')
    return redirect(url_for('admin.reset_requests'))
