from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import login_user, logout_user, login_required, current_user
from schoollink import db
from schoollink.errors import ServiceError
from schoollink.models.user import User, MAX_LOGIN_ATTEMPTS, LOCKOUT_MINUTES
from schoollink.services.account_service import AccountService
from schoollink.services.password_reset_service import PasswordResetService
from schoollink.routes.main import log_activity

bp = Blueprint('auth', __name__, url_prefix='/auth')


def _find_user(email):
    email = (email or '').strip().lower()
    if not email:
        return None
    return User.query.filter(db.func.lower(User.email) == email).first()


def _is_safe_next(target):
    return bool(target) and target.startswith('/') and not target.startswith('//')


@bp.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))

    if request.method == 'POST':
        email = request.form.get('email')
        password = request.form.get('password')
        user = _find_user(email)

        if user:
            if user.is_account_locked():
                minutes_remaining = user.get_lock_time_remaining()
                flash(f'Account is locked. Please try again in {minutes_remaining} minutes.', 'danger')
                log_activity(user.id, 'login_attempt', f'Account locked, login attempt blocked for user {user.email}', request.remote_addr)
                return render_template('auth/login.html', email=email)

            if user.check_password(password):
                login_user(user, remember=bool(request.form.get('remember')))
                log_activity(user.id, 'login', f'User logged in successfully: {user.email}', request.remote_addr)
                next_page = request.args.get('next')
                return redirect(next_page if _is_safe_next(next_page) else url_for('main.dashboard'))

            attempts_remaining = MAX_LOGIN_ATTEMPTS - user.login_attempts
            if attempts_remaining > 0:
                flash(f'Invalid email or password. {attempts_remaining} attempts remaining.', 'danger')
                log_activity(user.id, 'login_failed', f'Invalid password attempt for user {user.email}', request.remote_addr)
            else:
                flash(f'Account has been locked for {LOCKOUT_MINUTES} minutes due to too many failed attempts.', 'danger')
                log_activity(user.id, 'account_locked', f'Account locked due to too many failed login attempts for user {user.email}', request.remote_addr)
        else:
            flash('Invalid email or password', 'danger')

        return render_template('auth/login.html', email=email)

    return render_template('auth/login.html')


@bp.route('/logout')
@login_required
def logout():
    log_activity(current_user.id, 'logout', f'User logged out: {current_user.email}', request.remote_addr)
    logout_user()
    flash('You have been logged out.', 'info')
    return redirect(url_for('auth.login'))


@bp.route('/register', methods=['GET', 'POST'])
def register():
    """Teacher sign up; parent accounts are created by staff"""
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))

    if request.method == 'POST':
        if request.form.get('password') != request.form.get('confirm_password'):
            flash('Passwords do not match', 'danger')
            return render_template('auth/register.html', form=request.form)
        try:
            teacher = AccountService.register_teacher(
                request.form.get('name'),
                request.form.get('email'),
                request.form.get('password'),
                first_name=request.form.get('first_name'),
                middle_name=request.form.get('middle_name'),
                last_name=request.form.get('last_name'),
                suffix=request.form.get('suffix'),
            )
        except ServiceError as e:
            flash(e.message, 'danger')
            return render_template('auth/register.html', form=request.form)

        log_activity(teacher.id, 'register', f'Teacher account registered: {teacher.email}', request.remote_addr)
        flash('Account created successfully! Please log in.', 'success')
        return redirect(url_for('auth.login'))

    return render_template('auth/register.html', form={})


@bp.route('/forgot-password', methods=['GET', 'POST'])
def forgot_password():
    if request.method == 'POST':
        email = request.form.get('email')
        reason = request.form.get('reason', '').strip() or 'User requested password reset via forgot password form'

        if not email:
            flash('Email address is required', 'danger')
            return render_template('auth/forgot_password.html')

        user = _find_user(email)
        if user:
            reset_request, message = PasswordResetService.create_reset_request(user.id, reason)
            if reset_request:
                log_activity(user.id, 'password_reset_request', 'Requested a password reset', request.remote_addr)
                flash('Password reset request submitted successfully. You will be notified when it is processed.', 'success')
            else:
                flash(message, 'warning')
        else:
            # Don't reveal if email exists or not for security
            flash('If an account with that email exists, a password reset request has been submitted.', 'info')

        return render_template('auth/forgot_password.html')

    return render_template('auth/forgot_password.html')
