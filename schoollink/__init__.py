import os

import click
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_mail import Mail
from config import Config, DEFAULT_SECRET_KEY

# Use PyMySQL in place of MySQLdb
import pymysql
pymysql.install_as_MySQLdb()

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
mail = Mail()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)

    login_manager.login_view = 'auth.login'
    login_manager.login_message = 'Please log in to access this page.'
    login_manager.login_message_category = 'info'

    if app.config['SECRET_KEY'] == DEFAULT_SECRET_KEY and not app.testing:
        app.logger.warning('SECRET_KEY is not set; using the development fallback key. '
                           'Set SECRET_KEY in the environment before deploying.')

    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    with app.app_context():
        # Import models and routes here to register with the app
        from schoollink import models  # noqa: F401
        from schoollink.routes import main, auth, account, admin, teacher, parent, notifications, api

        app.register_blueprint(main.bp)
        app.register_blueprint(auth.bp)
        app.register_blueprint(account.bp)
        app.register_blueprint(admin.bp)
        app.register_blueprint(teacher.bp)
        app.register_blueprint(parent.bp)
        app.register_blueprint(notifications.bp)
        app.register_blueprint(api.bp)

        # Create all database tables (if not already created)
        db.create_all()

        register_error_handlers(app)
        register_context_processors(app)
        register_commands(app)

    return app


def register_error_handlers(app):
    """Register global error handlers"""
    from flask import render_template
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(404)
    def not_found_error(error):
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return render_template('errors/500.html'), 500

    @app.errorhandler(403)
    def forbidden_error(error):
        return render_template('errors/403.html'), 403

    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            if e.code == 404:
                return render_template('errors/404.html'), 404
            if e.code == 403:
                return render_template('errors/403.html'), 403
            return e

        app.logger.exception(f'Unhandled exception: {str(e)}')
        db.session.rollback()
        return render_template('errors/500.html'), 500


def register_context_processors(app):
    from flask_login import current_user
    from schoollink.models.notification import Notification
    from schoollink.models.post import REACTION_EMOJI, REACTION_TYPES
    from schoollink.navigation import sidebar_for

    @app.context_processor
    def inject_reactions():
        return {'reaction_types': REACTION_TYPES, 'reaction_emoji': REACTION_EMOJI}

    @app.context_processor
    def inject_navigation():
        if not current_user.is_authenticated:
            return {'sidebar_items': [], 'unread_notification_count': 0}
        return {
            'sidebar_items': sidebar_for(current_user.role),
            'unread_notification_count': Notification.get_unread_count(current_user.id),
        }


def register_commands(app):
    from schoollink.errors import ServiceError
    from schoollink.services.account_service import AccountService

    @app.cli.command('create-admin')
    @click.option('--email', required=True)
    @click.option('--name', required=True)
    @click.option('--password', required=True)
    def create_admin(email, name, password):
        """Create an administrator account."""
        try:
            admin = AccountService.create_admin(name, email, password)
        except ServiceError as e:
            raise click.ClickException(e.message)
        click.echo(f'Created admin {admin.email}')

    @app.cli.command('cleanup')
    @click.option('--days', default=90, show_default=True, help='Delete notifications older than this.')
    def cleanup(days):
        """Expire stale reset requests and prune old notifications."""
        from schoollink.services.notification_service import NotificationService
        from schoollink.services.password_reset_service import PasswordResetService

        expired = PasswordResetService.cleanup_expired_requests()
        removed = NotificationService.cleanup_old_notifications(days)
        click.echo(f'Expired {expired} reset request(s), removed {removed} notification(s)')
