from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from schoollink import db
from schoollink.errors import ServiceError


def commit_or_rollback(action):
    """Commit the current unit of work; on failure roll back and raise a user-facing error."""
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error {action}: {str(e)}")
        raise ServiceError(f'Error {action}')
