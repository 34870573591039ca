from functools import wraps
from flask import abort, current_app
from flask_login import current_user


def role_required(*roles):
    """Restricts access to logged-in users holding one of the given roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return current_app.login_manager.unauthorized()
            if current_user.role not in roles:
                abort(403)  # Forbidden - wrong role
            return f(*args, **kwargs)
        return decorated_function
    return decorator


admin_required = role_required('admin')
teacher_required = role_required('teacher')
parent_required = role_required('parent')
