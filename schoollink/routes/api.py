from functools import wraps

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user
from config import DEFAULT_SECRET_KEY
from schoollink.errors import ServiceError, ValidationError
from schoollink.services.account_service import AccountService
from schoollink.services.post_service import PostService
from schoollink.routes.main import log_activity

bp = Blueprint('api', __name__, url_prefix='/api')


@bp.errorhandler(ServiceError)
def handle_service_error(e):
    return jsonify(e.to_dict()), e.status_code


def api_role_required(*roles):
    """JSON flavour of role_required: 401 when anonymous, 403 for other roles"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({'error': 'Authentication required'}), 401
            if current_user.role not in roles:
                return jsonify({'error': 'You do not have permission to perform this action'}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def text_field(data, key):
    value = data.get(key)
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(f'{key} must be a string')
    return value


@bp.route('/create-parent', methods=['POST'])
@api_role_required('admin', 'teacher')
def create_parent():
    """Create a parent login without touching the caller's session"""
    data = json_body()
    email = text_field(data, 'email').strip()
    password = text_field(data, 'password')
    name = text_field(data, 'name').strip()
    if not email or not password or not name:
        return jsonify({'error': 'Missing required fields: email, password, name'}), 400

    parent = AccountService.create_parent_account(current_user, name, email, password)
    log_activity(current_user.id, 'create_parent', f'Created parent account via API: {parent.email}', request.remote_addr)
    return jsonify({'success': True, 'parent': parent.to_dict()})


@bp.route('/test-env')
@api_role_required('admin')
def test_env():
    """Report whether a real secret key is configured without revealing it"""
    secret_key = current_app.config.get('SECRET_KEY') or ''
    return jsonify({
        'hasSecretKey': bool(secret_key),
        'usingDefaultSecretKey': secret_key == DEFAULT_SECRET_KEY,
        'keyLength': len(secret_key),
        'keyPrefix': f'{secret_key[:4]}...' if secret_key else None,
    })


@bp.route('/posts/<int:post_id>/reactions', methods=['POST'])
@api_role_required('parent')
def toggle_reaction(post_id):
    reaction_type = text_field(json_body(), 'reaction_type')
    active, counts = PostService.toggle_reaction(current_user, post_id, reaction_type)
    return jsonify({'active': active, 'reactions': counts})


@bp.route('/posts/<int:post_id>/reactions/<reaction_type>')
@api_role_required('admin', 'teacher')
def reactors(post_id, reaction_type):
    parents = PostService.list_reactors(current_user, post_id, reaction_type)
    return jsonify({'reaction_type': reaction_type,
                    'parents': [{'id': p.id, 'name': p.display_name, 'email': p.email} for p in parents]})
