from functools import wraps
from flask import request, jsonify
from app.utils.security import verify_token
from app.utils.logger import get_logger

logger = get_logger(__name__)


def require_auth(f):
    """Decorator to require a bearer token issued to an operator"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get('Authorization')

        if not auth_header:
            return jsonify({'error': 'Authorization header missing'}), 401

        parts = auth_header.split()
        if len(parts) != 2 or parts[0] != 'Bearer':
            return jsonify({'error': 'Invalid authorization header format'}), 401

        payload = verify_token(parts[1])
        if not payload:
            return jsonify({'error': 'Invalid or expired token'}), 401

        if not operator_identity(payload):
            logger.warning("Token accepted but carries no operator identity")
            return jsonify({'error': 'Token does not identify an operator'}), 401

        return f(current_user=payload, *args, **kwargs)

    return decorated_function


def require_role(allowed_roles):
    """Decorator to require specific roles"""
    def decorator(f):
        @wraps(f)
        def decorated_function(current_user, *args, **kwargs):
            if current_user.get('role') not in allowed_roles:
                return jsonify({'error': 'Insufficient permissions'}), 403
            return f(current_user, *args, **kwargs)
        return decorated_function
    return decorator


def require_admin(f):
    """Decorator to require admin role"""
    return require_role(['admin'])(f)


def require_recruiter(f):
    """Decorator for operators allowed to run background checks"""
    return require_role(['recruiter', 'admin'])(f)


def operator_identity(current_user):
    """Stable identity string for audit stamps (email preferred, else user id)"""
    if not current_user:
        return None
    identity = current_user.get('email') or current_user.get('user_id')
    return str(identity) if identity else None
