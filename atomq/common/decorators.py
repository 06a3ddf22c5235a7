"""
Access control for JSON API routes.

Failures return JSON errors instead of redirecting to a login page:
401 when no one is logged in, 403 when the user lacks the privilege.
"""
from functools import wraps

from flask import jsonify, request
from flask_login import current_user

from atomq.security import SecurityLogger


def _unauthorized():
    return jsonify({'error': 'Unauthorized'}), 401


def api_login_required(f):
    """Decorator to require an authenticated session."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return _unauthorized()
        return f(*args, **kwargs)
    return decorated_function


def user_passes(check):
    """Decorator factory allowing logged-in users for whom check(user) is true."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return _unauthorized()
            if not check(current_user):
                SecurityLogger.log_unauthorized_access(request.path, current_user.id)
                return jsonify({'error': 'Forbidden'}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


admin_required = user_passes(lambda user: user.is_admin())
