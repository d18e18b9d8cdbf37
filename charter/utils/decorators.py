from functools import wraps

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from charter.extensions import db
from charter.models import User
from charter.utils.api_response import APIResponse


def get_current_user():
    """Active user behind the request's access token, or None"""
    user_id = get_jwt_identity()
    if not user_id:
        return None
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


def login_required(f):
    """Require a valid token for an active user; passes it as ``current_user``"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        user = get_current_user()
        if user is None:
            return APIResponse.unauthorized('User not found or inactive')
        return f(*args, current_user=user, **kwargs)
    return decorated_function


def admin_required(f):
    """Like login_required, restricted to administrators"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        user = get_current_user()
        if user is None:
            return APIResponse.unauthorized('User not found or inactive')
        if not user.is_admin:
            return APIResponse.forbidden("You don't have permission to access this resource")
        return f(*args, current_user=user, **kwargs)
    return decorated_function
