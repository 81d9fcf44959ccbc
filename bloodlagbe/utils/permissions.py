# bloodlagbe/utils/permissions.py

from dataclasses import dataclass
from functools import wraps
from http import HTTPStatus

from flask import jsonify
from flask_login import current_user

from bloodlagbe.models import UserRole


class AuthorizationError(Exception):
    """Raised by services when the caller lacks the required role or ownership"""

    status = HTTPStatus.FORBIDDEN

    def __init__(self, message="You do not have permission to perform this action."):
        super().__init__(message)
        self.message = message


class AuthenticationRequired(AuthorizationError):
    status = HTTPStatus.UNAUTHORIZED

    def __init__(self, message="Authentication required."):
        super().__init__(message)


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller, passed explicitly into services"""

    user_id: int
    role: UserRole

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN


def auth_context_from_user(user):
    """Build an AuthContext from a Flask-Login user, or None when anonymous"""
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return AuthContext(user_id=user.id, role=user.role)


def current_auth_context():
    return auth_context_from_user(current_user)


def require_authenticated(auth):
    if auth is None:
        raise AuthenticationRequired()
    return auth


def require_admin(auth):
    """Return ``auth`` when it belongs to an admin, otherwise raise"""
    require_authenticated(auth)
    if not auth.is_admin:
        raise AuthorizationError("Admin privileges required.")
    return auth


def _json_denied(message, status):
    return jsonify({"message": message}), status


def login_required_json(f):
    """Decorator returning a JSON 401 for anonymous callers"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return _json_denied("Authentication required.", HTTPStatus.UNAUTHORIZED)
        return f(*args, **kwargs)

    return decorated_function


def admin_required(f):
    """Decorator to require admin privileges (JSON 401/403)"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return _json_denied("Authentication required.", HTTPStatus.UNAUTHORIZED)

        if not current_user.is_admin:
            return _json_denied("Admin privileges required.", HTTPStatus.FORBIDDEN)

        return f(*args, **kwargs)

    return decorated_function
