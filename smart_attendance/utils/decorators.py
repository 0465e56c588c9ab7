"""Custom decorators for role checks."""
from functools import wraps
from flask_jwt_extended import get_jwt, verify_jwt_in_request
from smart_attendance.models.user import UserRole
from smart_attendance.utils.helpers import error_response

def current_role():
    """Role claim of the verified token, or None."""
    return get_jwt().get('role')

def roles_required(*roles: UserRole):
    """Require a valid token whose role claim is one of ``roles``."""
    allowed = {role.value for role in roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            verify_jwt_in_request()
            if current_role() not in allowed:
                names = ' or '.join(sorted(allowed))
                return error_response(f"{names.title()} access required", 403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator

def lecturer_required(f):
    """Decorator to require lecturer role or higher."""
    return roles_required(UserRole.LECTURER, UserRole.ADMIN)(f)

def student_required(f):
    """Decorator to require student role."""
    return roles_required(UserRole.STUDENT)(f)

def admin_required(f):
    """Decorator to require admin role."""
    return roles_required(UserRole.ADMIN)(f)
