# Overview: Request authentication and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service


def session_token_from_request() -> str | None:
    """
    The login token travels in the HttpOnly session cookie. A Bearer header
    is accepted as well for non-browser clients.
    """
    token = request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def require_auth(f):
    """
    Require a valid login session.

    Sets:
    - g.current_user: the authenticated User
    - g.session_context: the SessionContext

    Returns 401 when the cookie is missing, unknown, expired, idle or the
    user has been deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = session_token_from_request()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired session"}), 401

        g.current_user = context.user
        g.session_context = context
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Allow only the listed roles. Must be stacked under @require_auth.

    Returns 403 for any other role.
    """
    allowed = set(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                return jsonify({"error": "Authentication required"}), 401
            if user.role not in allowed:
                current_app.logger.info(
                    "Access denied: %s (%s) -> %s %s", user.id, user.role, request.method, request.path
                )
                return jsonify({"error": "Access denied", "required_roles": sorted(allowed)}), 403
            return f(*args, **kwargs)

        return decorated_function

    return decorator
