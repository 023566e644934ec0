# Overview: Flask API routes for auth operations; login cookie lifecycle.

# backend/barpos/routes/auth.py
"""
Authentication API routes

- POST /login checks username + password + the role picked on the login
  screen, then sets an HttpOnly session cookie
- POST /logout revokes the server-side session and clears the cookie
- GET /user returns the signed-in user (401 otherwise)
- GET /redirect tells the client which dashboard to open
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, session_token_from_request
from ..models.enums import UserRole
from ..services import auth_service, session_service
from ..services.auth_service import AuthError, InactiveUserError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

DASHBOARD_PATHS = {
    UserRole.MANAGER.value: "/manager",
    UserRole.CASHIER.value: "/dashboard",
    UserRole.SERVER.value: "/dashboard",
}


def _set_session_cookie(response, token: str, session):
    cfg = current_app.config
    response.set_cookie(
        cfg["AUTH_COOKIE_NAME"],
        token,
        expires=session.expires_at,
        httponly=True,
        secure=cfg["AUTH_COOKIE_SECURE"],
        samesite="Lax",
        path="/",
    )
    return response


@auth_bp.post("/login")
def login_route():
    """
    Request body:
    {
        "username": "jose.barros",
        "password": "...",
        "role": "cashier"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        username = data.get("username")
        password = data.get("password")
        role = data.get("role")

        if not all(isinstance(v, str) and v.strip() for v in (username, password, role)):
            return jsonify({"error": "username, password and role required"}), 400

        try:
            user = auth_service.authenticate(username, password, role)
        except AuthError:
            current_app.logger.info("Failed login for %s as %s", auth_service.normalize_username(username), role)
            return jsonify({"error": "Invalid credentials"}), 401
        except InactiveUserError as e:
            return jsonify({"error": str(e)}), 403

        session, token = session_service.create_session(
            user,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        current_app.logger.info("Login: %s (%s)", user.id, user.role)

        response = jsonify({
            "user": user.to_dict(),
            "expires_at": session.to_dict()["expires_at"],
            "redirect": DASHBOARD_PATHS.get(user.role, "/dashboard"),
        })
        return _set_session_cookie(response, token, session)

    except Exception:
        current_app.logger.exception("Failed to log in")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Idempotent: always clears the cookie, revokes the session if there is one."""
    token = session_token_from_request()
    revoked = session_service.revoke_session(token, reason="User logout")

    response = jsonify({"message": "Logged out", "revoked": revoked})
    response.delete_cookie(current_app.config["AUTH_COOKIE_NAME"], path="/")
    return response


@auth_bp.get("/user")
@require_auth
def current_user_route():
    return jsonify(g.current_user.to_dict())


@auth_bp.get("/redirect")
@require_auth
def redirect_route():
    role = g.current_user.role
    return jsonify({
        "role": role,
        "dashboard": role,
        "redirect": DASHBOARD_PATHS.get(role, "/dashboard"),
    })
