# Overview: Service-layer operations for staff accounts; password hashing and credential checks.

"""
Authentication Service

WHY: Every order, shift and payment is attributed to a staff member.
Passwords are hashed with bcrypt (cost factor 12); login checks the
claimed role against the stored one so a server cannot sign in to the
cashier screen.
"""

from __future__ import annotations

import logging

import bcrypt
from flask import current_app, has_app_context

from ..extensions import db
from ..models import User
from ..models.enums import UserRole, values
from ..time_utils import utcnow
from ..validation import ValidationError, NotFoundError

logger = logging.getLogger(__name__)

ROLES = values(UserRole)
MIN_PASSWORD_LENGTH = 6


class AuthError(Exception):
    """Credentials did not match (401)."""


class InactiveUserError(Exception):
    """Account exists but is deactivated (403)."""


def normalize_username(username: str | None) -> str:
    return (username or "").strip().lower()


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt (cost factor 12 unless BCRYPT_ROUNDS says otherwise).

    Raises ValidationError for passwords shorter than MIN_PASSWORD_LENGTH.
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12) if has_app_context() else 12
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str | None) -> bool:
    """bcrypt.checkpw is timing-safe. A malformed stored hash never matches."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        logger.warning("Malformed password hash encountered")
        return False


def authenticate(username: str, password: str, role: str) -> User:
    """
    Check username + password + claimed role.

    Raises AuthError when any of the three do not match, and
    InactiveUserError when they do but the account is disabled.
    """
    user_id = normalize_username(username)
    claimed_role = (role or "").strip().lower()

    user = db.session.get(User, user_id)
    if not user or not verify_password(password, user.password_hash) or user.role != claimed_role:
        raise AuthError("Invalid credentials")

    if not user.is_active:
        raise InactiveUserError("Account is deactivated")

    user.last_login_at = utcnow()
    db.session.commit()
    return user


# =============================================================================
# USER STORE
# =============================================================================

def get_user(user_id: str) -> User | None:
    return db.session.get(User, normalize_username(user_id))


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.role, User.id).all()


def get_users_by_role(role: str) -> list[User]:
    return db.session.query(User).filter_by(role=role).order_by(User.id).all()


def upsert_user(
    *,
    user_id: str,
    role: str,
    password: str | None = None,
    email: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
    profile_image_url: str | None = None,
    is_active: bool | None = None,
    commit: bool = True,
) -> User:
    """
    Insert a user or update the existing row with the same id.

    Only provided fields are written on update; the password is re-hashed
    when given.
    """
    uid = normalize_username(user_id)
    if not uid:
        raise ValidationError("id is required")
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(sorted(ROLES))}")

    if email:
        email = email.strip().lower()
        clash = db.session.query(User).filter(User.email == email, User.id != uid).first()
        if clash:
            raise ValidationError(f"Email already in use: {email}")

    user = db.session.get(User, uid)
    if user is None:
        if not password:
            raise ValidationError("password is required for new users")
        user = User(id=uid, role=role, is_active=True if is_active is None else is_active)
        db.session.add(user)
        logger.info("Creating user %s (%s)", uid, role)
    else:
        user.role = role
        if is_active is not None:
            user.is_active = is_active

    if password:
        user.password_hash = hash_password(password)
    if email is not None:
        user.email = email or None
    if first_name is not None:
        user.first_name = first_name.strip() or None
    if last_name is not None:
        user.last_name = last_name.strip() or None
    if profile_image_url is not None:
        user.profile_image_url = profile_image_url or None

    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return user


def update_user_status(user_id: str, is_active: bool) -> User:
    """Activate or deactivate. Deactivation also revokes open login sessions."""
    from . import session_service

    user = get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    user.is_active = bool(is_active)
    db.session.commit()
    if not user.is_active:
        session_service.revoke_all_user_sessions(user.id, reason="User account deactivated")
    return user


def update_user_details(user_id: str, patch: dict) -> User:
    user = get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    return upsert_user(
        user_id=user.id,
        role=patch.get("role") or user.role,
        password=patch.get("password"),
        email=patch.get("email"),
        first_name=patch.get("first_name"),
        last_name=patch.get("last_name"),
        profile_image_url=patch.get("profile_image_url"),
    )
