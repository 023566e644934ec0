# Overview: Service-layer operations for login sessions; opaque cookie tokens backed by a table.

"""
Login Session Management Service

WHY: The client authenticates with an HttpOnly cookie carrying an opaque
token. Tokens are cryptographically random, stored only as SHA-256 hashes,
and carry a JSON payload with login metadata.

SECURITY FEATURES:
- 32-byte random tokens (secrets.token_hex)
- SHA-256 hash stored, never the plaintext
- Absolute lifetime (SESSION_LIFETIME_HOURS, default 8h)
- Idle timeout (SESSION_IDLE_HOURS, default 2h)
- Revocable on logout or user deactivation
"""

from __future__ import annotations

import hashlib
import json
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow, to_utc_z


@dataclass
class SessionContext:
    """What require_auth puts on flask.g for the rest of the request."""
    user: User
    session: SessionToken


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_LIFETIME_HOURS", 8))


def _idle_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_IDLE_HOURS", 2))


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 is enough here: tokens are already high-entropy, unlike
    passwords.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a login session for an authenticated user.

    Returns (session_record, plaintext_token). Only the hash is persisted.
    """
    plaintext_token = generate_token()
    now = utcnow()
    expires_at = now + _absolute_timeout()

    payload = {
        "user_id": user.id,
        "role": user.role,
        "login_time": to_utc_z(now),
        "expires_at": to_utc_z(expires_at),
    }

    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(plaintext_token),
        payload=json.dumps(payload),
        created_at=now,
        last_used_at=now,
        expires_at=expires_at,
        user_agent=(user_agent or "")[:500] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str | None) -> SessionContext | None:
    """
    Resolve a cookie token to a SessionContext.

    Returns None when the token is unknown, revoked, past its absolute
    expiry, idle for too long, or the user is gone/deactivated.
    Updates last_used_at on success.
    """
    if not token:
        return None

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke(session, "User account deactivated")
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=user, session=session)


def revoke_session(token: str | None, reason: str = "User logout") -> bool:
    """Returns True if a live session was revoked."""
    if not token:
        return False
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return False
    _revoke(session, reason)
    return True


def revoke_all_user_sessions(user_id: str, reason: str = "Revoke all sessions") -> int:
    now = utcnow()
    sessions = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).all()
    for session in sessions:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = reason
    db.session.commit()
    return len(sessions)


def cleanup_expired_sessions(*, retention_days: int = 30) -> int:
    """
    Delete expired or revoked sessions created more than retention_days ago.

    Returns count of sessions deleted.
    """
    now = utcnow()
    cutoff = now - timedelta(days=retention_days)
    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True),
        ),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
