# Overview: Service-layer operations for maintenance; database checks and housekeeping.

from __future__ import annotations

import logging
import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from ..extensions import db
from . import session_service

logger = logging.getLogger(__name__)


def check_database() -> bool:
    """Run a trivial query. Raises OperationalError when the database is unreachable."""
    db.session.execute(text("SELECT 1"))
    return True


def wait_for_database(*, attempts: int = 5, delay: float = 2.0, sleep=time.sleep) -> int:
    """
    Block until the database answers, up to `attempts` tries.

    Returns the attempt number that succeeded; re-raises the last
    OperationalError when every attempt fails.
    """
    for attempt in range(1, attempts + 1):
        try:
            check_database()
            logger.info("Database connection established (attempt %d/%d)", attempt, attempts)
            return attempt
        except OperationalError:
            db.session.rollback()
            if attempt >= attempts:
                logger.error("Database unreachable after %d attempts", attempts)
                raise
            logger.warning("Database not ready (attempt %d/%d); retrying in %.1fs", attempt, attempts, delay)
            sleep(delay)
    return attempts


def cleanup_expired_sessions(*, retention_days: int = 30) -> int:
    """Delete expired/revoked login sessions older than retention_days."""
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    logger.info("Deleted %d expired login sessions", deleted)
    return deleted
