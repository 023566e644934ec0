"""
Cashier Shift Service

WHY: Each shift is a period of accountability for one cashier. Orders and
payments are stamped with the shift they happened in, and ending a shift
freezes its sales figures.

DESIGN PRINCIPLES:
- One active shift per cashier at a time (second open is a conflict)
- Shifts are never deleted or reopened
- Ending a shift locks the row, computes totals from payments and freezes
  them in the same transaction
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import BarSession, Payment, User
from ..models.enums import ShiftType, UserRole, values
from ..money import quantize
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError
from .concurrency import lock_for_update, run_with_retry

logger = logging.getLogger(__name__)

SHIFT_TYPES = values(ShiftType)

# Shifts opened before this UTC hour default to "morning"
EVENING_STARTS_AT_HOUR = 14


class ShiftError(ValueError):
    """Raised for shift management errors."""


def default_shift_type(now=None) -> str:
    now = now or utcnow()
    return ShiftType.MORNING.value if now.hour < EVENING_STARTS_AT_HOUR else ShiftType.EVENING.value


def get_session(session_id: int) -> BarSession | None:
    return db.session.get(BarSession, session_id)


def get_active_session(user_id: str) -> BarSession | None:
    return db.session.query(BarSession).filter_by(
        user_id=user_id,
        is_active=True,
    ).order_by(BarSession.start_time.desc()).first()


def get_any_active_session() -> BarSession | None:
    """Most recently opened active shift of any cashier."""
    return db.session.query(BarSession).filter_by(
        is_active=True,
    ).order_by(BarSession.start_time.desc(), BarSession.id.desc()).first()


def session_totals(session_id: int) -> tuple[Decimal, int]:
    """(sum of payment amounts, number of payments) recorded in a shift."""
    total, count = db.session.query(
        func.coalesce(func.sum(Payment.amount), 0),
        func.count(Payment.id),
    ).filter(Payment.session_id == session_id).one()
    return quantize(total), int(count or 0)


def open_shift(user: User, shift_type: str | None = None) -> BarSession:
    """
    Open a new shift for a cashier.

    Raises:
        ShiftError: unknown shift type or the user is not a cashier
        ConflictError: the cashier already has an active shift
    """
    if user.role != UserRole.CASHIER.value:
        raise ShiftError("Only cashiers can open a shift")

    shift_type = (shift_type or default_shift_type()).strip().lower()
    if shift_type not in SHIFT_TYPES:
        raise ShiftError(f"shift_type must be one of: {', '.join(sorted(SHIFT_TYPES))}")

    existing = get_active_session(user.id)
    if existing:
        raise ConflictError(f"Cashier already has an active session (session {existing.id})")

    now = utcnow()
    session = BarSession(
        user_id=user.id,
        shift_type=shift_type,
        start_time=now,
        created_at=now,
        total_sales=Decimal("0.00"),
        transaction_count=0,
        is_active=True,
    )
    db.session.add(session)
    db.session.commit()

    logger.info("Shift %s opened by %s (%s)", session.id, user.id, shift_type)
    return session


def end_session(session_id: int, user: User) -> BarSession:
    """
    End a shift and freeze its totals.

    The row is locked, totals are recomputed from the shift's payments and
    the shift is closed in a single commit, retried on lock/version errors.

    Raises:
        NotFoundError: unknown shift
        ShiftError: shift already ended or owned by another cashier
    """
    def _op():
        session = lock_for_update(
            db.session.query(BarSession).filter_by(id=session_id)
        ).first()
        if not session:
            raise NotFoundError("Session not found")
        if session.user_id != user.id:
            raise ShiftError("Only the cashier who opened the session can end it")
        if not session.is_active:
            raise ShiftError("Session is already closed")

        total, count = session_totals(session.id)
        session.total_sales = total
        session.transaction_count = count
        session.end_time = utcnow()
        session.is_active = False
        db.session.commit()
        return session

    session = run_with_retry(_op)
    logger.info(
        "Shift %s ended by %s: %s over %d transactions",
        session.id, user.id, session.total_sales, session.transaction_count,
    )
    return session


def list_sessions_between(start, end) -> list[BarSession]:
    return db.session.query(BarSession).filter(
        BarSession.start_time >= start,
        BarSession.start_time < end,
    ).order_by(BarSession.start_time.desc()).all()
