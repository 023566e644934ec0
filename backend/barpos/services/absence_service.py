# Overview: Service-layer operations for employee absences.

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Absence, User
from ..time_utils import parse_iso_datetime, utcnow
from ..validation import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class AbsenceError(ValueError):
    """Raised for absence workflow errors."""


def _parse(value, field: str):
    if not value or not isinstance(value, str):
        raise ValidationError(f"{field} is required (ISO-8601)")
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date or datetime")


def create_absence(*, user_id: str, start_date, end_date, reason: str | None = None) -> Absence:
    if not db.session.get(User, user_id):
        raise NotFoundError("User not found")

    start = _parse(start_date, "start_date")
    end = _parse(end_date, "end_date")
    if end < start:
        raise ValidationError("end_date must be on or after start_date")

    absence = Absence(
        user_id=user_id,
        start_date=start,
        end_date=end,
        reason=(reason or "").strip() or None,
        is_approved=False,
    )
    db.session.add(absence)
    db.session.commit()
    return absence


def get_absences_by_user(user_id: str) -> list[Absence]:
    return db.session.query(Absence).filter_by(user_id=user_id).order_by(Absence.start_date.desc()).all()


def list_absences(*, pending_only: bool = False) -> list[Absence]:
    query = db.session.query(Absence)
    if pending_only:
        query = query.filter(Absence.is_approved.is_(False))
    return query.order_by(Absence.start_date.desc()).all()


def approve_absence(absence_id: int, approver: User) -> Absence:
    absence = db.session.get(Absence, absence_id)
    if not absence:
        raise NotFoundError("Absence not found")
    if absence.is_approved:
        raise AbsenceError("Absence is already approved")
    if absence.user_id == approver.id:
        raise AbsenceError("Managers cannot approve their own absence")

    absence.is_approved = True
    absence.approved_by = approver.id
    absence.approved_at = utcnow()
    db.session.commit()
    logger.info("Absence %s approved by %s", absence.id, approver.id)
    return absence
