from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Absence(db.Model):
    """
    Employee absence request.

    Created unapproved; a manager approves it (approved_by set).
    start_date <= end_date.
    """
    __tablename__ = "absences"
    __table_args__ = (
        db.Index("ix_absences_user_start", "user_id", "start_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=False)
    reason = db.Column(db.Text, nullable=True)

    is_approved = db.Column(db.Boolean, nullable=False, default=False)
    approved_by = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", foreign_keys=[user_id], backref=db.backref("absences", lazy=True))
    approver = db.relationship("User", foreign_keys=[approved_by])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "start_date": to_utc_z(self.start_date),
            "end_date": to_utc_z(self.end_date),
            "reason": self.reason,
            "is_approved": self.is_approved,
            "approved_by": self.approved_by,
            "approved_at": to_utc_z(self.approved_at),
            "created_at": to_utc_z(self.created_at),
        }
