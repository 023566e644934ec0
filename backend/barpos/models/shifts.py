from __future__ import annotations

from ..extensions import db
from ..money import format_amount
from ..time_utils import to_utc_z


class BarSession(db.Model):
    """
    Cashier shift.

    LIFECYCLE:
    - active: opened by a cashier, collects orders and payments
    - ended: end_time set, total_sales/transaction_count frozen

    At most one active shift per cashier. Shifts are never deleted.
    """
    __tablename__ = "bar_sessions"
    __table_args__ = (
        db.Index("ix_bar_sessions_user_active", "user_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False, index=True)

    # morning / evening
    shift_type = db.Column(db.String(16), nullable=False)

    start_time = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)

    # Frozen on end; live figures come from reporting_service.get_session_stats
    total_sales = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    transaction_count = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship("User", backref=db.backref("bar_sessions", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "shift_type": self.shift_type,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time),
            "total_sales": format_amount(self.total_sales),
            "transaction_count": self.transaction_count,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
