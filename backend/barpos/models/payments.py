from __future__ import annotations

from ..extensions import db
from ..money import format_amount
from ..time_utils import to_utc_z


class Payment(db.Model):
    """
    Money received (or recorded) by a cashier during a shift.

    Two shapes:
    - order payment: order_id set; credit_client_id set for method "credit"
    - credit repayment: order_id NULL, credit_client_id set,
      is_credit_repayment=True

    Payments are append-only.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.Index("ix_payments_session_created", "session_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)
    credit_client_id = db.Column(db.Integer, db.ForeignKey("credit_clients.id"), nullable=True, index=True)
    cashier_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("bar_sessions.id"), nullable=True, index=True)

    # cash / mobile_money / credit / partial / manager_consumption
    method = db.Column(db.String(32), nullable=False, index=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    received_amount = db.Column(db.Numeric(10, 2), nullable=True)
    change_amount = db.Column(db.Numeric(10, 2), nullable=True)

    is_partial = db.Column(db.Boolean, nullable=False, default=False)
    is_credit_repayment = db.Column(db.Boolean, nullable=False, default=False, index=True)

    # Manager consumption: the manager who consumed the order
    consumed_by_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    order = db.relationship("Order", backref=db.backref("payments", lazy=True, order_by="Payment.id"))
    credit_client = db.relationship("CreditClient", backref=db.backref("payments", lazy=True))
    cashier = db.relationship("User", foreign_keys=[cashier_id])
    consumed_by = db.relationship("User", foreign_keys=[consumed_by_id])
    session = db.relationship("BarSession", backref=db.backref("payments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "credit_client_id": self.credit_client_id,
            "cashier_id": self.cashier_id,
            "session_id": self.session_id,
            "method": self.method,
            "amount": format_amount(self.amount),
            "received_amount": format_amount(self.received_amount),
            "change_amount": format_amount(self.change_amount),
            "is_partial": self.is_partial,
            "is_credit_repayment": self.is_credit_repayment,
            "consumed_by": self.consumed_by_id,
            "created_at": to_utc_z(self.created_at),
        }
