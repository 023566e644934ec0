from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..money import format_amount
from ..time_utils import to_utc_z


class CreditClient(db.Model):
    """
    Regular customer allowed to run a tab.

    total_credit is the outstanding balance: raised by credit payments,
    lowered by repayments, never above credit_limit and never below zero.
    """
    __tablename__ = "credit_clients"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(20), nullable=True)

    total_credit = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    credit_limit = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("500.00"))

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def available_credit(self) -> Decimal:
        return Decimal(self.credit_limit or 0) - Decimal(self.total_credit or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "total_credit": format_amount(self.total_credit),
            "credit_limit": format_amount(self.credit_limit),
            "available_credit": format_amount(self.available_credit),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
