from __future__ import annotations

from ..extensions import db
from ..money import format_amount
from ..time_utils import to_utc_z
from .enums import TERMINAL_ORDER_STATUSES


class Order(db.Model):
    """
    Table order.

    LIFECYCLE: pending -> preparing -> ready -> completed (via payment),
    or any open state -> cancelled. completed/cancelled are terminal.

    total_amount is always the server-side sum of the item totals.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    table_id = db.Column(db.Integer, db.ForeignKey("tables.id"), nullable=True, index=True)
    server_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=True, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("bar_sessions.id"), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    table = db.relationship("BarTable", foreign_keys=[table_id])
    server = db.relationship("User", foreign_keys=[server_id])
    session = db.relationship("BarSession", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_ORDER_STATUSES

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "table_id": self.table_id,
            "table_number": self.table.number if self.table is not None else None,
            "server_id": self.server_id,
            "session_id": self.session_id,
            "status": self.status,
            "total_amount": format_amount(self.total_amount),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """Order line; unit_price is the product price captured when the line was written."""
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product is not None else None,
            "quantity": self.quantity,
            "unit_price": format_amount(self.unit_price),
            "total_price": format_amount(self.total_price),
            "created_at": to_utc_z(self.created_at),
        }
