from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class BarTable(db.Model):
    """
    Physical table on the floor.

    INVARIANT: status "occupied" <=> current_order_id points at a
    non-terminal order; "free" and "reserved" carry no order.
    """
    __tablename__ = "tables"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, nullable=False, unique=True)
    capacity = db.Column(db.Integer, nullable=False)

    # free / occupied / reserved
    status = db.Column(db.String(16), nullable=False, default="free", index=True)
    # Plain integer (not a FK) to avoid a tables <-> orders cycle
    current_order_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "number": self.number,
            "capacity": self.capacity,
            "status": self.status,
            "current_order_id": self.current_order_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
