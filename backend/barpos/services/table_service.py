# Overview: Service-layer operations for floor tables and their occupancy.

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import BarTable, Order
from ..models.enums import TableStatus, OPEN_ORDER_STATUSES, values
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_table,
    validate_payload,
)
from .concurrency import lock_for_update, run_with_retry

logger = logging.getLogger(__name__)

TABLE_STATUSES = values(TableStatus)

TABLE_POLICY = ModelValidationPolicy(
    writable_fields={"number", "capacity", "status"},
    required_on_create={"number", "capacity"},
    choices={"status": TABLE_STATUSES},
)


class TableError(ValueError):
    """Raised for table occupancy rule violations."""


def list_tables() -> list[BarTable]:
    return db.session.query(BarTable).order_by(BarTable.number, BarTable.id).all()


def get_table(table_id: int) -> BarTable | None:
    return db.session.get(BarTable, table_id)


def create_table(payload: dict) -> BarTable:
    patch = validate_payload(model=BarTable, payload=payload, policy=TABLE_POLICY, partial=False)
    enforce_rules_table(patch)

    if patch.get("status") == TableStatus.OCCUPIED.value:
        raise ValidationError("A new table cannot start occupied")

    if db.session.query(BarTable).filter_by(number=patch["number"]).first():
        raise ConflictError(f"Table number {patch['number']} already exists")

    table = BarTable(**patch)
    db.session.add(table)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Table number {patch['number']} already exists")
    return table


def update_table_status(table_id: int, status: str, order_id: int | None = None) -> BarTable:
    """
    Set a table's status while keeping it consistent with current_order_id.

    - occupied: order_id is required and must reference an open order
      placed at this table
    - free / reserved: current_order_id is cleared
    """
    if status not in TABLE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(sorted(TABLE_STATUSES))}")

    def _op():
        table = lock_for_update(db.session.query(BarTable).filter_by(id=table_id)).first()
        if not table:
            raise NotFoundError("Table not found")

        if status == TableStatus.OCCUPIED.value:
            if order_id is None:
                raise TableError("order_id is required to mark a table occupied")
            order = db.session.get(Order, order_id)
            if not order:
                raise NotFoundError("Order not found")
            if order.status not in OPEN_ORDER_STATUSES:
                raise TableError("Cannot occupy a table with a completed or cancelled order")
            if order.table_id != table.id:
                raise TableError(f"Order {order.id} belongs to another table")
            table.current_order_id = order.id
        else:
            table.current_order_id = None

        table.status = status
        db.session.commit()
        return table

    return run_with_retry(_op)


def release_table_for_order(order: Order) -> None:
    """
    Free the order's table if it still points at this order.

    Part of a caller's transaction; does not commit.
    """
    if order.table_id is None:
        return
    table = lock_for_update(db.session.query(BarTable).filter_by(id=order.table_id)).first()
    if table and table.current_order_id == order.id:
        table.status = TableStatus.FREE.value
        table.current_order_id = None


def count_occupied() -> tuple[int, int]:
    """(occupied, total)"""
    total = db.session.query(BarTable).count()
    occupied = db.session.query(BarTable).filter_by(status=TableStatus.OCCUPIED.value).count()
    return occupied, total
