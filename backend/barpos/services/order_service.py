"""
Order Service

WHY: A server takes an order at a table; the order collects priced lines
until a cashier settles it.

DESIGN:
- Prices come from the product row at the time the line is written;
  totals are always recomputed server-side
- Creating an order, writing its items and occupying the table happen in
  one transaction
- Item lists are loaded with selectinload (one extra query for all
  orders, not one per order)

LIFECYCLE:
    pending -> preparing -> ready -> completed (payment only)
    pending | preparing | ready -> cancelled (frees the table; unpaid orders only)
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from decimal import Decimal

from sqlalchemy.orm import joinedload, selectinload

from ..extensions import db
from ..models import BarTable, Order, OrderItem, Product, User
from ..models.enums import OPEN_ORDER_STATUSES, OrderStatus, TableStatus, values
from ..money import quantize
from ..time_utils import day_bounds, utcnow
from ..validation import ConflictError, NotFoundError, ValidationError
from . import payment_service, shift_service
from .concurrency import lock_for_update, run_with_retry
from .table_service import release_table_for_order

logger = logging.getLogger(__name__)

ORDER_STATUSES = values(OrderStatus)

# Status changes allowed through PATCH /status. "completed" is only
# reachable through payment_service.
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING.value: {OrderStatus.PREPARING.value, OrderStatus.CANCELLED.value},
    OrderStatus.PREPARING.value: {OrderStatus.READY.value, OrderStatus.CANCELLED.value},
    OrderStatus.READY.value: {OrderStatus.CANCELLED.value},
}

DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 200


class OrderError(ValueError):
    """Raised for order lifecycle rule violations."""


def _with_details(query):
    return query.options(
        selectinload(Order.items).joinedload(OrderItem.product),
        joinedload(Order.table),
        joinedload(Order.server),
    )


# =============================================================================
# QUERIES
# =============================================================================

def get_order(order_id: int) -> Order | None:
    return _with_details(db.session.query(Order)).filter(Order.id == order_id).first()


def list_orders(
    *,
    status: str | None = None,
    day=None,
    limit: int = DEFAULT_LIST_LIMIT,
    offset: int = 0,
) -> list[Order]:
    """Newest first, optionally filtered by status and UTC calendar day."""
    if status is not None and status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(sorted(ORDER_STATUSES))}")
    if limit <= 0 or limit > MAX_LIST_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIST_LIMIT}")
    if offset < 0:
        raise ValidationError("offset must be >= 0")

    query = _with_details(db.session.query(Order))
    if status:
        query = query.filter(Order.status == status)
    if day is not None:
        start, end = day_bounds(day)
        query = query.filter(Order.created_at >= start, Order.created_at < end)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).offset(offset).all()


def list_pending_orders() -> list[Order]:
    """Pending orders, oldest first (kitchen/bar queue order)."""
    return _with_details(db.session.query(Order)).filter(
        Order.status == OrderStatus.PENDING.value,
    ).order_by(Order.created_at.asc(), Order.id.asc()).all()


def list_orders_for_session(session_id: int) -> list[Order]:
    return _with_details(db.session.query(Order)).filter(
        Order.session_id == session_id,
    ).order_by(Order.created_at.asc(), Order.id.asc()).all()


# =============================================================================
# ITEM HELPERS
# =============================================================================

def _parse_items(raw_items, *, allow_zero: bool) -> "OrderedDict[int, int]":
    """
    Normalize [{product_id, quantity}, ...] to {product_id: quantity}.

    Repeated product ids are merged by summing quantities.
    """
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")

    merged: "OrderedDict[int, int]" = OrderedDict()
    for i, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{i}] must be an object")
        product_id = raw.get("product_id")
        quantity = raw.get("quantity")
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError(f"items[{i}].product_id must be an integer")
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(f"items[{i}].quantity must be an integer")
        if quantity <= 0 and not allow_zero:
            raise ValidationError(f"items[{i}].quantity must be > 0")
        if product_id in merged and allow_zero:
            # Absolute semantics: the last value for a product wins
            merged[product_id] = quantity
        else:
            merged[product_id] = merged.get(product_id, 0) + quantity
    return merged


def _sellable_product(product_id: int, quantity: int) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise ValidationError(f"Product {product_id} not found")
    if not product.is_active:
        raise ValidationError(f"Product '{product.name}' is not available")
    if product.stock_quantity <= 0:
        raise ValidationError(f"Product '{product.name}' is out of stock")
    if quantity > product.stock_quantity:
        raise ValidationError(
            f"Insufficient stock for '{product.name}': requested {quantity}, available {product.stock_quantity}"
        )
    return product


def _line_total(unit_price, quantity: int) -> Decimal:
    return quantize(Decimal(unit_price) * quantity)


def recompute_total(order: Order) -> Decimal:
    order.total_amount = quantize(sum((Decimal(item.total_price) for item in order.items), Decimal("0")))
    return order.total_amount


# =============================================================================
# COMMANDS
# =============================================================================

def create_order(
    *,
    user: User,
    table_id: int,
    items: list,
    notes: str | None = None,
) -> Order:
    """
    Place an order at a table.

    The order is attached to the creator's active shift, else to any active
    shift. In one transaction: the order and its lines are written, the
    total computed, and the table marked occupied by this order.

    Raises:
        ValidationError: bad items, unavailable product, no active shift
        NotFoundError: unknown table
        ConflictError: table already occupied by another open order
    """
    lines = _parse_items(items, allow_zero=False)

    shift = shift_service.get_active_session(user.id) or shift_service.get_any_active_session()
    if not shift:
        raise ValidationError("No active session found. A cashier must open a session first.")

    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")

    def _op():
        table = lock_for_update(db.session.query(BarTable).filter_by(id=table_id)).first()
        if not table:
            raise NotFoundError("Table not found")
        if table.status == TableStatus.OCCUPIED.value and table.current_order_id is not None:
            current = db.session.get(Order, table.current_order_id)
            if current is not None and current.status in OPEN_ORDER_STATUSES:
                raise ConflictError(f"Table {table.number} is already occupied by order {current.id}")

        now = utcnow()
        order = Order(
            table_id=table.id,
            server_id=user.id,
            session_id=shift.id,
            status=OrderStatus.PENDING.value,
            notes=(notes or "").strip() or None,
            created_at=now,
            updated_at=now,
        )
        for product_id, quantity in lines.items():
            product = _sellable_product(product_id, quantity)
            order.items.append(OrderItem(
                product_id=product.id,
                quantity=quantity,
                unit_price=quantize(product.price),
                total_price=_line_total(product.price, quantity),
                created_at=now,
            ))
        recompute_total(order)
        db.session.add(order)
        db.session.flush()

        table.status = TableStatus.OCCUPIED.value
        table.current_order_id = order.id
        db.session.commit()
        return order.id

    order_id = run_with_retry(_op)
    logger.info("Order %s created by %s at table %s", order_id, user.id, table_id)
    return get_order(order_id)


def set_order_items(order_id: int, items: list) -> Order:
    """
    Write item quantities onto an open order (absolute, not additive).

    For each {product_id, quantity}:
    - existing line: quantity replaced; quantity <= 0 removes the line;
      duplicate lines for the same product are collapsed into one
    - no line yet: quantity must be > 0; a new line is priced from the product
    The order total is recomputed in the same transaction and may not drop
    below what has already been paid.
    """
    lines = _parse_items(items, allow_zero=True)

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            raise NotFoundError("Order not found")
        if order.status not in OPEN_ORDER_STATUSES:
            raise OrderError(f"Cannot modify items of a {order.status} order")

        now = utcnow()
        for product_id, quantity in lines.items():
            existing = [item for item in order.items if item.product_id == product_id]
            for duplicate in existing[1:]:
                order.items.remove(duplicate)

            if existing:
                line = existing[0]
                if quantity <= 0:
                    order.items.remove(line)
                    continue
                _sellable_product(product_id, quantity)
                line.quantity = quantity
                line.total_price = _line_total(line.unit_price, quantity)
            else:
                if quantity <= 0:
                    raise ValidationError(f"Product {product_id} is not on this order")
                product = _sellable_product(product_id, quantity)
                order.items.append(OrderItem(
                    product_id=product.id,
                    quantity=quantity,
                    unit_price=quantize(product.price),
                    total_price=_line_total(product.price, quantity),
                    created_at=now,
                ))

        recompute_total(order)
        paid = payment_service.amount_paid(order.id)
        if order.total_amount < paid:
            raise OrderError(
                f"Order total {order.total_amount} would fall below the {paid} already paid"
            )
        order.updated_at = now
        db.session.commit()
        return order.id

    run_with_retry(_op)
    return get_order(order_id)


def update_order_status(order_id: int, status: str) -> Order:
    """
    Move an order along its lifecycle. Cancelling frees the table.

    Raises:
        ValidationError: unknown status
        OrderError: transition not allowed (including any -> completed), or
            cancelling an order that already has payments
    """
    if status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(sorted(ORDER_STATUSES))}")
    if status == OrderStatus.COMPLETED.value:
        raise OrderError("Orders are completed by recording a payment")

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            raise NotFoundError("Order not found")
        if order.status == status:
            return order.id
        allowed = ALLOWED_TRANSITIONS.get(order.status, set())
        if status not in allowed:
            raise OrderError(f"Cannot change order status from {order.status} to {status}")
        if status == OrderStatus.CANCELLED.value and payment_service.amount_paid(order.id) > 0:
            raise OrderError("Cannot cancel an order that already has payments")

        order.status = status
        order.updated_at = utcnow()
        if status == OrderStatus.CANCELLED.value:
            release_table_for_order(order)
        db.session.commit()
        return order.id

    run_with_retry(_op)
    logger.info("Order %s -> %s", order_id, status)
    return get_order(order_id)
