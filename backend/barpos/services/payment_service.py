"""
Payment Processing Service

WHY: Settling an order touches five things at once: the payment row, the
order status, the table, product stock and (for credit) the client's
balance. They all move together in one transaction or not at all.

PAYMENT METHODS:
- cash: received_amount >= amount, change = received - amount
- mobile_money: exact amount
- credit: charged to an active credit client, within the credit limit
- partial: a cash payment that may leave a balance on the order
- manager_consumption: no money changes hands; a manager consumed the
  order. Recorded with amount 0.00 and the consuming manager.

An order is completed once its payments cover total_amount (or on manager
consumption). Completion frees the table and takes the sold quantities out
of stock, clamped at zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import CreditClient, Order, Payment, Product, User
from ..models.enums import OrderStatus, PaymentMethod, UserRole, values
from ..money import ZERO, quantize
from ..time_utils import utcnow
from ..validation import NotFoundError, ValidationError
from . import credit_service, shift_service
from .catalog_service import decrement_stock
from .concurrency import lock_for_update, run_with_retry
from .table_service import release_table_for_order

logger = logging.getLogger(__name__)

PAYMENT_METHODS = values(PaymentMethod)
CASH_LIKE_METHODS = {PaymentMethod.CASH.value, PaymentMethod.PARTIAL.value}


class PaymentError(ValueError):
    """Raised for payment rule violations."""


@dataclass
class PaymentResult:
    payment: Payment
    order: Order
    remaining: Decimal
    order_completed: bool


def amount_paid(order_id: int) -> Decimal:
    total = db.session.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
        Payment.order_id == order_id,
    ).scalar()
    return quantize(total)


def remaining_balance(order: Order) -> Decimal:
    return quantize(Decimal(order.total_amount) - amount_paid(order.id))


def get_payments_by_session(session_id: int) -> list[Payment]:
    return db.session.query(Payment).filter_by(
        session_id=session_id,
    ).order_by(Payment.created_at.asc(), Payment.id.asc()).all()


def _resolve_manager(consumed_by) -> User:
    if not consumed_by or not isinstance(consumed_by, str):
        raise ValidationError("consumed_by is required for manager consumption")
    manager = db.session.get(User, consumed_by.strip().lower())
    if not manager or manager.role != UserRole.MANAGER.value or not manager.is_active:
        raise PaymentError("consumed_by must be an active manager")
    return manager


def _complete_order(order: Order) -> None:
    """Completion side effects. Part of the caller's transaction."""
    order.status = OrderStatus.COMPLETED.value
    order.updated_at = utcnow()
    release_table_for_order(order)
    for item in order.items:
        product = lock_for_update(db.session.query(Product).filter_by(id=item.product_id)).first()
        if product is not None:
            decrement_stock(product, item.quantity)


def process_payment(
    *,
    cashier: User,
    order_id: int,
    method: str,
    amount: Decimal | None = None,
    received_amount: Decimal | None = None,
    credit_client_id: int | None = None,
    consumed_by: str | None = None,
    is_partial: bool = False,
) -> PaymentResult:
    """
    Record a payment against an order and apply its side effects atomically.

    Args:
        amount: defaults to the order's remaining balance
        received_amount: cash tendered (cash/partial); defaults to amount
        is_partial: allow a cash/mobile_money payment below the remaining balance

    Raises:
        ValidationError: malformed input
        NotFoundError: unknown order or credit client
        PaymentError: rule violation (no shift, closed order, overpayment,
            insufficient cash, credit limit, ...)
    """
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"method must be one of: {', '.join(sorted(PAYMENT_METHODS))}")

    shift = shift_service.get_active_session(cashier.id)
    if not shift:
        raise PaymentError("An active session is required to record payments")

    manager = None
    if method == PaymentMethod.MANAGER_CONSUMPTION.value:
        manager = _resolve_manager(consumed_by)

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            raise NotFoundError("Order not found")
        if order.is_terminal:
            raise PaymentError(f"Order is already {order.status}")

        remaining = remaining_balance(order)
        change = None
        received = None
        client = None

        if manager is not None:
            pay_amount = ZERO
            settles = True
        else:
            pay_amount = remaining if amount is None else quantize(amount)
            if pay_amount < 0 or (pay_amount == 0 and remaining > 0):
                raise ValidationError("amount must be > 0")
            if pay_amount > remaining:
                raise PaymentError(f"Amount {pay_amount} exceeds remaining balance {remaining}")
            settles = pay_amount == remaining
            if not settles and not (is_partial or method == PaymentMethod.PARTIAL.value):
                raise PaymentError(
                    f"Amount {pay_amount} is less than remaining balance {remaining}; use a partial payment"
                )

            if method in CASH_LIKE_METHODS:
                received = pay_amount if received_amount is None else quantize(received_amount)
                if received < pay_amount:
                    raise PaymentError(f"Received amount {received} is less than amount due {pay_amount}")
                change = quantize(received - pay_amount)
            elif method == PaymentMethod.MOBILE_MONEY.value:
                received = pay_amount
                change = ZERO
            elif method == PaymentMethod.CREDIT.value:
                if credit_client_id is None:
                    raise ValidationError("credit_client_id is required for credit payments")
                client = lock_for_update(
                    db.session.query(CreditClient).filter_by(id=credit_client_id)
                ).first()
                if not client:
                    raise NotFoundError("Credit client not found")
                try:
                    credit_service.charge_credit(client, pay_amount)
                except credit_service.CreditError as e:
                    raise PaymentError(str(e))

        payment = Payment(
            order_id=order.id,
            credit_client_id=client.id if client is not None else None,
            cashier_id=cashier.id,
            session_id=shift.id,
            method=method,
            amount=pay_amount,
            received_amount=received,
            change_amount=change,
            is_partial=not settles,
            is_credit_repayment=False,
            consumed_by_id=manager.id if manager is not None else None,
            created_at=utcnow(),
        )
        db.session.add(payment)

        if settles:
            _complete_order(order)
        db.session.commit()

        left = ZERO if settles else quantize(remaining - pay_amount)
        return payment.id, left, settles

    payment_id, left, completed = run_with_retry(_op)
    payment = db.session.get(Payment, payment_id)
    order = db.session.get(Order, order_id)

    logger.info(
        "Payment %s: order %s %s %s by %s%s",
        payment.id, order.id, method, payment.amount, cashier.id,
        " (order completed)" if completed else f" (remaining {left})",
    )
    return PaymentResult(payment=payment, order=order, remaining=left, order_completed=completed)
