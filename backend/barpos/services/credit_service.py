"""
Credit Client Service

WHY: Regulars run a tab. A "credit" payment settles an order by moving the
amount onto the client's balance; a repayment brings cash back in and lowers
the balance.

RULES:
- total_credit never exceeds credit_limit
- repayments are 0 < amount <= outstanding balance
- repayments are recorded as payments with no order (is_credit_repayment)
"""

from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..models import CreditClient, Payment, User
from ..models.enums import PaymentMethod
from ..money import quantize, to_decimal
from ..time_utils import utcnow
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_credit_client,
    validate_payload,
)
from .concurrency import lock_for_update, run_with_retry

logger = logging.getLogger(__name__)

CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "credit_limit"},
    required_on_create={"name"},
)

UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "credit_limit", "is_active"},
)

REPAYMENT_METHODS = {PaymentMethod.CASH.value, PaymentMethod.MOBILE_MONEY.value}


class CreditError(ValueError):
    """Raised when a credit movement breaks a balance rule."""


def list_credit_clients(*, include_inactive: bool = False) -> list[CreditClient]:
    query = db.session.query(CreditClient)
    if not include_inactive:
        query = query.filter(CreditClient.is_active.is_(True))
    return query.order_by(CreditClient.updated_at.desc(), CreditClient.id.desc()).all()


def get_credit_client(client_id: int) -> CreditClient | None:
    return db.session.get(CreditClient, client_id)


def create_credit_client(payload: dict) -> CreditClient:
    patch = validate_payload(model=CreditClient, payload=payload, policy=CREATE_POLICY, partial=False)
    enforce_rules_credit_client(patch)
    client = CreditClient(**patch)
    db.session.add(client)
    db.session.commit()
    logger.info("Credit client %s created (%s)", client.id, client.name)
    return client


def update_credit_client(client_id: int, payload: dict) -> CreditClient:
    patch = validate_payload(model=CreditClient, payload=payload, policy=UPDATE_POLICY, partial=True)
    enforce_rules_credit_client(patch)

    def _op():
        client = lock_for_update(db.session.query(CreditClient).filter_by(id=client_id)).first()
        if not client:
            raise NotFoundError("Credit client not found")
        new_limit = patch.get("credit_limit")
        if new_limit is not None and new_limit < Decimal(client.total_credit):
            raise CreditError(
                f"credit_limit {new_limit} is below the outstanding balance {quantize(client.total_credit)}"
            )
        for k, v in patch.items():
            setattr(client, k, v)
        db.session.commit()
        return client

    return run_with_retry(_op)


def charge_credit(client: CreditClient, amount: Decimal) -> None:
    """
    Raise a client's balance by amount.

    Part of a caller's transaction; does not commit. The client row must
    already be locked by the caller.
    """
    if not client.is_active:
        raise CreditError("Credit client is inactive")
    new_total = quantize(Decimal(client.total_credit) + amount)
    if new_total > Decimal(client.credit_limit):
        raise CreditError(
            f"Credit limit exceeded: balance would be {new_total}, limit is {quantize(client.credit_limit)}"
        )
    client.total_credit = new_total


def record_repayment(
    *,
    client_id: int,
    amount,
    cashier: User,
    session_id: int,
    method: str = PaymentMethod.CASH.value,
) -> tuple[Payment, CreditClient]:
    """
    Standalone repayment of a credit balance.

    Lowers total_credit and records a payment with order_id NULL in the
    cashier's shift, atomically.
    """
    try:
        amount = to_decimal(amount, "amount")
    except ValueError as e:
        raise ValidationError(str(e))
    if amount <= 0:
        raise ValidationError("amount must be > 0")
    if method not in REPAYMENT_METHODS:
        raise ValidationError(f"method must be one of: {', '.join(sorted(REPAYMENT_METHODS))}")

    def _op():
        client = lock_for_update(db.session.query(CreditClient).filter_by(id=client_id)).first()
        if not client:
            raise NotFoundError("Credit client not found")
        balance = quantize(client.total_credit)
        if amount > balance:
            raise CreditError(f"Repayment {amount} exceeds outstanding balance {balance}")

        client.total_credit = quantize(balance - amount)
        payment = Payment(
            order_id=None,
            credit_client_id=client.id,
            cashier_id=cashier.id,
            session_id=session_id,
            method=method,
            amount=amount,
            received_amount=amount,
            change_amount=Decimal("0.00"),
            is_partial=False,
            is_credit_repayment=True,
            created_at=utcnow(),
        )
        db.session.add(payment)
        db.session.commit()
        return payment, client

    payment, client = run_with_retry(_op)
    logger.info("Credit repayment %s for client %s: %s", payment.id, client.id, amount)
    return payment, client


def client_history(client_id: int) -> dict:
    """Balance plus the orders charged to credit and the repayments received."""
    client = get_credit_client(client_id)
    if not client:
        raise NotFoundError("Credit client not found")

    payments = db.session.query(Payment).filter_by(
        credit_client_id=client.id,
    ).order_by(Payment.created_at.desc(), Payment.id.desc()).all()

    charges = [p for p in payments if not p.is_credit_repayment]
    repayments = [p for p in payments if p.is_credit_repayment]

    total_charged = quantize(sum((Decimal(p.amount) for p in charges), Decimal("0")))
    total_repaid = quantize(sum((Decimal(p.amount) for p in repayments), Decimal("0")))

    return {
        "client": client,
        "charges": charges,
        "repayments": repayments,
        "total_charged": total_charged,
        "total_repaid": total_repaid,
    }
