# Overview: Read-only aggregates for shift stats and the manager dashboard.

"""
Reporting Service

All figures are computed from payments and completed orders; nothing here
writes. Day boundaries are UTC calendar days.

Money values are returned as Decimal; routes serialize them with
money.format_amount.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import BarSession, CreditClient, Order, OrderItem, Payment, Product, User
from ..models.enums import OrderStatus, PaymentMethod
from ..money import ZERO, quantize
from ..time_utils import day_bounds, period_bounds
from ..validation import NotFoundError
from . import order_service, shift_service, table_service

TOP_PRODUCTS_LIMIT = 5
DETAILED_TOP_PRODUCTS_LIMIT = 10
SESSION_HISTORY_LIMIT = 10

# Buckets for payment breakdowns. "partial" is reported with cash.
BREAKDOWN_BUCKETS = {
    PaymentMethod.CASH.value: "cash",
    PaymentMethod.PARTIAL.value: "cash",
    PaymentMethod.MOBILE_MONEY.value: "mobile_money",
    PaymentMethod.CREDIT.value: "credit",
    PaymentMethod.MANAGER_CONSUMPTION.value: "manager_consumption",
}


def active_credit_total() -> Decimal:
    total = db.session.query(func.coalesce(func.sum(CreditClient.total_credit), 0)).filter(
        CreditClient.is_active.is_(True),
    ).scalar()
    return quantize(total)


def get_session_stats(session_id: int) -> dict:
    """
    Live snapshot for a shift.

    total_sales / transaction_count are summed from the shift's payments
    (every payment counts, credit repayments included); the rest describes
    the venue right now.
    """
    session = shift_service.get_session(session_id)
    if not session:
        raise NotFoundError("Session not found")

    total_sales, transaction_count = shift_service.session_totals(session.id)
    occupied, total_tables = table_service.count_occupied()
    return {
        "session_id": session.id,
        "total_sales": total_sales,
        "transaction_count": transaction_count,
        "active_credits": active_credit_total(),
        "occupied_tables": occupied,
        "total_tables": total_tables,
    }


def _top_products(start, end, limit: int) -> list[dict]:
    revenue = func.sum(OrderItem.total_price)
    rows = db.session.query(
        Product.id,
        Product.name,
        func.sum(OrderItem.quantity),
        revenue,
    ).select_from(OrderItem).join(
        Order, OrderItem.order_id == Order.id,
    ).join(
        Product, OrderItem.product_id == Product.id,
    ).filter(
        Order.created_at >= start,
        Order.created_at < end,
        Order.status == OrderStatus.COMPLETED.value,
    ).group_by(
        Product.id, Product.name,
    ).order_by(
        revenue.desc(), Product.name,
    ).limit(limit).all()

    return [
        {
            "product_id": product_id,
            "name": name,
            "sales": int(quantity or 0),
            "revenue": quantize(total or 0),
        }
        for product_id, name, quantity, total in rows
    ]


def get_top_products_by_date(day: date, *, limit: int = TOP_PRODUCTS_LIMIT) -> list[dict]:
    """Completed orders created that day, grouped by product, by revenue desc."""
    start, end = day_bounds(day)
    return _top_products(start, end, limit)


def _empty_breakdown() -> dict:
    buckets = {name: {"total": ZERO, "count": 0} for name in sorted(set(BREAKDOWN_BUCKETS.values()))}
    buckets["total"] = ZERO
    return buckets


def _breakdown(query) -> dict:
    result = _empty_breakdown()
    rows = query.with_entities(
        Payment.method,
        func.coalesce(func.sum(Payment.amount), 0),
        func.count(Payment.id),
    ).group_by(Payment.method).all()
    for method, total, count in rows:
        bucket = result[BREAKDOWN_BUCKETS.get(method, "cash")]
        bucket["total"] = quantize(bucket["total"] + Decimal(total))
        bucket["count"] += int(count)
        result["total"] = quantize(result["total"] + Decimal(total))
    return result


def payment_breakdown_for_day(day: date) -> dict:
    start, end = day_bounds(day)
    return _breakdown(db.session.query(Payment).filter(
        Payment.created_at >= start,
        Payment.created_at < end,
    ))


def payment_breakdown_for_session(session_id: int) -> dict:
    return _breakdown(db.session.query(Payment).filter(Payment.session_id == session_id))


def credit_repayments_for_day(day: date) -> list[Payment]:
    start, end = day_bounds(day)
    return db.session.query(Payment).filter(
        Payment.is_credit_repayment.is_(True),
        Payment.created_at >= start,
        Payment.created_at < end,
    ).order_by(Payment.created_at.desc(), Payment.id.desc()).all()


def _session_summary(session: BarSession) -> dict:
    sales, count = shift_service.session_totals(session.id)
    return {
        "session": session,
        "cashier_name": session.user.display_name if session.user else session.user_id,
        "sales": sales,
        "transaction_count": count,
    }


def get_sessions_by_period(period: str, day: date) -> list[dict]:
    """Shifts started within the daily/weekly/monthly window around `day`."""
    start, end = period_bounds(period, day)
    return [_session_summary(s) for s in shift_service.list_sessions_between(start, end)]


def daily_stats(day: date) -> dict:
    """
    Manager dashboard for one day: sales split by shift type, outstanding
    credit, staff/stock counters, top products, payment mix and the most
    recent shifts.
    """
    start, end = day_bounds(day)

    rows = db.session.query(
        BarSession.shift_type,
        func.coalesce(func.sum(Payment.amount), 0),
    ).select_from(Payment).join(
        BarSession, Payment.session_id == BarSession.id,
    ).filter(
        Payment.created_at >= start,
        Payment.created_at < end,
    ).group_by(BarSession.shift_type).all()

    sales_by_shift = {shift_type: quantize(total) for shift_type, total in rows}
    morning = sales_by_shift.get("morning", ZERO)
    evening = sales_by_shift.get("evening", ZERO)

    active_users = db.session.query(User).filter(User.is_active.is_(True)).count()
    low_stock_count = db.session.query(Product).filter(
        Product.is_active.is_(True),
        Product.stock_quantity <= Product.min_stock_level,
    ).count()

    recent = db.session.query(BarSession).order_by(
        BarSession.start_time.desc(), BarSession.id.desc(),
    ).limit(SESSION_HISTORY_LIMIT).all()

    return {
        "date": day,
        "morning_sales": morning,
        "evening_sales": evening,
        "total_sales": quantize(morning + evening),
        "active_credits": active_credit_total(),
        "active_users": active_users,
        "low_stock_count": low_stock_count,
        "top_products": get_top_products_by_date(day),
        "payment_breakdown": payment_breakdown_for_day(day),
        "session_history": [_session_summary(s) for s in recent],
    }


def session_details(session_id: int) -> dict:
    session = shift_service.get_session(session_id)
    if not session:
        raise NotFoundError("Session not found")
    summary = _session_summary(session)
    summary["payment_breakdown"] = payment_breakdown_for_session(session.id)
    summary["orders"] = order_service.list_orders_for_session(session.id)
    return summary


def detailed_sales(day: date) -> dict:
    start, end = day_bounds(day)
    sessions = db.session.query(BarSession).filter(
        BarSession.start_time >= start,
        BarSession.start_time < end,
    ).order_by(BarSession.start_time.desc()).all()
    return {
        "date": day,
        "sessions": [_session_summary(s) for s in sessions],
        "top_products": _top_products(start, end, DETAILED_TOP_PRODUCTS_LIMIT),
    }
