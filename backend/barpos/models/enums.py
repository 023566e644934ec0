# Overview: Enumerated status domains stored as plain strings on the models.

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    CASHIER = "cashier"
    SERVER = "server"
    MANAGER = "manager"


class ShiftType(str, Enum):
    MORNING = "morning"
    EVENING = "evening"


class TableStatus(str, Enum):
    FREE = "free"
    OCCUPIED = "occupied"
    RESERVED = "reserved"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    MOBILE_MONEY = "mobile_money"
    CREDIT = "credit"
    PARTIAL = "partial"
    MANAGER_CONSUMPTION = "manager_consumption"


TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value})
OPEN_ORDER_STATUSES = frozenset({
    OrderStatus.PENDING.value,
    OrderStatus.PREPARING.value,
    OrderStatus.READY.value,
})


def values(enum_cls) -> set[str]:
    return {member.value for member in enum_cls}
