# Overview: Role-based dashboard selection as an explicit tagged union.

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class CashierDashboard:
    kind = "cashier"
    path = "/dashboard"
    queries: Tuple[str, ...] = ("orders", "tables", "credit_clients", "products", "session_stats")
    can_take_payments: bool = True


@dataclass(frozen=True)
class ServerDashboard:
    kind = "server"
    path = "/dashboard"
    queries: Tuple[str, ...] = ("orders", "tables", "products")
    can_take_payments: bool = False


@dataclass(frozen=True)
class ManagerDashboard:
    kind = "manager"
    path = "/manager"
    queries: Tuple[str, ...] = ("orders", "tables", "credit_clients", "products")
    can_take_payments: bool = False


Dashboard = Union[CashierDashboard, ServerDashboard, ManagerDashboard]

_BY_ROLE = {
    "cashier": CashierDashboard,
    "server": ServerDashboard,
    "manager": ManagerDashboard,
}


def dashboard_for(user: dict) -> Dashboard:
    """Pick the dashboard for a user payload. Unknown roles raise ValueError."""
    role = (user or {}).get("role")
    try:
        return _BY_ROLE[role]()
    except KeyError:
        raise ValueError(f"No dashboard for role: {role!r}")
