"""
Python client for the bar POS API: a cookie-carrying HTTP wrapper, the
application context (who is signed in, which shift is open, what the
screen has selected), fixed-interval query polling and the role-based
dashboard choice.
"""

from .api import ApiClient, ApiError
from .cache import AuthCache
from .context import AppContext
from .dashboards import CashierDashboard, ServerDashboard, ManagerDashboard, dashboard_for
from .polling import QueryPoller, DEFAULT_INTERVALS

__all__ = [
    'ApiClient', 'ApiError',
    'AuthCache',
    'AppContext',
    'CashierDashboard', 'ServerDashboard', 'ManagerDashboard', 'dashboard_for',
    'QueryPoller', 'DEFAULT_INTERVALS',
]
