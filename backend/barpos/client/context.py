# Overview: Application context for a POS screen; session state, selections and polling.

"""
AppContext

One object owns everything a POS screen needs to know:

- who is signed in (current_user) and which dashboard they get
- the cashier's active shift and its live stats
- UI selections: selected table/order, payment and session modals
- the polled queries (orders, tables, credit clients, products, stats)

LIFECYCLE:
- login() / restore() with a valid server session -> initialized
- logout() or a server 401 -> torn down (everything reset, cache cleared)

Every mutation goes through the context so it can invalidate the queries
the mutation affects.
"""

from __future__ import annotations

import logging
from typing import Optional

from .api import ApiClient, ApiError
from .cache import AuthCache
from .dashboards import Dashboard, dashboard_for
from .polling import QueryPoller

logger = logging.getLogger(__name__)


class AppContext:
    def __init__(self, api: ApiClient, *, cache: Optional[AuthCache] = None, poller: Optional[QueryPoller] = None):
        self.api = api
        self.cache = cache
        self.poller = poller or QueryPoller()
        self._reset()

    def _reset(self) -> None:
        self.current_user: Optional[dict] = None
        self.dashboard: Optional[Dashboard] = None
        self.active_session: Optional[dict] = None
        self.session_stats: Optional[dict] = None
        self.selected_table: Optional[dict] = None
        self.selected_order: Optional[dict] = None
        self.show_payment_modal = False
        self.show_session_modal = False
        self.poller.unregister_all()

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def login(self, username: str, password: str, role: str) -> dict:
        """
        Sign in, then initialize from the server's view of the new session.

        ApiError propagates on bad credentials, and is raised with 401 when
        the session cookie set by the login is not accepted afterwards.
        """
        self.api.login(username, password, role)
        server_user = self.api.current_user()
        if server_user is None:
            self.teardown()
            raise ApiError(401, "Login succeeded but the session was not accepted")
        self._initialize(server_user)
        return self.current_user

    def restore(self) -> Optional[dict]:
        """
        Reconcile the local cache with the server on startup.

        The server decides: a 401 tears everything down even when the cache
        still holds a user; a live session re-initializes from the server's
        user payload, not the cached one.
        """
        cached = self.cache.load() if self.cache else None
        server_user = self.api.current_user()
        if server_user is None:
            if cached is not None:
                logger.info("Cached user %s has no server session; clearing", cached.get("id"))
            self.teardown()
            return None
        self._initialize(server_user)
        return self.current_user

    def logout(self) -> None:
        try:
            self.api.logout()
        finally:
            self.teardown()

    def teardown(self) -> None:
        self._reset()
        if self.cache:
            self.cache.clear()

    def _initialize(self, user: dict) -> None:
        self._reset()
        self.current_user = user
        self.dashboard = dashboard_for(user)
        if self.cache:
            self.cache.save(user)
        self._register_queries()
        self.refresh_session()
        self.poller.tick()

    def _register_queries(self) -> None:
        fetchers = {
            "orders": self.api.pending_orders,
            "tables": self.api.tables,
            "credit_clients": self.api.credit_clients,
            "products": self.api.products,
            "session_stats": self._fetch_session_stats,
        }
        for key in self.dashboard.queries:
            self.poller.register(key, fetchers[key])

    def _fetch_session_stats(self) -> Optional[dict]:
        if not self.active_session:
            return None
        self.session_stats = self.api.session_stats(self.active_session["id"])
        return self.session_stats

    def refresh_session(self) -> Optional[dict]:
        self.active_session = self.api.active_session()
        if not self.active_session:
            self.session_stats = None
        return self.active_session

    def tick(self, now: Optional[float] = None) -> list[str]:
        """Drive polling. A 401 on any query means the server session is gone."""
        fetched = self.poller.tick(now)
        for key in fetched:
            error = self.poller.queries[key].error
            if error is not None and error.is_unauthorized:
                self.teardown()
                break
        return fetched

    # -------------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------------

    @property
    def tables(self) -> list:
        return self.poller.data("tables") or []

    @property
    def pending_orders(self) -> list:
        return self.poller.data("orders") or []

    @property
    def credit_clients(self) -> list:
        return self.poller.data("credit_clients") or []

    # -------------------------------------------------------------------------
    # UI state
    # -------------------------------------------------------------------------

    def select_table(self, table: Optional[dict]) -> None:
        self.selected_table = table

    def open_payment_modal(self, order: dict) -> None:
        self.selected_order = order
        self.show_payment_modal = True

    def close_payment_modal(self) -> None:
        self.selected_order = None
        self.show_payment_modal = False

    def open_session_modal(self) -> None:
        self.show_session_modal = True

    def close_session_modal(self) -> None:
        self.show_session_modal = False

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def open_session(self, shift_type: Optional[str] = None) -> dict:
        self.active_session = self.api.open_session(shift_type)
        self.close_session_modal()
        self.poller.invalidate("session_stats")
        return self.active_session

    def end_session(self) -> dict:
        if not self.active_session:
            raise ApiError(400, "No active session")
        ended = self.api.end_session(self.active_session["id"])
        self.active_session = None
        self.session_stats = None
        self.close_session_modal()
        self.poller.invalidate("session_stats")
        return ended

    def place_order(self, table_id: int, items: list, notes: Optional[str] = None) -> dict:
        order = self.api.create_order(table_id, items, notes)
        self.poller.invalidate("orders", "tables", "session_stats")
        return order

    def set_order_items(self, order_id: int, items: list) -> dict:
        order = self.api.set_order_items(order_id, items)
        self.poller.invalidate("orders")
        return order

    def pay_selected_order(self, method: str, **fields) -> dict:
        if not self.selected_order:
            raise ApiError(400, "No order selected")
        result = self.api.pay(self.selected_order["id"], method, **fields)
        self.close_payment_modal()
        self.poller.invalidate("orders", "tables", "credit_clients", "products", "session_stats")
        return result

    def create_credit_client(self, **fields) -> dict:
        client = self.api.create_credit_client(**fields)
        self.poller.invalidate("credit_clients")
        return client

    def repay_credit(self, credit_client_id: int, amount: str, method: str = "cash") -> dict:
        result = self.api.repay_credit(credit_client_id, amount, method)
        self.poller.invalidate("credit_clients", "session_stats")
        return result
