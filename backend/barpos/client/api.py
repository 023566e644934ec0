# Overview: HTTP wrapper around the bar POS API; session cookie handled by httpx.

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response. `status_code` and the server's error message are kept."""

    def __init__(self, status_code: int, message: str, payload: Optional[dict] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


class ApiClient:
    """
    Thin JSON client.

    The login cookie is stored in the underlying httpx cookie jar, so every
    request after login() is authenticated until logout().
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:3000",
        *,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(base_url=self.base_url, transport=transport, timeout=timeout)

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # -------------------------------------------------------------------------
    # Core
    # -------------------------------------------------------------------------

    def request(self, method: str, path: str, *, json: Optional[Dict] = None, params: Optional[Dict] = None) -> Any:
        response = self.client.request(method, path, json=json, params=params)
        if response.is_success:
            if not response.content:
                return None
            return response.json()

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        message = payload.get("error") if isinstance(payload, dict) else None
        logger.debug("%s %s -> %s", method, path, response.status_code)
        raise ApiError(response.status_code, message or response.reason_phrase, payload if isinstance(payload, dict) else None)

    def get(self, path: str, **params) -> Any:
        return self.request("GET", path, params={k: v for k, v in params.items() if v is not None} or None)

    def post(self, path: str, json: Optional[Dict] = None) -> Any:
        return self.request("POST", path, json=json or {})

    def put(self, path: str, json: Optional[Dict] = None) -> Any:
        return self.request("PUT", path, json=json or {})

    def patch(self, path: str, json: Optional[Dict] = None) -> Any:
        return self.request("PATCH", path, json=json or {})

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    def login(self, username: str, password: str, role: str) -> dict:
        return self.post("/api/auth/login", {"username": username, "password": password, "role": role})

    def logout(self) -> None:
        self.post("/api/auth/logout")
        self.client.cookies.clear()

    def current_user(self) -> Optional[dict]:
        """The signed-in user, or None when the server answers 401."""
        try:
            return self.get("/api/auth/user")
        except ApiError as e:
            if e.is_unauthorized:
                return None
            raise

    # -------------------------------------------------------------------------
    # Resources
    # -------------------------------------------------------------------------

    def active_session(self) -> Optional[dict]:
        return self.get("/api/sessions/active")["session"]

    def open_session(self, shift_type: Optional[str] = None) -> dict:
        body = {"shift_type": shift_type} if shift_type else {}
        return self.post("/api/sessions", body)["session"]

    def end_session(self, session_id: int) -> dict:
        return self.post(f"/api/sessions/{session_id}/end")["session"]

    def session_stats(self, session_id: int) -> dict:
        return self.get(f"/api/sessions/{session_id}/stats")

    def tables(self) -> list:
        return self.get("/api/tables")["tables"]

    def products(self) -> list:
        return self.get("/api/products")["products"]

    def pending_orders(self) -> list:
        return self.get("/api/orders/pending")["orders"]

    def orders(self, **params) -> list:
        return self.get("/api/orders", **params)["orders"]

    def create_order(self, table_id: int, items: list, notes: Optional[str] = None) -> dict:
        return self.post("/api/orders", {"table_id": table_id, "items": items, "notes": notes})["order"]

    def set_order_items(self, order_id: int, items: list) -> dict:
        return self.post(f"/api/orders/{order_id}/items", {"items": items})["order"]

    def pay(self, order_id: int, method: str, **fields) -> dict:
        body = {"order_id": order_id, "method": method}
        body.update({k: v for k, v in fields.items() if v is not None})
        return self.post("/api/payments", body)

    def credit_clients(self) -> list:
        return self.get("/api/credit-clients")["credit_clients"]

    def create_credit_client(self, **fields) -> dict:
        return self.post("/api/credit-clients", fields)["credit_client"]

    def repay_credit(self, credit_client_id: int, amount: str, method: str = "cash") -> dict:
        return self.post("/api/credit-payments", {
            "credit_client_id": credit_client_id,
            "amount": amount,
            "method": method,
        })

    def daily_stats(self, day: str) -> dict:
        return self.get(f"/api/manager/stats/daily/{day}")

    def low_stock(self) -> list:
        return self.get("/api/manager/low-stock")["products"]
