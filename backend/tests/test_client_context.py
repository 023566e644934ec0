"""
Client layer tests.

The ApiClient talks to the real Flask app through httpx.WSGITransport, so
cookies, status codes and payloads are the ones a browser would see.
httpx.MockTransport covers server answers that are awkward to stage.
"""

import httpx
import pytest

from barpos.client import ApiClient, ApiError, AppContext, AuthCache, QueryPoller
from barpos.client.dashboards import CashierDashboard, ManagerDashboard, ServerDashboard

from conftest import PASSWORD


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def api(app, db_session):
    client = ApiClient("http://localhost", transport=httpx.WSGITransport(app=app))
    yield client
    client.close()


@pytest.fixture
def cache(tmp_path):
    return AuthCache(tmp_path / "auth.json")


@pytest.fixture
def ctx(api, cache):
    return AppContext(api, cache=cache, poller=QueryPoller(clock=FakeClock()))


# =============================================================================
# ApiClient
# =============================================================================


class TestApiClient:

    def test_login_sets_cookie_for_later_calls(self, api, cashier):
        assert api.current_user() is None
        api.login("jose.barros", PASSWORD, "cashier")
        assert api.current_user()["id"] == "jose.barros"

    def test_errors_carry_status_and_message(self, api, cashier):
        with pytest.raises(ApiError) as exc:
            api.login("jose.barros", "wrong-password", "cashier")
        assert exc.value.status_code == 401
        assert exc.value.is_unauthorized
        assert exc.value.message == "Invalid credentials"

    def test_logout_clears_cookie(self, api, cashier):
        api.login("jose.barros", PASSWORD, "cashier")
        api.logout()
        assert api.current_user() is None

    def test_non_auth_errors_propagate(self):
        def handler(request):
            return httpx.Response(500, json={"error": "Internal server error"})

        api = ApiClient("http://pos.test", transport=httpx.MockTransport(handler))
        with pytest.raises(ApiError) as exc:
            api.current_user()
        assert exc.value.status_code == 500


# =============================================================================
# AppContext lifecycle
# =============================================================================


class TestContextLifecycle:

    def test_login_initializes_dashboard_and_queries(self, ctx, cache, cashier):
        user = ctx.login("jose.barros", PASSWORD, "cashier")
        assert user["role"] == "cashier"
        assert isinstance(ctx.dashboard, CashierDashboard)
        assert set(ctx.poller.queries) == set(CashierDashboard().queries)
        assert ctx.active_session is None
        assert ctx.tables == []
        assert cache.load()["id"] == "jose.barros"

    def test_server_dashboard_has_no_money_queries(self, ctx, server):
        ctx.login("rafa", PASSWORD, "server")
        assert isinstance(ctx.dashboard, ServerDashboard)
        assert "credit_clients" not in ctx.poller.queries
        assert "session_stats" not in ctx.poller.queries

    def test_restore_uses_server_session(self, api, cache, cashier):
        api.login("jose.barros", PASSWORD, "cashier")
        cache.save({"id": "jose.barros", "role": "cashier", "first_name": "stale"})

        ctx = AppContext(api, cache=cache, poller=QueryPoller(clock=FakeClock()))
        user = ctx.restore()
        assert user["first_name"] == "Jose"
        assert cache.load()["first_name"] == "Jose"

    def test_restore_without_server_session_tears_down(self, ctx, cache, db_session):
        cache.save({"id": "jose.barros", "role": "cashier"})
        assert ctx.restore() is None
        assert not ctx.is_authenticated
        assert cache.load() is None

    def test_login_initializes_from_server_view(self, cache):
        def handler(request):
            path = request.url.path
            if path == "/api/auth/login":
                return httpx.Response(200, json={"user": {"id": "rafa", "role": "server", "first_name": "login-body"}})
            if path == "/api/auth/user":
                return httpx.Response(200, json={"id": "rafa", "role": "server", "first_name": "Rafa"})
            if path == "/api/sessions/active":
                return httpx.Response(200, json={"session": None})
            return httpx.Response(200, json={"tables": [], "orders": [], "products": []})

        api = ApiClient("http://pos.test", transport=httpx.MockTransport(handler))
        ctx = AppContext(api, cache=cache, poller=QueryPoller(clock=FakeClock()))
        user = ctx.login("rafa", PASSWORD, "server")
        assert user["first_name"] == "Rafa"
        assert cache.load()["first_name"] == "Rafa"

    def test_login_with_rejected_cookie_fails(self, cache):
        def handler(request):
            if request.url.path == "/api/auth/login":
                return httpx.Response(200, json={"user": {"id": "rafa", "role": "server"}})
            return httpx.Response(401, json={"error": "Authentication required"})

        api = ApiClient("http://pos.test", transport=httpx.MockTransport(handler))
        ctx = AppContext(api, cache=cache, poller=QueryPoller(clock=FakeClock()))
        with pytest.raises(ApiError) as exc:
            ctx.login("rafa", PASSWORD, "server")
        assert exc.value.status_code == 401
        assert not ctx.is_authenticated
        assert cache.load() is None

    def test_logout_resets_everything(self, ctx, cache, cashier):
        ctx.login("jose.barros", PASSWORD, "cashier")
        ctx.open_session_modal()
        ctx.logout()
        assert ctx.current_user is None
        assert ctx.dashboard is None
        assert ctx.poller.queries == {}
        assert ctx.show_session_modal is False
        assert cache.load() is None

    def test_401_during_polling_tears_down(self, cache):
        state = {"authenticated": True}

        def handler(request):
            path = request.url.path
            if not state["authenticated"]:
                return httpx.Response(401, json={"error": "Authentication required"})
            if path == "/api/auth/user":
                return httpx.Response(200, json={"id": "rafa", "role": "server"})
            if path == "/api/sessions/active":
                return httpx.Response(200, json={"session": None})
            return httpx.Response(200, json={"tables": [], "orders": [], "products": []})

        clock = FakeClock()
        api = ApiClient("http://pos.test", transport=httpx.MockTransport(handler))
        ctx = AppContext(api, cache=cache, poller=QueryPoller(clock=clock))
        assert ctx.restore()["id"] == "rafa"

        state["authenticated"] = False
        clock.now += 60
        ctx.tick()
        assert not ctx.is_authenticated
        assert cache.load() is None


# =============================================================================
# AppContext mutations against the real API
# =============================================================================


class TestContextFlow:

    def test_cashier_shift_order_payment(self, ctx, cashier, table, beer):
        ctx.login("jose.barros", PASSWORD, "cashier")

        session = ctx.open_session("evening")
        assert ctx.active_session["id"] == session["id"]
        ctx.tick()
        assert ctx.session_stats["total_sales"] == "0.00"

        order = ctx.place_order(table.id, [{"product_id": beer.id, "quantity": 2}])
        assert ctx.poller.queries["tables"].stale
        ctx.tick()
        assert [o["id"] for o in ctx.pending_orders] == [order["id"]]
        assert ctx.tables[0]["status"] == "occupied"

        ctx.select_table(ctx.tables[0])
        ctx.open_payment_modal(order)
        result = ctx.pay_selected_order("cash", received_amount="10.00")
        assert result["change_amount"] == "5.00"
        assert ctx.show_payment_modal is False
        assert ctx.selected_order is None

        ctx.tick()
        assert ctx.pending_orders == []
        assert ctx.tables[0]["status"] == "free"
        assert ctx.session_stats["total_sales"] == "5.00"

        ended = ctx.end_session()
        assert ended["total_sales"] == "5.00"
        assert ctx.active_session is None

    def test_pay_without_selection(self, ctx, cashier):
        ctx.login("jose.barros", PASSWORD, "cashier")
        with pytest.raises(ApiError):
            ctx.pay_selected_order("cash")

    def test_credit_client_mutations_invalidate(self, ctx, cashier, credit_client):
        ctx.login("jose.barros", PASSWORD, "cashier")
        ctx.open_session()
        ctx.tick()
        assert [c["name"] for c in ctx.credit_clients] == ["Carlos Mendes"]

        ctx.create_credit_client(name="Ana")
        assert ctx.poller.queries["credit_clients"].stale
        ctx.repay_credit(credit_client.id, "10.00")
        ctx.tick()
        balances = {c["name"]: c["total_credit"] for c in ctx.credit_clients}
        assert balances == {"Ana": "0.00", "Carlos Mendes": "90.00"}

    def test_manager_gets_manager_dashboard(self, ctx, manager):
        ctx.login("lucelle", PASSWORD, "manager")
        assert isinstance(ctx.dashboard, ManagerDashboard)
        assert ctx.dashboard.path == "/manager"
        assert ctx.dashboard.can_take_payments is False
