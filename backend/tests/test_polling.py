"""Query polling, dashboard selection and the local auth cache."""

import pytest

from barpos.client import ApiError, AuthCache, DEFAULT_INTERVALS, QueryPoller, dashboard_for
from barpos.client.dashboards import CashierDashboard, ManagerDashboard, ServerDashboard


class Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.calls


class TestQueryPoller:

    def test_default_intervals(self):
        assert DEFAULT_INTERVALS == {
            "orders": 5,
            "tables": 5,
            "credit_clients": 10,
            "products": 30,
            "session_stats": 30,
        }

    def test_unknown_key_needs_interval(self):
        with pytest.raises(ValueError):
            QueryPoller().register("weather", lambda: None)

    def test_refetch_on_schedule(self):
        poller = QueryPoller(clock=lambda: 0.0)
        orders, products = Counter(), Counter()
        poller.register("orders", orders)
        poller.register("products", products)

        assert poller.tick(0) == ["orders", "products"]
        assert poller.tick(4) == []
        assert poller.tick(5) == ["orders"]
        assert poller.tick(30) == ["orders", "products"]
        assert orders.calls == 3
        assert poller.data("products") == 2

    def test_invalidate_forces_refetch(self):
        poller = QueryPoller()
        tables = Counter()
        poller.register("tables", tables)
        poller.tick(0)

        poller.invalidate("tables", "not-registered")
        assert poller.tick(1) == ["tables"]
        assert tables.calls == 2

    def test_invalidate_all(self):
        poller = QueryPoller()
        poller.register("orders", Counter())
        poller.register("products", Counter())
        poller.tick(0)
        poller.invalidate()
        assert poller.tick(1) == ["orders", "products"]

    def test_failure_keeps_last_data(self):
        poller = QueryPoller()
        results = iter([["t1"], ApiError(503, "down")])

        def fetch():
            value = next(results)
            if isinstance(value, Exception):
                raise value
            return value

        poller.register("tables", fetch)
        poller.tick(0)
        poller.tick(10)
        query = poller.queries["tables"]
        assert query.data == ["t1"]
        assert query.error.status_code == 503


class TestDashboards:

    @pytest.mark.parametrize("role,cls", [
        ("cashier", CashierDashboard),
        ("server", ServerDashboard),
        ("manager", ManagerDashboard),
    ])
    def test_by_role(self, role, cls):
        assert isinstance(dashboard_for({"role": role}), cls)

    def test_only_cashier_takes_payments(self):
        assert dashboard_for({"role": "cashier"}).can_take_payments
        assert not dashboard_for({"role": "server"}).can_take_payments

    def test_unknown_role(self):
        with pytest.raises(ValueError):
            dashboard_for({"role": "bouncer"})


class TestAuthCache:

    def test_roundtrip_and_expiry(self, tmp_path):
        now = [100.0]
        cache = AuthCache(tmp_path / "cache" / "auth.json", ttl_seconds=60, clock=lambda: now[0])
        cache.save({"id": "rafa"})
        assert cache.load() == {"id": "rafa"}

        now[0] += 61
        assert cache.load() is None
        assert not (tmp_path / "cache" / "auth.json").exists()

    def test_corrupt_file_is_discarded(self, tmp_path):
        path = tmp_path / "auth.json"
        path.write_text("{not json")
        assert AuthCache(path).load() is None
        assert not path.exists()

    def test_missing_file(self, tmp_path):
        assert AuthCache(tmp_path / "none.json").load() is None
