"""Credit clients and standalone credit repayments."""

from decimal import Decimal

import pytest

from barpos.models import CreditClient


class TestCreditClients:

    def test_create_with_defaults(self, cashier_client):
        resp = cashier_client.post("/api/credit-clients", json={"name": "Ana Sousa", "phone": "955111222"})
        assert resp.status_code == 201
        client = resp.get_json()["credit_client"]
        assert client["total_credit"] == "0.00"
        assert client["credit_limit"] == "500.00"
        assert client["available_credit"] == "500.00"
        assert client["is_active"] is True

    def test_name_required(self, cashier_client):
        assert cashier_client.post("/api/credit-clients", json={"phone": "1"}).status_code == 400

    def test_negative_limit_rejected(self, cashier_client):
        resp = cashier_client.post("/api/credit-clients", json={"name": "X", "credit_limit": "-5"})
        assert resp.status_code == 400

    def test_list_hides_inactive(self, cashier_client, credit_client, db_session):
        db_session.add(CreditClient(name="Dormant", is_active=False))
        db_session.commit()
        names = [c["name"] for c in cashier_client.get("/api/credit-clients").get_json()["credit_clients"]]
        assert names == ["Carlos Mendes"]

    def test_get_unknown(self, cashier_client):
        assert cashier_client.get("/api/credit-clients/404").status_code == 404

    def test_manager_raises_limit(self, manager_client, credit_client):
        resp = manager_client.put(f"/api/credit-clients/{credit_client.id}", json={"credit_limit": "800.00"})
        assert resp.status_code == 200
        assert resp.get_json()["credit_client"]["available_credit"] == "700.00"

    def test_limit_below_balance_rejected(self, manager_client, credit_client):
        resp = manager_client.put(f"/api/credit-clients/{credit_client.id}", json={"credit_limit": "50.00"})
        assert resp.status_code == 400


class TestCreditRepayments:

    def repay(self, client, client_id, amount, method=None):
        body = {"credit_client_id": client_id, "amount": amount}
        if method:
            body["method"] = method
        return client.post("/api/credit-payments", json=body)

    def test_repayment_lowers_balance(self, cashier_client, open_shift, credit_client):
        resp = self.repay(cashier_client, credit_client.id, "40.00")
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["credit_client"]["total_credit"] == "60.00"
        payment = data["payment"]
        assert payment["order_id"] is None
        assert payment["is_credit_repayment"] is True
        assert payment["session_id"] == open_shift["id"]
        assert payment["method"] == "cash"

    def test_repayment_counts_in_shift_stats(self, cashier_client, open_shift, credit_client):
        self.repay(cashier_client, credit_client.id, "25.00", method="mobile_money")
        stats = cashier_client.get(f"/api/sessions/{open_shift['id']}/stats").get_json()
        assert stats["total_sales"] == "25.00"
        assert stats["transaction_count"] == 1
        assert stats["active_credits"] == "75.00"

    def test_full_repayment(self, cashier_client, open_shift, credit_client):
        resp = self.repay(cashier_client, credit_client.id, "100.00")
        assert resp.get_json()["credit_client"]["total_credit"] == "0.00"

    @pytest.mark.parametrize("amount", ["0", "-10", "100.01", "lots"])
    def test_invalid_amounts(self, cashier_client, open_shift, credit_client, amount):
        assert self.repay(cashier_client, credit_client.id, amount).status_code == 400

    def test_credit_is_not_a_repayment_method(self, cashier_client, open_shift, credit_client):
        assert self.repay(cashier_client, credit_client.id, "10.00", method="credit").status_code == 400

    def test_requires_active_shift(self, cashier_client, credit_client):
        resp = self.repay(cashier_client, credit_client.id, "10.00")
        assert resp.status_code == 400
        assert "session" in resp.get_json()["error"]

    def test_unknown_client(self, cashier_client, open_shift):
        assert self.repay(cashier_client, 999, "10.00").status_code == 404

    def test_server_cannot_take_repayment(self, server_client, credit_client):
        assert self.repay(server_client, credit_client.id, "10.00").status_code == 403


class TestClientDetails:

    def test_history_and_summary(self, cashier_client, manager_client, open_shift, table, beer, credit_client):
        order = cashier_client.post("/api/orders", json={
            "table_id": table.id,
            "items": [{"product_id": beer.id, "quantity": 16}],
        }).get_json()["order"]
        cashier_client.post("/api/payments", json={
            "order_id": order["id"], "method": "credit", "credit_client_id": credit_client.id,
        })
        cashier_client.post("/api/credit-payments", json={"credit_client_id": credit_client.id, "amount": "30.00"})

        resp = manager_client.get(f"/api/manager/credit-client/{credit_client.id}/details")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["client"]["name"] == "Carlos Mendes"
        assert [p["amount"] for p in data["credit_history"]] == ["40.00"]
        assert [p["amount"] for p in data["payment_history"]] == ["30.00"]
        assert data["summary"] == {
            "total_credit_given": "40.00",
            "total_payments_received": "30.00",
            "outstanding_balance": "110.00",
        }

    def test_unknown_client(self, manager_client):
        assert manager_client.get("/api/manager/credit-client/999/details").status_code == 404


def test_available_credit_property():
    client = CreditClient(name="Z", total_credit=Decimal("120.00"), credit_limit=Decimal("500.00"))
    assert client.available_credit == Decimal("380.00")
