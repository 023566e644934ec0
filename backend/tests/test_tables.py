"""Floor table listing, creation and status consistency."""

from conftest import make_table, place_order


class TestListTables:

    def test_sorted_by_number(self, server_client, db_session):
        for n in (3, 1, 2):
            make_table(db_session, n)
        data = server_client.get("/api/tables").get_json()["tables"]
        assert [t["number"] for t in data] == [1, 2, 3]
        assert all(t["status"] == "free" and t["current_order_id"] is None for t in data)

    def test_repeated_listing_is_stable(self, server_client, db_session):
        for n in (5, 2, 9, 1):
            make_table(db_session, n)
        first = server_client.get("/api/tables").get_json()["tables"]
        second = server_client.get("/api/tables").get_json()["tables"]
        assert [t["number"] for t in first] == [1, 2, 5, 9]
        assert first == second

    def test_get_unknown_table(self, server_client):
        assert server_client.get("/api/tables/77").status_code == 404


class TestCreateTable:

    def test_manager_creates_table(self, manager_client):
        resp = manager_client.post("/api/tables", json={"number": 7, "capacity": 6})
        assert resp.status_code == 201
        table = resp.get_json()["table"]
        assert table["number"] == 7
        assert table["capacity"] == 6
        assert table["status"] == "free"

    def test_duplicate_number_is_conflict(self, manager_client, table):
        resp = manager_client.post("/api/tables", json={"number": table.number, "capacity": 2})
        assert resp.status_code == 409

    def test_capacity_must_be_positive(self, manager_client):
        resp = manager_client.post("/api/tables", json={"number": 8, "capacity": 0})
        assert resp.status_code == 400

    def test_missing_fields(self, manager_client):
        assert manager_client.post("/api/tables", json={"number": 8}).status_code == 400


class TestTableStatus:

    def test_reserve_and_free(self, server_client, table):
        resp = server_client.put(f"/api/tables/{table.id}/status", json={"status": "reserved"})
        assert resp.status_code == 200
        assert resp.get_json()["table"]["status"] == "reserved"

        resp = server_client.put(f"/api/tables/{table.id}/status", json={"status": "free"})
        assert resp.get_json()["table"]["status"] == "free"

    def test_occupied_requires_order(self, server_client, table):
        resp = server_client.put(f"/api/tables/{table.id}/status", json={"status": "occupied"})
        assert resp.status_code == 400

    def test_unknown_status(self, server_client, table):
        resp = server_client.put(f"/api/tables/{table.id}/status", json={"status": "dirty"})
        assert resp.status_code == 400

    def test_freeing_clears_order(self, cashier_client, open_shift, table, beer):
        order = place_order(cashier_client, table.id, [{"product_id": beer.id, "quantity": 1}]).get_json()["order"]
        occupied = cashier_client.get(f"/api/tables/{table.id}").get_json()["table"]
        assert occupied["status"] == "occupied"
        assert occupied["current_order_id"] == order["id"]

        freed = cashier_client.put(f"/api/tables/{table.id}/status", json={"status": "free"}).get_json()["table"]
        assert freed["status"] == "free"
        assert freed["current_order_id"] is None

    def test_cannot_occupy_with_cancelled_order(self, cashier_client, open_shift, table, beer, db_session):
        order = place_order(cashier_client, table.id, [{"product_id": beer.id, "quantity": 1}]).get_json()["order"]
        cashier_client.patch(f"/api/orders/{order['id']}/status", json={"status": "cancelled"})

        resp = cashier_client.put(
            f"/api/tables/{table.id}/status",
            json={"status": "occupied", "order_id": order["id"]},
        )
        assert resp.status_code == 400

    def test_cannot_occupy_with_order_from_another_table(self, cashier_client, open_shift, table, beer, db_session):
        other = make_table(db_session, 2)
        order = place_order(cashier_client, table.id, [{"product_id": beer.id, "quantity": 1}]).get_json()["order"]

        resp = cashier_client.put(
            f"/api/tables/{other.id}/status",
            json={"status": "occupied", "order_id": order["id"]},
        )
        assert resp.status_code == 400
        assert "another table" in resp.get_json()["error"]

        untouched = cashier_client.get(f"/api/tables/{other.id}").get_json()["table"]
        assert untouched["status"] == "free"
        assert untouched["current_order_id"] is None

    def test_reoccupy_own_table_with_its_order(self, cashier_client, open_shift, table, beer):
        order = place_order(cashier_client, table.id, [{"product_id": beer.id, "quantity": 1}]).get_json()["order"]
        cashier_client.put(f"/api/tables/{table.id}/status", json={"status": "reserved"})

        resp = cashier_client.put(
            f"/api/tables/{table.id}/status",
            json={"status": "occupied", "order_id": order["id"]},
        )
        assert resp.status_code == 200
        assert resp.get_json()["table"]["current_order_id"] == order["id"]
