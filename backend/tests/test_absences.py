"""Staff absences: requests and manager approval."""


def request_absence(client, **extra):
    body = {"start_date": "2026-03-02", "end_date": "2026-03-04", "reason": "medical"}
    body.update(extra)
    return client.post("/api/absences", json=body)


class TestAbsences:

    def test_staff_request_own_absence(self, server_client):
        resp = request_absence(server_client)
        assert resp.status_code == 201
        absence = resp.get_json()["absence"]
        assert absence["user_id"] == "rafa"
        assert absence["is_approved"] is False
        assert absence["start_date"].startswith("2026-03-02")

    def test_end_before_start(self, server_client):
        resp = request_absence(server_client, start_date="2026-03-05", end_date="2026-03-01")
        assert resp.status_code == 400

    def test_bad_date(self, server_client):
        assert request_absence(server_client, start_date="soon").status_code == 400

    def test_staff_cannot_file_for_others(self, server_client, cashier):
        assert request_absence(server_client, user_id="jose.barros").status_code == 403

    def test_manager_files_for_staff(self, manager_client, server):
        resp = request_absence(manager_client, user_id="rafa")
        assert resp.status_code == 201
        assert resp.get_json()["absence"]["user_id"] == "rafa"

    def test_manager_files_for_unknown_user(self, manager_client):
        assert request_absence(manager_client, user_id="nobody").status_code == 404

    def test_staff_only_see_their_own(self, server_client, cashier_client):
        request_absence(server_client)
        request_absence(cashier_client, start_date="2026-04-01", end_date="2026-04-01")
        mine = server_client.get("/api/absences").get_json()["absences"]
        assert [a["user_id"] for a in mine] == ["rafa"]

    def test_manager_sees_everyone_and_pending(self, manager_client, server_client, cashier_client):
        request_absence(server_client)
        request_absence(cashier_client, start_date="2026-04-01", end_date="2026-04-01")
        everyone = manager_client.get("/api/absences").get_json()["absences"]
        assert [a["user_id"] for a in everyone] == ["jose.barros", "rafa"]

        only_rafa = manager_client.get("/api/absences?user_id=rafa").get_json()["absences"]
        assert len(only_rafa) == 1


class TestApproval:

    def test_manager_approves(self, manager_client, server_client):
        absence = request_absence(server_client).get_json()["absence"]
        resp = manager_client.post(f"/api/absences/{absence['id']}/approve")
        assert resp.status_code == 200
        approved = resp.get_json()["absence"]
        assert approved["is_approved"] is True
        assert approved["approved_by"] == "lucelle"
        assert approved["approved_at"] is not None

        pending = manager_client.get("/api/absences?pending=true").get_json()["absences"]
        assert pending == []

    def test_double_approval_rejected(self, manager_client, server_client):
        absence = request_absence(server_client).get_json()["absence"]
        manager_client.post(f"/api/absences/{absence['id']}/approve")
        assert manager_client.post(f"/api/absences/{absence['id']}/approve").status_code == 400

    def test_no_self_approval(self, manager_client):
        absence = request_absence(manager_client).get_json()["absence"]
        assert manager_client.post(f"/api/absences/{absence['id']}/approve").status_code == 400

    def test_server_cannot_approve(self, server_client):
        absence = request_absence(server_client).get_json()["absence"]
        assert server_client.post(f"/api/absences/{absence['id']}/approve").status_code == 403

    def test_unknown_absence(self, manager_client):
        assert manager_client.post("/api/absences/999/approve").status_code == 404
