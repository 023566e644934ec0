"""Login, logout and session cookie behaviour."""

from datetime import timedelta

from barpos.extensions import db
from barpos.models import SessionToken
from barpos.services import session_service
from barpos.time_utils import utcnow

from conftest import PASSWORD, login, make_user


class TestLogin:

    def test_valid_credentials_set_cookie(self, app, client, cashier):
        resp = login(client, "jose.barros", "cashier")
        assert resp.status_code == 200

        data = resp.get_json()
        assert data["user"]["id"] == "jose.barros"
        assert data["user"]["role"] == "cashier"
        assert "password_hash" not in data["user"]
        assert data["redirect"] == "/dashboard"

        cookie = client.get_cookie(app.config["AUTH_COOKIE_NAME"])
        assert cookie is not None
        assert cookie.http_only

        me = client.get("/api/auth/user")
        assert me.status_code == 200
        assert me.get_json()["id"] == "jose.barros"

    def test_username_is_case_insensitive(self, client, cashier):
        resp = login(client, "  Jose.Barros ", "cashier")
        assert resp.status_code == 200

    def test_wrong_password(self, client, cashier):
        resp = login(client, "jose.barros", "cashier", password="nope-nope")
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Invalid credentials"}

    def test_role_mismatch_is_401(self, client, cashier):
        resp = login(client, "jose.barros", "manager")
        assert resp.status_code == 401

    def test_unknown_user(self, client, db_session):
        assert login(client, "ghost", "server").status_code == 401

    def test_missing_fields(self, client, cashier):
        resp = client.post("/api/auth/login", json={"username": "jose.barros", "password": PASSWORD})
        assert resp.status_code == 400

    def test_inactive_user_is_403(self, client, db_session):
        make_user(db_session, "junior", "server", is_active=False)
        resp = login(client, "junior", "server")
        assert resp.status_code == 403

    def test_session_stored_hashed_with_expiry(self, app, client, cashier):
        login(client, "jose.barros", "cashier")
        token = client.get_cookie(app.config["AUTH_COOKIE_NAME"]).value

        row = db.session.query(SessionToken).one()
        assert row.token_hash == session_service.hash_token(token)
        assert row.token_hash != token
        lifetime = row.expires_at - row.created_at
        assert lifetime == timedelta(hours=app.config["SESSION_LIFETIME_HOURS"])
        assert row.payload_dict()["role"] == "cashier"


class TestRedirect:

    def test_manager_goes_to_manager_dashboard(self, manager_client):
        data = manager_client.get("/api/auth/redirect").get_json()
        assert data == {"role": "manager", "dashboard": "manager", "redirect": "/manager"}

    def test_server_goes_to_dashboard(self, server_client):
        assert server_client.get("/api/auth/redirect").get_json()["redirect"] == "/dashboard"


class TestLogout:

    def test_logout_revokes_session(self, app, cashier_client):
        assert cashier_client.get("/api/auth/user").status_code == 200

        resp = cashier_client.post("/api/auth/logout")
        assert resp.status_code == 200
        assert resp.get_json()["revoked"] is True

        assert cashier_client.get("/api/auth/user").status_code == 401
        assert db.session.query(SessionToken).filter_by(is_revoked=True).count() == 1

    def test_logout_without_session_is_ok(self, client, db_session):
        resp = client.post("/api/auth/logout")
        assert resp.status_code == 200
        assert resp.get_json()["revoked"] is False


class TestSessionExpiry:

    def test_expired_session_rejected(self, app, cashier_client):
        row = db.session.query(SessionToken).one()
        row.expires_at = utcnow() - timedelta(minutes=1)
        db.session.commit()
        assert cashier_client.get("/api/auth/user").status_code == 401

    def test_idle_session_revoked(self, app, cashier_client):
        row = db.session.query(SessionToken).one()
        row.last_used_at = utcnow() - timedelta(hours=app.config["SESSION_IDLE_HOURS"], minutes=1)
        db.session.commit()

        assert cashier_client.get("/api/auth/user").status_code == 401
        db.session.expire_all()
        assert db.session.query(SessionToken).one().revoked_reason == "Idle timeout"

    def test_deactivated_user_loses_access(self, manager_client, cashier_client):
        resp = manager_client.put("/api/manager/users/jose.barros/status", json={"is_active": False})
        assert resp.status_code == 200
        assert cashier_client.get("/api/auth/user").status_code == 401

    def test_cleanup_removes_old_revoked_sessions(self, app, cashier_client):
        row = db.session.query(SessionToken).one()
        row.is_revoked = True
        row.created_at = utcnow() - timedelta(days=45)
        db.session.commit()

        assert session_service.cleanup_expired_sessions(retention_days=30) == 1
        assert db.session.query(SessionToken).count() == 0
