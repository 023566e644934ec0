"""Flask CLI commands and database maintenance helpers."""

import pytest
from sqlalchemy.exc import OperationalError

from barpos.extensions import db
from barpos.models import BarTable, Category, User
from barpos.services import maintenance_service


@pytest.fixture
def runner(app, db_session):
    return app.test_cli_runner()


class TestSystemInit:

    def test_init_is_idempotent(self, runner):
        result = runner.invoke(args=["system", "init", "--tables", "3", "--with-demo-users", "--demo-password", "Demo!2026"])
        assert result.exit_code == 0, result.output
        assert "Tables created: 3" in result.output
        assert db.session.query(BarTable).count() == 3
        assert db.session.query(Category).count() == 4
        assert {u.role for u in db.session.query(User).all()} == {"cashier", "server", "manager"}

        again = runner.invoke(args=["system", "init", "--tables", "3", "--with-demo-users"])
        assert "Tables created: 0" in again.output
        assert "User exists: manager" in again.output

    def test_check_db(self, runner):
        result = runner.invoke(args=["system", "check-db"])
        assert result.exit_code == 0
        assert "Database OK (attempt 1)" in result.output


class TestUserCommands:

    def test_create_list_and_deactivate(self, runner):
        result = runner.invoke(args=[
            "users", "create", "--id", "Rafa", "--role", "server", "--password", "secret-123",
            "--first-name", "Rafael",
        ])
        assert result.exit_code == 0, result.output
        assert "Saved user: rafa (server)" in result.output

        listed = runner.invoke(args=["users", "list", "--role", "server"])
        assert "rafa" in listed.output

        off = runner.invoke(args=["users", "set-active", "rafa", "--inactive"])
        assert "rafa: inactive" in off.output

    def test_short_password_rejected(self, runner):
        result = runner.invoke(args=["users", "create", "--id", "x", "--role", "server", "--password", "123"])
        assert result.exit_code != 0

    def test_set_active_unknown_user(self, runner):
        result = runner.invoke(args=["users", "set-active", "ghost"])
        assert result.exit_code != 0


class TestWaitForDatabase:

    def test_retries_then_succeeds(self, app, db_session, monkeypatch):
        failures = [OperationalError("SELECT 1", {}, Exception("starting up"))] * 2
        sleeps = []

        def flaky():
            if failures:
                raise failures.pop()
            return True

        monkeypatch.setattr(maintenance_service, "check_database", flaky)
        attempt = maintenance_service.wait_for_database(attempts=5, delay=0.5, sleep=sleeps.append)
        assert attempt == 3
        assert sleeps == [0.5, 0.5]

    def test_gives_up(self, app, db_session, monkeypatch):
        def down():
            raise OperationalError("SELECT 1", {}, Exception("refused"))

        monkeypatch.setattr(maintenance_service, "check_database", down)
        with pytest.raises(OperationalError):
            maintenance_service.wait_for_database(attempts=2, delay=0, sleep=lambda s: None)
