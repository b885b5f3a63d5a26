"""
CLI command tests (bootstrap, demo data, user maintenance, price check).
"""

from jewelpos.extensions import db
from jewelpos.models import GoldCategory, Location, Permission, Role, SessionToken, StorageBox, User

from conftest import PASSWORD, get_auth_token


def test_system_init_is_idempotent(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init"])
    assert result.exit_code == 0, result.output
    assert {r.name for r in db.session.query(Role).all()} == {"admin", "manager", "cashier"}
    assert db.session.query(Permission).count() > 0
    assert db.session.query(User).count() == 3

    result = runner.invoke(args=["system", "init"])
    assert result.exit_code == 0
    assert "already exists" in result.output
    assert db.session.query(User).count() == 3


def test_seed_demo(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["catalog", "seed-demo"])
    assert result.exit_code == 0, result.output
    assert db.session.query(Location).count() == 2
    assert db.session.query(StorageBox).count() == 4
    assert db.session.query(GoldCategory).count() == 3

    result = runner.invoke(args=["catalog", "seed-demo"])
    assert "skipping" in result.output
    assert db.session.query(Location).count() == 2


def test_prices_check(app):
    runner = app.test_cli_runner()
    runner.invoke(args=["catalog", "seed-demo"])
    result = runner.invoke(args=["prices", "check"])
    assert result.exit_code == 0
    assert "not updated today" in result.output
    assert "3 active of 3" in result.output


def test_set_role(app, seed):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["users", "set-role", "--username", "cashier", "--role", "manager"])
    assert "PASS" in result.output
    assert db.session.query(User).filter_by(username="cashier").one().role.name == "manager"

    result = runner.invoke(args=["users", "set-role", "--username", "ghost", "--role", "manager"])
    assert "not found" in result.output


def test_deactivate_revokes_sessions(app, client, seed):
    token = get_auth_token(client, "cashier", PASSWORD)
    assert token

    runner = app.test_cli_runner()
    result = runner.invoke(args=["users", "deactivate", "--username", "cashier"])
    assert "1 session(s) revoked" in result.output

    assert db.session.query(SessionToken).filter_by(is_revoked=False).count() == 0
    assert get_auth_token(client, "cashier", PASSWORD) is None
