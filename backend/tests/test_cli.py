"""CLI command tests (system init, users list, maintenance)."""

from datetime import timedelta

from workforce.extensions import db
from workforce.models import SessionToken, User
from workforce.services import session_service
from workforce.time_utils import utcnow


def test_system_init_seeds_admin_once(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init"])
    assert result.exit_code == 0
    assert "PASS Created admin: admin@company.com" in result.output

    admin = db.session.query(User).filter_by(email="admin@company.com").one()
    assert admin.role == "admin"

    result = runner.invoke(args=["system", "init"])
    assert result.exit_code == 0
    assert "already exists" in result.output
    assert db.session.query(User).filter_by(role="admin").count() == 1


def test_users_list_filters_by_role(app, admin_user, employee_a):
    result = app.test_cli_runner().invoke(args=["users", "list", "--role", "employee"])

    assert result.exit_code == 0
    assert "alice@company.com" in result.output
    assert employee_a.employee_code in result.output
    assert "admin@company.com" not in result.output


def test_cleanup_sessions(app, employee_a):
    session, token = session_service.create_session(employee_a.user_id)
    session_service.revoke_session(token)
    session.created_at = utcnow() - timedelta(days=60)
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-sessions", "--days", "30"])

    assert result.exit_code == 0
    assert "Deleted 1 session token(s)" in result.output
    assert db.session.query(SessionToken).count() == 0
