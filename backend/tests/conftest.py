"""
Pytest fixtures for workforce backend tests.

Provides the app on in-memory SQLite, a per-test clean database, an admin,
two employees, and login helpers.
"""

import pytest

from workforce import create_app
from workforce.extensions import db
from workforce.models import ROLE_ADMIN
from workforce.services import employee_service
from workforce.services.auth_service import create_user


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'ALLOW_SELF_REGISTRATION': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()
        db.session.remove()


@pytest.fixture(scope='function')
def admin_user(db_session):
    return create_user(
        email="admin@company.com",
        password=PASSWORD,
        name="Admin User",
        role=ROLE_ADMIN,
    )


@pytest.fixture(scope='function')
def make_employee(db_session):
    """Factory: make_employee("alice") -> Employee with alice@company.com."""
    def _make(handle: str, **extra):
        payload = {
            "name": handle.title(),
            "email": f"{handle}@company.com",
            "password": PASSWORD,
            "department": "Field Operations",
            "position": "Technician",
        }
        payload.update(extra)
        return employee_service.register_employee(payload)
    return _make


@pytest.fixture(scope='function')
def employee_a(make_employee):
    return make_employee("alice")


@pytest.fixture(scope='function')
def employee_b(make_employee):
    return make_employee("bob")


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email))


@pytest.fixture(scope='function')
def alice_headers(client, employee_a):
    return auth_headers(get_auth_token(client, "alice@company.com"))


@pytest.fixture(scope='function')
def bob_headers(client, employee_b):
    return auth_headers(get_auth_token(client, "bob@company.com"))
