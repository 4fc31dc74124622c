"""
Pytest fixtures for Meatbook backend tests.

Provides the app on an in-memory database, a per-test clean database,
a user with a bearer token, and a vendor owned by that user.
"""

import pytest
from meatbook import create_app
from meatbook.extensions import db
from meatbook.services import auth_service, vendor_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'RECORD_STORE': 'sqlalchemy',
        'ALLOW_OVERSELL': False,
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
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def user(db_session):
    """Account owning the records under test."""
    return auth_service.create_user(username="ravi", email="ravi@example.com", password="Chicken123")


@pytest.fixture(scope='function')
def other_user(db_session):
    return auth_service.create_user(username="meena", email="meena@example.com", password="Mutton456")


@pytest.fixture(scope='function')
def auth_headers(user):
    _, token = auth_service.issue_token(user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def vendor(user):
    return vendor_service.create_vendor(user_id=user.id, name="Sri Poultry Farm", phone="9876543210")


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None
