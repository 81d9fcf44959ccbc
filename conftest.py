# conftest.py

import os
from unittest.mock import patch

import pytest

# Set testing environment BEFORE importing app so app.py picks TestingConfig
os.environ["FLASK_ENV"] = "testing"

from app import app as flask_app  # noqa: E402
from bloodlagbe.models import Campus, Group, User, UserRole, db  # noqa: E402
from bloodlagbe.utils.permissions import AuthContext  # noqa: E402

USER_PASSWORD = "testpass123"
ADMIN_PASSWORD = "adminpass123"


@pytest.fixture(scope="function")
def app():
    """Create and configure a test Flask application with a fresh schema"""
    flask_app.config.update(
        {
            "TESTING": True,
            "WTF_CSRF_ENABLED": False,
            "SECRET_KEY": "test-secret-key-for-testing-only",
            "LOG_LEVEL": "DEBUG",
            "ENABLE_FILE_LOGGING": False,
            "NAME_MATCH_CASE_INSENSITIVE": True,
            "DIRECTORY_PAGE_SIZE": 10,
            "DIRECTORY_MAX_PAGE_SIZE": 100,
            "DONOR_UPLOAD_MAX_MB": 5,
        }
    )

    from bloodlagbe.utils.logging_config import setup_logging

    setup_logging(flask_app)

    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Automatically provide app context for all tests"""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """Create a test client for the Flask application"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner for the Flask application"""
    return app.test_cli_runner()


def _make_user(name, email, password, role):
    user = User(name=name, email=email, role=role, is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def test_user(app):
    """Persisted regular user"""
    return _make_user("Test User", "test@example.com", USER_PASSWORD, UserRole.USER)


@pytest.fixture
def other_user(app):
    """Second regular user, used for ownership checks"""
    return _make_user("Other User", "other@example.com", USER_PASSWORD, UserRole.USER)


@pytest.fixture
def admin_user(app):
    """Persisted admin user"""
    return _make_user("Admin User", "admin@example.com", ADMIN_PASSWORD, UserRole.ADMIN)


@pytest.fixture
def user_auth(test_user):
    return AuthContext(user_id=test_user.id, role=UserRole.USER)


@pytest.fixture
def admin_auth(admin_user):
    return AuthContext(user_id=admin_user.id, role=UserRole.ADMIN)


@pytest.fixture
def logged_in_user(client, test_user):
    """Log in the regular user and return (client, user)"""
    response = client.post("/api/login", json={"email": test_user.email, "password": USER_PASSWORD})
    assert response.status_code == 200
    return client, test_user


@pytest.fixture
def logged_in_admin(client, admin_user):
    """Log in the admin user and return (client, user)"""
    response = client.post("/api/login", json={"email": admin_user.email, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client, admin_user


@pytest.fixture
def sample_campus(app):
    campus = Campus(name="Dhaka University")
    db.session.add(campus)
    db.session.commit()
    return campus


@pytest.fixture
def sample_group(app):
    group = Group(name="Rover Scouts")
    db.session.add(group)
    db.session.commit()
    return group


@pytest.fixture
def mock_database_error():
    """Make db.session.commit raise, simulating a failing transaction"""
    from sqlalchemy.exc import OperationalError

    with patch.object(db.session, "commit", side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error"))):
        yield


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers and ensure testing environment"""
    os.environ["FLASK_ENV"] = "testing"

    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers"""
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.slow)
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
