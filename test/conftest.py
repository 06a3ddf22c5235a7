"""
Pytest configuration and fixtures for testing.

Each test gets a fresh application backed by an in-memory SQLite database.
"""
import os

import pytest

# Set test environment variables BEFORE importing the app package
os.environ['FLASK_ENV'] = 'testing'
os.environ['SECRET_KEY'] = 'test-secret-key-not-for-production'
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['API_PREFIX'] = '/api'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['MIN_PASSWORD_LENGTH'] = '6'

from atomq import create_app, db  # noqa: E402
from atomq.auth.models import User, UserRole  # noqa: E402
from atomq.auth.utils import hash_password  # noqa: E402
from atomq.security import get_account_lockout  # noqa: E402
from atomq.settings.service import invalidate_settings_cache  # noqa: E402


DEFAULT_PASSWORD = 'password123'


@pytest.fixture
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    })
    get_account_lockout().clear()
    invalidate_settings_cache()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
    get_account_lockout().clear()
    invalidate_settings_cache()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory that inserts a user and returns its id."""
    def _make_user(email='user@example.com', password=DEFAULT_PASSWORD, name='Test User',
                   role=UserRole.USER, tags=None, **extra):
        with app.app_context():
            user = User(
                email=email,
                name=name,
                role=role,
                password_hash=hash_password(password),
                **extra
            )
            if tags:
                user.set_tags(tags)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make_user


@pytest.fixture
def login_as(app, make_user):
    """Factory that creates a user and returns a test client logged in as them."""
    def _login_as(email, role=UserRole.USER, password=DEFAULT_PASSWORD, **extra):
        make_user(email=email, password=password, role=role, **extra)
        logged_in = app.test_client()
        response = logged_in.post('/api/auth/login', json={'email': email, 'password': password})
        assert response.status_code == 200, response.get_json()
        return logged_in
    return _login_as


@pytest.fixture
def user_client(login_as):
    return login_as('user@example.com', name='Regular User')


@pytest.fixture
def admin_client(login_as):
    return login_as('admin@example.com', role=UserRole.ADMIN, name='Admin User')
