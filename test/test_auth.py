"""
Test cases for authentication: registration, login, logout and maintenance mode.
"""
from atomq import db
from atomq.security import get_account_lockout
from atomq.settings.models import Settings


class TestUserRegistration:
    """Test cases for user registration."""

    def test_register_creates_user(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'New User',
            'email': 'New.User@Example.com',
            'password': 'password123',
        })
        assert response.status_code == 201
        body = response.get_json()
        assert body['user']['email'] == 'new.user@example.com'
        assert body['user']['role'] == 'USER'

    def test_register_missing_fields(self, client):
        response = client.post('/api/auth/register', json={'email': 'test@test.com'})
        assert response.status_code == 400

    def test_register_invalid_email(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Test User',
            'email': 'invalid-email',
            'password': 'password123',
        })
        assert response.status_code == 400

    def test_register_short_password(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Test User',
            'email': 'test@test.com',
            'password': '123',
        })
        assert response.status_code == 400

    def test_register_duplicate_email(self, client, make_user):
        make_user(email='taken@example.com')
        response = client.post('/api/auth/register', json={
            'name': 'Someone Else',
            'email': 'taken@example.com',
            'password': 'password123',
        })
        assert response.status_code == 400
        assert response.get_json()['error'] == 'User with this email already exists'

    def test_register_disabled(self, app, client):
        with app.app_context():
            db.session.add(Settings(allow_registration=False))
            db.session.commit()

        response = client.post('/api/auth/register', json={
            'name': 'Test User',
            'email': 'test@test.com',
            'password': 'password123',
        })
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Registration is currently disabled'

    def test_register_creates_default_settings(self, app, client):
        client.post('/api/auth/register', json={
            'name': 'Test User',
            'email': 'test@test.com',
            'password': 'password123',
        })
        with app.app_context():
            assert Settings.query.count() == 1

    def test_register_rejects_non_json_body(self, client):
        response = client.post('/api/auth/register', data='not json', content_type='text/plain')
        assert response.status_code == 400


class TestUserLogin:
    """Test cases for login and session endpoints."""

    def test_login_success(self, client, make_user):
        make_user(email='user@example.com')
        response = client.post('/api/auth/login', json={
            'email': 'USER@example.com',
            'password': 'password123',
        })
        assert response.status_code == 200
        assert response.get_json()['user']['email'] == 'user@example.com'

        me = client.get('/api/auth/me')
        assert me.status_code == 200
        assert me.get_json()['user']['email'] == 'user@example.com'

    def test_login_missing_fields(self, client):
        response = client.post('/api/auth/login', json={'email': 'test@test.com'})
        assert response.status_code == 400

    def test_login_wrong_password(self, client, make_user):
        make_user(email='user@example.com')
        response = client.post('/api/auth/login', json={
            'email': 'user@example.com',
            'password': 'wrong-password',
        })
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Invalid email or password'

    def test_login_unknown_user(self, client):
        response = client.post('/api/auth/login', json={
            'email': 'nobody@example.com',
            'password': 'password123',
        })
        assert response.status_code == 401

    def test_login_inactive_user(self, client, make_user):
        make_user(email='inactive@example.com', is_active=False)
        response = client.post('/api/auth/login', json={
            'email': 'inactive@example.com',
            'password': 'password123',
        })
        assert response.status_code == 401

    def test_me_requires_login(self, client):
        response = client.get('/api/auth/me')
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Unauthorized'

    def test_logout(self, user_client):
        assert user_client.post('/api/auth/logout').status_code == 200
        assert user_client.get('/api/auth/me').status_code == 401


class TestMaintenanceMode:
    """Only administrators can log in while the site is under maintenance."""

    def _enable_maintenance(self, app):
        with app.app_context():
            db.session.add(Settings(maintenance_mode=True))
            db.session.commit()

    def test_user_login_blocked(self, app, client, make_user):
        make_user(email='user@example.com')
        self._enable_maintenance(app)

        response = client.post('/api/auth/login', json={
            'email': 'user@example.com',
            'password': 'password123',
        })
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Site is under maintenance. Only administrators can login.'

    def test_admin_login_allowed(self, app, client, make_user):
        make_user(email='admin@example.com', role='ADMIN')
        self._enable_maintenance(app)

        response = client.post('/api/auth/login', json={
            'email': 'admin@example.com',
            'password': 'password123',
        })
        assert response.status_code == 200

    def test_inactive_admin_login_blocked(self, app, client, make_user):
        make_user(email='boss@example.com', role='ADMIN', is_active=False)
        self._enable_maintenance(app)

        response = client.post('/api/auth/login', json={
            'email': 'boss@example.com',
            'password': 'password123',
        })
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Site is under maintenance. Only administrators can login.'
        # Rejected at the gate, so no failed attempt is counted
        assert get_account_lockout().check('boss@example.com').remaining_attempts == 5

    def test_maintenance_flag_is_cached(self, app, client, make_user):
        make_user(email='user@example.com')
        # Prime the cache with maintenance off
        client.post('/api/auth/login', json={'email': 'user@example.com', 'password': 'password123'})
        client.post('/api/auth/logout')

        with app.app_context():
            db.session.add(Settings(maintenance_mode=True))
            db.session.commit()

        response = client.post('/api/auth/login', json={
            'email': 'user@example.com',
            'password': 'password123',
        })
        assert response.status_code == 200
