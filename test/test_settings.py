"""
Test cases for site settings.
"""


class TestPublicSettings:

    def test_defaults_created_on_first_read(self, client):
        response = client.get('/api/settings')
        assert response.status_code == 200
        body = response.get_json()
        assert body['siteTitle'] == 'Atom Q'
        assert body['allowRegistration'] is True
        assert body['maintenanceMode'] is False
        assert body['accentColor'] == 'blue'


class TestAdminSettings:

    def test_requires_admin(self, client, user_client):
        assert client.get('/api/admin/settings').status_code == 401
        assert user_client.put('/api/admin/settings', json={'siteTitle': 'X'}).status_code == 403

    def test_partial_update(self, admin_client, client):
        response = admin_client.put('/api/admin/settings', json={
            'siteTitle': 'Quiz Night',
            'accentColor': 'green',
            'allowRegistration': False,
        })
        assert response.status_code == 200

        body = client.get('/api/settings').get_json()
        assert body['siteTitle'] == 'Quiz Night'
        assert body['accentColor'] == 'green'
        assert body['allowRegistration'] is False
        assert body['siteDescription'] == 'Knowledge testing portal powered by Atom Labs'

    def test_invalid_values(self, admin_client):
        response = admin_client.put('/api/admin/settings', json={
            'accentColor': 'chartreuse',
            'maintenanceMode': 'yes',
        })
        assert response.status_code == 400
        assert {d['field'] for d in response.get_json()['details']} == {'accentColor', 'maintenanceMode'}

    def test_update_invalidates_maintenance_cache(self, admin_client, client, make_user):
        make_user(email='user@example.com')
        # Prime the cache with maintenance off
        client.post('/api/auth/login', json={'email': 'user@example.com', 'password': 'password123'})
        client.post('/api/auth/logout')

        admin_client.put('/api/admin/settings', json={'maintenanceMode': True})

        response = client.post('/api/auth/login', json={'email': 'user@example.com', 'password': 'password123'})
        assert response.status_code == 403
