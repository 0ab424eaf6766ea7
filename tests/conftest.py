import pytest
from app import create_app, db
from tests.support import auth_headers, login, register


@pytest.fixture
def app():
    app = create_app('app.config.TestConfig')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(client):
    """Register and log in a user; returns (user dict, auth headers)."""
    def _make_user(username):
        response = register(client, username)
        assert response.status_code == 201, response.get_json()
        token = login(client, f'{username}@example.com').get_json()['token']
        return response.get_json()['user'], auth_headers(token)
    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user('alice')


@pytest.fixture
def bob(make_user):
    return make_user('bob')


@pytest.fixture
def carol(make_user):
    return make_user('carol')


@pytest.fixture
def make_service(client):
    def _make_service(headers, title='Logo design', **fields):
        payload = {'title': title, 'description': f'{title} description', 'price': 10}
        payload.update(fields)
        response = client.post('/api/services', json=payload, headers=headers)
        assert response.status_code == 201, response.get_json()
        return response.get_json()['service']
    return _make_service
