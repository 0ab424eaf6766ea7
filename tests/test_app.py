from sqlalchemy.exc import OperationalError

from app import create_app


def test_health_reports_ready_database(client):
    response = client.get('/api/health')
    assert response.status_code == 200
    body = response.get_json()
    assert body['ok'] is True
    assert body['db'] == 'ready'
    assert 'dbError' not in body


def test_health_reports_failed_bootstrap(monkeypatch):
    def fail_create_all(*args, **kwargs):
        raise OperationalError('CREATE TABLE', {}, Exception('database unreachable'))

    monkeypatch.setattr('app.db.create_all', fail_create_all)
    app = create_app('app.config.TestConfig')
    body = app.test_client().get('/api/health').get_json()
    assert body['db'] == 'error'
    assert body['dbError'] == 'Database initialization failed'


def test_unknown_api_route_uses_error_shape(client):
    response = client.get('/api/does-not-exist')
    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'error': {'message': 'Not found'}}


def test_method_not_allowed_uses_error_shape(client):
    response = client.patch('/api/services')
    assert response.status_code == 405
    assert response.get_json()['success'] is False
