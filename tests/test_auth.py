from datetime import datetime, timedelta

import jwt

from tests.support import auth_headers


def _token(secret, **claims):
    payload = {'id': 1, 'email': 'alice@example.com', 'exp': datetime.utcnow() + timedelta(hours=1)}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm='HS256')


def test_missing_token(client):
    response = client.get('/api/users/me')
    assert response.status_code == 401
    assert response.get_json()['success'] is False


def test_non_bearer_scheme_is_rejected(client, alice):
    response = client.get('/api/users/me', headers={'Authorization': 'Basic abc'})
    assert response.status_code == 401


def test_expired_token(client, alice):
    token = _token('test-jwt-secret', exp=datetime.utcnow() - timedelta(minutes=5))
    response = client.get('/api/users/me', headers=auth_headers(token))
    assert response.status_code == 401
    assert response.get_json()['error']['message'] == 'Token expired'


def test_wrong_signature(client, alice):
    token = _token('not-the-secret')
    response = client.get('/api/users/me', headers=auth_headers(token))
    assert response.status_code == 401
    assert response.get_json()['error']['message'] == 'Invalid token'


def test_garbage_token(client):
    response = client.get('/api/users/me', headers=auth_headers('not.a.jwt'))
    assert response.status_code == 401


def test_fallback_secret_is_accepted(client, alice):
    user, _ = alice
    token = _token('old-test-jwt-secret', id=user['id'])
    response = client.get('/api/users/me', headers=auth_headers(token))
    assert response.status_code == 200


def test_identity_from_sub_claim(client, alice):
    user, _ = alice
    token = jwt.encode(
        {'sub': str(user['id']), 'exp': datetime.utcnow() + timedelta(hours=1)},
        'test-jwt-secret',
        algorithm='HS256',
    )
    response = client.get('/api/users/me', headers=auth_headers(token))
    assert response.status_code == 200


def test_token_without_identity(client):
    token = jwt.encode(
        {'email': 'x@example.com', 'exp': datetime.utcnow() + timedelta(hours=1)},
        'test-jwt-secret',
        algorithm='HS256',
    )
    assert client.get('/api/users/me', headers=auth_headers(token)).status_code == 401


def test_cookie_fallback(client, alice):
    _, headers = alice
    token = headers['Authorization'].split(' ', 1)[1]
    client.set_cookie('access_token_cookie', token)
    response = client.get('/api/users/me')
    assert response.status_code == 200
