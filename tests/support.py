# Shared request helpers for the API tests.

PASSWORD = 'secret123'


def register(client, username, email=None, password=PASSWORD):
    email = email or f'{username}@example.com'
    return client.post('/api/users/register', json={
        'username': username,
        'email': email,
        'password': password,
    })


def login(client, email, password=PASSWORD):
    return client.post('/api/users/login', json={'email': email, 'password': password})


def auth_headers(token):
    return {'Authorization': f'Bearer {token}'}
