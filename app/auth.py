import jwt
from flask import current_app, request
from flask_jwt_extended import create_access_token
from functools import wraps
from app.errors import error_response


def generate_token(user):
    """
    Generate a JWT access token for the given user.
    """
    return create_access_token(
        identity=str(user.id),
        additional_claims={'id': user.id, 'email': user.email},
    )


def _token_secrets():
    secrets = [current_app.config['JWT_SECRET_KEY']]
    secrets.extend(current_app.config.get('JWT_FALLBACK_SECRETS') or [])
    return [secret for secret in secrets if secret]


def extract_token():
    """
    Return the raw token from the Authorization header, falling back to the
    access token cookie.
    """
    auth_header = request.headers.get('Authorization', '')
    if auth_header:
        scheme, _, token = auth_header.partition(' ')
        if scheme == 'Bearer' and token.strip():
            return token.strip()
        return None
    return request.cookies.get(current_app.config.get('JWT_ACCESS_COOKIE_NAME', 'access_token_cookie'))


def verify_token(token):
    """
    Decode and verify the JWT against every configured secret.
    Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError.
    """
    last_error = jwt.InvalidTokenError('No secret configured')
    for secret in _token_secrets():
        try:
            return jwt.decode(token, secret, algorithms=['HS256'])
        except jwt.InvalidSignatureError as e:
            last_error = e
    raise last_error


def normalize_identity(payload):
    """Build the {id, email} identity from the token claims."""
    raw_id = payload.get('id') or payload.get('userId') or payload.get('sub')
    try:
        user_id = int(raw_id)
    except (TypeError, ValueError, OverflowError):
        return None
    return {'id': user_id, 'email': payload.get('email')}


def login_required(f):
    """
    Decorator to protect endpoints with authentication.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = extract_token()
        if not token:
            return error_response('Missing or invalid Authorization header', 401)

        try:
            payload = verify_token(token)
        except jwt.ExpiredSignatureError:
            return error_response('Token expired', 401)
        except jwt.InvalidTokenError as e:
            current_app.logger.debug(f"[DEBUG] Rejected token: {e}")
            return error_response('Invalid token', 401)

        identity = normalize_identity(payload)
        if not identity:
            return error_response('Invalid token', 401)

        # Attach the identity to the request object for downstream use
        request.user = identity
        return f(*args, **kwargs)
    return decorated_function
