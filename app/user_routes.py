from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from app import db, bcrypt
from app.auth import generate_token, login_required
from app.errors import error_response
from app.models import User
from app.utils import clean_text, json_body, parse_positive_int

user_bp = Blueprint('users', __name__)

MIN_PASSWORD_LENGTH = 6
MAX_USERNAME_LENGTH = User.username.type.length
MAX_EMAIL_LENGTH = User.email.type.length
MAX_DESCRIPTION_LENGTH = User.description.type.length


def _length_error(username, email):
    if username and len(username) > MAX_USERNAME_LENGTH:
        return f"Username must be at most {MAX_USERNAME_LENGTH} characters"
    if email and len(email) > MAX_EMAIL_LENGTH:
        return f"Email must be at most {MAX_EMAIL_LENGTH} characters"
    return None


def _username_taken(username, exclude_id=None):
    query = User.query.filter(func.lower(User.username) == username.lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def _email_taken(email, exclude_id=None):
    query = User.query.filter(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return db.session.query(query.exists()).scalar()


# Register a new user
@user_bp.route('/register', methods=['POST'])
def register():
    data = json_body()
    username = clean_text(data.get('username'))
    email = clean_text(data.get('email')).lower()
    password = data.get('password') or ''

    if not username or not email or not password:
        return error_response('Username, email and password are required', 400)
    if '@' not in email:
        return error_response('A valid email is required', 400)
    if len(str(password)) < MIN_PASSWORD_LENGTH:
        return error_response(f'Password must be at least {MIN_PASSWORD_LENGTH} characters', 400)
    length_error = _length_error(username, email)
    if length_error:
        return error_response(length_error, 400)

    try:
        if _email_taken(email):
            return error_response('Email already registered', 400)
        if _username_taken(username):
            return error_response('Username already taken', 400)

        user = User(
            username=username,
            email=email,
            password_hash=bcrypt.generate_password_hash(str(password)).decode('utf-8'),
        )
        db.session.add(user)
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        current_app.logger.debug(f"[DEBUG] Registration conflict: {e}")
        return error_response('Username or email already registered', 400)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"[ERROR] Registration failed: {e}")
        return error_response('Failed to register user', 500)

    current_app.logger.info(f"Registered user {user.id}")
    return jsonify({'success': True, 'user': user.to_dict()}), 201


# Login a user
@user_bp.route('/login', methods=['POST'])
def login():
    data = json_body()
    email = clean_text(data.get('email')).lower()
    password = data.get('password') or ''

    if not email or not password:
        return error_response('Email and password are required', 400)

    try:
        user = User.query.filter(func.lower(User.email) == email).first()
    except SQLAlchemyError as e:
        current_app.logger.error(f"[ERROR] Login lookup failed: {e}")
        return error_response('Failed to log in', 500)

    if user and bcrypt.check_password_hash(user.password_hash, str(password)):
        token = generate_token(user)
        return jsonify({'success': True, 'token': token, 'user': user.to_dict()}), 200

    return error_response('Invalid email or password', 401)


@user_bp.route('/me', methods=['GET'])
@login_required
def current_user():
    user = db.session.get(User, request.user['id'])
    if not user:
        return error_response('User not found', 404)
    return jsonify({'success': True, 'user': user.to_dict()}), 200


@user_bp.route('', methods=['GET'])
@login_required
def list_users():
    try:
        users = User.query.order_by(User.username.asc()).all()
    except SQLAlchemyError as e:
        current_app.logger.error(f"[ERROR] Failed to fetch users: {e}")
        return error_response('Failed to fetch users', 500)

    users_data = [
        {'id': user.id, 'username': user.username, 'description': user.description}
        for user in users
    ]
    return jsonify({'success': True, 'users': users_data}), 200


# View a user profile
@user_bp.route('/<user_id>', methods=['GET'])
@login_required
def get_profile(user_id):
    user_id = parse_positive_int(user_id, 'User id')
    user = db.session.get(User, user_id)
    if not user:
        return error_response('User not found', 404)
    return jsonify({'success': True, 'user': user.to_dict()}), 200


# Update own profile
@user_bp.route('/<user_id>', methods=['PUT'])
@login_required
def update_profile(user_id):
    user_id = parse_positive_int(user_id, 'User id')
    if user_id != request.user['id']:
        return error_response('You can only edit your own profile', 403)

    user = db.session.get(User, user_id)
    if not user:
        return error_response('User not found', 404)

    data = json_body()
    username = clean_text(data.get('username'))
    email = clean_text(data.get('email')).lower()
    length_error = _length_error(username, email)
    if length_error:
        return error_response(length_error, 400)

    try:
        if username and username != user.username:
            if _username_taken(username, exclude_id=user.id):
                return error_response('Username already taken', 400)
            user.username = username
        if email and email != user.email:
            if '@' not in email:
                return error_response('A valid email is required', 400)
            if _email_taken(email, exclude_id=user.id):
                return error_response('Email already registered', 400)
            user.email = email
        if 'description' in data:
            description = clean_text(data.get('description'))
            if len(description) > MAX_DESCRIPTION_LENGTH:
                return error_response(f'Description must be at most {MAX_DESCRIPTION_LENGTH} characters', 400)
            user.description = description or None

        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        current_app.logger.debug(f"[DEBUG] Profile update conflict: {e}")
        return error_response('Username or email already registered', 400)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"[ERROR] Failed to update profile {user_id}: {e}")
        return error_response('Failed to update profile', 500)

    return jsonify({'success': True, 'user': user.to_dict()}), 200
