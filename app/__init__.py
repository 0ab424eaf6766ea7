import time
from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_jwt_extended import JWTManager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from app.errors import ApiError, error_response

# Initialize extensions
db = SQLAlchemy()
bcrypt = Bcrypt()
jwt = JWTManager()


def create_app(config_object='app.config.Config'):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize extensions
    db.init_app(app)
    bcrypt.init_app(app)
    jwt.init_app(app)

    app.extensions['codecrowds'] = {
        'started_at': time.time(),
        'db_status': 'starting',
        'db_error': None,
    }

    register_error_handlers(app)

    # Import and register Blueprints
    from app.user_routes import user_bp
    from app.service_routes import service_bp
    from app.message_routes import message_bp
    from app.rating_routes import rating_bp

    app.register_blueprint(user_bp, url_prefix='/api/users')
    app.register_blueprint(service_bp, url_prefix='/api/services')
    app.register_blueprint(message_bp, url_prefix='/api/messages')
    app.register_blueprint(rating_bp, url_prefix='/api/ratings')

    @app.route('/api/health', methods=['GET'])
    def health():
        """Report liveness and the outcome of the database bootstrap."""
        state = app.extensions['codecrowds']
        payload = {
            'ok': True,
            'uptime': round(time.time() - state['started_at'], 3),
            'ts': int(time.time() * 1000),
            'db': state['db_status'],
        }
        if state['db_error']:
            payload['dbError'] = state['db_error']
        return jsonify(payload), 200

    # Create tables if they don't exist
    with app.app_context():
        create_tables(app)

    return app


def create_tables(app):
    """
    Create the schema. A failure is recorded for the health endpoint
    instead of stopping the server.
    """
    from app import models  # noqa: F401  registers the tables on db.metadata

    state = app.extensions['codecrowds']
    try:
        db.session.execute(text('SELECT 1'))
        db.create_all()
        state['db_status'] = 'ready'
        state['db_error'] = None
        app.logger.info("Database ready.")
    except SQLAlchemyError as e:
        db.session.rollback()
        state['db_status'] = 'error'
        state['db_error'] = 'Database initialization failed'
        app.logger.error(f"[ERROR] Database init failed: {e}")


def close_db(app):
    """Release pooled connections at shutdown."""
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e):
        return error_response(e.message, e.status_code)

    @app.errorhandler(404)
    def handle_not_found(e):
        app.logger.debug(f"[DEBUG] No route for {request.method} {request.path}")
        return error_response('Not found', 404)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return error_response(e.description or e.name, e.code)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        app.logger.exception(f"[ERROR] Uncaught error: {e}")
        db.session.rollback()
        return error_response('Internal server error', 500)
