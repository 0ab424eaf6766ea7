import os
from datetime import timedelta
from dotenv import load_dotenv

# Load environment variables from .env (only for local development)
if os.getenv("FLASK_ENV") != "production":
    load_dotenv()


def _split_csv(value):
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class Config:
    """Base configuration."""

    # General settings
    SECRET_KEY = os.getenv("SECRET_KEY", "default-secret-key")

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///codecrowds.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT settings; fallback secrets are only used to verify older tokens
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "default-jwt-secret-key")
    JWT_FALLBACK_SECRETS = _split_csv(os.getenv("JWT_FALLBACK_SECRETS"))
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=int(os.getenv("JWT_ACCESS_TOKEN_DAYS", "7")))
    JWT_ACCESS_COOKIE_NAME = "access_token_cookie"

    BCRYPT_LOG_ROUNDS = int(os.getenv("BCRYPT_LOG_ROUNDS", "12"))

    # CORS configuration
    CORS_ORIGINS = _split_csv(os.getenv("CORS_ORIGINS"))

    PORT = int(os.getenv("PORT", "5000"))

    # Debug mode
    DEBUG = os.getenv("FLASK_ENV") != "production"


class TestConfig(Config):
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SECRET_KEY = "test-secret-key"
    JWT_SECRET_KEY = "test-jwt-secret"
    JWT_FALLBACK_SECRETS = ["old-test-jwt-secret"]
    BCRYPT_LOG_ROUNDS = 4
