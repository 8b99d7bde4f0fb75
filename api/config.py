"""
Environment-aware configuration.
Values come from the process environment, with .env loaded first when present.
Every secret and expiry window the auth core needs is read here once and handed
to the token service / mailer when the app is created.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _env_list(name: str, default: str) -> list[str]:
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]


def _env_deprecations(name: str) -> dict[str, str]:
    """Parse "v1=2027-01-01,v2=2028-01-01" into {"v1": "2027-01-01", ...}."""
    result = {}
    for item in _env_list(name, ""):
        version, _, sunset = item.partition("=")
        result[version.strip()] = sunset.strip()
    return result


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///user-auth.db")
    SQL_ECHO = _env_bool("SQL_ECHO")

    # Bearer tokens
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "user-auth-api")
    JWT_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("JWT_TOKEN_EXPIRES_SECONDS", str(7 * 24 * 3600))))

    # One-time tokens
    EMAIL_VERIFICATION_EXPIRES = timedelta(hours=24)
    PASSWORD_RESET_EXPIRES = timedelta(hours=1)

    # API versioning
    API_VERSION = os.getenv("API_VERSION", "v1")
    SUPPORTED_API_VERSIONS = _env_list("SUPPORTED_API_VERSIONS", "v1")
    DEPRECATED_API_VERSIONS = _env_deprecations("DEPRECATED_API_VERSIONS")
    API_PREFIX_ENABLED = _env_bool("API_PREFIX_ENABLED")
    API_PREFIX = os.getenv("API_PREFIX", "/api")

    # Mail
    MAIL_HOST = os.getenv("MAIL_HOST", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", "true")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
    MAIL_FROM = os.getenv("MAIL_FROM", "noreply@yourapp.com")
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND")
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100

    # Rate limiting (Flask-Limiter reads the RATELIMIT_* keys itself)
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", "true")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_HEADERS_ENABLED = True
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))
    RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True


class TestingConfig(BaseConfig):
    TESTING = True
    APP_ENV = "test"
    DATABASE_URL = "sqlite://"
    SQL_ECHO = False
    JWT_SECRET = "test-secret"
    MAIL_SUPPRESS_SEND = True
    SUPPORTED_API_VERSIONS = ["v1"]
    DEPRECATED_API_VERSIONS = {}
    API_VERSION = "v1"
    API_PREFIX_ENABLED = False
    RATELIMIT_ENABLED = False


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
