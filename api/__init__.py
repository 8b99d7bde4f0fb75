import logging

import click
from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from .config import get_config
from .errors import register_error_handlers
from .versioning import init_versioning
from models import storage
from models.revocation_ledger import RevocationLedger
from models.user import Role
from models.user_store import UserStore
from utils.api_version import get_api_prefix
from utils.mailer import Mailer
from utils.security import TokenService

SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "User Auth API",
        "version": "1.0.0",
        "description": "Registration, login, email verification, password reset and user management.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.

    Services (token service, ledger, credential store, mailer) are built here
    from the config and kept in app.extensions; nothing below reads config
    on its own.
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    storage.configure(app.config["DATABASE_URL"], echo=app.config["SQL_ECHO"])
    storage.reload()

    app.extensions["token_service"] = TokenService(
        secret=app.config["JWT_SECRET"],
        algorithm=app.config["JWT_ALGORITHM"],
        expires=app.config["JWT_TOKEN_EXPIRES"],
        issuer=app.config["JWT_ISSUER"],
    )
    app.extensions["revocation_ledger"] = RevocationLedger(storage)
    app.extensions["user_store"] = UserStore(storage)
    app.extensions["mailer"] = Mailer.from_config(app.config)

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Version gate runs before anything else and stamps every response
    init_versioning(app)
    init_rate_limiting(app)
    register_error_handlers(app)
    register_blueprints(app)
    register_commands(app)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    return app


def init_rate_limiting(app) -> Limiter:
    """One budget per client address shared by every route, e.g. "100 per 900 seconds"."""
    limit = f"{app.config['RATE_LIMIT_MAX_REQUESTS']} per {app.config['RATE_LIMIT_WINDOW_SECONDS']} seconds"
    return Limiter(
        get_remote_address,
        app=app,
        application_limits=[limit],
        storage_uri=app.config["RATELIMIT_STORAGE_URI"],
    )


def register_blueprints(app):
    """
    Mount auth/users once per supported version, plus unversioned aliases
    that serve the current version. Health/version stay at the root.
    """
    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    prefix = get_api_prefix(app.config["API_PREFIX_ENABLED"], app.config["API_PREFIX"])

    app.register_blueprint(health_bp)
    for version in app.config["SUPPORTED_API_VERSIONS"]:
        app.register_blueprint(auth_bp, url_prefix=f"{prefix}/{version}/auth", name=f"auth_{version}")
        app.register_blueprint(users_bp, url_prefix=f"{prefix}/{version}/users", name=f"users_{version}")
    app.register_blueprint(auth_bp, url_prefix=f"{prefix}/auth")
    app.register_blueprint(users_bp, url_prefix=f"{prefix}/users")


def register_commands(app):
    @app.cli.command("purge-blacklist")
    def purge_blacklist():
        """Delete blacklist entries whose token has expired anyway."""
        count = app.extensions["revocation_ledger"].purge_expired()
        click.echo(f"Purged {count} expired token(s)")

    @app.cli.command("create-admin")
    @click.option("--email", required=True)
    @click.option("--password", required=True)
    @click.option("--first-name", default="Admin")
    @click.option("--last-name", default="User")
    def create_admin(email, password, first_name, last_name):
        """Create an admin account (or promote an existing one)."""
        users = app.extensions["user_store"]
        user = users.find_by_email(email)
        if user:
            users.update(user, role=Role.ADMIN, is_active=True)
            click.echo(f"Promoted {user.email} to admin")
            return
        user = users.create(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=Role.ADMIN,
            is_email_verified=True,
        )
        click.echo(f"Created admin {user.email} ({user.id})")
