import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config, validate_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)
from utils.decorators import reject_revoked_tokens
from utils.revocation import EXTENSION_KEY as REVOCATION_KEY, create_revocation_set
from utils.session import SessionController, EXTENSION_KEY as SESSION_KEY

API_VERSION = "1.0.0"

# Exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Campus Resource Analytics API",
        "version": API_VERSION,
        "description": "Authentication, session lifecycle and user management for the campus resource analytics dashboard.",
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


def configure_logging(app: Flask) -> None:
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(level)
    app.logger.setLevel(level)


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.

    overrides are applied on top of the selected config class before the
    config is validated; startup fails with ConfigError on missing secrets.
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)
    validate_config(app.config)

    configure_logging(app)

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", [])}}, supports_credentials=True)

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    storage.reload(app.config["DATABASE_URL"], echo=app.config.get("SQLALCHEMY_ECHO", False))

    revocations = create_revocation_set(
        app.config["REVOCATION_BACKEND"], default_ttl=app.config["ACCESS_TOKEN_EXPIRES"]
    )
    app.extensions[REVOCATION_KEY] = revocations
    app.extensions[SESSION_KEY] = SessionController(revocations)

    # Revoked tokens are refused on every route, ahead of any handler
    app.before_request(reject_revoked_tokens)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .cli import register_commands

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    register_commands(app)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to the Campus Resource Analytics API",
            "docs": "/apidocs/",
            "health": "/health",
        }, 200

    app.logger.info("App created (env=%s, revocation=%s)", app.config.get("APP_ENV"), app.config["REVOCATION_BACKEND"])
    return app
