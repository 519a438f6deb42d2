"""
Environment-aware configuration.

Token signing secrets have no fallback: create_app() refuses to start
without them (see validate_config).
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

from utils.exceptions import ConfigError
from utils.revocation import BACKENDS

load_dotenv()  # Read .env if present


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # Comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///campus-analytics.db")
    SQLALCHEMY_ECHO = _env_bool("SQLALCHEMY_ECHO")

    # jwt configurations; the two secrets must be supplied and must differ
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "campus-analytics-api")
    JWT_LEEWAY = int(os.getenv("JWT_LEEWAY_SECONDS", "0"))
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "3600")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", str(7 * 24 * 3600))))

    # "database" is shared by every instance on the same DB; "memory" is per process
    REVOCATION_BACKEND = os.getenv("REVOCATION_BACKEND", "database")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    REVOCATION_BACKEND = "database"
    LOG_LEVEL = "WARNING"


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


def validate_config(config) -> None:
    """Fail fast on missing or unsafe settings."""
    access = config.get("JWT_ACCESS_SECRET")
    refresh = config.get("JWT_REFRESH_SECRET")
    missing = [k for k, v in (("JWT_ACCESS_SECRET", access), ("JWT_REFRESH_SECRET", refresh)) if not v]
    if missing:
        raise ConfigError(f"Missing required setting(s): {', '.join(missing)}")
    if access == refresh:
        raise ConfigError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be different")
    if config.get("REVOCATION_BACKEND") not in BACKENDS:
        raise ConfigError(
            f"REVOCATION_BACKEND must be one of {', '.join(BACKENDS)}, got {config.get('REVOCATION_BACKEND')!r}"
        )
    if config["ACCESS_TOKEN_EXPIRES"] <= timedelta(0) or config["REFRESH_TOKEN_EXPIRES"] <= timedelta(0):
        raise ConfigError("Token lifetimes must be positive")
