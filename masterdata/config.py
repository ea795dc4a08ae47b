"""
Warehouse Master Data Service
Configuration classes for the Flask App Factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

# Default SQLite path for local dev when PostgreSQL is not running
_SQLITE_DEV = f"sqlite:///{os.path.join(basedir, 'instance', 'masterdata_dev.db')}"
_SQLITE_TEST = "sqlite:///:memory:"

# Generate a random key for development; production MUST use a stable env var
_DEV_SECRET = secrets.token_hex(32)

_POOL_OPTIONS = {
    "pool_pre_ping": True,
    "pool_size": 5,
    "max_overflow": 10,
    "pool_recycle": 300,   # recycle connections every 5 min
    "pool_timeout": 20,    # wait max 20s for a connection from pool
}


def _database_url(raw: str) -> str:
    # Railway/Heroku use postgres:// but SQLAlchemy 2.0 requires postgresql://
    return raw.replace("postgres://", "postgresql://", 1) if raw else raw


def engine_options(uri: str | None) -> dict:
    """Engine options for the given database URI.

    PostgreSQL runs every transaction at READ COMMITTED with a statement
    timeout. In-memory SQLite gets no pool options (Flask-SQLAlchemy swaps
    in a StaticPool which rejects them).
    """
    if not uri or uri == _SQLITE_TEST:
        return {}
    options = dict(_POOL_OPTIONS)
    if uri.startswith("postgresql"):
        options["isolation_level"] = "READ COMMITTED"
        options["connect_args"] = {
            "options": "-c statement_timeout=30000",  # 30s query timeout
        }
    return options


class Config:
    """Base configuration shared across all environments."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    # SQLAlchemy
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = dict(_POOL_OPTIONS)

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # External master-data system (synchronization target)
    GOODZON_URL = os.getenv("GOODZON_URL", "http://localhost:8085/api/v1/warehouses")
    GOODZON_TIMEOUT = int(os.getenv("GOODZON_TIMEOUT", "30"))

    # Max warehouses a single `flask sync-warehouses` run processes
    SYNC_BATCH_LIMIT = int(os.getenv("SYNC_BATCH_LIMIT", "100"))

    # db.create_all() + catalog seed at startup; production uses `flask db upgrade`
    AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "false").lower() == "true"

    # Logging: LOG_FORMAT is "json" or "readable"; empty picks by environment
    LOG_LEVEL = os.getenv("LOG_LEVEL", "")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "")


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True
    AUTO_CREATE_TABLES = True
    SQLALCHEMY_DATABASE_URI = _database_url(os.getenv("DATABASE_URL", "")) or _SQLITE_DEV
    SQLALCHEMY_ENGINE_OPTIONS = engine_options(SQLALCHEMY_DATABASE_URI)


class TestingConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = _database_url(os.getenv("TEST_DATABASE_URL", "")) or _SQLITE_TEST
    SQLALCHEMY_ENGINE_OPTIONS = engine_options(SQLALCHEMY_DATABASE_URI)
    GOODZON_URL = "http://goodzon.test/api/v1/warehouses"


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _database_url(os.getenv("DATABASE_URL", "")) or None
    SQLALCHEMY_ENGINE_OPTIONS = engine_options(SQLALCHEMY_DATABASE_URI)
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")  # Must be set explicitly in production

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
