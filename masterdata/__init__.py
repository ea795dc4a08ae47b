"""
Warehouse Master Data Service
Flask Application Factory.

Usage:
    from masterdata import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask
from flask_cors import CORS
from flask_migrate import Migrate

from masterdata.config import config
from masterdata.models import db
from masterdata.middleware.logging_config import configure_logging
from masterdata.middleware.timing import init_request_timing

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    config_class = config[config_name]
    if config_name == "production":
        config_class()  # validates required env vars
    app.config.from_object(config_class)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if uri.startswith("sqlite:///") and ":memory:" not in uri:
        os.makedirs(os.path.dirname(uri[len("sqlite:///"):]), exist_ok=True)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from masterdata.models import warehouse as _warehouse_models  # noqa: F401
    from masterdata.models import region as _region_models        # noqa: F401
    from masterdata.models import priority as _priority_models    # noqa: F401

    # ── Auto-create tables + seed the type catalog (dev / test) ──────────
    if app.config.get("AUTO_CREATE_TABLES"):
        with app.app_context():
            _create_schema()

    # ── Blueprints ───────────────────────────────────────────────────────
    from masterdata.blueprints.warehouse_bp import warehouse_bp
    from masterdata.blueprints.region_bp import region_bp
    from masterdata.blueprints.health_bp import health_bp

    app.register_blueprint(warehouse_bp)
    app.register_blueprint(region_bp)
    app.register_blueprint(health_bp)

    _register_cli(app)

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        from flask import request
        return {"error": "Not found", "code": "ERR_NOT_FOUND", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed", "code": "ERR_BAD_REQUEST"}, 405

    return app


def _create_schema():
    from masterdata.services.warehouse_store import seed_warehouse_types
    from masterdata.services.transaction import transaction

    db.create_all()
    with transaction():
        seed_warehouse_types()


def _register_cli(app):
    @app.cli.command("seed-warehouse-types")
    def seed_warehouse_types_cmd():
        """Insert missing entries of the warehouse type catalog."""
        from masterdata.services.warehouse_store import seed_warehouse_types
        from masterdata.services.transaction import transaction

        with transaction():
            count = seed_warehouse_types()
        logger.info("Seeded %s new warehouse types.", count)

    @app.cli.command("sync-warehouses")
    @click.option("--limit", type=int, default=None, help="Max warehouses to push in this run.")
    def sync_warehouses_cmd(limit):
        """Push pending warehouses to Goodzon."""
        from masterdata.integrations.goodzon_gateway import GoodzonGateway
        from masterdata.services.sync_worker import synchronize_pending

        gateway = GoodzonGateway.from_config(app.config)
        stats = synchronize_pending(gateway, limit or app.config["SYNC_BATCH_LIMIT"])
        click.echo(
            f"claimed={stats['claimed']} synchronized={stats['synchronized']} failed={stats['failed']}"
        )

    @app.cli.command("pending-count")
    def pending_count_cmd():
        """Print the number of warehouses awaiting synchronization."""
        from masterdata.services.sync_queue import count_pending

        click.echo(str(count_pending()))
