"""
Shared pytest fixtures for the warehouse master-data test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate + type seed (autouse)
    - client: Flask test client (function-scoped)
    - make_warehouse / make_region: factories going through the service layer
"""

import pytest

from masterdata import create_app
from masterdata.models import db as _db
from masterdata.services import region_service, warehouse_service
from masterdata.services.transaction import transaction
from masterdata.services.warehouse_store import seed_warehouse_types

ACTOR = "tester"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, seed the type catalog, recreate tables after."""
    with app.app_context():
        with transaction():
            seed_warehouse_types()
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


def _warehouse_payload(**overrides) -> dict:
    data = {
        "warehouse_id": 1,
        "name": "A",
        "rezon_id": 10,
        "metazon_id": 100,
        "address": "Moscow, Lenina st. 1",
        "type_id": 1,
        "characteristics": {"barcode_only": False, "wms_system": True},
    }
    data.update(overrides)
    return data


def _region_payload(**overrides) -> dict:
    data = {
        "region_id": 100,
        "name": "msk",
        "title": "Moscow",
        "cluster_id": 1,
        "parent_id": None,
        "update_priorities_enabled": False,
    }
    data.update(overrides)
    return data


@pytest.fixture()
def warehouse_data():
    """Builder for a valid warehouse create payload."""
    return _warehouse_payload


@pytest.fixture()
def region_data():
    """Builder for a valid region create payload."""
    return _region_payload


@pytest.fixture()
def make_warehouse():
    """Create a warehouse through the service and return its dict."""
    def _make(**overrides):
        return warehouse_service.create_warehouse(_warehouse_payload(**overrides), ACTOR)
    return _make


@pytest.fixture()
def make_region():
    """Create a region through the service and return its dict."""
    def _make(**overrides):
        return region_service.create_region(_region_payload(**overrides), ACTOR)
    return _make
