"""
Transaction boundary helper.

Store functions only ``flush``; the service-level operation that composes
them owns the single commit. ``transaction()`` commits on success and rolls
back on *any* ``BaseException``: validation failures, database errors, and
also cancellation (KeyboardInterrupt, SystemExit, GeneratorExit). A rollback
releases every row lock the transaction held, including a sync claim.

Usage:
    with transaction():
        warehouse_store.add_warehouse(warehouse, actor)
        assignment_service.upsert_home_warehouses(pairs, actor)
"""

import logging
from contextlib import contextmanager

from masterdata.models import db

logger = logging.getLogger(__name__)


@contextmanager
def transaction():
    try:
        yield db.session
        db.session.commit()
    except BaseException as exc:
        db.session.rollback()
        logger.debug("Transaction rolled back: %s", exc.__class__.__name__)
        raise
