"""
Synchronization claim queue.

Workers pick pending warehouses (``is_synchronized = false``) one at a time.
The claim is the row lock taken by::

    SELECT … FROM warehouses
    WHERE is_synchronized = false
    ORDER BY warehouse_id LIMIT 1
    FOR UPDATE SKIP LOCKED

so concurrent workers never block on, nor receive, the same row. The lock
lasts until the caller's transaction commits or rolls back. Smallest id
first is a deterministic tie-break, not a fairness guarantee.

The queue only flips the synchronization columns; it never edits other
warehouse fields and never writes history.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import func, select, update

from masterdata.models import db
from masterdata.models.warehouse import SyncState, Warehouse

logger = logging.getLogger(__name__)


def claim_statement(exclude_ids: Iterable[int] = ()):
    """The locking SELECT used by ``try_claim_next``."""
    stmt = select(Warehouse).where(Warehouse.is_synchronized.is_(False))
    exclude_ids = list(exclude_ids)
    if exclude_ids:
        stmt = stmt.where(Warehouse.warehouse_id.not_in(exclude_ids))
    return (
        stmt.order_by(Warehouse.warehouse_id)
        .limit(1)
        .with_for_update(skip_locked=True)
        .execution_options(populate_existing=True)
    )


def try_claim_next(exclude_ids: Iterable[int] = ()) -> tuple[Warehouse, SyncState] | None:
    """Lock the next pending warehouse.

    Returns ``(warehouse, prior_state)``, where the prior state is ``NEVER``
    or ``OUTDATED``, or ``None`` when every pending row is taken or
    excluded. Never waits for another worker's lock.
    """
    warehouse = db.session.execute(claim_statement(exclude_ids)).scalar_one_or_none()
    if warehouse is None:
        return None
    state = warehouse.sync_state
    logger.debug(
        "Claimed warehouse for synchronization",
        extra={"warehouse_id": warehouse.warehouse_id, "sync_state": state.value},
    )
    return warehouse, state


def mark_synchronized(warehouse_id: int, external_id: int | None = None) -> int:
    """Flag the warehouse as synced now. A ``None`` external id keeps the stored one."""
    result = db.session.execute(
        update(Warehouse)
        .where(Warehouse.warehouse_id == warehouse_id)
        .values(
            is_synchronized=True,
            synchronized_at=datetime.now(timezone.utc),
            goodzon_id=func.coalesce(external_id, Warehouse.goodzon_id),
        )
        .execution_options(synchronize_session="fetch")
    )
    logger.info(
        "Warehouse marked synchronized",
        extra={"warehouse_id": warehouse_id, "goodzon_id": external_id},
    )
    return result.rowcount


def mark_needs_sync(warehouse_id: int) -> int:
    """Flag the warehouse as stale. Idempotent; ``synchronized_at`` is kept."""
    result = db.session.execute(
        update(Warehouse)
        .where(Warehouse.warehouse_id == warehouse_id)
        .values(is_synchronized=False)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount


def mark_not_synchronized(warehouse_ids: Iterable[int]) -> int:
    """Bulk variant of ``mark_needs_sync``. Empty input touches nothing."""
    warehouse_ids = list(warehouse_ids)
    if not warehouse_ids:
        return 0
    result = db.session.execute(
        update(Warehouse)
        .where(Warehouse.warehouse_id.in_(warehouse_ids))
        .values(is_synchronized=False)
        .execution_options(synchronize_session="fetch")
    )
    logger.info("Marked %d warehouse(s) for re-synchronization", result.rowcount)
    return result.rowcount


def count_pending() -> int:
    return db.session.execute(
        select(func.count()).select_from(Warehouse).where(Warehouse.is_synchronized.is_(False))
    ).scalar_one()
