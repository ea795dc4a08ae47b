"""
Region → warehouse priorities.

The master-data core uses this module through three calls:
    - list_priorities:         type-change guard on warehouse update
    - sync_region_priorities:  cascade when a region enables priority updates
    - list_sale_regions:       warehouses with the regions they sell to

Nothing here commits; callers run inside ``transaction()``.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import delete, or_, select

from masterdata.core.exceptions import NotFoundError
from masterdata.models import db
from masterdata.models.priority import WarehousePriority
from masterdata.models.region import Region

logger = logging.getLogger(__name__)


def list_priorities(
    region_ids: Iterable[int] = (), warehouse_ids: Iterable[int] = ()
) -> list[WarehousePriority]:
    """Priorities filtered by region and/or warehouse; an empty filter means all."""
    region_ids = list(region_ids)
    warehouse_ids = list(warehouse_ids)
    stmt = select(WarehousePriority)
    if region_ids:
        stmt = stmt.where(WarehousePriority.region_id.in_(region_ids))
    if warehouse_ids:
        stmt = stmt.where(WarehousePriority.warehouse_id.in_(warehouse_ids))
    stmt = stmt.order_by(WarehousePriority.region_id, WarehousePriority.priority, WarehousePriority.warehouse_id)
    return list(db.session.execute(stmt).scalars())


def has_priorities(warehouse_id: int) -> bool:
    stmt = select(WarehousePriority.id).where(WarehousePriority.warehouse_id == warehouse_id).limit(1)
    return db.session.execute(stmt).scalar_one_or_none() is not None


def set_priority(region_id: int, warehouse_id: int, priority: int, actor: str) -> WarehousePriority:
    """Create or overwrite the priority of ``warehouse_id`` for ``region_id``."""
    row = db.session.execute(
        select(WarehousePriority).where(
            WarehousePriority.region_id == region_id,
            WarehousePriority.warehouse_id == warehouse_id,
        )
    ).scalar_one_or_none()
    if row is None:
        row = WarehousePriority(region_id=region_id, warehouse_id=warehouse_id)
        db.session.add(row)
    row.priority = priority
    row.edited_by = actor
    row.updated = datetime.now(timezone.utc)
    db.session.flush()
    return row


def sync_region_priorities(region_id: int, actor: str) -> int:
    """Replace the region's priorities with a copy of its parent's.

    A region without a parent keeps its priorities untouched. Returns the
    number of rows copied.
    """
    region = db.session.get(Region, region_id)
    if region is None:
        raise NotFoundError(resource="Region", resource_id=region_id)
    if region.parent_id is None:
        logger.debug("Region %s has no parent, priority sync skipped", region_id)
        return 0

    parent_rows = list_priorities(region_ids=[region.parent_id])
    db.session.execute(
        delete(WarehousePriority)
        .where(WarehousePriority.region_id == region_id)
        .execution_options(synchronize_session="fetch")
    )
    now = datetime.now(timezone.utc)
    for row in parent_rows:
        db.session.add(WarehousePriority(
            region_id=region_id,
            warehouse_id=row.warehouse_id,
            priority=row.priority,
            edited_by=actor,
            updated=now,
        ))
    db.session.flush()
    logger.info(
        "Synced %d priorities from parent region %s",
        len(parent_rows),
        region.parent_id,
        extra={"region_id": region_id, "actor": actor},
    )
    return len(parent_rows)


def list_sale_regions() -> dict[int, list[int]]:
    """``{warehouse_id: [region_id, ...]}`` for every prioritised warehouse.

    A region sells from a warehouse when the warehouse has a priority on the
    region itself or on the region's parent.
    """
    stmt = (
        select(WarehousePriority.warehouse_id, Region.region_id)
        .join(
            Region,
            or_(
                WarehousePriority.region_id == Region.region_id,
                WarehousePriority.region_id == Region.parent_id,
            ),
        )
        .order_by(WarehousePriority.warehouse_id, Region.region_id)
    )
    result: dict[int, list[int]] = defaultdict(list)
    for warehouse_id, region_id in db.session.execute(stmt):
        if region_id not in result[warehouse_id]:
            result[warehouse_id].append(region_id)
    return dict(result)
