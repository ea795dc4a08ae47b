"""
Region entity store.

Same contract as ``warehouse_store``: flush only, the caller commits.
Unlike warehouses, a region update always writes a history row: the editor
stamp (``edited_by`` / ``updated``) changes on every update.
"""

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone

from sqlalchemy import select

from masterdata.core.exceptions import NotFoundError
from masterdata.models import db
from masterdata.models.region import REGION_UPDATABLE_FIELDS, Region, RegionHomeWarehouse
from masterdata.services.history import snapshot_region

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def add_region(region: Region, edited_by: str) -> Region:
    now = _utcnow()
    region.edited_by = edited_by
    region.updated = now
    region.sys_period_from = now
    if region.update_priorities_enabled is None:
        region.update_priorities_enabled = False
    db.session.add(region)
    db.session.flush()
    logger.info("Region added", extra={"region_id": region.region_id, "actor": edited_by})
    return region


def iter_regions(region_ids: Iterable[int] = ()) -> Iterator[Region]:
    """Yield regions ordered by id. Empty ``region_ids`` means all regions."""
    region_ids = list(region_ids)
    stmt = select(Region)
    if region_ids:
        stmt = stmt.where(Region.region_id.in_(region_ids))
    yield from db.session.execute(stmt.order_by(Region.region_id)).scalars()


def iter_regions_by_clusters(cluster_ids: Iterable[int]) -> Iterator[Region]:
    stmt = (
        select(Region)
        .where(Region.cluster_id.in_(list(cluster_ids)))
        .order_by(Region.region_id)
    )
    yield from db.session.execute(stmt).scalars()


def iter_regions_by_warehouses(warehouse_ids: Iterable[int]) -> Iterator[Region]:
    """Regions whose home warehouse is one of ``warehouse_ids``, ordered by title."""
    stmt = (
        select(Region)
        .join(RegionHomeWarehouse, RegionHomeWarehouse.region_id == Region.region_id)
        .where(RegionHomeWarehouse.warehouse_id.in_(list(warehouse_ids)))
        .order_by(Region.title, Region.region_id)
    )
    yield from db.session.execute(stmt).scalars()


def get_region(region_id: int, for_update: bool = False) -> Region:
    stmt = select(Region).where(Region.region_id == region_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    region = db.session.execute(stmt).scalar_one_or_none()
    if region is None:
        raise NotFoundError(resource="Region", resource_id=region_id)
    return region


def update_region(region: Region, values: dict, edited_by: str) -> Region:
    """Snapshot ``region`` then apply ``values`` (already merged) to it."""
    now = _utcnow()
    snapshot_region(region, closed_at=now)
    for field in REGION_UPDATABLE_FIELDS:
        if field in values:
            setattr(region, field, values[field])
    region.edited_by = edited_by
    region.updated = now
    region.sys_period_from = now
    db.session.flush()
    logger.info("Region updated", extra={"region_id": region.region_id, "actor": edited_by})
    return region


def delete_regions(region_ids: Iterable[int]) -> int:
    """Snapshot and delete regions. Missing ids are ignored; empty input deletes nothing."""
    region_ids = list(region_ids)
    if not region_ids:
        return 0

    rows = db.session.execute(
        select(Region)
        .where(Region.region_id.in_(region_ids))
        .order_by(Region.region_id)
        .with_for_update()
    ).scalars().all()

    now = _utcnow()
    for region in rows:
        snapshot_region(region, closed_at=now)
        db.session.delete(region)
    db.session.flush()
    if rows:
        logger.info("Deleted %d region(s): %s", len(rows), [r.region_id for r in rows])
    return len(rows)
