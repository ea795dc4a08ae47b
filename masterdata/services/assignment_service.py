"""
Region ↔ home warehouse assignments.

A region has at most one home warehouse. ``upsert_home_warehouses`` runs an
``INSERT … ON CONFLICT (region_id) DO UPDATE`` per pair, so the last writer
wins. It never commits: warehouse create/update call it inside their own
transaction so the warehouse row and its initial region land together.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite

from masterdata.core.exceptions import NotFoundError
from masterdata.models import db
from masterdata.models.region import Region, RegionHomeWarehouse
from masterdata.models.warehouse import Warehouse

logger = logging.getLogger(__name__)

_DIALECT_INSERT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _upsert_statement(region_id: int, warehouse_id: int, actor: str, now: datetime):
    dialect = db.session.get_bind().dialect.name
    try:
        insert = _DIALECT_INSERT[dialect]
    except KeyError:
        raise NotImplementedError(f"Upsert is not supported on {dialect}") from None

    stmt = insert(RegionHomeWarehouse).values(
        region_id=region_id,
        warehouse_id=warehouse_id,
        edited_by=actor,
        updated=now,
    )
    return stmt.on_conflict_do_update(
        index_elements=[RegionHomeWarehouse.region_id],
        set_={
            "warehouse_id": stmt.excluded.warehouse_id,
            "edited_by": stmt.excluded.edited_by,
            "updated": stmt.excluded.updated,
        },
    )


def _require_existing(pairs: list[tuple[int, int]]) -> None:
    region_ids = {r for r, _ in pairs}
    warehouse_ids = {w for _, w in pairs}
    found_regions = set(db.session.execute(
        select(Region.region_id).where(Region.region_id.in_(region_ids))
    ).scalars())
    for region_id in sorted(region_ids - found_regions):
        raise NotFoundError(resource="Region", resource_id=region_id)
    found_warehouses = set(db.session.execute(
        select(Warehouse.warehouse_id).where(Warehouse.warehouse_id.in_(warehouse_ids))
    ).scalars())
    for warehouse_id in sorted(warehouse_ids - found_warehouses):
        raise NotFoundError(resource="Warehouse", resource_id=warehouse_id)


def upsert_home_warehouses(pairs: Iterable[tuple[int, int]], actor: str) -> int:
    """Assign each ``(region_id, warehouse_id)`` pair. Returns the number applied."""
    pairs = [(int(r), int(w)) for r, w in pairs]
    if not pairs:
        return 0
    _require_existing(pairs)

    now = datetime.now(timezone.utc)
    for region_id, warehouse_id in pairs:
        db.session.execute(_upsert_statement(region_id, warehouse_id, actor, now))
    # ORM objects loaded earlier in this session may hold the old warehouse_id
    db.session.expire_all()
    logger.info("Upserted %d home warehouse assignment(s)", len(pairs), extra={"actor": actor})
    return len(pairs)


def list_home_warehouses(region_ids: Iterable[int] = ()) -> list[RegionHomeWarehouse]:
    region_ids = list(region_ids)
    stmt = select(RegionHomeWarehouse)
    if region_ids:
        stmt = stmt.where(RegionHomeWarehouse.region_id.in_(region_ids))
    return list(db.session.execute(stmt.order_by(RegionHomeWarehouse.region_id)).scalars())
