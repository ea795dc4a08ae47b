"""
History-table writer.

Every update or delete of a live warehouse/region row first appends the
row's current state to its ``*_history`` table, inside the same transaction,
with the validity interval ``[row.sys_period_from, closed_at)``. History rows
are never updated or deleted.

Uses ``add`` only so callers keep transaction control.
"""

from datetime import datetime

from masterdata.models import db
from masterdata.models.region import Region, RegionHistory
from masterdata.models.warehouse import Warehouse, WarehouseHistory

_WAREHOUSE_COLUMNS = (
    "warehouse_id",
    "name",
    "rezon_id",
    "metazon_id",
    "address",
    "gln",
    "type_id",
    "characteristics",
    "goodzon_id",
    "created_by",
    "sys_period_from",
)

_REGION_COLUMNS = (
    "region_id",
    "name",
    "title",
    "parent_id",
    "cluster_id",
    "update_priorities_enabled",
    "edited_by",
    "updated",
    "sys_period_from",
)


def snapshot_warehouse(warehouse: Warehouse, closed_at: datetime) -> WarehouseHistory:
    entry = WarehouseHistory(
        sys_period_to=closed_at,
        **{col: getattr(warehouse, col) for col in _WAREHOUSE_COLUMNS},
    )
    # JSON column: store a detached copy, not the live row's dict
    entry.characteristics = dict(warehouse.characteristics or {})
    db.session.add(entry)
    return entry


def snapshot_region(region: Region, closed_at: datetime) -> RegionHistory:
    entry = RegionHistory(
        sys_period_to=closed_at,
        **{col: getattr(region, col) for col in _REGION_COLUMNS},
    )
    db.session.add(entry)
    return entry


def warehouse_history(warehouse_id: int) -> list[WarehouseHistory]:
    """All snapshots of one warehouse, oldest first."""
    return list(
        db.session.execute(
            db.select(WarehouseHistory)
            .where(WarehouseHistory.warehouse_id == warehouse_id)
            .order_by(WarehouseHistory.sys_period_to, WarehouseHistory.id)
        ).scalars()
    )


def region_history(region_id: int) -> list[RegionHistory]:
    """All snapshots of one region, oldest first."""
    return list(
        db.session.execute(
            db.select(RegionHistory)
            .where(RegionHistory.region_id == region_id)
            .order_by(RegionHistory.sys_period_to, RegionHistory.id)
        ).scalars()
    )
