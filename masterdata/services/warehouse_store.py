"""
Warehouse entity store.

All ORM access to ``warehouses`` / ``warehouse_types`` lives here. Functions
``flush`` but never commit: the calling service wraps them in
``transaction()`` so compound operations commit or roll back as one unit.

Functions:
    - add_warehouse:                Insert a new warehouse (state: never synchronized)
    - iter_warehouses:              Lazy, name-ordered read with id/type/name filters
    - iter_storage_warehouses:      Warehouses of storage types
    - get_warehouse:                Single required read (NotFoundError)
    - update_warehouse:             Conditional update + history snapshot
    - delete_warehouses:            History snapshot + delete
    - find_conflicting_warehouses:  Rows sharing id OR name OR rezon OR metazon
    - is_name_duplicated:           Another warehouse already holds the name
    - list_addresses_for_gln:       Addresses of *other* warehouses with a GLN
    - list_warehouse_types / get_warehouse_type / seed_warehouse_types
"""

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone

from sqlalchemy import func, or_, select

from masterdata.core.exceptions import NotFoundError
from masterdata.models import db
from masterdata.models.warehouse import (
    DEFAULT_WAREHOUSE_TYPES,
    STORAGE_WAREHOUSE_TYPES,
    TRACKED_FIELDS,
    Warehouse,
    WarehouseType,
    changed_tracked_fields,
    normalize_characteristics,
)
from masterdata.services.history import snapshot_warehouse

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Create ────────────────────────────────────────────────────────────────────


def add_warehouse(warehouse: Warehouse, created_by: str) -> Warehouse:
    """Insert ``warehouse``. The new row starts out never synchronized."""
    warehouse.created_by = created_by
    warehouse.characteristics = normalize_characteristics(warehouse.characteristics)
    warehouse.is_synchronized = False
    warehouse.synchronized_at = None
    warehouse.sys_period_from = _utcnow()
    db.session.add(warehouse)
    db.session.flush()
    logger.info(
        "Warehouse added",
        extra={"warehouse_id": warehouse.warehouse_id, "actor": created_by},
    )
    return warehouse


# ── Read ──────────────────────────────────────────────────────────────────────


def iter_warehouses(
    warehouse_ids: Iterable[int] = (),
    type_ids: Iterable[int] = (),
    search_name: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> Iterator[Warehouse]:
    """Yield warehouses ordered by name.

    Empty ``warehouse_ids`` / ``type_ids`` mean "no filter". ``search_name``
    matches a case-insensitive substring of the trimmed name.
    """
    warehouse_ids = list(warehouse_ids)
    type_ids = list(type_ids)

    stmt = select(Warehouse)
    if warehouse_ids:
        stmt = stmt.where(Warehouse.warehouse_id.in_(warehouse_ids))
    if type_ids:
        stmt = stmt.where(Warehouse.type_id.in_(type_ids))
    if search_name and search_name.strip():
        pattern = f"%{search_name.strip().lower()}%"
        stmt = stmt.where(func.lower(func.trim(Warehouse.name)).like(pattern))
    stmt = stmt.order_by(Warehouse.name, Warehouse.warehouse_id)
    if limit is not None:
        stmt = stmt.limit(limit)
    if offset:
        stmt = stmt.offset(offset)

    yield from db.session.execute(stmt).scalars()


def iter_storage_warehouses() -> Iterator[Warehouse]:
    return iter_warehouses(type_ids=sorted(STORAGE_WAREHOUSE_TYPES))


def get_warehouse(warehouse_id: int) -> Warehouse:
    """Return the warehouse or raise NotFoundError."""
    warehouse = db.session.get(Warehouse, warehouse_id)
    if warehouse is None:
        raise NotFoundError(resource="Warehouse", resource_id=warehouse_id)
    return warehouse


# ── Update / delete ───────────────────────────────────────────────────────────


def update_warehouse(
    warehouse_id: int, values: dict, updated_by: str
) -> tuple[Warehouse | None, list[str]]:
    """Apply tracked-field ``values`` to the warehouse, conditionally.

    The row is locked (``SELECT … FOR UPDATE``) and compared field by field.
    Only if at least one tracked field differs is the current state copied to
    history and the new values written. An identical update writes nothing.

    Returns:
        ``(warehouse, changed_fields)``; ``(None, [])`` when the id does not
        exist (silent no-op, zero rows affected).
    """
    warehouse = db.session.execute(
        select(Warehouse)
        .where(Warehouse.warehouse_id == warehouse_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if warehouse is None:
        return None, []

    changed = changed_tracked_fields(warehouse, values)
    if not changed:
        logger.debug("Warehouse %s unchanged, update skipped", warehouse_id)
        return warehouse, []

    now = _utcnow()
    snapshot_warehouse(warehouse, closed_at=now)
    for field in TRACKED_FIELDS:
        if field in values:
            setattr(warehouse, field, values[field])
    warehouse.characteristics = normalize_characteristics(warehouse.characteristics)
    warehouse.created_by = updated_by
    warehouse.sys_period_from = now
    db.session.flush()
    logger.info(
        "Warehouse updated: %s",
        ", ".join(changed),
        extra={"warehouse_id": warehouse_id, "actor": updated_by},
    )
    return warehouse, changed


def delete_warehouses(warehouse_ids: Iterable[int]) -> int:
    """Snapshot and delete the given warehouses. Returns the number deleted.

    An empty id list deletes nothing. Assignments and priorities referencing
    the warehouse are removed by ``ON DELETE CASCADE``.
    """
    warehouse_ids = list(warehouse_ids)
    if not warehouse_ids:
        return 0

    rows = db.session.execute(
        select(Warehouse)
        .where(Warehouse.warehouse_id.in_(warehouse_ids))
        .order_by(Warehouse.warehouse_id)
        .with_for_update()
    ).scalars().all()

    now = _utcnow()
    for warehouse in rows:
        snapshot_warehouse(warehouse, closed_at=now)
        db.session.delete(warehouse)
    db.session.flush()
    if rows:
        logger.info("Deleted %d warehouse(s): %s", len(rows), [w.warehouse_id for w in rows])
    return len(rows)


# ── Validation lookups ────────────────────────────────────────────────────────


def find_conflicting_warehouses(
    warehouse_id: int, name: str, rezon_id: int, metazon_id: int
) -> list[Warehouse]:
    """Warehouses sharing the id, the name, the RezonId or the MetazonId."""
    stmt = select(Warehouse).where(
        or_(
            Warehouse.warehouse_id == warehouse_id,
            Warehouse.name == name,
            Warehouse.rezon_id == rezon_id,
            Warehouse.metazon_id == metazon_id,
        )
    ).order_by(Warehouse.warehouse_id)
    return list(db.session.execute(stmt).scalars())


def is_name_duplicated(warehouse_id: int, name: str) -> bool:
    stmt = (
        select(Warehouse.warehouse_id)
        .where(Warehouse.warehouse_id != warehouse_id, Warehouse.name == name)
        .limit(1)
    )
    return db.session.execute(stmt).scalar_one_or_none() is not None


def list_addresses_for_gln(warehouse_id: int, gln: str) -> list[tuple[int, str]]:
    """``(warehouse_id, address)`` of every other warehouse using ``gln``."""
    stmt = (
        select(Warehouse.warehouse_id, Warehouse.address)
        .where(Warehouse.warehouse_id != warehouse_id, Warehouse.gln == gln)
        .order_by(Warehouse.warehouse_id)
    )
    return [(row.warehouse_id, row.address) for row in db.session.execute(stmt)]


# ── Type catalog ──────────────────────────────────────────────────────────────


def list_warehouse_types() -> list[WarehouseType]:
    return list(db.session.execute(select(WarehouseType).order_by(WarehouseType.type_id)).scalars())


def get_warehouse_type(type_id: int) -> WarehouseType | None:
    return db.session.get(WarehouseType, type_id)


def seed_warehouse_types() -> int:
    """Insert missing catalog entries. Returns how many were created."""
    created = 0
    for entry in DEFAULT_WAREHOUSE_TYPES:
        if db.session.get(WarehouseType, int(entry["type_id"])) is None:
            db.session.add(WarehouseType(
                type_id=int(entry["type_id"]),
                code=entry["code"],
                name=entry["name"],
            ))
            created += 1
    if created:
        db.session.flush()
        logger.info("Seeded %d warehouse type(s)", created)
    return created
