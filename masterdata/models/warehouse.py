"""
Warehouse Master Data Service
Warehouse domain models.

Models:
    - WarehouseType:     fixed catalog of warehouse types (seeded, read-only)
    - Warehouse:         live warehouse row incl. synchronization columns
    - WarehouseHistory:  append-only shadow of previous warehouse states

Synchronization state is never stored as an enum. It is derived from the
``is_synchronized`` / ``synchronized_at`` pair by ``synchronization_state()``.

History rows carry the validity interval ``[sys_period_from, sys_period_to)``
of the state they captured.
"""

import enum
from datetime import datetime, timezone

from masterdata.models import db

# ── Constants ─────────────────────────────────────────────────────────────────

CHARACTERISTIC_FLAGS = (
    "barcode_only",
    "wms_system",
    "transit_warehouse",
    "refund_warehouse",
    "auto_replenishment",
    "closed",
)

# Not settable through the regular update path; always carried over from storage.
PROTECTED_CHARACTERISTIC_FLAGS = ("auto_replenishment", "closed")

# Fields whose change makes the stored row stale for the external system.
TRACKED_FIELDS = ("name", "type_id", "gln", "address", "characteristics")


class WarehouseTypes(enum.IntEnum):
    FULFILLMENT = 1
    SORTING_CENTER = 2
    DISTRIBUTION_CENTER = 3
    CROSS_DOCK = 4
    EXPRESS = 5
    AUTO_REPLENISHMENT = 6
    RETURNS_CENTER = 7


STORAGE_WAREHOUSE_TYPES = frozenset({
    WarehouseTypes.FULFILLMENT,
    WarehouseTypes.DISTRIBUTION_CENTER,
    WarehouseTypes.EXPRESS,
})

DEFAULT_WAREHOUSE_TYPES = [
    {"type_id": WarehouseTypes.FULFILLMENT, "code": "fulfillment", "name": "Fulfillment center"},
    {"type_id": WarehouseTypes.SORTING_CENTER, "code": "sorting_center", "name": "Sorting center"},
    {"type_id": WarehouseTypes.DISTRIBUTION_CENTER, "code": "distribution_center",
     "name": "Distribution center"},
    {"type_id": WarehouseTypes.CROSS_DOCK, "code": "cross_dock", "name": "Cross-dock"},
    {"type_id": WarehouseTypes.EXPRESS, "code": "express", "name": "Express dark store"},
    {"type_id": WarehouseTypes.AUTO_REPLENISHMENT, "code": "auto_replenishment",
     "name": "Auto-replenishment warehouse"},
    {"type_id": WarehouseTypes.RETURNS_CENTER, "code": "returns_center", "name": "Returns center"},
]


class SyncState(str, enum.Enum):
    """Synchronization state of a warehouse towards the external system."""
    NEVER = "never"
    OUTDATED = "outdated"
    SYNCED = "synced"


def synchronization_state(is_synchronized: bool, synchronized_at: datetime | None) -> SyncState:
    """Derive the state from the two persisted columns."""
    if is_synchronized:
        return SyncState.SYNCED
    if synchronized_at is None:
        return SyncState.NEVER
    return SyncState.OUTDATED


def normalize_characteristics(raw: dict | None) -> dict:
    """Return a dict holding exactly the known flags, each coerced to bool."""
    raw = raw or {}
    return {flag: bool(raw.get(flag, False)) for flag in CHARACTERISTIC_FLAGS}


def changed_tracked_fields(stored, values: dict) -> list[str]:
    """Names of tracked fields whose value in ``values`` differs from ``stored``.

    ``stored`` is a Warehouse row; fields missing from ``values`` count as
    unchanged. Characteristics are compared flag by flag after normalisation.
    """
    changed = []
    for field in TRACKED_FIELDS:
        if field not in values:
            continue
        new, old = values[field], getattr(stored, field)
        if field == "characteristics":
            new, old = normalize_characteristics(new), normalize_characteristics(old)
        elif field == "gln":
            new, old = new or None, old or None
        if new != old:
            changed.append(field)
    return changed


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ═════════════════════════════════════════════════════════════════════════════
# WarehouseType
# ═════════════════════════════════════════════════════════════════════════════


class WarehouseType(db.Model):
    """Catalog entry a warehouse's ``type_id`` points to."""

    __tablename__ = "warehouse_types"

    type_id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    code = db.Column(db.String(50), nullable=False, unique=True)
    name = db.Column(db.String(100), nullable=False)

    @property
    def is_storage(self) -> bool:
        return self.type_id in STORAGE_WAREHOUSE_TYPES

    def to_dict(self) -> dict:
        return {
            "type_id": self.type_id,
            "code": self.code,
            "name": self.name,
            "is_storage": self.is_storage,
        }

    def __repr__(self) -> str:
        return f"<WarehouseType {self.type_id}: {self.code}>"


# ═════════════════════════════════════════════════════════════════════════════
# Warehouse
# ═════════════════════════════════════════════════════════════════════════════


class Warehouse(db.Model):
    """
    Live warehouse master record.

    ``warehouse_id`` is assigned by the caller (clearing id), not generated.
    ``goodzon_id`` is the identity the external master-data system returns
    after the first successful synchronization.
    """

    __tablename__ = "warehouses"

    warehouse_id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    name = db.Column(db.String(255), nullable=False, unique=True)
    rezon_id = db.Column(db.BigInteger, nullable=False, unique=True)
    metazon_id = db.Column(db.BigInteger, nullable=False, unique=True)
    address = db.Column(db.String(1000), nullable=False)
    gln = db.Column(db.String(13), nullable=True, index=True)
    type_id = db.Column(
        db.Integer,
        db.ForeignKey("warehouse_types.type_id"),
        nullable=False,
        index=True,
    )
    characteristics = db.Column(db.JSON, nullable=False, default=lambda: normalize_characteristics(None))
    goodzon_id = db.Column(db.BigInteger, nullable=True)

    # Synchronization columns (state is derived, see synchronization_state)
    is_synchronized = db.Column(db.Boolean, nullable=False, default=False, index=True)
    synchronized_at = db.Column(db.DateTime(timezone=True), nullable=True)

    management_system = db.Column(db.String(50), nullable=True)
    assignment = db.Column(db.String(50), nullable=True)
    new_type = db.Column(db.Boolean, nullable=False, default=False)

    created_by = db.Column(db.String(150), nullable=False, default="system")
    sys_period_from = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    warehouse_type = db.relationship("WarehouseType")

    @property
    def sync_state(self) -> SyncState:
        return synchronization_state(self.is_synchronized, self.synchronized_at)

    def to_dict(self) -> dict:
        return {
            "warehouse_id": self.warehouse_id,
            "name": self.name,
            "rezon_id": self.rezon_id,
            "metazon_id": self.metazon_id,
            "address": self.address,
            "gln": self.gln,
            "type_id": self.type_id,
            "characteristics": normalize_characteristics(self.characteristics),
            "goodzon_id": self.goodzon_id,
            "is_synchronized": self.is_synchronized,
            "synchronized_at": _iso(self.synchronized_at),
            "sync_state": self.sync_state.value,
            "management_system": self.management_system,
            "assignment": self.assignment,
            "new_type": self.new_type,
            "created_by": self.created_by,
            "sys_period_from": _iso(self.sys_period_from),
        }

    def __repr__(self) -> str:
        return f"<Warehouse {self.warehouse_id}: {self.name}>"


class WarehouseHistory(db.Model):
    """Append-only snapshot of a warehouse row as it was before a mutation."""

    __tablename__ = "warehouses_history"
    __table_args__ = (
        db.Index("idx_warehouses_history_wh_period", "warehouse_id", "sys_period_from"),
    )

    id = db.Column(db.Integer, primary_key=True)
    warehouse_id = db.Column(db.BigInteger, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    rezon_id = db.Column(db.BigInteger, nullable=False)
    metazon_id = db.Column(db.BigInteger, nullable=False)
    address = db.Column(db.String(1000), nullable=False)
    gln = db.Column(db.String(13), nullable=True)
    type_id = db.Column(db.Integer, nullable=False)
    characteristics = db.Column(db.JSON, nullable=False)
    goodzon_id = db.Column(db.BigInteger, nullable=True)
    created_by = db.Column(db.String(150), nullable=False)
    sys_period_from = db.Column(db.DateTime(timezone=True), nullable=False)
    sys_period_to = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "warehouse_id": self.warehouse_id,
            "name": self.name,
            "rezon_id": self.rezon_id,
            "metazon_id": self.metazon_id,
            "address": self.address,
            "gln": self.gln,
            "type_id": self.type_id,
            "characteristics": self.characteristics,
            "goodzon_id": self.goodzon_id,
            "created_by": self.created_by,
            "sys_period_from": _iso(self.sys_period_from),
            "sys_period_to": _iso(self.sys_period_to),
        }

    def __repr__(self) -> str:
        return f"<WarehouseHistory {self.warehouse_id} until {self.sys_period_to}>"
