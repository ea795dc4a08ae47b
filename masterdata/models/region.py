"""
Warehouse Master Data Service
Region domain models.

Models:
    - Region:               sales region; ``parent_id`` forms a tree (not enforced)
    - RegionHistory:        append-only shadow of previous region states
    - RegionHomeWarehouse:  region -> home warehouse assignment (one per region)

Architecture:
    Region ──N:1──▶ Region (parent, plain column, no FK)
    Region ──1:1──▶ Warehouse (via RegionHomeWarehouse, last writer wins)
"""

from datetime import datetime, timezone

from masterdata.models import db

# Field names a region update mask may contain.
REGION_UPDATABLE_FIELDS = frozenset({
    "name",
    "title",
    "cluster_id",
    "parent_id",
    "update_priorities_enabled",
})


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class Region(db.Model):
    """Live region row."""

    __tablename__ = "regions"

    region_id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    name = db.Column(db.String(255), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    parent_id = db.Column(db.BigInteger, nullable=True, index=True)
    cluster_id = db.Column(db.BigInteger, nullable=False, index=True)
    update_priorities_enabled = db.Column(db.Boolean, nullable=False, default=False)
    edited_by = db.Column(db.String(150), nullable=False, default="system")
    updated = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    sys_period_from = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> dict:
        return {
            "region_id": self.region_id,
            "name": self.name,
            "title": self.title,
            "parent_id": self.parent_id,
            "cluster_id": self.cluster_id,
            "update_priorities_enabled": self.update_priorities_enabled,
            "edited_by": self.edited_by,
            "updated": _iso(self.updated),
        }

    def __repr__(self) -> str:
        return f"<Region {self.region_id}: {self.name}>"


class RegionHistory(db.Model):
    """Snapshot of a region row taken right before it was updated or deleted."""

    __tablename__ = "regions_history"
    __table_args__ = (
        db.Index("idx_regions_history_region_period", "region_id", "sys_period_from"),
    )

    id = db.Column(db.Integer, primary_key=True)
    region_id = db.Column(db.BigInteger, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    parent_id = db.Column(db.BigInteger, nullable=True)
    cluster_id = db.Column(db.BigInteger, nullable=False)
    update_priorities_enabled = db.Column(db.Boolean, nullable=False)
    edited_by = db.Column(db.String(150), nullable=False)
    updated = db.Column(db.DateTime(timezone=True), nullable=False)
    sys_period_from = db.Column(db.DateTime(timezone=True), nullable=False)
    sys_period_to = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "region_id": self.region_id,
            "name": self.name,
            "title": self.title,
            "parent_id": self.parent_id,
            "cluster_id": self.cluster_id,
            "update_priorities_enabled": self.update_priorities_enabled,
            "edited_by": self.edited_by,
            "updated": _iso(self.updated),
            "sys_period_from": _iso(self.sys_period_from),
            "sys_period_to": _iso(self.sys_period_to),
        }


class RegionHomeWarehouse(db.Model):
    """Home warehouse of a region. Keyed by region, so at most one per region."""

    __tablename__ = "region_home_warehouses"

    region_id = db.Column(
        db.BigInteger,
        db.ForeignKey("regions.region_id", ondelete="CASCADE"),
        primary_key=True,
        autoincrement=False,
    )
    warehouse_id = db.Column(
        db.BigInteger,
        db.ForeignKey("warehouses.warehouse_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    edited_by = db.Column(db.String(150), nullable=False)
    updated = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> dict:
        return {
            "region_id": self.region_id,
            "warehouse_id": self.warehouse_id,
            "edited_by": self.edited_by,
            "updated": _iso(self.updated),
        }

    def __repr__(self) -> str:
        return f"<RegionHomeWarehouse region={self.region_id} warehouse={self.warehouse_id}>"
