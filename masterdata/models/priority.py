"""
Warehouse Master Data Service
Warehouse priority model.

One row says "region R is served by warehouse W with priority P". Owned by
the priority collaborator (``masterdata.services.priority_service``); the
master-data core only reads it (type-change guard) and triggers the
region priority sync.
"""

from datetime import datetime, timezone

from masterdata.models import db


class WarehousePriority(db.Model):
    __tablename__ = "warehouse_priorities"
    __table_args__ = (
        db.UniqueConstraint("region_id", "warehouse_id", name="uq_warehouse_priorities_region_wh"),
    )

    id = db.Column(db.Integer, primary_key=True)
    region_id = db.Column(
        db.BigInteger,
        db.ForeignKey("regions.region_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    warehouse_id = db.Column(
        db.BigInteger,
        db.ForeignKey("warehouses.warehouse_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    priority = db.Column(db.Integer, nullable=False, default=0)
    edited_by = db.Column(db.String(150), nullable=False, default="system")
    updated = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "region_id": self.region_id,
            "warehouse_id": self.warehouse_id,
            "priority": self.priority,
            "edited_by": self.edited_by,
            "updated": self.updated.isoformat() if self.updated else None,
        }

    def __repr__(self) -> str:
        return f"<WarehousePriority region={self.region_id} wh={self.warehouse_id} p={self.priority}>"
