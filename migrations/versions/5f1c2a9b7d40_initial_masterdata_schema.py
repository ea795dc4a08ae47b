"""initial_masterdata_schema

Creates the warehouse master-data tables:
  - warehouse_types          — fixed type catalog (seeded here)
  - warehouses               — live warehouse rows + synchronization columns
  - warehouses_history       — append-only snapshots with validity interval
  - regions / regions_history
  - region_home_warehouses   — one home warehouse per region
  - warehouse_priorities     — region → warehouse priority

Tables created conditionally (IF NOT EXISTS semantics) so the migration also
runs against a development database that already received them via
db.create_all().

Revision ID: 5f1c2a9b7d40
Revises:
Create Date: 2026-10-19 09:12:41.318207
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '5f1c2a9b7d40'
down_revision = None
branch_labels = None
depends_on = None

_WAREHOUSE_TYPES = [
    (1, "fulfillment", "Fulfillment center"),
    (2, "sorting_center", "Sorting center"),
    (3, "distribution_center", "Distribution center"),
    (4, "cross_dock", "Cross-dock"),
    (5, "express", "Express dark store"),
    (6, "auto_replenishment", "Auto-replenishment warehouse"),
    (7, "returns_center", "Returns center"),
]


def _snapshot_columns():
    return [
        sa.Column("sys_period_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sys_period_to", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── Warehouse types ───────────────────────────────────────────────────
    if "warehouse_types" not in existing:
        types = op.create_table(
            "warehouse_types",
            sa.Column("type_id", sa.Integer(), autoincrement=False, nullable=False),
            sa.Column("code", sa.String(length=50), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.PrimaryKeyConstraint("type_id"),
            sa.UniqueConstraint("code"),
        )
        op.bulk_insert(
            types,
            [{"type_id": t, "code": c, "name": n} for t, c, n in _WAREHOUSE_TYPES],
        )

    # ── Warehouses ────────────────────────────────────────────────────────
    if "warehouses" not in existing:
        op.create_table(
            "warehouses",
            sa.Column("warehouse_id", sa.BigInteger(), autoincrement=False, nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("rezon_id", sa.BigInteger(), nullable=False),
            sa.Column("metazon_id", sa.BigInteger(), nullable=False),
            sa.Column("address", sa.String(length=1000), nullable=False),
            sa.Column("gln", sa.String(length=13), nullable=True),
            sa.Column("type_id", sa.Integer(), nullable=False),
            sa.Column("characteristics", sa.JSON(), nullable=False),
            sa.Column("goodzon_id", sa.BigInteger(), nullable=True),
            sa.Column("is_synchronized", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("synchronized_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("management_system", sa.String(length=50), nullable=True),
            sa.Column("assignment", sa.String(length=50), nullable=True),
            sa.Column("new_type", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_by", sa.String(length=150), nullable=False),
            sa.Column("sys_period_from", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["type_id"], ["warehouse_types.type_id"]),
            sa.PrimaryKeyConstraint("warehouse_id"),
            sa.UniqueConstraint("name"),
            sa.UniqueConstraint("rezon_id"),
            sa.UniqueConstraint("metazon_id"),
        )
        op.create_index("ix_warehouses_gln", "warehouses", ["gln"])
        op.create_index("ix_warehouses_type_id", "warehouses", ["type_id"])
        op.create_index("ix_warehouses_is_synchronized", "warehouses", ["is_synchronized"])

    if "warehouses_history" not in existing:
        op.create_table(
            "warehouses_history",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("warehouse_id", sa.BigInteger(), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("rezon_id", sa.BigInteger(), nullable=False),
            sa.Column("metazon_id", sa.BigInteger(), nullable=False),
            sa.Column("address", sa.String(length=1000), nullable=False),
            sa.Column("gln", sa.String(length=13), nullable=True),
            sa.Column("type_id", sa.Integer(), nullable=False),
            sa.Column("characteristics", sa.JSON(), nullable=False),
            sa.Column("goodzon_id", sa.BigInteger(), nullable=True),
            sa.Column("created_by", sa.String(length=150), nullable=False),
            *_snapshot_columns(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "idx_warehouses_history_wh_period", "warehouses_history",
            ["warehouse_id", "sys_period_from"],
        )

    # ── Regions ───────────────────────────────────────────────────────────
    if "regions" not in existing:
        op.create_table(
            "regions",
            sa.Column("region_id", sa.BigInteger(), autoincrement=False, nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("title", sa.String(length=255), nullable=False),
            sa.Column("parent_id", sa.BigInteger(), nullable=True),
            sa.Column("cluster_id", sa.BigInteger(), nullable=False),
            sa.Column("update_priorities_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("edited_by", sa.String(length=150), nullable=False),
            sa.Column("updated", sa.DateTime(timezone=True), nullable=False),
            sa.Column("sys_period_from", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("region_id"),
        )
        op.create_index("ix_regions_parent_id", "regions", ["parent_id"])
        op.create_index("ix_regions_cluster_id", "regions", ["cluster_id"])

    if "regions_history" not in existing:
        op.create_table(
            "regions_history",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("region_id", sa.BigInteger(), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("title", sa.String(length=255), nullable=False),
            sa.Column("parent_id", sa.BigInteger(), nullable=True),
            sa.Column("cluster_id", sa.BigInteger(), nullable=False),
            sa.Column("update_priorities_enabled", sa.Boolean(), nullable=False),
            sa.Column("edited_by", sa.String(length=150), nullable=False),
            sa.Column("updated", sa.DateTime(timezone=True), nullable=False),
            *_snapshot_columns(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "idx_regions_history_region_period", "regions_history",
            ["region_id", "sys_period_from"],
        )

    # ── Assignments / priorities ──────────────────────────────────────────
    if "region_home_warehouses" not in existing:
        op.create_table(
            "region_home_warehouses",
            sa.Column("region_id", sa.BigInteger(), autoincrement=False, nullable=False),
            sa.Column("warehouse_id", sa.BigInteger(), nullable=False),
            sa.Column("edited_by", sa.String(length=150), nullable=False),
            sa.Column("updated", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["region_id"], ["regions.region_id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.warehouse_id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("region_id"),
        )
        op.create_index(
            "ix_region_home_warehouses_warehouse_id", "region_home_warehouses", ["warehouse_id"],
        )

    if "warehouse_priorities" not in existing:
        op.create_table(
            "warehouse_priorities",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("region_id", sa.BigInteger(), nullable=False),
            sa.Column("warehouse_id", sa.BigInteger(), nullable=False),
            sa.Column("priority", sa.Integer(), nullable=False),
            sa.Column("edited_by", sa.String(length=150), nullable=False),
            sa.Column("updated", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["region_id"], ["regions.region_id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.warehouse_id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("region_id", "warehouse_id", name="uq_warehouse_priorities_region_wh"),
        )
        op.create_index("ix_warehouse_priorities_region_id", "warehouse_priorities", ["region_id"])
        op.create_index("ix_warehouse_priorities_warehouse_id", "warehouse_priorities", ["warehouse_id"])


def downgrade():
    op.drop_table("warehouse_priorities")
    op.drop_table("region_home_warehouses")
    op.drop_table("regions_history")
    op.drop_table("regions")
    op.drop_table("warehouses_history")
    op.drop_table("warehouses")
    op.drop_table("warehouse_types")
