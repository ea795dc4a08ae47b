"""
Warehouse service layer.

Orchestrates validation, the entity store, the claim queue and the
assignment manager for every warehouse operation. Each mutating function is
one ``transaction()``: the warehouse row, its history snapshot, the
optional home-region assignment and the synchronization flag commit or
roll back together.

Rules:
  - Validation runs against the current store state before any write.
  - Functions return serialized dicts; ORM objects never leave this module.
"""

import logging

from masterdata.core.exceptions import NotFoundError
from masterdata.models.warehouse import Warehouse, normalize_characteristics
from masterdata.services import (
    assignment_service,
    history,
    priority_service,
    sync_queue,
    validation,
    warehouse_store,
)
from masterdata.services.partial_update import merge_warehouse, should_resynchronize
from masterdata.services.transaction import transaction

logger = logging.getLogger(__name__)


def _known_type_ids() -> list[int]:
    return [t.type_id for t in warehouse_store.list_warehouse_types()]


# ── Create ────────────────────────────────────────────────────────────────────


def create_warehouse(data: dict, actor: str) -> dict:
    """Validate and insert a warehouse, optionally making it a region's home.

    Args:
        data:  warehouse_id, name, rezon_id, metazon_id, address, type_id,
               optional gln, characteristics, region_id, management_system,
               assignment, new_type.
        actor: Editor identity stamped on the row.

    Raises:
        ValidationError: Required field missing, duplicate id/name/rezon/metazon
            (first in that order), bad GLN, or a business rule broken.
        NotFoundError: ``region_id`` names an unknown region.
    """
    validation.check_required_warehouse_fields(data, _known_type_ids())
    characteristics = normalize_characteristics(data.get("characteristics"))
    region_id = data.get("region_id")
    validation.check_region_assignment(region_id, data["type_id"])
    validation.check_characteristics(characteristics, data["type_id"])

    conflicts = warehouse_store.find_conflicting_warehouses(
        data["warehouse_id"], data["name"], data["rezon_id"], data["metazon_id"]
    )
    validation.check_duplicates(data, conflicts)

    gln = None if validation.is_blank(data.get("gln")) else data["gln"].strip()
    if gln:
        validation.check_gln(
            gln,
            data["address"],
            warehouse_store.list_addresses_for_gln(data["warehouse_id"], gln),
        )

    warehouse = Warehouse(
        warehouse_id=data["warehouse_id"],
        name=data["name"],
        rezon_id=data["rezon_id"],
        metazon_id=data["metazon_id"],
        address=validation.collapse_whitespace(data["address"]),
        gln=gln,
        type_id=data["type_id"],
        characteristics=characteristics,
        management_system=data.get("management_system"),
        assignment=data.get("assignment"),
        new_type=bool(data.get("new_type", False)),
    )
    with transaction():
        warehouse_store.add_warehouse(warehouse, actor)
        if region_id is not None:
            assignment_service.upsert_home_warehouses([(region_id, warehouse.warehouse_id)], actor)
        result = warehouse.to_dict()
    return result


# ── Read ──────────────────────────────────────────────────────────────────────


def get_warehouse(warehouse_id: int) -> dict:
    return warehouse_store.get_warehouse(warehouse_id).to_dict()


def list_warehouses(
    warehouse_ids=(),
    type_ids=(),
    search_name: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[dict]:
    return [
        w.to_dict()
        for w in warehouse_store.iter_warehouses(
            warehouse_ids=warehouse_ids,
            type_ids=type_ids,
            search_name=search_name,
            limit=limit,
            offset=offset,
        )
    ]


def list_storage_warehouses() -> list[dict]:
    return [w.to_dict() for w in warehouse_store.iter_storage_warehouses()]


def list_warehouse_types() -> list[dict]:
    return [t.to_dict() for t in warehouse_store.list_warehouse_types()]


def list_sale_regions() -> list[dict]:
    return [
        {"warehouse_id": warehouse_id, "region_ids": region_ids}
        for warehouse_id, region_ids in priority_service.list_sale_regions().items()
    ]


def get_warehouse_history(warehouse_id: int) -> list[dict]:
    return [h.to_dict() for h in history.warehouse_history(warehouse_id)]


# ── Update ────────────────────────────────────────────────────────────────────


def update_warehouse(warehouse_id: int, data: dict, actor: str) -> dict:
    """Merge ``data`` onto the stored warehouse and persist it if anything changed.

    Omitted fields keep their stored value. When name, type, GLN, address
    or characteristics change, the warehouse becomes pending for
    synchronization. An update identical to the stored row writes nothing.

    Returns the warehouse dict plus ``changed_fields``.
    """
    validation.check_warehouse_field_types(data)
    stored = warehouse_store.get_warehouse(warehouse_id)

    name = stored.name if validation.is_blank(data.get("name")) else data["name"]
    validation.check_name_not_duplicated(
        name, warehouse_store.is_name_duplicated(warehouse_id, name)
    )
    validation.check_address(data.get("address", stored.address))

    merged = merge_warehouse(stored, data)
    if merged["type_id"] != stored.type_id:
        validation.check_type_id(merged["type_id"], _known_type_ids())
    # a kept GLN must still agree with a new address
    if merged["gln"] and (merged["gln"] != stored.gln or merged["address"] != stored.address):
        validation.check_gln(
            merged["gln"],
            merged["address"],
            warehouse_store.list_addresses_for_gln(warehouse_id, merged["gln"]),
        )
    region_id = data.get("region_id")
    validation.check_region_assignment(region_id, merged["type_id"])
    validation.check_characteristics(merged["characteristics"], merged["type_id"])
    validation.check_type_change(
        stored.type_id, merged["type_id"], priority_service.has_priorities(warehouse_id)
    )
    resync = should_resynchronize(stored, merged)

    with transaction():
        warehouse, changed = warehouse_store.update_warehouse(warehouse_id, merged, actor)
        if warehouse is None:
            raise NotFoundError(resource="Warehouse", resource_id=warehouse_id)
        if region_id is not None:
            assignment_service.upsert_home_warehouses([(region_id, warehouse_id)], actor)
        if resync and changed:
            sync_queue.mark_needs_sync(warehouse_id)
        result = warehouse.to_dict()
    result["changed_fields"] = changed
    return result


# ── Delete / synchronization ──────────────────────────────────────────────────


def delete_warehouses(warehouse_ids, actor: str) -> int:
    with transaction():
        deleted = warehouse_store.delete_warehouses(warehouse_ids)
    logger.info("Warehouse delete: %d row(s) removed", deleted, extra={"actor": actor})
    return deleted


def mark_not_synchronized(warehouse_ids) -> int:
    with transaction():
        return sync_queue.mark_not_synchronized(warehouse_ids)


def count_pending() -> int:
    return sync_queue.count_pending()
