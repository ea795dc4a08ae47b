"""
Region service layer.

Region create / field-mask update / delete and home-warehouse assignment.
A region update and the priority sync it may trigger run in one
transaction: when the sync fails the region update is rolled back too.
"""

import logging

from masterdata.core.exceptions import ValidationError
from masterdata.models import db
from masterdata.models.region import Region
from masterdata.services import assignment_service, history, priority_service, region_store, validation
from masterdata.services.partial_update import merge_region, priorities_enabled
from masterdata.services.transaction import transaction

logger = logging.getLogger(__name__)


def create_region(data: dict, actor: str) -> dict:
    validation.check_region_candidate(data)
    if db.session.get(Region, data["region_id"]) is not None:
        raise ValidationError(
            f"A region with id {data['region_id']} already exists",
            details={"field": "region_id", "value": data["region_id"]},
        )
    region = Region(
        region_id=data["region_id"],
        name=data["name"],
        title=data["title"],
        parent_id=data.get("parent_id"),
        cluster_id=data["cluster_id"],
        update_priorities_enabled=bool(data.get("update_priorities_enabled", False)),
    )
    with transaction():
        region_store.add_region(region, actor)
        result = region.to_dict()
    return result


def list_regions(region_ids=(), cluster_ids=(), warehouse_ids=()) -> list[dict]:
    """Regions by home-warehouse ids, else by cluster ids, else by region ids."""
    warehouse_ids = list(warehouse_ids)
    cluster_ids = list(cluster_ids)
    if warehouse_ids:
        regions = region_store.iter_regions_by_warehouses(warehouse_ids)
    elif cluster_ids:
        regions = region_store.iter_regions_by_clusters(cluster_ids)
    else:
        regions = region_store.iter_regions(region_ids)
    return [r.to_dict() for r in regions]


def get_region(region_id: int) -> dict:
    return region_store.get_region(region_id).to_dict()


def update_region(region_id: int, changes: dict, update_mask, actor: str) -> dict:
    """Apply the masked fields of ``changes`` to the region.

    Fields outside ``update_mask`` are ignored. Turning
    ``update_priorities_enabled`` on copies the parent's priorities to the
    region before the transaction commits.

    Raises:
        ValidationError: ``update_mask`` names an unknown field.
        NotFoundError:   No region with ``region_id``.
    """
    validation.check_update_mask(update_mask)
    with transaction():
        stored = region_store.get_region(region_id, for_update=True)
        was_enabled = stored.update_priorities_enabled
        merged = merge_region(stored, changes, update_mask)
        cascade = priorities_enabled(stored, merged)
        region = region_store.update_region(stored, merged, actor)
        synced = None
        if cascade:
            synced = priority_service.sync_region_priorities(region_id, actor)
        result = region.to_dict()
    result["priorities_synced"] = synced
    if cascade:
        logger.info(
            "Region priorities enabled (was %s), %d priorities copied",
            was_enabled,
            synced,
            extra={"region_id": region_id, "actor": actor},
        )
    return result


def delete_regions(region_ids, actor: str) -> int:
    with transaction():
        deleted = region_store.delete_regions(region_ids)
    logger.info("Region delete: %d row(s) removed", deleted, extra={"actor": actor})
    return deleted


def upsert_home_warehouses(pairs, actor: str) -> int:
    with transaction():
        return assignment_service.upsert_home_warehouses(pairs, actor)


def list_home_warehouses(region_ids=()) -> list[dict]:
    return [a.to_dict() for a in assignment_service.list_home_warehouses(region_ids)]


def get_region_history(region_id: int) -> list[dict]:
    return [h.to_dict() for h in history.region_history(region_id)]
