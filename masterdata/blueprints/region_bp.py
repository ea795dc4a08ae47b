"""
Warehouse Master Data Service
Region blueprint — regions and their home warehouses.

Endpoints summary:
    REGION  /api/v1/regions                     GET, POST, DELETE
            /api/v1/regions/<id>                GET, PATCH  (field mask)
            /api/v1/regions/<id>/history        GET

    HOME    /api/v1/regions/home-warehouses     GET, PUT
"""

import logging

from flask import Blueprint, jsonify

from masterdata.blueprints import (
    BadRequestError,
    current_actor,
    int_list_arg,
    int_list_field,
    json_body,
    register_error_handlers,
)
from masterdata.services import region_service

logger = logging.getLogger(__name__)

region_bp = Blueprint("regions", __name__, url_prefix="/api/v1")
register_error_handlers(region_bp, logger)


# ── Regions ──────────────────────────────────────────────────────────────────


@region_bp.route("/regions", methods=["POST"])
def create_region():
    result = region_service.create_region(json_body(), current_actor())
    return jsonify(result), 201


@region_bp.route("/regions", methods=["GET"])
def list_regions():
    """Query params (first non-empty wins): warehouse_id, cluster_id, region_id."""
    items = region_service.list_regions(
        region_ids=int_list_arg("region_id"),
        cluster_ids=int_list_arg("cluster_id"),
        warehouse_ids=int_list_arg("warehouse_id"),
    )
    return jsonify({"items": items})


@region_bp.route("/regions/<int:region_id>", methods=["GET"])
def get_region(region_id):
    return jsonify(region_service.get_region(region_id))


@region_bp.route("/regions/<int:region_id>", methods=["PATCH"])
def update_region(region_id):
    """Body: ``{"region": {...}, "update_mask": ["title", ...]}``."""
    data = json_body()
    changes = data.get("region") or {}
    mask = data.get("update_mask") or []
    if not isinstance(changes, dict):
        raise BadRequestError("Field 'region' must be an object")
    if not isinstance(mask, list) or not all(isinstance(f, str) for f in mask):
        raise BadRequestError("Field 'update_mask' must be a list of field names")
    result = region_service.update_region(region_id, changes, mask, current_actor())
    return jsonify(result)


@region_bp.route("/regions", methods=["DELETE"])
def delete_regions():
    """Body: ``{"region_ids": [1, 2]}``."""
    region_ids = int_list_field(json_body(), "region_ids")
    deleted = region_service.delete_regions(region_ids, current_actor())
    return jsonify({"deleted": deleted})


@region_bp.route("/regions/<int:region_id>/history", methods=["GET"])
def region_history(region_id):
    return jsonify({"items": region_service.get_region_history(region_id)})


# ── Home warehouses ──────────────────────────────────────────────────────────


@region_bp.route("/regions/home-warehouses", methods=["GET"])
def list_home_warehouses():
    return jsonify({"items": region_service.list_home_warehouses(int_list_arg("region_id"))})


@region_bp.route("/regions/home-warehouses", methods=["PUT"])
def upsert_home_warehouses():
    """Body: ``{"assignments": [{"region_id": 1, "warehouse_id": 10}, ...]}``."""
    assignments = json_body().get("assignments")
    if not isinstance(assignments, list):
        raise BadRequestError("Field 'assignments' must be a list")
    pairs = []
    for item in assignments:
        if not isinstance(item, dict):
            raise BadRequestError("Each assignment must be an object")
        region_id, warehouse_id = item.get("region_id"), item.get("warehouse_id")
        if not isinstance(region_id, int) or not isinstance(warehouse_id, int):
            raise BadRequestError("Assignment ids must be integers")
        pairs.append((region_id, warehouse_id))
    applied = region_service.upsert_home_warehouses(pairs, current_actor())
    return jsonify({"applied": applied})
