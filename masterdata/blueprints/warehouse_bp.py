"""
Warehouse Master Data Service
Warehouse blueprint — CRUD, catalog and synchronization endpoints.

Endpoints summary:
    WAREHOUSE  /api/v1/warehouses                           GET, POST
               /api/v1/warehouses/<id>                      GET, PUT, DELETE
               /api/v1/warehouses/<id>/history              GET
               /api/v1/warehouses/storage                   GET
               /api/v1/warehouses/types                     GET
               /api/v1/warehouses/sale-regions              GET

    SYNC       /api/v1/warehouses/synchronization/pending   GET
               /api/v1/warehouses/synchronization/reset     POST

The editor identity comes from the ``X-Actor`` header. Service layer owns
all business logic and commits.
"""

import logging

from flask import Blueprint, jsonify, request

from masterdata.blueprints import (
    current_actor,
    int_list_arg,
    int_list_field,
    json_body,
    pagination_args,
    register_error_handlers,
)
from masterdata.services import warehouse_service

logger = logging.getLogger(__name__)

warehouse_bp = Blueprint("warehouses", __name__, url_prefix="/api/v1")
register_error_handlers(warehouse_bp, logger)


# ═══════════════════════════════════════════════════════════════════════════
#  WAREHOUSE CRUD
# ═══════════════════════════════════════════════════════════════════════════


@warehouse_bp.route("/warehouses", methods=["POST"])
def create_warehouse():
    result = warehouse_service.create_warehouse(json_body(), current_actor())
    return jsonify(result), 201


@warehouse_bp.route("/warehouses", methods=["GET"])
def list_warehouses():
    """List warehouses ordered by name.

    Query params:
        type_id       — repeatable / comma-separated type filter
        warehouse_id  — repeatable / comma-separated id filter
        search        — case-insensitive name substring
        limit, offset — pagination
    """
    limit, offset = pagination_args()
    items = warehouse_service.list_warehouses(
        warehouse_ids=int_list_arg("warehouse_id"),
        type_ids=int_list_arg("type_id"),
        search_name=request.args.get("search"),
        limit=limit,
        offset=offset,
    )
    return jsonify({"items": items, "count": len(items), "limit": limit, "offset": offset})


@warehouse_bp.route("/warehouses/<int:warehouse_id>", methods=["GET"])
def get_warehouse(warehouse_id):
    return jsonify(warehouse_service.get_warehouse(warehouse_id))


@warehouse_bp.route("/warehouses/<int:warehouse_id>", methods=["PUT"])
def update_warehouse(warehouse_id):
    result = warehouse_service.update_warehouse(warehouse_id, json_body(), current_actor())
    return jsonify(result)


@warehouse_bp.route("/warehouses/<int:warehouse_id>", methods=["DELETE"])
def delete_warehouse(warehouse_id):
    deleted = warehouse_service.delete_warehouses([warehouse_id], current_actor())
    return jsonify({"deleted": deleted})


@warehouse_bp.route("/warehouses/<int:warehouse_id>/history", methods=["GET"])
def warehouse_history(warehouse_id):
    return jsonify({"items": warehouse_service.get_warehouse_history(warehouse_id)})


# ═══════════════════════════════════════════════════════════════════════════
#  CATALOG / DERIVED VIEWS
# ═══════════════════════════════════════════════════════════════════════════


@warehouse_bp.route("/warehouses/storage", methods=["GET"])
def list_storage_warehouses():
    return jsonify({"items": warehouse_service.list_storage_warehouses()})


@warehouse_bp.route("/warehouses/types", methods=["GET"])
def list_warehouse_types():
    return jsonify({"items": warehouse_service.list_warehouse_types()})


@warehouse_bp.route("/warehouses/sale-regions", methods=["GET"])
def list_sale_regions():
    return jsonify({"items": warehouse_service.list_sale_regions()})


# ═══════════════════════════════════════════════════════════════════════════
#  SYNCHRONIZATION
# ═══════════════════════════════════════════════════════════════════════════


@warehouse_bp.route("/warehouses/synchronization/pending", methods=["GET"])
def count_pending():
    return jsonify({"pending": warehouse_service.count_pending()})


@warehouse_bp.route("/warehouses/synchronization/reset", methods=["POST"])
def reset_synchronization():
    """Mark the given warehouses for re-synchronization.

    Body: ``{"warehouse_ids": [1, 2]}``
    """
    warehouse_ids = int_list_field(json_body(), "warehouse_ids")
    updated = warehouse_service.mark_not_synchronized(warehouse_ids)
    logger.info("Synchronization reset requested", extra={"actor": current_actor()})
    return jsonify({"updated": updated})
