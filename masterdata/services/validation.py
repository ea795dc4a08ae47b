"""
Invariant validation for warehouses and regions.

Every function here is pure: it receives the candidate plus whatever store
snapshot it needs (already loaded by the calling service) and raises
``ValidationError`` on the first violated rule. Nothing here reads or
writes the database.

Usage:
    conflicts = warehouse_store.find_conflicting_warehouses(...)
    validation.check_duplicates(candidate, conflicts)
"""

import re

from masterdata.core.exceptions import ValidationError
from masterdata.models.region import REGION_UPDATABLE_FIELDS
from masterdata.models.warehouse import STORAGE_WAREHOUSE_TYPES, WarehouseTypes

_WHITESPACE = re.compile(r"\s+")
_GLN_PATTERN = re.compile(r"^\d{13}$")


def strip_whitespace(value: str | None) -> str:
    """Remove every whitespace character (used for GLN address comparison)."""
    return _WHITESPACE.sub("", value or "")


def collapse_whitespace(value: str | None) -> str:
    """Collapse runs of whitespace into one space and trim the ends."""
    return _WHITESPACE.sub(" ", value or "").strip()


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ── GLN ──────────────────────────────────────────────────────────────────────


def is_valid_gln(gln: str) -> bool:
    """13 digits whose last digit is the GS1 mod-10 check digit."""
    if not gln or not _GLN_PATTERN.match(gln):
        return False
    digits = [int(ch) for ch in gln]
    # weights 1,3,1,3,... from the left over the first 12 digits
    total = sum(d * (3 if i % 2 else 1) for i, d in enumerate(digits[:12]))
    return (10 - total % 10) % 10 == digits[12]


def check_gln(gln: str, address: str, other_addresses: list[tuple[int, str]]) -> None:
    """Reject a malformed GLN or one already bound to a different address.

    ``other_addresses`` are ``(warehouse_id, address)`` of every *other*
    warehouse using ``gln``. Addresses compare with all whitespace removed,
    case-insensitively.
    """
    if not is_valid_gln(gln):
        raise ValidationError(
            f"GLN value {gln} is invalid",
            details={"field": "gln", "value": gln},
        )
    prepared = strip_whitespace(address).casefold()
    for warehouse_id, other in other_addresses:
        if strip_whitespace(other).casefold() != prepared:
            raise ValidationError(
                f"A warehouse with GLN {gln} already exists",
                details={"field": "gln", "value": gln, "warehouse_id": warehouse_id},
            )


# ── Warehouse ────────────────────────────────────────────────────────────────


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_warehouse_field_types(data: dict) -> None:
    """Reject wrongly typed optional fields before any merge touches them."""
    for field in ("name", "address", "gln", "management_system", "assignment"):
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            raise ValidationError(
                f"Field '{field}' must be a string",
                details={"field": field, "value": value},
            )
    for field in ("type_id", "region_id"):
        value = data.get(field)
        if value is not None and not _is_int(value):
            raise ValidationError(
                f"Field '{field}' must be an integer",
                details={"field": field, "value": value},
            )
    characteristics = data.get("characteristics")
    if characteristics is not None and not isinstance(characteristics, dict):
        raise ValidationError(
            "Field 'characteristics' must be an object",
            details={"field": "characteristics", "value": characteristics},
        )


def check_required_warehouse_fields(data: dict, known_type_ids) -> None:
    """Presence, type and range checks on a create candidate."""
    check_warehouse_field_types(data)
    for field in ("warehouse_id", "rezon_id", "metazon_id"):
        value = data.get(field)
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ValidationError(
                f"Field '{field}' must be a positive integer",
                details={"field": field, "value": value},
            )
    for field in ("name", "address"):
        if is_blank(data.get(field)):
            raise ValidationError(f"Field '{field}' is required", details={"field": field})
    check_type_id(data.get("type_id"), known_type_ids)


def check_type_id(type_id, known_type_ids) -> None:
    if type_id not in set(known_type_ids):
        raise ValidationError(
            f"Unknown warehouse type: {type_id}",
            details={"field": "type_id", "value": type_id},
        )


def check_duplicates(candidate: dict, conflicts) -> None:
    """Report the first uniqueness violation in id > name > rezon > metazon order.

    ``conflicts`` are the stored warehouses sharing at least one of those
    values with ``candidate``.
    """
    conflicts = list(conflicts)
    rules = (
        ("warehouse_id", "A warehouse with id {} already exists"),
        ("name", 'A warehouse named "{}" already exists'),
        ("rezon_id", "A warehouse with RezonId {} already exists"),
        ("metazon_id", "A warehouse with MetazonId {} already exists"),
    )
    for field, message in rules:
        value = candidate.get(field)
        if any(getattr(w, field) == value for w in conflicts):
            raise ValidationError(message.format(value), details={"field": field, "value": value})


def check_name_not_duplicated(name: str, duplicated: bool) -> None:
    if duplicated:
        raise ValidationError(
            f'A warehouse named "{name}" already exists',
            details={"field": "name", "value": name},
        )


def check_address(address) -> None:
    if is_blank(address):
        raise ValidationError("Address is invalid", details={"field": "address"})


def check_region_assignment(region_id, type_id) -> None:
    """Only storage warehouses may be a region's home warehouse."""
    if region_id is not None and type_id not in STORAGE_WAREHOUSE_TYPES:
        raise ValidationError(
            "Only storage warehouses can be assigned to a region",
            details={"field": "region_id", "value": region_id},
        )


def check_characteristics(characteristics: dict, type_id) -> None:
    if type_id == WarehouseTypes.DISTRIBUTION_CENTER and not characteristics.get("wms_system"):
        raise ValidationError(
            "A distribution center must use a WMS",
            details={"field": "characteristics.wms_system"},
        )


def check_type_change(stored_type_id, new_type_id, has_priorities: bool) -> None:
    if has_priorities and stored_type_id != new_type_id:
        raise ValidationError(
            "Cannot change the type of warehouse that has regions priorities",
            details={"field": "type_id", "value": new_type_id},
        )


# ── Region ───────────────────────────────────────────────────────────────────


def check_region_candidate(data: dict) -> None:
    region_id = data.get("region_id")
    if not _is_int(region_id) or region_id <= 0:
        raise ValidationError(
            "Field 'region_id' must be a positive integer",
            details={"field": "region_id", "value": region_id},
        )
    for field in ("name", "title"):
        if is_blank(data.get(field)):
            raise ValidationError(f"Region {field} is required", details={"field": field})
    check_region_field_types(data, ("name", "title", "cluster_id", "parent_id"))


def check_region_field_types(values: dict, fields) -> None:
    """Type checks for the region ``fields`` about to be written from ``values``.

    ``cluster_id`` must be an integer, ``parent_id`` an integer or None, and
    ``name`` / ``title`` strings when given.
    """
    for field in fields:
        value = values.get(field)
        if field == "cluster_id" and not _is_int(value):
            raise ValidationError(
                "Field 'cluster_id' must be an integer",
                details={"field": "cluster_id", "value": value},
            )
        if field == "parent_id" and value is not None and not _is_int(value):
            raise ValidationError(
                "Field 'parent_id' must be an integer or null",
                details={"field": "parent_id", "value": value},
            )
        if field in ("name", "title") and value is not None and not isinstance(value, str):
            raise ValidationError(
                f"Field '{field}' must be a string",
                details={"field": field, "value": value},
            )


def check_update_mask(mask) -> list[str]:
    """Return the mask as a list, rejecting unknown field names."""
    mask = list(mask or [])
    unknown = sorted(set(mask) - REGION_UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(
            "Invalid update_mask",
            details={"field": "update_mask", "value": unknown},
        )
    return mask
