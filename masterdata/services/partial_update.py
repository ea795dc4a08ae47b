"""
Partial-update merge rules.

Pure functions that compute the next state of a stored row from a sparse
change-set. They never touch storage: the service persists the returned
values through the entity stores.

Region:    field-mask merge; fields outside the mask are ignored even when
           present in the change-set.
Warehouse: fallback merge; omitted fields keep their stored value and some
           fields are never caller-settable.
"""

from masterdata.models.warehouse import (
    CHARACTERISTIC_FLAGS,
    PROTECTED_CHARACTERISTIC_FLAGS,
    changed_tracked_fields,
    normalize_characteristics,
)
from masterdata.services.validation import (
    check_region_field_types,
    check_update_mask,
    collapse_whitespace,
    is_blank,
)

# Region fields where a blank masked value keeps the stored one.
_KEEP_IF_BLANK = ("name", "title")


def merge_region(stored, changes: dict, update_mask) -> dict:
    """Merged region values for every updatable field.

    Raises ValidationError when ``update_mask`` names an unknown field or a
    masked value has the wrong type (a masked ``cluster_id`` must be given).
    """
    mask = set(check_update_mask(update_mask))
    check_region_field_types(changes, mask)
    merged = {
        "name": stored.name,
        "title": stored.title,
        "cluster_id": stored.cluster_id,
        "parent_id": stored.parent_id,
        "update_priorities_enabled": stored.update_priorities_enabled,
    }
    for field in mask:
        value = changes.get(field)
        if field in _KEEP_IF_BLANK:
            if not is_blank(value):
                merged[field] = value
        elif field == "update_priorities_enabled":
            merged[field] = bool(value)
        else:
            merged[field] = value
    return merged


def priorities_enabled(stored, merged: dict) -> bool:
    """True when the merge switches ``update_priorities_enabled`` from off to on."""
    return bool(merged.get("update_priorities_enabled")) and not stored.update_priorities_enabled


def merge_characteristics(stored: dict | None, incoming: dict | None) -> dict:
    """Caller flags over stored ones; protected flags always come from storage."""
    stored = normalize_characteristics(stored)
    if incoming is None:
        return stored
    merged = {flag: bool(incoming.get(flag, stored[flag])) for flag in CHARACTERISTIC_FLAGS}
    for flag in PROTECTED_CHARACTERISTIC_FLAGS:
        merged[flag] = stored[flag]
    return merged


def merge_warehouse(stored, changes: dict) -> dict:
    """Next-state tracked values for a warehouse update.

    Rules:
      - name: omitted or blank falls back to stored.
      - type_id: omitted or None falls back to stored.
      - gln: blank falls back to stored, otherwise trimmed.
      - address: whitespace runs collapsed; omitted falls back to stored.
      - characteristics: see ``merge_characteristics``.

    ``rezon_id``, ``metazon_id``, ``goodzon_id``, ``new_type``,
    ``assignment`` and ``management_system`` are not part of the result, so
    they stay as stored.
    """
    name = changes.get("name")
    type_id = changes.get("type_id")
    gln = changes.get("gln")
    address = changes.get("address")
    return {
        "name": stored.name if is_blank(name) else name,
        "type_id": stored.type_id if type_id is None else type_id,
        "gln": stored.gln if is_blank(gln) else gln.strip(),
        "address": stored.address if address is None else collapse_whitespace(address),
        "characteristics": merge_characteristics(stored.characteristics, changes.get("characteristics")),
    }


def should_resynchronize(stored, merged: dict) -> bool:
    """True when a field the external system mirrors has changed."""
    return bool(changed_tracked_fields(stored, merged))
