"""Standardised API error responses.

Usage
-----
    from masterdata.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Warehouse id=7 not found")
    return api_error(E.VALIDATION_INVALID, "Invalid update_mask", details={"field": "update_mask"})
"""

from __future__ import annotations

from flask import jsonify


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (``ERR_`` prefix)."""

    # Malformed request – HTTP 400
    BAD_REQUEST = "ERR_BAD_REQUEST"

    # Business-rule violation – HTTP 422
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Server – HTTP 5xx
    DATABASE_UNAVAILABLE = "ERR_DATABASE_UNAVAILABLE"
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.BAD_REQUEST: 400,
    E.VALIDATION_INVALID: 422,
    E.NOT_FOUND: 404,
    E.DATABASE_UNAVAILABLE: 503,
    E.INTERNAL: 500,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation, safe to show to the user.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload (offending field, value).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status
