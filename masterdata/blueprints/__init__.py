"""
Warehouse Master Data Service
Blueprint helpers shared by the JSON endpoints.
"""

from flask import request

DEFAULT_ACTOR = "system"


class BadRequestError(Exception):
    """Malformed input (non-JSON body, non-integer id). Maps to HTTP 400."""


def current_actor() -> str:
    """Editor identity from the ``X-Actor`` header."""
    actor = (request.headers.get("X-Actor") or "").strip()
    return actor or DEFAULT_ACTOR


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequestError("Request body must be a JSON object")
    return data


def int_list_arg(name: str) -> list[int]:
    """Integer list from ``?name=1&name=2`` or ``?name=1,2``."""
    values = []
    for raw in request.args.getlist(name):
        for part in raw.split(","):
            part = part.strip()
            if not part:
                continue
            try:
                values.append(int(part))
            except ValueError:
                raise BadRequestError(f"Query parameter '{name}' must hold integers") from None
    return values


def int_list_field(data: dict, name: str) -> list[int]:
    raw = data.get(name, [])
    if not isinstance(raw, list) or not all(isinstance(v, int) and not isinstance(v, bool) for v in raw):
        raise BadRequestError(f"Field '{name}' must be a list of integers")
    return raw


def pagination_args(default_limit=200, max_limit=1000) -> tuple[int, int]:
    """limit/offset from the query string.

    Query params:
        limit  — max items (default 200, capped at max_limit)
        offset — starting position (default 0)
    """
    try:
        limit = min(int(request.args.get("limit", default_limit)), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    try:
        offset = max(int(request.args.get("offset", 0)), 0)
    except (ValueError, TypeError):
        offset = 0
    return limit, offset


def register_error_handlers(bp, logger) -> None:
    """Map service exceptions to the standard JSON error body on ``bp``."""
    from sqlalchemy.exc import OperationalError
    from werkzeug.exceptions import HTTPException

    from masterdata.core.exceptions import NotFoundError, ValidationError
    from masterdata.utils.errors import E, api_error

    @bp.errorhandler(BadRequestError)
    def _handle_bad_request(error: BadRequestError):
        return api_error(E.BAD_REQUEST, str(error))

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return api_error(E.NOT_FOUND, str(error))

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @bp.errorhandler(OperationalError)
    def _handle_db_unavailable(error: OperationalError):
        logger.error("Database unavailable endpoint=%s: %s", request.endpoint, error.orig)
        return api_error(E.DATABASE_UNAVAILABLE, "Database temporarily unavailable")

    @bp.errorhandler(HTTPException)
    def _handle_http(error: HTTPException):
        return api_error(E.BAD_REQUEST, error.description or error.name, status=error.code)

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")
