"""
Service-wide exception hierarchy.

Services raise these; blueprints register handlers against them once and
get consistent HTTP status codes everywhere.

Not every unhappy path is an exception here:
  - an update whose values equal the stored row is a silent no-op,
  - a claim with no eligible warehouse returns ``None``,
  - transient database failures propagate as SQLAlchemy errors untouched.

Usage:
    from masterdata.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Warehouse", resource_id=42)
    raise ValidationError("Warehouse name is required", details={"field": "name"})
"""


class NotFoundError(Exception):
    """Raised when an operation targets an id absent from the store.

    Args:
        resource: Human-readable entity name (e.g. "Warehouse", "Region").
        resource_id: The id that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when a candidate violates a uniqueness or business invariant.

    The message is meant to be shown to the user as-is. ``details`` names the
    offending field (``{"field": "name", "value": "A"}``) so callers can
    highlight it.

    Maps to HTTP 422 in blueprint error handlers.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)

    @property
    def field(self) -> str | None:
        return self.details.get("field")
