"""
Platform-wide exception hierarchy.

Services raise these; blueprints register handlers against them once and
get the same HTTP status codes everywhere:

    NotFoundError    → 404
    ValidationError  → 400
    ConflictError    → 409
    StorageError     → 500

Usage:
    from devicelab.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="TestSession", resource_id=42)
    raise ValidationError("url or app_path is required", details={"url": "missing"})
"""


class NotFoundError(Exception):
    """Raised when a referenced entity does not exist.

    Args:
        resource: Human-readable model/entity name (e.g. "Device", "TestSession").
        resource_id: The PK that was looked up. Included in logs, not in HTTP response.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)

    @property
    def public_message(self) -> str:
        return f"{self.resource} not found"


class ValidationError(Exception):
    """Raised when input is missing, malformed, oversized or of the wrong type.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation is not allowed from the entity's current state.

    Args:
        resource: Model name.
        current_state: The state that blocks the operation.
        message: Optional override for the generated message.
    """

    def __init__(self, resource: str, current_state: str, message: str | None = None) -> None:
        self.resource = resource
        self.current_state = current_state
        super().__init__(message or f"{resource} cannot change from status {current_state}")


class StorageError(Exception):
    """Raised when an uploaded artifact cannot be written to storage."""
