"""
Domain error taxonomy.

Every error surfaced by the core carries a stable machine-readable ``code``
and a human-readable message. Front-ends translate these into HTTP statuses
or tool-error payloads.
"""

from typing import Any, Dict


class DomainError(Exception):
    """Base class for all domain-level failures."""

    def __init__(self, message: str, code: str):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class NotFoundError(DomainError):
    """Raised when an entity does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id '{entity_id}' not found", "NOT_FOUND")


class ValidationError(DomainError):
    """Raised when input fails validation. Keeps the offending field name."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(
            f"Validation failed for '{field}': {message}", "VALIDATION_ERROR"
        )


class ConflictError(DomainError):
    """Raised when a write conflicts with existing state."""

    def __init__(self, entity: str, entity_id: str, reason: str):
        self.entity = entity
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Conflict on {entity} '{entity_id}': {reason}", "CONFLICT")


class AuthorizationError(DomainError):
    """Raised when the caller (or its token) may not perform an action."""

    def __init__(self, action: str, reason: str):
        self.action = action
        self.reason = reason
        super().__init__(
            f"Not authorized to {action}: {reason}", "AUTHORIZATION_ERROR"
        )


class UnknownLinkTypeError(DomainError):
    """Raised when no persistence strategy is registered for a link type."""

    def __init__(self, link_type: str):
        self.link_type = link_type
        super().__init__(
            f"No persistence strategy registered for link type '{link_type}'",
            "UNKNOWN_LINK_TYPE",
        )


class ConfigurationError(Exception):
    """Raised when application settings are incomplete or inconsistent."""
