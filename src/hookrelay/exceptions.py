"""hookrelay exception hierarchy.

Registration errors are surfaced to callers of the registration API.
Dispatch engine errors abort a dispatch run before any delivery is made.
Individual delivery failures are never raised: they are recorded as
``Failure`` outcomes in the dispatch report.
"""

from __future__ import annotations


class HookRelayError(Exception):
    """Base exception for all hookrelay errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code for API responses.
    """

    code: str = "hookrelay_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }


class RegistrationError(HookRelayError):
    """A registry operation was rejected."""

    code: str = "registration_error"


class ValidationError(RegistrationError):
    """Invalid input provided.

    Attributes:
        field: The field that failed validation.
        message: Description of the validation failure.
    """

    code: str = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "field": self.field,
                "message": self.message,
            }
        }


class NotFoundError(RegistrationError):
    """Resource not found.

    Attributes:
        resource_type: Type of resource (e.g., "webhook").
        resource_id: ID of the missing resource.
    """

    code: str = "not_found"

    def __init__(self, resource_type: str, resource_id: str) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} not found: {resource_id}")

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "resource_type": self.resource_type,
                "resource_id": self.resource_id,
                "message": self.message,
            }
        }


class DispatchEngineError(HookRelayError):
    """A dispatch run could not start.

    Raised for invalid engine configuration (e.g. batch_size < 1),
    a malformed target snapshot, or failure to read the snapshot.
    """

    code: str = "dispatch_error"


class StorageError(HookRelayError):
    """Storage operation failed."""

    code: str = "storage_error"

