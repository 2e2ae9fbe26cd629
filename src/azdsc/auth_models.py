"""Authentication data models for azdsc.

Security features:
- Frozen dataclass for immutability
- UUID validation in __post_init__
- Client secret excluded from repr() and to_dict()
"""

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID


def validate_uuid(value: str, field_name: str) -> None:
    """Validate UUID format. Raises ValueError if invalid.

    Args:
        value: The string to validate as UUID
        field_name: Name of the field for error messages

    Raises:
        ValueError: If value is not a valid UUID format
    """
    if not value:
        raise ValueError(f"{field_name} must be valid UUID format, got empty string")

    try:
        UUID(value)
    except (ValueError, AttributeError, TypeError) as e:
        raise ValueError(f"{field_name} must be valid UUID format, got: {value}") from e


@dataclass(frozen=True)
class ServicePrincipalConfig:
    """Service principal credential scoped to one tenant and subscription.

    Constructed once at start, used once to establish a session. The
    client_secret is held only in memory and never rendered.
    """

    tenant_id: str
    client_id: str
    subscription_id: str
    client_secret: str = field(repr=False)

    def __post_init__(self):
        """Validate identifiers and require a non-empty secret."""
        validate_uuid(self.tenant_id, "tenant_id")
        validate_uuid(self.client_id, "client_id")
        validate_uuid(self.subscription_id, "subscription_id")
        if not self.client_secret:
            raise ValueError("client_secret must not be empty")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary without the secret.

        Safe for logging.
        """
        return {
            "tenant_id": self.tenant_id,
            "client_id": self.client_id,
            "subscription_id": self.subscription_id,
        }
