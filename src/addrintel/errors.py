"""Error hierarchy for the address intelligence pipeline.

Only EmptyCohortError and UnknownTemplateError are meant to reach callers.
"""

from typing import Any


class AddressIntelError(Exception):
    """Base exception for all address intelligence errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class MalformedAddressError(AddressIntelError):
    """Candidate string is not a recognizable blockchain address."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Malformed address: {address!r}", {"address": address})
        self.address = address


class EmptyCohortError(AddressIntelError):
    """A group analysis filter matched no profiles."""

    def __init__(self, message: str = "No wallets found matching the specified criteria") -> None:
        super().__init__(message)


class ExternalServiceError(AddressIntelError):
    """LLM or contact directory call failed or timed out."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service}: {message}", {"service": service})
        self.service = service


class ConfigurationError(AddressIntelError):
    """Invalid configuration."""


class UnknownTemplateError(AddressIntelError):
    """No filter template has the requested slug."""

    def __init__(self, slug: str) -> None:
        super().__init__(f"Template not found: {slug}", {"template": slug})
        self.slug = slug
