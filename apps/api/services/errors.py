"""Typed failures shared by services, routers and the popup relay."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException


class ConfigurationError(RuntimeError):
    """Startup configuration that must stop the process."""


class PremiumRequiredError(HTTPException):
    """A free user attempted a premium-only action."""

    def __init__(self, feature: str, message: Optional[str] = None):
        self.feature = feature
        detail: Dict[str, Any] = {
            "code": "premium_required",
            "feature": feature,
            "message": message or f"{feature} is a premium feature. Upgrade to continue.",
        }
        super().__init__(status_code=403, detail=detail)


class RecordNotFoundError(HTTPException):
    """The addressed record does not exist for this user."""

    def __init__(self, resource: str, record_id: Optional[str] = None):
        self.resource = resource
        self.record_id = record_id
        detail: Dict[str, Any] = {
            "code": "not_found",
            "resource": resource,
            "id": record_id,
            "message": f"{resource} not found",
        }
        super().__init__(status_code=404, detail=detail)


class AuthProviderError(HTTPException):
    """Raised by the real identity provider; never converted into demo identity."""

    def __init__(self, message: str):
        super().__init__(
            status_code=401,
            detail={"code": "auth_provider_error", "message": message},
        )


class RelayError(Exception):
    """Base class for cross-window relay failures."""


class RelayTimeoutError(RelayError):
    """No matching response arrived before the request deadline."""

    def __init__(self, message_type: str, request_id: str, timeout: float):
        self.message_type = message_type
        self.request_id = request_id
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout:g}s waiting for response to {message_type} ({request_id})")


class RelayClosedError(RelayError):
    """The channel closed while a request was outstanding."""


class RelayUnavailableError(RelayError):
    """The relay was used outside an embedded context."""
