"""
system_registration.exceptions — Workflow and downstream error taxonomy.

Two families:
  - RegistrationError and subclasses: outcomes of the provisioning workflow,
    mapped to HTTP responses by the handler.
  - DownstreamError and subclasses: typed results of a failed call to the
    user-management or tenant-management service.
"""

from __future__ import annotations

from typing import Any


class ConfigurationError(Exception):
    """Raised when required service configuration cannot be resolved."""


# ---------------------------------------------------------------------------
# Downstream client errors
# ---------------------------------------------------------------------------


class DownstreamError(Exception):
    """Base class for failed calls to a downstream service."""

    def __init__(self, message: str, *, url: str) -> None:
        self.url = url
        super().__init__(message)


class DownstreamTransportError(DownstreamError):
    """No response was received (connection failure or timeout)."""


class DownstreamRemoteError(DownstreamError):
    """The downstream service answered with a non-success status.

    Attributes:
        status_code: HTTP status returned by the downstream service.
        body:        Decoded response body (JSON value or raw text).
    """

    def __init__(self, message: str, *, url: str, status_code: int, body: Any) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message, url=url)


class DownstreamNotFound(DownstreamRemoteError):
    """The user-management service reported that the user does not exist."""


# ---------------------------------------------------------------------------
# Workflow errors
# ---------------------------------------------------------------------------


class RegistrationError(Exception):
    """Base class for provisioning workflow failures.

    ``code`` identifies the failure kind in logs. Only errors with
    ``user_facing`` set are returned to the caller with their message.
    """

    code = "REGISTRATION_ERROR"
    user_facing = False


class AdminUserConflict(RegistrationError):
    code = "CONFLICT"
    user_facing = True

    def __init__(self, user_name: str) -> None:
        self.user_name = user_name
        super().__init__(f"Admin user {user_name} already exists")


class UpstreamUnavailable(RegistrationError):
    code = "UPSTREAM_UNAVAILABLE"


class UpstreamError(RegistrationError):
    code = "UPSTREAM_ERROR"

    def __init__(self, message: str, *, status_code: int, body: Any) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class RegistrationFailed(RegistrationError):
    code = "REGISTRATION_FAILED"


class PersistenceFailed(RegistrationError):
    code = "PERSISTENCE_FAILED"

    def __init__(self, message: str, *, tenant_id: str) -> None:
        self.tenant_id = tenant_id
        super().__init__(message)
