"""Tenable-specific exceptions for error handling."""
from __future__ import annotations
from typing import Any


class TenableError(Exception):
    """Base exception for all Tenable operations."""
    pass


class TenableTransportError(TenableError):
    """Request could not be completed (network failure or non-2xx status)."""
    pass


class TenableConnectionError(TenableTransportError):
    """Network failure or timeout before a response was received.
    
    Attributes:
        method: HTTP method of the failed request
        endpoint: URL of the failed request
    """
    
    def __init__(self, method: str, endpoint: str, message: str):
        self.method = method
        self.endpoint = endpoint
        self.message = message
        super().__init__(f"{method} {endpoint}: {message}")


class TenableAPIError(TenableTransportError):
    """HTTP error from the Tenable VM API.
    
    Attributes:
        status_code: HTTP status code
        reason: HTTP status text
        body: Raw response body (for diagnostics)
        method: HTTP method of the failed request
        endpoint: API endpoint that failed
    """
    
    def __init__(self, status_code: int, reason: str, body: str, method: str = "", endpoint: str = ""):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        self.method = method
        self.endpoint = endpoint
        target = f"{method} {endpoint}".strip()
        super().__init__(f"[{status_code} {reason}] {target}: {body}")
    
    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class TenableDecodeError(TenableError):
    """Response body was not the JSON document the caller expected."""
    pass


class NotFoundError(TenableError):
    """Lookup or read matched no record."""
    
    def __init__(self, kind: str, selector: str):
        self.kind = kind
        self.selector = selector
        super().__init__(f"No Tenable VM {kind} was found with {selector}")


class UserNotFoundError(NotFoundError):
    """User lookup failed - id or username does not exist."""
    
    def __init__(self, selector: str):
        super().__init__("user", selector)


class RoleNotFoundError(NotFoundError):
    """Role does not exist."""
    
    def __init__(self, selector: str):
        super().__init__("role", selector)


class GroupNotFoundError(NotFoundError):
    """Group does not exist."""
    
    def __init__(self, selector: str):
        super().__init__("group", selector)


class ValidationError(TenableError, ValueError):
    """Local input error; never sent to the server."""
    pass


class InvalidIdentifierError(ValidationError):
    """Identifier is not a numeric id."""
    pass


class InvalidSelectorError(ValidationError):
    """Neither an id nor a name selector was supplied to a lookup."""
    pass


class PartialCreateError(TenableError):
    """User was created but the follow-up enabled-state correction failed.
    
    The user exists remotely with ``user.enabled`` still reflecting the
    server's initial answer. No compensating delete is attempted.
    
    Attributes:
        user: User record as returned by the create call
        requested_enabled: Enabled state the caller asked for
        cause: Underlying error from the enable/disable call
    """
    
    def __init__(self, user: Any, requested_enabled: bool, cause: Exception):
        self.user = user
        self.requested_enabled = requested_enabled
        self.cause = cause
        super().__init__(
            f"User '{user.username}' was created (id={user.id}) but setting enabled={requested_enabled} "
            f"failed; remote account is enabled={user.enabled}: {cause}"
        )
