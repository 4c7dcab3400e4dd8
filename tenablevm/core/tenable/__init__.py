"""Tenable Vulnerability Management API client library.

This package provides a modular, testable interface to the Tenable VM user,
role and group endpoints.

Architecture:
- client.py: HTTP client with API-key authentication
- models.py: Defensive JSON decoding into User, Role and Group records
- users.py: User endpoints and user lookups
- roles.py: Role lookups
- groups.py: Group lookups
- validators.py: Local id/selector validation
- exceptions.py: Typed exceptions for error handling

Usage:
    from tenablevm.config import load_settings
    from tenablevm.core.tenable import TenableClient, RoleService
    
    client = TenableClient(load_settings())
    role = RoleService(client).find_role(name="Administrator")
"""
from .client import (
    TenableClient,
    create_client,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    TenableError,
    TenableTransportError,
    TenableConnectionError,
    TenableAPIError,
    TenableDecodeError,
    NotFoundError,
    UserNotFoundError,
    RoleNotFoundError,
    GroupNotFoundError,
    ValidationError,
    InvalidIdentifierError,
    InvalidSelectorError,
    PartialCreateError,
)
from .models import (
    User,
    Role,
    Group,
    DEFAULT_ACCOUNT_TYPE,
    decode_user,
    decode_role,
    decode_group,
    decode_users,
    decode_roles,
    decode_groups,
)
from .validators import parse_resource_id, resolve_selector
from .users import UserService
from .roles import RoleService
from .groups import GroupService

__all__ = [
    # Client
    "TenableClient",
    "create_client",
    "REQUEST_TIMEOUT",
    
    # Exceptions
    "TenableError",
    "TenableTransportError",
    "TenableConnectionError",
    "TenableAPIError",
    "TenableDecodeError",
    "NotFoundError",
    "UserNotFoundError",
    "RoleNotFoundError",
    "GroupNotFoundError",
    "ValidationError",
    "InvalidIdentifierError",
    "InvalidSelectorError",
    "PartialCreateError",
    
    # Records
    "User",
    "Role",
    "Group",
    "DEFAULT_ACCOUNT_TYPE",
    "decode_user",
    "decode_role",
    "decode_group",
    "decode_users",
    "decode_roles",
    "decode_groups",
    
    # Validation
    "parse_resource_id",
    "resolve_selector",
    
    # Services
    "UserService",
    "RoleService",
    "GroupService",
]
