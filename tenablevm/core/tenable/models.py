"""Tenable VM JSON ↔ record conversions.

The API may return numeric fields as integer or floating-point literals and
may omit optional fields entirely. Each decoder reads the known keys, coerces
what it can and falls back to the field's zero value otherwise. The full
payload is kept on ``raw`` for anything not modeled.

Usage:
    user = decode_user({"id": 1.0, "username": "alice", "permissions": 16})
    user.id           # 1
    user.raw["id"]    # 1.0
"""
from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

DEFAULT_ACCOUNT_TYPE = "local"


def _int(value: Any) -> int:
    # bool is an int subclass; JSON true/false is not a number
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return 0


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _bool(value: Any, default: bool = False) -> bool:
    return value if isinstance(value, bool) else default


@dataclass
class User:
    """Tenable VM user account."""
    id: int = 0
    uuid: str = ""
    username: str = ""
    name: str = ""
    email: str = ""
    permissions: int = 0
    account_type: str = DEFAULT_ACCOUNT_TYPE
    enabled: bool = False
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], enabled_default: bool = False) -> "User":
        return decode_user(data, enabled_default=enabled_default)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "uuid": self.uuid,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "permissions": self.permissions,
            "account_type": self.account_type,
            "enabled": self.enabled,
        }


@dataclass
class Role:
    """Tenable VM custom role (read-only)."""
    id: int = 0
    uuid: str = ""
    name: str = ""
    description: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Role":
        return decode_role(data)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "uuid": self.uuid, "name": self.name, "description": self.description}


@dataclass
class Group:
    """Tenable VM user group (read-only)."""
    id: int = 0
    uuid: str = ""
    name: str = ""
    description: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Group":
        return decode_group(data)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "uuid": self.uuid, "name": self.name, "description": self.description}


def decode_user(data: Mapping[str, Any], enabled_default: bool = False) -> User:
    """Convert a user object from the API into a User.

    Args:
        data: Decoded JSON object
        enabled_default: Value used when ``enabled`` is absent or not a boolean

    Returns:
        User record; ``raw`` holds a copy of ``data``
    """
    return User(
        id=_int(data.get("id")),
        uuid=_str(data.get("uuid")),
        username=_str(data.get("username")),
        name=_str(data.get("name")),
        email=_str(data.get("email")),
        permissions=_int(data.get("permissions")),
        account_type=_str(data.get("type")) or DEFAULT_ACCOUNT_TYPE,
        enabled=_bool(data.get("enabled"), enabled_default),
        raw=dict(data),
    )


def decode_role(data: Mapping[str, Any]) -> Role:
    return Role(
        id=_int(data.get("id")),
        uuid=_str(data.get("uuid")),
        name=_str(data.get("name")),
        description=_str(data.get("description")),
        raw=dict(data),
    )


def decode_group(data: Mapping[str, Any]) -> Group:
    return Group(
        id=_int(data.get("id")),
        uuid=_str(data.get("uuid")),
        name=_str(data.get("name")),
        description=_str(data.get("description")),
        raw=dict(data),
    )


# Non-object entries in a list response carry nothing to decode and are skipped.
def decode_users(items: List[Any]) -> List[User]:
    return [decode_user(item) for item in items if isinstance(item, Mapping)]


def decode_roles(items: List[Any]) -> List[Role]:
    return [decode_role(item) for item in items if isinstance(item, Mapping)]


def decode_groups(items: List[Any]) -> List[Group]:
    return [decode_group(item) for item in items if isinstance(item, Mapping)]
