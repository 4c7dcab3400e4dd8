"""Tenable VM user endpoints and user lookups."""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from .client import TenableClient
from .exceptions import TenableAPIError, TenableDecodeError, UserNotFoundError
from .lookup import select_record
from .models import User, DEFAULT_ACCOUNT_TYPE, decode_user, decode_users
from .validators import IdLike, parse_resource_id, resolve_selector

logger = logging.getLogger(__name__)


class UserService:
    """Service for Tenable VM user records."""

    def __init__(self, client: TenableClient):
        """Initialize user service.

        Args:
            client: Configured Tenable client
        """
        self.client = client

    def list_users(self) -> List[User]:
        """Return every user visible to the API key, in server order.

        Depending on the caller's permissions each record may carry only a
        subset of fields; missing ones decode to their zero values.
        """
        return decode_users(self.client.get("users", expect=list))

    def get_user(self, user_id: IdLike) -> User:
        """Fetch a single user by id.

        Raises:
            InvalidIdentifierError: If the id is not numeric
            UserNotFoundError: If the API answers 404
            TenableAPIError: On any other HTTP error
        """
        uid = parse_resource_id(user_id)
        try:
            data = self.client.get(f"users/{uid}", expect=dict)
        except TenableAPIError as e:
            if e.is_not_found:
                raise UserNotFoundError(f"id {uid}") from e
            raise
        return decode_user(data)

    def find_user(self, user_id: Optional[IdLike] = None, username: Optional[str] = None) -> User:
        """Return the user matching an id or a username.

        If both are given the id wins. Username matching ignores case.

        Raises:
            InvalidSelectorError: If neither selector is supplied
            UserNotFoundError: If no user matches
        """
        uid, wanted = resolve_selector(user_id, username, "user", name_field="username")
        return select_record(
            self.list_users(),
            uid,
            wanted,
            name_of=lambda u: u.username,
            not_found=UserNotFoundError,
        )

    def create_user(
        self,
        username: str,
        password: str,
        permissions: int,
        name: str = "",
        email: str = "",
        account_type: str = DEFAULT_ACCOUNT_TYPE,
    ) -> User:
        """POST a new user and decode the server's answer.

        Some deployments omit ``enabled`` from the create response; it is
        taken as True in that case. The password only travels in this request.

        Returns:
            User as created by the server (enabled state not yet corrected)

        Raises:
            TenableDecodeError: If the response carries no user id
        """
        payload: Dict[str, Any] = {
            "username": username,
            "password": password,
            "permissions": permissions,
            "type": account_type or DEFAULT_ACCOUNT_TYPE,
        }
        if name:
            payload["name"] = name
        if email:
            payload["email"] = email

        data = self.client.post("users", json=payload, expect=dict)
        user = decode_user(data, enabled_default=True)
        if not user.id:
            raise TenableDecodeError(f"Create response for user '{username}' did not include a user id")
        # The API does not echo the account type back
        if "type" not in data:
            user.account_type = payload["type"]
        logger.debug("Created user %s (id=%s, enabled=%s)", user.username or username, user.id, user.enabled)
        return user

    def update_user(self, user_id: IdLike, permissions: int, enabled: bool, email: str, name: str) -> None:
        """PUT the full mutable representation of a user.

        The API has no partial update; every field must be sent.
        """
        uid = parse_resource_id(user_id)
        payload = {
            "permissions": permissions,
            "enabled": enabled,
            "email": email,
            "name": name,
        }
        self.client.put(f"users/{uid}", json=payload)

    def delete_user(self, user_id: IdLike) -> None:
        """Delete a user. A second delete surfaces the server's error as-is."""
        uid = parse_resource_id(user_id)
        self.client.delete(f"users/{uid}")

    def set_user_enabled(self, user_id: IdLike, enabled: bool) -> None:
        """Toggle a user's enabled flag via the dedicated endpoint."""
        uid = parse_resource_id(user_id)
        self.client.put(f"users/{uid}/enabled", json={"enabled": enabled})
