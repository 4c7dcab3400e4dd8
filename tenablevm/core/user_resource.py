"""
User Resource Reconciler — converge a Tenable VM user toward a desired state

This module is the only mutating workflow of the library. It is used by
host applications (e.g. the manage_users CLI or an infrastructure-as-code
plugin) that track a user locally and need create/read/update/delete
semantics on top of the raw API.

Architecture:
    host (CLI, provider plugin) ──> user_resource.py ──> tenablevm.core.tenable ──> Tenable VM

Rules:
    - username and account type are write-once; changing them means replace
    - only permissions, name, email and enabled are updated in place
    - the API has no partial update: every PUT carries the full mutable set
    - the enabled flag asked for at creation is enforced by a second call
    - passwords are sent once at creation and never kept
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from tenablevm.core.tenable import (
    DEFAULT_ACCOUNT_TYPE,
    PartialCreateError,
    TenableClient,
    TenableError,
    User,
    UserNotFoundError,
    UserService,
    parse_resource_id,
)
from tenablevm.core.tenable.validators import IdLike

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Desired and tracked state
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class UserSpec:
    """Desired state of a user as declared by the caller."""
    username: str
    permissions: int
    password: Optional[str] = field(default=None, repr=False)
    name: Optional[str] = None
    email: Optional[str] = None
    account_type: str = DEFAULT_ACCOUNT_TYPE
    enabled: bool = True


@dataclass
class UserState:
    """Locally tracked state of a managed user. Never holds a password."""
    id: str
    username: str
    permissions: int
    name: Optional[str] = None
    email: Optional[str] = None
    account_type: str = DEFAULT_ACCOUNT_TYPE
    enabled: bool = True

    @classmethod
    def from_user(cls, user: User, account_type: Optional[str] = None) -> "UserState":
        """Map an API record onto tracked state.

        Empty name/email become None. The API does not return the account
        type on reads, so a previously tracked value wins when given.
        """
        return cls(
            id=str(user.id),
            username=user.username,
            permissions=user.permissions,
            name=user.name or None,
            email=user.email or None,
            account_type=account_type or user.account_type or DEFAULT_ACCOUNT_TYPE,
            enabled=user.enabled,
        )


@dataclass
class UserChanges:
    """Result of comparing desired state with tracked state.

    A field is None when it is unchanged.
    """
    permissions: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    enabled: Optional[bool] = None
    requires_replace: List[str] = field(default_factory=list)

    @property
    def has_updates(self) -> bool:
        return any(v is not None for v in (self.permissions, self.name, self.email, self.enabled))

    def changed_fields(self) -> List[str]:
        return [
            name for name, value in (
                ("permissions", self.permissions),
                ("name", self.name),
                ("email", self.email),
                ("enabled", self.enabled),
            ) if value is not None
        ]


def diff_user(desired: UserSpec, state: UserState) -> UserChanges:
    """Compare desired state against tracked state.

    None and "" are the same value for name and email.
    """
    changes = UserChanges()

    if desired.username != state.username:
        changes.requires_replace.append("username")
    if (desired.account_type or DEFAULT_ACCOUNT_TYPE) != (state.account_type or DEFAULT_ACCOUNT_TYPE):
        changes.requires_replace.append("account_type")

    if desired.permissions != state.permissions:
        changes.permissions = desired.permissions
    if (desired.name or "") != (state.name or ""):
        changes.name = desired.name or ""
    if (desired.email or "") != (state.email or ""):
        changes.email = desired.email or ""
    if desired.enabled != state.enabled:
        changes.enabled = desired.enabled
    return changes


# ─────────────────────────────────────────────────────────────────────────────
# Reconciler
# ─────────────────────────────────────────────────────────────────────────────

class UserReconciler:
    """Create, read, update, enable/disable and delete a single user."""

    def __init__(self, client: TenableClient):
        self.users = UserService(client)

    def create(
        self,
        username: str,
        password: Optional[str],
        permissions: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        account_type: str = DEFAULT_ACCOUNT_TYPE,
        enabled: bool = True,
    ) -> User:
        """Create a user, then correct its enabled flag if the server disagrees.

        Returns:
            The reconciled user; its id is the resource's permanent identity

        Raises:
            PartialCreateError: If the user was created but the enabled
                correction failed (the user is left in place)
        """
        logger.debug(
            "Creating Tenable VM user username=%s permissions=%s account_type=%s enabled=%s",
            username, permissions, account_type, enabled,
        )
        user = self.users.create_user(
            username,
            password or "",
            permissions,
            name=name or "",
            email=email or "",
            account_type=account_type or DEFAULT_ACCOUNT_TYPE,
        )
        user = self.ensure_enabled(user, enabled)
        logger.info("Created Tenable VM user user_id=%s username=%s", user.id, user.username)
        return user

    def ensure_enabled(self, user: User, requested: bool) -> User:
        """Second step of create: issue an enable/disable call when needed."""
        if user.enabled == requested:
            return user
        logger.debug("Correcting enabled flag user_id=%s from %s to %s", user.id, user.enabled, requested)
        try:
            self.users.set_user_enabled(user.id, requested)
        except TenableError as e:
            raise PartialCreateError(user, requested, e) from e
        user.enabled = requested
        return user

    def read(self, user_id: IdLike) -> Optional[User]:
        """Fetch the user, or None if the API reports it does not exist.

        Only a 404 counts as absence; other errors propagate.
        """
        try:
            return self.users.get_user(user_id)
        except UserNotFoundError as e:
            logger.info("Tenable VM user not found during read user_id=%s error=%s", user_id, e)
            return None

    def update(
        self,
        user_id: IdLike,
        permissions: Optional[int] = None,
        name: Optional[str] = None,
        email: Optional[str] = None,
        enabled: Optional[bool] = None,
    ) -> User:
        """Merge overrides into the current record and PUT the full set.

        Fields passed as None keep their current value. The PUT response is
        ignored; the user is re-read afterwards.

        Raises:
            UserNotFoundError: If the user is missing before or after the PUT
        """
        uid = parse_resource_id(user_id)
        current = self.users.get_user(uid)

        merged_permissions = current.permissions if permissions is None else permissions
        merged_enabled = current.enabled if enabled is None else enabled
        merged_email = current.email if email is None else email
        merged_name = current.name if name is None else name

        logger.debug(
            "Updating Tenable VM user user_id=%s username=%s permissions_changed=%s name_changed=%s "
            "email_changed=%s enabled_changed=%s",
            uid, current.username, permissions is not None, name is not None,
            email is not None, enabled is not None,
        )
        self.users.update_user(uid, merged_permissions, merged_enabled, merged_email, merged_name)

        updated = self.read(uid)
        if updated is None:
            raise UserNotFoundError(f"id {uid} (re-read after update)")
        logger.info("Updated Tenable VM user user_id=%s username=%s", updated.id, updated.username)
        return updated

    def delete(self, user_id: IdLike) -> None:
        """Delete the user. Deleting an already deleted user raises the API error."""
        uid = parse_resource_id(user_id)
        logger.debug("Deleting Tenable VM user user_id=%s", uid)
        self.users.delete_user(uid)
        logger.info("Deleted Tenable VM user user_id=%s", uid)

    def set_enabled(self, user_id: IdLike, enabled: bool) -> None:
        """Explicitly enable or disable a user."""
        uid = parse_resource_id(user_id)
        self.users.set_user_enabled(uid, enabled)
        logger.info("Set Tenable VM user enabled user_id=%s enabled=%s", uid, enabled)

    # ─────────────────────────────────────────────────────────────────────
    # State-level operations for host integrations
    # ─────────────────────────────────────────────────────────────────────

    def refresh(self, state: UserState) -> Optional[UserState]:
        """Re-read tracked state. None means the host should forget the resource."""
        user = self.read(state.id)
        if user is None:
            return None
        return UserState.from_user(user, account_type=state.account_type)

    def apply(self, desired: UserSpec, state: Optional[UserState] = None) -> UserState:
        """Converge remote state toward ``desired``.

        - no tracked state: create
        - write-once field changed: delete then create
        - mutable fields changed: update only those (full PUT underneath)
        - nothing changed: no API write
        """
        if state is None:
            return self._create_from_spec(desired)

        changes = diff_user(desired, state)
        if changes.requires_replace:
            logger.info(
                "Replacing Tenable VM user user_id=%s because %s changed",
                state.id, ", ".join(changes.requires_replace),
            )
            self.destroy(state)
            return self._create_from_spec(desired)

        if not changes.has_updates:
            return state

        user = self.update(
            state.id,
            permissions=changes.permissions,
            name=changes.name,
            email=changes.email,
            enabled=changes.enabled,
        )
        return UserState.from_user(user, account_type=state.account_type)

    def import_state(self, id_text: str) -> UserState:
        """Start tracking an existing user from its numeric id."""
        uid = parse_resource_id(id_text)
        user = self.read(uid)
        if user is None:
            raise UserNotFoundError(f"id {uid}")
        return UserState.from_user(user)

    def destroy(self, state: UserState) -> None:
        self.delete(state.id)

    def _create_from_spec(self, desired: UserSpec) -> UserState:
        user = self.create(
            desired.username,
            desired.password,
            desired.permissions,
            name=desired.name,
            email=desired.email,
            account_type=desired.account_type,
            enabled=desired.enabled,
        )
        return UserState.from_user(user, account_type=desired.account_type)
