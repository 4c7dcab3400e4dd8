"""Tenable VM group lookups (groups are read-only)."""
from __future__ import annotations
from typing import List, Optional

from .client import TenableClient
from .exceptions import GroupNotFoundError
from .lookup import select_record
from .models import Group, decode_groups
from .validators import IdLike, resolve_selector


class GroupService:
    """Service for Tenable VM user groups."""
    
    def __init__(self, client: TenableClient):
        """Initialize group service.
        
        Args:
            client: Configured Tenable client
        """
        self.client = client
    
    def list_groups(self) -> List[Group]:
        """Return every user group, in server order."""
        return decode_groups(self.client.get("groups", expect=list))
    
    def find_group(self, group_id: Optional[IdLike] = None, name: Optional[str] = None) -> Group:
        """Return the group matching an id or a name (id wins, name ignores case).
        
        Raises:
            InvalidSelectorError: If neither selector is supplied
            GroupNotFoundError: If no group matches
        """
        gid, wanted = resolve_selector(group_id, name, "group")
        return select_record(self.list_groups(), gid, wanted, name_of=lambda g: g.name, not_found=GroupNotFoundError)
