"""Tenable VM role lookups (roles are read-only)."""
from __future__ import annotations
from typing import List, Optional

from .client import TenableClient
from .exceptions import RoleNotFoundError
from .lookup import select_record
from .models import Role, decode_roles
from .validators import IdLike, resolve_selector


class RoleService:
    """Service for Tenable VM custom roles."""
    
    def __init__(self, client: TenableClient):
        """Initialize role service.
        
        Args:
            client: Configured Tenable client
        """
        self.client = client
    
    def list_roles(self) -> List[Role]:
        """Return every custom role, in server order."""
        return decode_roles(self.client.get("roles", expect=list))
    
    def find_role(self, role_id: Optional[IdLike] = None, name: Optional[str] = None) -> Role:
        """Return the role matching an id or a name.
        
        There is no get-by-id endpoint, so both selectors scan list_roles().
        The id wins when both are given; name matching ignores case.
        
        Raises:
            InvalidSelectorError: If neither selector is supplied
            InvalidIdentifierError: If the id is not numeric
            RoleNotFoundError: If no role matches
        """
        rid, wanted = resolve_selector(role_id, name, "role")
        return select_record(self.list_roles(), rid, wanted, name_of=lambda r: r.name, not_found=RoleNotFoundError)
