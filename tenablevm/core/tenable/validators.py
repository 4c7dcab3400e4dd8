"""Local input validation for identifiers and lookup selectors."""
from __future__ import annotations
from typing import Optional, Union

from .exceptions import InvalidIdentifierError, InvalidSelectorError

IdLike = Union[int, str]


def parse_resource_id(raw: IdLike, kind: str = "user") -> int:
    """Parse a numeric resource id.
    
    Args:
        raw: Integer id or its decimal string form (e.g. "42")
        kind: Resource kind for error messages
        
    Returns:
        Positive integer id
        
    Raises:
        InvalidIdentifierError: If the value is not a positive integer
    """
    if isinstance(raw, bool):
        raise InvalidIdentifierError(f"Invalid {kind} ID: expected numeric ID but got: {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not text.isdecimal():
            raise InvalidIdentifierError(f"Invalid {kind} ID: expected numeric ID but got: {raw!r}")
        value = int(text)
    if value <= 0:
        raise InvalidIdentifierError(f"Invalid {kind} ID: must be positive, got: {raw!r}")
    return value


def resolve_selector(
    record_id: Optional[IdLike],
    name: Optional[str],
    kind: str,
    name_field: str = "name",
) -> tuple[Optional[int], Optional[str]]:
    """Validate an id/name selector pair; id takes precedence.
    
    Empty strings count as not supplied.
    
    Returns:
        ``(id, None)`` when an id was given, otherwise ``(None, name)``
        
    Raises:
        InvalidSelectorError: If neither selector is supplied
        InvalidIdentifierError: If the id is not numeric
    """
    if record_id is not None and str(record_id).strip() != "":
        return parse_resource_id(record_id, kind), None
    if name:
        return None, name
    raise InvalidSelectorError(
        f"Either the id or {name_field} attribute must be set to look up a Tenable VM {kind}."
    )
