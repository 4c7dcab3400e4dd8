"""Selector matching shared by the user, role and group services."""
from __future__ import annotations
from typing import Callable, Iterable, Optional, TypeVar

from .exceptions import NotFoundError

T = TypeVar("T")


def select_record(
    records: Iterable[T],
    record_id: Optional[int],
    name: Optional[str],
    name_of: Callable[[T], str],
    not_found: Callable[[str], NotFoundError],
) -> T:
    """Return the first record matching an already validated selector.
    
    Id matching is exact; name matching is case-insensitive exact match.
    
    Raises:
        NotFoundError: Via ``not_found`` when nothing matches
    """
    if record_id is not None:
        match = next((r for r in records if r.id == record_id), None)  # type: ignore[attr-defined]
        selector = f"id {record_id}"
    else:
        wanted = (name or "").casefold()
        match = next((r for r in records if name_of(r).casefold() == wanted), None)
        selector = f"name {name!r}"
    if match is None:
        raise not_found(selector)
    return match
