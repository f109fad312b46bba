"""
Ownership checks shared by bookings, reviews and inquiries.

The caller identity is already authenticated upstream; these helpers only
answer "is this actor one of the parties allowed to touch the resource".
"""
from typing import Optional
from uuid import UUID

from src.lib.exceptions import ForbiddenException


def is_party(actor_id: Optional[UUID], *party_ids: Optional[UUID]) -> bool:
    """True when actor_id matches any non-null party id."""
    if actor_id is None:
        return False
    return any(party_id is not None and party_id == actor_id for party_id in party_ids)


def require_party(actor_id: Optional[UUID], *party_ids: Optional[UUID], message: str = "Forbidden") -> None:
    """Raise ForbiddenException unless actor_id is one of party_ids."""
    if not is_party(actor_id, *party_ids):
        raise ForbiddenException(message)
