"""
API dependencies for FastAPI dependency injection.

Provides database sessions, the calling actor's identity and service factories.
"""
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from src.lib.db import get_db as get_db_session
from src.lib.exceptions import UnauthorizedException
from src.services import activity_service, booking_service, inquiry_service, review_service


# Re-export get_db for convenience
get_db = get_db_session

ACTOR_HEADER = "X-User-Id"


def get_actor_id(
    x_user_id: Optional[str] = Header(default=None, alias=ACTOR_HEADER),
) -> UUID:
    """
    Identity of the caller, authenticated upstream by the API gateway.

    This service trusts the header and only performs ownership checks.

    Raises:
        UnauthorizedException: Header missing or not a UUID
    """
    if not x_user_id:
        raise UnauthorizedException("Missing authenticated user")
    try:
        return UUID(x_user_id)
    except ValueError:
        raise UnauthorizedException("Invalid authenticated user id")


def get_booking_service(db: Session = Depends(get_db)) -> booking_service.BookingService:
    return booking_service.get_booking_service(db)


def get_review_service(db: Session = Depends(get_db)) -> review_service.ReviewService:
    return review_service.get_review_service(db)


def get_inquiry_service(db: Session = Depends(get_db)) -> inquiry_service.InquiryService:
    return inquiry_service.get_inquiry_service(db)


def get_activity_service(db: Session = Depends(get_db)) -> activity_service.ActivityService:
    return activity_service.get_activity_service(db)
