"""
Bookings API routes.

Routes:
- POST /bookings - Customer books a business
- GET /bookings - Customer's own bookings
- GET /bookings/reviewable - Completed bookings awaiting a review
- GET /bookings/{booking_id} - Booking details (customer or business owner)
- PUT /bookings/{booking_id}/status - Status transition
- DELETE /bookings/{booking_id} - Cancel
- GET /businesses/{business_id}/bookings - Bookings received by a business (owner)
"""
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from src.api.dependencies import get_actor_id, get_booking_service
from src.api.responses import success, dump, paginated
from src.lib.logging import get_logger
from src.models.bookings import BookingStatus
from src.services.booking_service import BookingService


logger = get_logger(__name__)
router = APIRouter(tags=["bookings"])


# Request Models
class CreateBookingRequest(BaseModel):
    """Request to book a business."""
    business_id: UUID
    service_id: Optional[UUID] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[time] = None
    address: Optional[str] = Field(None, max_length=1000)
    description: Optional[str] = Field(None, max_length=2000)
    price: Optional[Decimal] = Field(None, ge=0, description="Defaults to the service's minimum price")


class UpdateBookingStatusRequest(BaseModel):
    """Request to move a booking to a new status."""
    status: BookingStatus
    cancellation_reason: Optional[str] = Field(None, max_length=1000)


class CancelBookingRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


# Response Models
class BookingResponse(BaseModel):
    """Booking as returned to either party."""
    id: UUID
    user_id: UUID
    business_id: UUID
    service_id: Optional[UUID] = None
    service_name: Optional[str] = None
    status: BookingStatus
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[time] = None
    address: Optional[str] = None
    description: Optional[str] = None
    price: float
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    can_review: bool
    has_reviewed: bool
    review_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# Routes
@router.post("/bookings", status_code=status.HTTP_201_CREATED)
def create_booking(
    request: CreateBookingRequest,
    actor_id: UUID = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
):
    """
    Create a pending booking.

    Fails with invalid_state (reason business_not_payout_ready) when the business
    owner has no verified bank account.
    """
    logger.info(
        "POST /bookings",
        extra={"customer_id": str(actor_id), "business_id": str(request.business_id)},
    )
    booking = service.create_booking(
        customer_id=actor_id,
        business_id=request.business_id,
        service_id=request.service_id,
        scheduled_date=request.scheduled_date,
        scheduled_time=request.scheduled_time,
        address=request.address,
        description=request.description,
        price=request.price,
    )
    return success(dump(BookingResponse, booking), "Booking created successfully")


@router.get("/bookings")
def list_my_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    business_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None, description="Scheduled on or after"),
    end_date: Optional[date] = Query(None, description="Scheduled on or before"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor_id: UUID = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
):
    result = service.list_for_customer(
        actor_id,
        status=status_filter,
        business_id=business_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return paginated(BookingResponse, result)


@router.get("/bookings/reviewable")
def list_reviewable_bookings(
    actor_id: UUID = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
):
    """Completed bookings the caller can still review, most recently completed first."""
    bookings = service.list_reviewable(actor_id)
    return success([dump(BookingResponse, b) for b in bookings])


@router.get("/bookings/{booking_id}")
def get_booking(
    booking_id: UUID,
    actor_id: UUID = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_booking(booking_id, actor_id=actor_id)
    return success(dump(BookingResponse, booking))


@router.put("/bookings/{booking_id}/status")
def update_booking_status(
    booking_id: UUID,
    request: UpdateBookingStatusRequest,
    actor_id: UUID = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
):
    logger.info(
        f"PUT /bookings/{booking_id}/status",
        extra={"actor_id": str(actor_id), "to_status": request.status.value},
    )
    booking = service.update_status(
        booking_id,
        actor_id,
        request.status,
        cancellation_reason=request.cancellation_reason,
    )
    return success(dump(BookingResponse, booking), "Booking status updated successfully")


@router.delete("/bookings/{booking_id}")
def cancel_booking(
    booking_id: UUID,
    request: Optional[CancelBookingRequest] = None,
    actor_id: UUID = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
):
    reason = request.reason if request else None
    booking = service.cancel(booking_id, actor_id, reason=reason)
    return success(dump(BookingResponse, booking), "Booking cancelled successfully")


@router.get("/businesses/{business_id}/bookings")
def list_business_bookings(
    business_id: UUID,
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    customer_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor_id: UUID = Depends(get_actor_id),
    service: BookingService = Depends(get_booking_service),
):
    result = service.list_for_business(
        business_id,
        actor_id,
        status=status_filter,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return paginated(BookingResponse, result)
