"""
Business inquiries API routes.

Routes:
- POST /businesses/{business_id}/inquiries - Customer sends an inquiry
- GET /businesses/{business_id}/inquiries - Owner's inbox
- GET /businesses/{business_id}/inquiries/stats - Counts and response rate (owner)
- GET /inquiries/mine - Inquiries the caller has sent
- POST /inquiries/{inquiry_id}/response - Owner replies
- PUT /inquiries/{inquiry_id}/status - Owner changes status
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from src.api.dependencies import get_actor_id, get_inquiry_service
from src.api.responses import success, dump, paginated
from src.lib.logging import get_logger
from src.models.inquiries import InquiryStatus, InquiryType, PreferredContact
from src.services.inquiry_service import InquiryService


logger = get_logger(__name__)
router = APIRouter(tags=["inquiries"])


# Request Models
class CreateInquiryRequest(BaseModel):
    inquiry_type: InquiryType
    message: str = Field(..., min_length=1, max_length=5000)
    phone_number: Optional[str] = Field(None, max_length=20)
    preferred_contact: Optional[PreferredContact] = None
    preferred_date: Optional[datetime] = None


class InquiryReplyRequest(BaseModel):
    response: str = Field(..., min_length=1, max_length=5000)


class UpdateInquiryStatusRequest(BaseModel):
    status: InquiryStatus


# Response Models
class InquiryResponse(BaseModel):
    id: UUID
    business_id: UUID
    user_id: UUID
    inquiry_type: InquiryType
    message: str
    phone_number: Optional[str] = None
    preferred_contact: Optional[PreferredContact] = None
    preferred_date: Optional[datetime] = None
    status: InquiryStatus
    response: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class InquiryStatsResponse(BaseModel):
    total: int
    pending: int
    responded: int
    closed: int
    response_rate: float


# Routes
@router.post("/businesses/{business_id}/inquiries", status_code=status.HTTP_201_CREATED)
def create_inquiry(
    business_id: UUID,
    request: CreateInquiryRequest,
    actor_id: UUID = Depends(get_actor_id),
    service: InquiryService = Depends(get_inquiry_service),
):
    logger.info(
        f"POST /businesses/{business_id}/inquiries",
        extra={"customer_id": str(actor_id), "inquiry_type": request.inquiry_type.value},
    )
    inquiry = service.create_inquiry(
        business_id,
        actor_id,
        inquiry_type=request.inquiry_type,
        message=request.message,
        phone_number=request.phone_number,
        preferred_contact=request.preferred_contact,
        preferred_date=request.preferred_date,
    )
    return success(dump(InquiryResponse, inquiry), "Inquiry sent successfully")


@router.get("/businesses/{business_id}/inquiries")
def list_business_inquiries(
    business_id: UUID,
    status_filter: Optional[InquiryStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor_id: UUID = Depends(get_actor_id),
    service: InquiryService = Depends(get_inquiry_service),
):
    result = service.list_for_business(business_id, actor_id, status=status_filter, page=page, limit=limit)
    return paginated(InquiryResponse, result)


@router.get("/businesses/{business_id}/inquiries/stats")
def get_inquiry_stats(
    business_id: UUID,
    actor_id: UUID = Depends(get_actor_id),
    service: InquiryService = Depends(get_inquiry_service),
):
    stats = service.get_stats(business_id, actor_id=actor_id)
    return success(InquiryStatsResponse(**stats).model_dump(mode="json"))


@router.get("/inquiries/mine")
def list_my_inquiries(
    status_filter: Optional[InquiryStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor_id: UUID = Depends(get_actor_id),
    service: InquiryService = Depends(get_inquiry_service),
):
    result = service.list_for_customer(actor_id, status=status_filter, page=page, limit=limit)
    return paginated(InquiryResponse, result)


@router.post("/inquiries/{inquiry_id}/response")
def respond_to_inquiry(
    inquiry_id: UUID,
    request: InquiryReplyRequest,
    actor_id: UUID = Depends(get_actor_id),
    service: InquiryService = Depends(get_inquiry_service),
):
    inquiry = service.respond(inquiry_id, actor_id, request.response)
    return success(dump(InquiryResponse, inquiry), "Response sent successfully")


@router.put("/inquiries/{inquiry_id}/status")
def update_inquiry_status(
    inquiry_id: UUID,
    request: UpdateInquiryStatusRequest,
    actor_id: UUID = Depends(get_actor_id),
    service: InquiryService = Depends(get_inquiry_service),
):
    inquiry = service.update_status(inquiry_id, actor_id, request.status)
    return success(dump(InquiryResponse, inquiry), "Inquiry status updated successfully")
