"""
Business reviews API routes.

Routes:
- POST /businesses/{business_id}/reviews - Leave a review
- GET /businesses/{business_id}/reviews - Public review list
- GET /businesses/{business_id}/reviews/stats - Rating aggregate and distribution
- POST /reviews/{review_id}/response - Owner's public reply
- PUT /reviews/{review_id} - Author edits a review
- DELETE /reviews/{review_id} - Author removes a review
"""
from datetime import datetime
from typing import Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from src.api.dependencies import get_actor_id, get_review_service
from src.api.responses import success, dump, paginated
from src.lib.logging import get_logger
from src.services.review_service import ReviewService


logger = get_logger(__name__)
router = APIRouter(tags=["reviews"])


# Request Models
class ReviewRequest(BaseModel):
    """Full set of review fields; used for create and update."""
    rating: int = Field(..., ge=1, le=5)
    service_quality: Optional[int] = Field(None, ge=1, le=5)
    professionalism: Optional[int] = Field(None, ge=1, le=5)
    value_for_money: Optional[int] = Field(None, ge=1, le=5)
    review_text: Optional[str] = Field(None, max_length=5000)


class CreateReviewRequest(ReviewRequest):
    booking_id: Optional[UUID] = Field(None, description="Completed booking this review is for")


class ReviewResponseRequest(BaseModel):
    response: str = Field(..., min_length=1, max_length=5000)


# Response Models
class ReviewResponse(BaseModel):
    id: UUID
    business_id: UUID
    user_id: UUID
    booking_id: Optional[UUID] = None
    rating: int
    service_quality: Optional[int] = None
    professionalism: Optional[int] = None
    value_for_money: Optional[int] = None
    review_text: Optional[str] = None
    response: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReviewStatsResponse(BaseModel):
    average_rating: float
    total_reviews: int
    rating_distribution: Dict[int, int]
    average_service_quality: float
    average_professionalism: float
    average_value_for_money: float


# Routes
@router.post("/businesses/{business_id}/reviews", status_code=status.HTTP_201_CREATED)
def create_review(
    business_id: UUID,
    request: CreateReviewRequest,
    actor_id: UUID = Depends(get_actor_id),
    service: ReviewService = Depends(get_review_service),
):
    logger.info(
        f"POST /businesses/{business_id}/reviews",
        extra={"customer_id": str(actor_id), "rating": request.rating},
    )
    review = service.create_review(
        business_id,
        actor_id,
        rating=request.rating,
        service_quality=request.service_quality,
        professionalism=request.professionalism,
        value_for_money=request.value_for_money,
        review_text=request.review_text,
        booking_id=request.booking_id,
    )
    return success(dump(ReviewResponse, review), "Review created successfully")


@router.get("/businesses/{business_id}/reviews")
def list_business_reviews(
    business_id: UUID,
    rating: Optional[int] = Query(None, ge=1, le=5, description="Only reviews with this star rating"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: ReviewService = Depends(get_review_service),
):
    result = service.list_for_business(business_id, rating=rating, page=page, limit=limit)
    return paginated(ReviewResponse, result)


@router.get("/businesses/{business_id}/reviews/stats")
def get_review_stats(
    business_id: UUID,
    service: ReviewService = Depends(get_review_service),
):
    """Average rating, review count, 1-5 distribution and sub-rating averages."""
    service.directory.require_business(business_id)
    stats = service.get_review_stats(business_id)
    return success(ReviewStatsResponse(**stats).model_dump(mode="json"))


@router.post("/reviews/{review_id}/response")
def respond_to_review(
    review_id: UUID,
    request: ReviewResponseRequest,
    actor_id: UUID = Depends(get_actor_id),
    service: ReviewService = Depends(get_review_service),
):
    review = service.respond_to_review(review_id, actor_id, request.response)
    return success(dump(ReviewResponse, review), "Response added successfully")


@router.put("/reviews/{review_id}")
def update_review(
    review_id: UUID,
    request: ReviewRequest,
    actor_id: UUID = Depends(get_actor_id),
    service: ReviewService = Depends(get_review_service),
):
    review = service.update_review(
        review_id,
        actor_id,
        rating=request.rating,
        service_quality=request.service_quality,
        professionalism=request.professionalism,
        value_for_money=request.value_for_money,
        review_text=request.review_text,
    )
    return success(dump(ReviewResponse, review), "Review updated successfully")


@router.delete("/reviews/{review_id}")
def delete_review(
    review_id: UUID,
    actor_id: UUID = Depends(get_actor_id),
    service: ReviewService = Depends(get_review_service),
):
    service.delete_review(review_id, actor_id)
    return success(None, "Review deleted successfully")
