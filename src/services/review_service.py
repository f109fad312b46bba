"""
ReviewService - business reviews and the cached aggregate rating.

Rules:
- One review per (business, customer); owners cannot review their own business
- A linked booking must belong to the same customer and business and be unreviewed
- Only the author updates or deletes a review; only the owner responds to it

Every create/update/delete recomputes the business's cached rating and review
count from the full review set. Recomputation is serialized per business (an
in-process keyed lock plus a row lock on the business where the database
supports it) so concurrent review writes cannot leave a stale aggregate behind.
"""
from typing import Dict, Any, Optional
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.lib.clock import utcnow
from src.lib.exceptions import (
    NotFoundException,
    ForbiddenException,
    InvalidStateException,
    ValidationException,
)
from src.lib.locks import KeyedLock
from src.lib.logging import get_logger
from src.lib.metrics import get_metrics_collector
from src.lib.numbers import safe_average
from src.lib.pagination import paginate
from src.lib.permissions import is_party, require_party
from src.models.activity_log import ActivityType
from src.models.bookings import Booking
from src.models.business_profiles import BusinessProfile
from src.models.reviews import BusinessReview
from src.services.activity_service import ActivityService
from src.services.directory_service import BusinessDirectory


logger = get_logger(__name__)

# Shared by every ReviewService instance in the process
_rating_locks = KeyedLock()


def _validate_ratings(**ratings: Optional[int]) -> None:
    errors = {}
    for name, value in ratings.items():
        if value is None:
            if name == "rating":
                errors[name] = "required"
            continue
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
            errors[name] = "must be an integer between 1 and 5"
    if errors:
        raise ValidationException("Invalid review ratings", errors=errors)


class ReviewService:
    """Service for review mutations, review statistics and the business rating cache."""

    def __init__(
        self,
        db: Session,
        directory: Optional[BusinessDirectory] = None,
        activity: Optional[ActivityService] = None,
    ):
        self.db = db
        self.directory = directory or BusinessDirectory(db)
        self.activity = activity or ActivityService(db, self.directory)

    def create_review(
        self,
        business_id: UUID,
        customer_id: UUID,
        rating: int,
        service_quality: Optional[int] = None,
        professionalism: Optional[int] = None,
        value_for_money: Optional[int] = None,
        review_text: Optional[str] = None,
        booking_id: Optional[UUID] = None,
    ) -> BusinessReview:
        """
        Create a review and refresh the business's aggregate rating.

        Raises:
            NotFoundException: Business missing, or booking not the customer's for this business
            ForbiddenException: Customer owns the business
            InvalidStateException: Customer already reviewed the business, or booking already reviewed
            ValidationException: Rating outside 1..5
        """
        _validate_ratings(
            rating=rating,
            service_quality=service_quality,
            professionalism=professionalism,
            value_for_money=value_for_money,
        )
        business = self.directory.require_business(business_id)

        if is_party(customer_id, business.user_id):
            raise ForbiddenException("You cannot review your own business")

        existing = self.db.execute(
            select(BusinessReview.id).where(
                BusinessReview.business_id == business_id,
                BusinessReview.user_id == customer_id,
            )
        ).first()
        if existing is not None:
            raise InvalidStateException(
                "You have already reviewed this business. Use update endpoint instead.",
                details={"review_id": str(existing[0])},
            )

        booking = None
        if booking_id is not None:
            booking = self.db.execute(
                select(Booking)
                .where(
                    Booking.id == booking_id,
                    Booking.user_id == customer_id,
                    Booking.business_id == business_id,
                )
                .with_for_update()
            ).scalar_one_or_none()
            if booking is None:
                raise NotFoundException(
                    "Booking", str(booking_id), message="Booking not found or does not belong to you"
                )
            if booking.has_reviewed:
                raise InvalidStateException("This booking has already been reviewed")

        review = BusinessReview(
            business_id=business_id,
            user_id=customer_id,
            booking_id=booking_id,
            rating=rating,
            service_quality=service_quality,
            professionalism=professionalism,
            value_for_money=value_for_money,
            review_text=review_text,
        )
        self.db.add(review)
        try:
            self.db.flush()
            if booking is not None:
                booking.has_reviewed = True
                booking.review_id = review.id
            self.activity.log_activity(
                business_id,
                ActivityType.REVIEW_RECEIVED,
                {"review_id": str(review.id), "rating": rating},
                commit=False,
            )
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent create for the same pair
            self.db.rollback()
            raise InvalidStateException("You have already reviewed this business. Use update endpoint instead.")
        self.db.refresh(review)

        get_metrics_collector().increment_review_mutation("created")
        logger.info(
            "Review created",
            extra={
                "review_id": str(review.id),
                "business_id": str(business_id),
                "customer_id": str(customer_id),
                "rating": rating,
            },
        )

        self._refresh_after_write(business_id)
        return review

    def get_review(self, review_id: UUID) -> BusinessReview:
        review = self.db.get(BusinessReview, review_id)
        if review is None:
            raise NotFoundException("Review", str(review_id), message="Review not found")
        return review

    def list_for_business(
        self,
        business_id: UUID,
        rating: Optional[int] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Paginated reviews for a business, newest first, optionally only one star value."""
        self.directory.require_business(business_id)
        stmt = select(BusinessReview).where(BusinessReview.business_id == business_id)
        if rating is not None:
            _validate_ratings(rating=rating)
            stmt = stmt.where(BusinessReview.rating == rating)
        stmt = stmt.order_by(BusinessReview.created_at.desc())
        return paginate(self.db, stmt, page, limit)

    def respond_to_review(self, review_id: UUID, actor_id: UUID, response_text: str) -> BusinessReview:
        """Attach the business owner's public reply. Does not affect the rating."""
        review = self.get_review(review_id)
        business = self.directory.require_business(review.business_id)
        require_party(actor_id, business.user_id, message="Only the business owner can respond to reviews")

        if not response_text or not response_text.strip():
            raise ValidationException("Response text is required", errors={"response": "required"})

        review.response = response_text
        review.responded_at = utcnow()
        self.db.commit()
        self.db.refresh(review)

        get_metrics_collector().increment_review_mutation("responded")
        logger.info("Review response added", extra={"review_id": str(review_id)})
        return review

    def update_review(
        self,
        review_id: UUID,
        actor_id: UUID,
        rating: int,
        service_quality: Optional[int] = None,
        professionalism: Optional[int] = None,
        value_for_money: Optional[int] = None,
        review_text: Optional[str] = None,
    ) -> BusinessReview:
        """Replace a review's ratings and text (author only), then refresh the aggregate."""
        review = self.get_review(review_id)
        require_party(actor_id, review.user_id, message="You can only update your own reviews")
        _validate_ratings(
            rating=rating,
            service_quality=service_quality,
            professionalism=professionalism,
            value_for_money=value_for_money,
        )

        review.rating = rating
        review.service_quality = service_quality
        review.professionalism = professionalism
        review.value_for_money = value_for_money
        review.review_text = review_text
        self.db.commit()
        self.db.refresh(review)

        get_metrics_collector().increment_review_mutation("updated")
        logger.info("Review updated", extra={"review_id": str(review_id), "rating": rating})

        self._refresh_after_write(review.business_id)
        return review

    def delete_review(self, review_id: UUID, actor_id: UUID) -> None:
        """Remove a review (author only) and refresh the aggregate over the remaining set."""
        review = self.get_review(review_id)
        require_party(actor_id, review.user_id, message="You can only delete your own reviews")

        business_id = review.business_id
        linked_bookings = self.db.execute(
            select(Booking).where(Booking.review_id == review.id)
        ).scalars().all()
        for booking in linked_bookings:
            booking.has_reviewed = False
            booking.review_id = None

        self.db.delete(review)
        self.db.commit()

        get_metrics_collector().increment_review_mutation("deleted")
        logger.info("Review deleted", extra={"review_id": str(review_id), "business_id": str(business_id)})

        self._refresh_after_write(business_id)

    def get_review_stats(self, business_id: UUID) -> Dict[str, Any]:
        """
        Aggregate statistics over every current review of a business.

        Sub-rating averages only count reviews that carry that sub-rating.
        All averages are rounded half-up to two decimals.

        Returns:
            {
                'average_rating': float,
                'total_reviews': int,
                'rating_distribution': {1: int, 2: int, 3: int, 4: int, 5: int},
                'average_service_quality': float,
                'average_professionalism': float,
                'average_value_for_money': float,
            }
        """
        totals = self.db.execute(
            select(
                func.count(BusinessReview.id),
                func.sum(BusinessReview.rating),
                func.sum(BusinessReview.service_quality),
                func.count(BusinessReview.service_quality),
                func.sum(BusinessReview.professionalism),
                func.count(BusinessReview.professionalism),
                func.sum(BusinessReview.value_for_money),
                func.count(BusinessReview.value_for_money),
            ).where(BusinessReview.business_id == business_id)
        ).one()
        (
            total_reviews, rating_sum,
            quality_sum, quality_count,
            professionalism_sum, professionalism_count,
            value_sum, value_count,
        ) = totals

        distribution = {star: 0 for star in range(1, 6)}
        if total_reviews:
            rows = self.db.execute(
                select(BusinessReview.rating, func.count(BusinessReview.id))
                .where(BusinessReview.business_id == business_id)
                .group_by(BusinessReview.rating)
            )
            for star, count in rows:
                distribution[int(star)] = count

        return {
            'average_rating': safe_average(rating_sum or 0, total_reviews),
            'total_reviews': total_reviews,
            'rating_distribution': distribution,
            'average_service_quality': safe_average(quality_sum or 0, quality_count),
            'average_professionalism': safe_average(professionalism_sum or 0, professionalism_count),
            'average_value_for_money': safe_average(value_sum or 0, value_count),
        }

    def reconcile_business_rating(self, business_id: UUID) -> Dict[str, Any]:
        """Recompute and store the cached rating on demand. Errors propagate."""
        return self._refresh_business_rating(business_id)

    def _refresh_business_rating(self, business_id: UUID) -> Dict[str, Any]:
        with _rating_locks.hold(business_id):
            business = self.db.execute(
                select(BusinessProfile)
                .where(BusinessProfile.id == business_id)
                .with_for_update()
            ).scalar_one_or_none()
            if business is None:
                raise NotFoundException("Business", str(business_id), message="Business not found")

            stats = self.get_review_stats(business_id)
            business.rating = Decimal(str(stats['average_rating']))
            business.review_count = stats['total_reviews']
            self.db.commit()

        logger.debug(
            "Business rating refreshed",
            extra={
                "business_id": str(business_id),
                "rating": stats['average_rating'],
                "review_count": stats['total_reviews'],
            },
        )
        return stats

    def _refresh_after_write(self, business_id: UUID) -> None:
        # The review write is already committed; a failure here leaves the cache stale
        try:
            self._refresh_business_rating(business_id)
        except SQLAlchemyError:
            self.db.rollback()
            get_metrics_collector().increment_rating_recompute_failures()
            logger.error(
                "Business rating recomputation failed; reconciliation candidate",
                extra={"business_id": str(business_id)},
                exc_info=True,
            )


def get_review_service(db: Session) -> ReviewService:
    """Get ReviewService instance."""
    return ReviewService(db)
