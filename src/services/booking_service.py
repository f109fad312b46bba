"""
BookingService - booking lifecycle with dual-party authorization.

State machine:
    pending → confirmed → in_progress → completed
    any non-terminal state → cancelled
completed and cancelled are terminal.

Only the booking's customer or the owning business's owner may change a
booking. Completion unlocks review eligibility and feeds the activity log.
"""
from typing import Dict, Any, List, Optional
from datetime import date, time
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from src.lib.clock import utcnow
from src.lib.config_flags import get_engagement_rules
from src.lib.exceptions import NotFoundException, InvalidStateException, ValidationException
from src.lib.logging import get_logger
from src.lib.metrics import get_metrics_collector
from src.lib.pagination import paginate
from src.lib.permissions import require_party
from src.models.activity_log import ActivityType
from src.models.bookings import Booking, BookingStatus
from src.models.business_profiles import BusinessProfile
from src.services.activity_service import ActivityService
from src.services.directory_service import BusinessDirectory


logger = get_logger(__name__)


ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED},
    BookingStatus.IN_PROGRESS: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}


def can_transition(current: BookingStatus, target: BookingStatus, strict: bool = True) -> bool:
    """
    Whether a booking may move from `current` to `target`.

    Terminal bookings never move. In non-strict mode any other change is
    accepted, which admin tooling uses to correct mistaken statuses.
    """
    if current.is_terminal:
        return False
    if not strict:
        return True
    return target in ALLOWED_TRANSITIONS[current]


class BookingService:
    """Service owning booking creation, status changes and review eligibility."""

    def __init__(
        self,
        db: Session,
        directory: Optional[BusinessDirectory] = None,
        activity: Optional[ActivityService] = None,
    ):
        self.db = db
        self.directory = directory or BusinessDirectory(db)
        self.activity = activity or ActivityService(db, self.directory)

    def create_booking(
        self,
        customer_id: UUID,
        business_id: UUID,
        service_id: Optional[UUID] = None,
        scheduled_date: Optional[date] = None,
        scheduled_time: Optional[time] = None,
        address: Optional[str] = None,
        description: Optional[str] = None,
        price: Optional[Decimal] = None,
    ) -> Booking:
        """
        Create a pending booking.

        Raises:
            NotFoundException: Business missing, or service not offered by it
            InvalidStateException: Business owner has no verified payout account
        """
        business = self.directory.require_business(business_id)

        if (
            get_engagement_rules().require_verified_payout_account
            and not self.directory.has_verified_payout_account(business.user_id)
        ):
            logger.warning(
                "Booking rejected: business not payout-ready",
                extra={"business_id": str(business_id), "customer_id": str(customer_id)},
            )
            raise InvalidStateException(
                "This business owner has not set up a verified bank account. "
                "Please contact the business owner to add a bank account before booking.",
                details={"reason": "business_not_payout_ready", "business_id": str(business_id)},
            )

        service_name = None
        if service_id is not None:
            service = self.directory.get_service(business_id, service_id)
            if service is None:
                raise NotFoundException(
                    "Service", str(service_id), message="Service not found for this business"
                )
            service_name = service.service_name
            if price is None and service.price_min is not None:
                price = service.price_min

        booking = Booking(
            user_id=customer_id,
            business_id=business_id,
            service_id=service_id,
            service_name=service_name,
            status=BookingStatus.PENDING,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            address=address,
            description=description,
            price=price if price is not None else Decimal("0"),
        )
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)

        logger.info(
            "Booking created",
            extra={
                "booking_id": str(booking.id),
                "business_id": str(business_id),
                "customer_id": str(customer_id),
            },
        )
        return booking

    def get_booking(self, booking_id: UUID, actor_id: Optional[UUID] = None) -> Booking:
        """
        Load a booking. When actor_id is given it must be the customer or the business owner.
        """
        booking = self._load(booking_id)
        if actor_id is not None:
            business = self.directory.require_business(booking.business_id)
            require_party(
                actor_id, booking.user_id, business.user_id,
                message="You do not have permission to view this booking",
            )
        return booking

    def update_status(
        self,
        booking_id: UUID,
        actor_id: UUID,
        new_status: BookingStatus,
        cancellation_reason: Optional[str] = None,
    ) -> Booking:
        """
        Move a booking to a new status.

        Side effects:
            completed: completed_at stamped, can_review set, business completed_jobs
                incremented and a job_completed activity event recorded
            cancelled: cancelled_at stamped, reason stored verbatim

        Raises:
            NotFoundException: Booking or business missing
            ForbiddenException: Actor is neither customer nor business owner
            InvalidStateException: Transition not allowed from the current status
        """
        new_status = BookingStatus(new_status)
        booking = self._load(booking_id, for_update=True)
        business = self.directory.require_business(booking.business_id)

        require_party(
            actor_id, booking.user_id, business.user_id,
            message="You do not have permission to update this booking",
        )

        previous = booking.status
        if not can_transition(previous, new_status, get_engagement_rules().strict_booking_transitions):
            logger.warning(
                "Booking transition rejected",
                extra={
                    "booking_id": str(booking_id),
                    "from_status": previous.value,
                    "to_status": new_status.value,
                },
            )
            raise InvalidStateException(
                f"Cannot change booking status from {previous.value} to {new_status.value}",
                details={"from_status": previous.value, "to_status": new_status.value},
            )

        booking.status = new_status
        now = utcnow()

        if new_status is BookingStatus.COMPLETED:
            booking.completed_at = now
            booking.can_review = True
            self.db.execute(
                update(BusinessProfile)
                .where(BusinessProfile.id == business.id)
                .values(completed_jobs=BusinessProfile.completed_jobs + 1)
            )
            self.activity.log_activity(
                business.id,
                ActivityType.JOB_COMPLETED,
                {"booking_id": str(booking.id)},
                commit=False,
                occurred_at=now,
            )

        if new_status is BookingStatus.CANCELLED:
            booking.cancelled_at = now
            booking.cancellation_reason = cancellation_reason

        self.db.commit()
        self.db.refresh(booking)

        get_metrics_collector().increment_booking_transition(previous.value, new_status.value)
        logger.info(
            "Booking status updated",
            extra={
                "booking_id": str(booking_id),
                "actor_id": str(actor_id),
                "from_status": previous.value,
                "to_status": new_status.value,
            },
        )
        return booking

    def cancel(self, booking_id: UUID, actor_id: UUID, reason: Optional[str] = None) -> Booking:
        """
        Cancel a booking on behalf of its customer or the business owner.

        Raises:
            InvalidStateException: Booking already completed or cancelled
        """
        booking = self._load(booking_id, for_update=True)
        business = self.directory.require_business(booking.business_id)

        require_party(
            actor_id, booking.user_id, business.user_id,
            message="You do not have permission to cancel this booking",
        )

        if booking.status.is_terminal:
            raise InvalidStateException(
                "Cannot cancel a completed or already cancelled booking",
                details={"status": booking.status.value},
            )

        previous = booking.status
        booking.status = BookingStatus.CANCELLED
        booking.cancelled_at = utcnow()
        if reason is not None:
            booking.cancellation_reason = reason
        self.db.commit()
        self.db.refresh(booking)

        get_metrics_collector().increment_booking_transition(previous.value, BookingStatus.CANCELLED.value)
        logger.info(
            "Booking cancelled",
            extra={"booking_id": str(booking_id), "actor_id": str(actor_id)},
        )
        return booking

    def list_reviewable(self, customer_id: UUID) -> List[Booking]:
        """Completed, review-eligible, not-yet-reviewed bookings, most recently completed first."""
        stmt = (
            select(Booking)
            .where(
                Booking.user_id == customer_id,
                Booking.status == BookingStatus.COMPLETED,
                Booking.can_review.is_(True),
                Booking.has_reviewed.is_(False),
            )
            .order_by(Booking.completed_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_for_customer(
        self,
        customer_id: UUID,
        status: Optional[BookingStatus] = None,
        business_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Paginated bookings placed by a customer, newest first."""
        stmt = select(Booking).where(Booking.user_id == customer_id)
        if business_id is not None:
            stmt = stmt.where(Booking.business_id == business_id)
        stmt = self._apply_common_filters(stmt, status, start_date, end_date)
        return paginate(self.db, stmt.order_by(Booking.created_at.desc()), page, limit)

    def list_for_business(
        self,
        business_id: UUID,
        actor_id: UUID,
        status: Optional[BookingStatus] = None,
        customer_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Paginated bookings received by a business, newest first. Owner only."""
        business = self.directory.require_business(business_id)
        require_party(
            actor_id, business.user_id,
            message="You can only view bookings for your own business",
        )

        stmt = select(Booking).where(Booking.business_id == business_id)
        if customer_id is not None:
            stmt = stmt.where(Booking.user_id == customer_id)
        stmt = self._apply_common_filters(stmt, status, start_date, end_date)
        return paginate(self.db, stmt.order_by(Booking.created_at.desc()), page, limit)

    def _apply_common_filters(self, stmt, status, start_date, end_date):
        if start_date and end_date and start_date > end_date:
            raise ValidationException(
                "start_date must not be after end_date",
                errors={"start_date": str(start_date), "end_date": str(end_date)},
            )
        if status is not None:
            stmt = stmt.where(Booking.status == BookingStatus(status))
        if start_date is not None:
            stmt = stmt.where(Booking.scheduled_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Booking.scheduled_date <= end_date)
        return stmt

    def _load(self, booking_id: UUID, for_update: bool = False) -> Booking:
        stmt = select(Booking).where(Booking.id == booking_id)
        if for_update:
            stmt = stmt.with_for_update()
        booking = self.db.execute(stmt).scalar_one_or_none()
        if booking is None:
            raise NotFoundException("Booking", str(booking_id), message="Booking not found")
        return booking


def get_booking_service(db: Session) -> BookingService:
    """Get BookingService instance."""
    return BookingService(db)
