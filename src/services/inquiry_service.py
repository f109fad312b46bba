"""
InquiryService - customer inquiries and the business response workflow.

Status only moves forward: pending → responded → closed (pending may also be
closed without a reply). responded_at is stamped once, by the first reply.
"""
from typing import Dict, Any, Optional
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from src.lib.clock import utcnow
from src.lib.config_flags import get_engagement_rules
from src.lib.exceptions import NotFoundException, InvalidStateException, ValidationException
from src.lib.logging import get_logger
from src.lib.metrics import get_metrics_collector
from src.lib.numbers import safe_percentage
from src.lib.pagination import paginate
from src.lib.permissions import require_party
from src.models.activity_log import ActivityType
from src.models.inquiries import BusinessInquiry, InquiryStatus, InquiryType, PreferredContact
from src.services.activity_service import ActivityService
from src.services.directory_service import BusinessDirectory


logger = get_logger(__name__)


FORWARD_TRANSITIONS = {
    InquiryStatus.PENDING: {InquiryStatus.RESPONDED, InquiryStatus.CLOSED},
    InquiryStatus.RESPONDED: {InquiryStatus.CLOSED},
    InquiryStatus.CLOSED: set(),
}


class InquiryService:
    """Service for inquiry intake, owner replies and response-rate statistics."""

    def __init__(
        self,
        db: Session,
        directory: Optional[BusinessDirectory] = None,
        activity: Optional[ActivityService] = None,
    ):
        self.db = db
        self.directory = directory or BusinessDirectory(db)
        self.activity = activity or ActivityService(db, self.directory)

    def create_inquiry(
        self,
        business_id: UUID,
        customer_id: UUID,
        inquiry_type: InquiryType,
        message: str,
        phone_number: Optional[str] = None,
        preferred_contact: Optional[PreferredContact] = None,
        preferred_date: Optional[datetime] = None,
    ) -> BusinessInquiry:
        """
        Open a pending inquiry against an active business.

        The inquiry row and its inquiry_received activity event commit together.
        """
        if not message or not message.strip():
            raise ValidationException("Inquiry message is required", errors={"message": "required"})

        self.directory.require_business(business_id, active_only=True)

        inquiry = BusinessInquiry(
            business_id=business_id,
            user_id=customer_id,
            inquiry_type=InquiryType(inquiry_type),
            message=message,
            phone_number=phone_number,
            preferred_contact=PreferredContact(preferred_contact) if preferred_contact else None,
            preferred_date=preferred_date,
            status=InquiryStatus.PENDING,
        )
        self.db.add(inquiry)
        self.db.flush()
        self.activity.log_activity(
            business_id,
            ActivityType.INQUIRY_RECEIVED,
            {"inquiry_id": str(inquiry.id), "inquiry_type": inquiry.inquiry_type.value},
            commit=False,
        )
        self.db.commit()
        self.db.refresh(inquiry)

        get_metrics_collector().increment_inquiry_event("created")
        logger.info(
            "Inquiry created",
            extra={
                "inquiry_id": str(inquiry.id),
                "business_id": str(business_id),
                "customer_id": str(customer_id),
            },
        )
        return inquiry

    def respond(self, inquiry_id: UUID, actor_id: UUID, response_text: str) -> BusinessInquiry:
        """Record the owner's reply and mark the inquiry responded."""
        inquiry = self._load_for_owner(
            inquiry_id, actor_id, "You can only respond to inquiries for your own business"
        )

        if not response_text or not response_text.strip():
            raise ValidationException("Response text is required", errors={"response": "required"})
        if inquiry.status is not InquiryStatus.PENDING:
            raise InvalidStateException(
                "Inquiry has already been responded to or closed",
                details={"status": inquiry.status.value},
            )

        inquiry.response = response_text
        inquiry.responded_at = utcnow()
        inquiry.status = InquiryStatus.RESPONDED
        self.db.commit()
        self.db.refresh(inquiry)

        get_metrics_collector().increment_inquiry_event("responded")
        logger.info("Inquiry responded", extra={"inquiry_id": str(inquiry_id)})
        return inquiry

    def update_status(self, inquiry_id: UUID, actor_id: UUID, status: InquiryStatus) -> BusinessInquiry:
        """
        Change an inquiry's status (owner only).

        With strict_inquiry_transitions, backwards moves raise InvalidStateException;
        re-applying the current status is a no-op.
        """
        status = InquiryStatus(status)
        inquiry = self._load_for_owner(
            inquiry_id, actor_id, "You can only update inquiries for your own business"
        )

        previous = inquiry.status
        if previous is status:
            return inquiry
        if get_engagement_rules().strict_inquiry_transitions and status not in FORWARD_TRANSITIONS[previous]:
            raise InvalidStateException(
                f"Cannot change inquiry status from {previous.value} to {status.value}",
                details={"from_status": previous.value, "to_status": status.value},
            )

        inquiry.status = status
        self.db.commit()
        self.db.refresh(inquiry)

        get_metrics_collector().increment_inquiry_event("status_changed")
        logger.info(
            "Inquiry status updated",
            extra={"inquiry_id": str(inquiry_id), "from_status": previous.value, "to_status": status.value},
        )
        return inquiry

    def list_for_business(
        self,
        business_id: UUID,
        actor_id: UUID,
        status: Optional[InquiryStatus] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Paginated inquiries received by a business, newest first. Owner only."""
        business = self.directory.require_business(business_id)
        require_party(actor_id, business.user_id, message="You can only view inquiries for your own business")

        stmt = select(BusinessInquiry).where(BusinessInquiry.business_id == business_id)
        if status is not None:
            stmt = stmt.where(BusinessInquiry.status == InquiryStatus(status))
        return paginate(self.db, stmt.order_by(BusinessInquiry.created_at.desc()), page, limit)

    def list_for_customer(
        self,
        customer_id: UUID,
        status: Optional[InquiryStatus] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Paginated inquiries a customer has sent, newest first."""
        stmt = select(BusinessInquiry).where(BusinessInquiry.user_id == customer_id)
        if status is not None:
            stmt = stmt.where(BusinessInquiry.status == InquiryStatus(status))
        return paginate(self.db, stmt.order_by(BusinessInquiry.created_at.desc()), page, limit)

    def get_stats(self, business_id: UUID, actor_id: Optional[UUID] = None) -> Dict[str, Any]:
        """
        Inquiry counts by status and the response rate.

        response_rate = (responded + closed) / total * 100, 0 when there are none.
        """
        business = self.directory.require_business(business_id)
        if actor_id is not None:
            require_party(actor_id, business.user_id, message="You can only view inquiries for your own business")

        rows = self.db.execute(
            select(BusinessInquiry.status, func.count(BusinessInquiry.id))
            .where(BusinessInquiry.business_id == business_id)
            .group_by(BusinessInquiry.status)
        )
        counts = {status: 0 for status in InquiryStatus}
        for status, count in rows:
            counts[InquiryStatus(status)] = count

        total = sum(counts.values())
        answered = counts[InquiryStatus.RESPONDED] + counts[InquiryStatus.CLOSED]
        return {
            'total': total,
            'pending': counts[InquiryStatus.PENDING],
            'responded': counts[InquiryStatus.RESPONDED],
            'closed': counts[InquiryStatus.CLOSED],
            'response_rate': safe_percentage(answered, total),
        }

    def _load_for_owner(self, inquiry_id: UUID, actor_id: UUID, message: str) -> BusinessInquiry:
        inquiry = self.db.execute(
            select(BusinessInquiry).where(BusinessInquiry.id == inquiry_id).with_for_update()
        ).scalar_one_or_none()
        if inquiry is None:
            raise NotFoundException("Inquiry", str(inquiry_id), message="Inquiry not found")
        business = self.directory.require_business(inquiry.business_id)
        require_party(actor_id, business.user_id, message=message)
        return inquiry


def get_inquiry_service(db: Session) -> InquiryService:
    """Get InquiryService instance."""
    return InquiryService(db)
