"""
Business inquiry model - customer messages to a business.
"""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4, UUID
import enum

from sqlalchemy import String, Text, DateTime, ForeignKey, Index, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.lib.db import Base


class InquiryType(str, enum.Enum):
    """What the customer is asking for."""
    BOOKING = "booking"
    QUESTION = "question"
    QUOTE = "quote"


class InquiryStatus(str, enum.Enum):
    """Inquiry workflow: pending → responded → closed."""
    PENDING = "pending"
    RESPONDED = "responded"
    CLOSED = "closed"


class PreferredContact(str, enum.Enum):
    CALL = "call"
    MESSAGE = "message"
    WHATSAPP = "whatsapp"


class BusinessInquiry(Base):
    """
    Inquiry entity - one customer message and the business's reply.
    """
    __tablename__ = "business_inquiries"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    business_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("business_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
        comment="Customer who sent the inquiry",
    )

    inquiry_type: Mapped[InquiryType] = mapped_column(
        SQLEnum(InquiryType, name="inquiry_type"),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)

    # Contact preferences
    phone_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    preferred_contact: Mapped[Optional[PreferredContact]] = mapped_column(
        SQLEnum(PreferredContact, name="preferred_contact"),
        nullable=True,
    )
    preferred_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    status: Mapped[InquiryStatus] = mapped_column(
        SQLEnum(InquiryStatus, name="inquiry_status"),
        nullable=False,
        default=InquiryStatus.PENDING,
    )

    # Business reply
    response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_business_inquiries_business_status", "business_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<BusinessInquiry(id={self.id}, business_id={self.business_id}, status={self.status})>"
