"""
Business review model - customer ratings of a business.
"""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4, UUID

from sqlalchemy import Integer, Text, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.lib.db import Base


class BusinessReview(Base):
    """
    Review entity - one per (business, customer), optionally tied to a booking.
    """
    __tablename__ = "business_reviews"

    # Primary key
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
        comment="Review author (customer)",
    )
    booking_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("bookings.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Ratings (1-5 scale); sub-ratings are optional
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    service_quality: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    professionalism: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    value_for_money: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    review_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Owner response
    response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("business_id", "user_id", name="uq_business_review_author"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="review_rating_range"),
        CheckConstraint(
            "service_quality IS NULL OR (service_quality >= 1 AND service_quality <= 5)",
            name="review_service_quality_range",
        ),
        CheckConstraint(
            "professionalism IS NULL OR (professionalism >= 1 AND professionalism <= 5)",
            name="review_professionalism_range",
        ),
        CheckConstraint(
            "value_for_money IS NULL OR (value_for_money >= 1 AND value_for_money <= 5)",
            name="review_value_for_money_range",
        ),
        Index("ix_business_reviews_business_created", "business_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<BusinessReview(id={self.id}, business_id={self.business_id}, rating={self.rating})>"
