"""
Business activity log model - append-only engagement events per business.
"""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4, UUID
import enum

from sqlalchemy import String, DateTime, ForeignKey, Index, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.lib.db import Base


class ActivityType(str, enum.Enum):
    """Business activity event type enumeration."""
    JOB_COMPLETED = "job_completed"
    REVIEW_RECEIVED = "review_received"
    INQUIRY_RECEIVED = "inquiry_received"
    PROFILE_UPDATED = "profile_updated"
    PROFILE_VIEWED = "profile_viewed"
    CONTACT_CLICKED = "contact_clicked"


class BusinessActivityLog(Base):
    """
    Activity entry - immutable; the source of truth for all business analytics.
    """
    __tablename__ = "business_activity_log"

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

    # Stored as plain strings so the enum can grow without a type migration
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # Event metadata (booking_id, review_id, rating, referrer, etc.)
    event_metadata: Mapped[Optional[dict]] = mapped_column(
        "metadata",
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_business_activity_business_created", "business_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<BusinessActivityLog(id={self.id}, business_id={self.business_id}, type={self.activity_type})>"
