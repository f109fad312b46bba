"""
Business rules and tunables for the engagement engine.

Provides centralized configuration for:
- Status transition enforcement (bookings, inquiries)
- Booking payout-readiness requirement
- Pagination bounds
- Analytics windows
"""
from typing import Optional
from pydantic import BaseModel, Field

from src.lib.logging import get_logger


logger = get_logger(__name__)


class EngagementRules(BaseModel):
    """Rules applied by the booking, inquiry and analytics services."""

    strict_booking_transitions: bool = Field(
        default=True,
        description="Reject booking status changes outside the transition table"
    )
    strict_inquiry_transitions: bool = Field(
        default=True,
        description="Reject inquiry status changes that move backwards"
    )
    require_verified_payout_account: bool = Field(
        default=True,
        description="Business owner needs a verified bank account before accepting bookings"
    )

    default_page_size: int = Field(default=20, ge=1, le=100)
    max_page_size: int = Field(default=100, ge=1, le=500)

    recent_activity_limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Default number of entries returned by the recent activity feed"
    )
    daily_stats_default_days: int = Field(default=30, ge=1, le=365)
    daily_stats_max_days: int = Field(default=365, ge=1, le=3650)

    class Config:
        json_schema_extra = {
            "example": {
                "strict_booking_transitions": True,
                "strict_inquiry_transitions": True,
                "require_verified_payout_account": True,
                "default_page_size": 20,
                "recent_activity_limit": 50,
            }
        }


_engagement_rules: Optional[EngagementRules] = None


def get_engagement_rules() -> EngagementRules:
    """Get engagement rules, initializing defaults on first use."""
    global _engagement_rules
    if _engagement_rules is None:
        _engagement_rules = EngagementRules()
        logger.info("Initialized default engagement rules")
    return _engagement_rules


def set_engagement_rules(rules: EngagementRules) -> None:
    """
    Override engagement rules.

    Args:
        rules: New EngagementRules configuration
    """
    global _engagement_rules
    _engagement_rules = rules
    logger.info("Updated engagement rules", extra={
        "strict_booking_transitions": rules.strict_booking_transitions,
        "strict_inquiry_transitions": rules.strict_inquiry_transitions,
        "require_verified_payout_account": rules.require_verified_payout_account,
    })


def reset_all_configs() -> None:
    """Reset all configurations to defaults (useful for testing)."""
    global _engagement_rules
    _engagement_rules = None
    logger.info("Reset all configurations to defaults")
