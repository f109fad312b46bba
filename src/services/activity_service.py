"""
ActivityService - business engagement event log and analytics.

Records append-only activity events and derives, on demand:
- Windowed event counts (views, inquiries, reviews, jobs, contact clicks)
- Conversion rate (jobs completed / inquiries received)
- Engagement rate (contact clicks / profile views)
- Daily series grouped by UTC calendar date

Analytics are pure functions of the log for a given `now`; nothing is cached.
"""
from typing import Dict, Any, List, Optional
from datetime import datetime, timedelta
from uuid import UUID
import enum

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from src.lib.clock import utcnow, as_utc
from src.lib.config_flags import get_engagement_rules
from src.lib.exceptions import ValidationException
from src.lib.logging import get_logger
from src.lib.metrics import get_metrics_collector
from src.lib.numbers import safe_percentage
from src.models.activity_log import BusinessActivityLog, ActivityType
from src.services.directory_service import BusinessDirectory


logger = get_logger(__name__)


class AnalyticsPeriod(str, enum.Enum):
    """Look-back windows offered by the analytics dashboard."""
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    ALL = "all"


PERIOD_DAYS = {
    AnalyticsPeriod.LAST_7_DAYS: 7,
    AnalyticsPeriod.LAST_30_DAYS: 30,
    AnalyticsPeriod.LAST_90_DAYS: 90,
}

# Daily series column for each event type; profile updates are not charted
DAILY_FIELDS = {
    ActivityType.PROFILE_VIEWED.value: "views",
    ActivityType.INQUIRY_RECEIVED.value: "inquiries",
    ActivityType.REVIEW_RECEIVED.value: "reviews",
    ActivityType.JOB_COMPLETED.value: "jobs",
    ActivityType.CONTACT_CLICKED.value: "contacts",
}


class ActivityService:
    """Service for recording business activity and computing engagement analytics."""

    def __init__(self, db: Session, directory: Optional[BusinessDirectory] = None):
        self.db = db
        self.directory = directory or BusinessDirectory(db)

    def log_activity(
        self,
        business_id: UUID,
        activity_type: ActivityType,
        metadata: Optional[Dict[str, Any]] = None,
        commit: bool = True,
        occurred_at: Optional[datetime] = None,
    ) -> BusinessActivityLog:
        """
        Append one event to the business activity log.

        Args:
            business_id: Business the event is about
            activity_type: Event type
            metadata: Optional JSON-serialisable context
            commit: Commit immediately; pass False to join the caller's transaction
            occurred_at: Event time (default: now)

        Returns:
            The stored log entry
        """
        activity_type = ActivityType(activity_type)
        entry = BusinessActivityLog(
            business_id=business_id,
            activity_type=activity_type.value,
            event_metadata=metadata,
            created_at=as_utc(occurred_at) if occurred_at else utcnow(),
        )
        self.db.add(entry)
        if commit:
            self.db.commit()
            self.db.refresh(entry)
        else:
            self.db.flush()

        get_metrics_collector().increment_activity(activity_type.value)
        logger.debug(
            "Activity logged",
            extra={"business_id": str(business_id), "activity_type": activity_type.value},
        )
        return entry

    def log_public_event(
        self,
        business_id: UUID,
        activity_type: ActivityType,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> BusinessActivityLog:
        """Record an anonymous profile view or contact click against an existing business."""
        if activity_type not in (ActivityType.PROFILE_VIEWED, ActivityType.CONTACT_CLICKED):
            raise ValidationException(
                "Only profile views and contact clicks can be logged publicly",
                errors={"activity_type": activity_type.value},
            )
        self.directory.require_business(business_id)
        return self.log_activity(business_id, activity_type, metadata)

    def get_recent_activity(
        self,
        business_id: UUID,
        limit: Optional[int] = None,
        actor_id: Optional[UUID] = None,
    ) -> List[BusinessActivityLog]:
        """Most recent events first. When actor_id is given it must be the owner."""
        self._authorize(business_id, actor_id)
        if limit is None:
            limit = get_engagement_rules().recent_activity_limit
        stmt = (
            select(BusinessActivityLog)
            .where(BusinessActivityLog.business_id == business_id)
            .order_by(BusinessActivityLog.created_at.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_analytics(
        self,
        business_id: UUID,
        period: str = AnalyticsPeriod.LAST_30_DAYS.value,
        now: Optional[datetime] = None,
        actor_id: Optional[UUID] = None,
    ) -> Dict[str, Any]:
        """
        Windowed engagement metrics plus the business's live trust snapshot.

        Args:
            business_id: Business to analyse
            period: One of 7d, 30d, 90d, all ("all" starts at the business's creation)
            now: Window end (default: current UTC time)
            actor_id: When given, must be the business owner

        Returns:
            {
                'period': str,
                'start_date': datetime,
                'end_date': datetime,
                'metrics': {
                    'profile_views', 'inquiries_received', 'reviews_received',
                    'jobs_completed', 'contact_clicks': int,
                    'conversion_rate', 'engagement_rate': float  # %
                },
                'business': {'rating', 'review_count', 'completed_jobs',
                             'verification_level', 'is_verified'}
            }
        """
        try:
            period_enum = AnalyticsPeriod(period)
        except ValueError:
            raise ValidationException(
                f"Unsupported analytics period '{period}'",
                errors={"period": [p.value for p in AnalyticsPeriod]},
            )

        business = self._authorize(business_id, actor_id)
        end_date = as_utc(now) if now else utcnow()
        if period_enum is AnalyticsPeriod.ALL:
            start_date = as_utc(business.created_at)
        else:
            start_date = end_date - timedelta(days=PERIOD_DAYS[period_enum])

        counts = self._count_by_type(business_id, start_date, end_date)
        profile_views = counts.get(ActivityType.PROFILE_VIEWED.value, 0)
        inquiries_received = counts.get(ActivityType.INQUIRY_RECEIVED.value, 0)
        reviews_received = counts.get(ActivityType.REVIEW_RECEIVED.value, 0)
        jobs_completed = counts.get(ActivityType.JOB_COMPLETED.value, 0)
        contact_clicks = counts.get(ActivityType.CONTACT_CLICKED.value, 0)

        logger.info(
            "Calculated business analytics",
            extra={
                "business_id": str(business_id),
                "period": period_enum.value,
                "events": sum(counts.values()),
            },
        )

        return {
            'period': period_enum.value,
            'start_date': start_date,
            'end_date': end_date,
            'metrics': {
                'profile_views': profile_views,
                'inquiries_received': inquiries_received,
                'reviews_received': reviews_received,
                'jobs_completed': jobs_completed,
                'contact_clicks': contact_clicks,
                'conversion_rate': safe_percentage(jobs_completed, inquiries_received),
                'engagement_rate': safe_percentage(contact_clicks, profile_views),
            },
            'business': {
                'rating': float(business.rating or 0),
                'review_count': business.review_count,
                'completed_jobs': business.completed_jobs,
                'verification_level': business.verification_level,
                'is_verified': business.is_verified,
            },
        }

    def get_daily_stats(
        self,
        business_id: UUID,
        days: Optional[int] = None,
        now: Optional[datetime] = None,
        actor_id: Optional[UUID] = None,
    ) -> List[Dict[str, Any]]:
        """
        Per-day event counts for the last `days` days.

        Only dates with at least one event appear; dates come out in ascending
        event order. Each event lands in exactly one bucket: its UTC date.

        Returns:
            [{'date': 'YYYY-MM-DD', 'views', 'inquiries', 'reviews', 'jobs', 'contacts'}, ...]
        """
        rules = get_engagement_rules()
        if days is None:
            days = rules.daily_stats_default_days
        if days < 1 or days > rules.daily_stats_max_days:
            raise ValidationException(
                f"days must be between 1 and {rules.daily_stats_max_days}",
                errors={"days": days},
            )
        self._authorize(business_id, actor_id)

        end_date = as_utc(now) if now else utcnow()
        start_date = end_date - timedelta(days=days)

        stmt = (
            select(BusinessActivityLog.activity_type, BusinessActivityLog.created_at)
            .where(
                BusinessActivityLog.business_id == business_id,
                BusinessActivityLog.created_at.between(start_date, end_date),
            )
            .order_by(BusinessActivityLog.created_at.asc(), BusinessActivityLog.id.asc())
        )

        daily: Dict[str, Dict[str, Any]] = {}
        for activity_type, created_at in self.db.execute(stmt):
            day = as_utc(created_at).date().isoformat()
            bucket = daily.get(day)
            if bucket is None:
                bucket = daily[day] = {
                    'date': day,
                    'views': 0,
                    'inquiries': 0,
                    'reviews': 0,
                    'jobs': 0,
                    'contacts': 0,
                }
            field = DAILY_FIELDS.get(activity_type)
            if field:
                bucket[field] += 1

        return list(daily.values())

    def _authorize(self, business_id: UUID, actor_id: Optional[UUID]):
        if actor_id is None:
            return self.directory.require_business(business_id)
        return self.directory.require_owner(
            business_id, actor_id, message="You can only view analytics for your own business"
        )

    def _count_by_type(self, business_id: UUID, start_date: datetime, end_date: datetime) -> Dict[str, int]:
        stmt = (
            select(BusinessActivityLog.activity_type, func.count(BusinessActivityLog.id))
            .where(
                BusinessActivityLog.business_id == business_id,
                BusinessActivityLog.created_at.between(start_date, end_date),
            )
            .group_by(BusinessActivityLog.activity_type)
        )
        return {activity_type: count for activity_type, count in self.db.execute(stmt)}


def get_activity_service(db: Session) -> ActivityService:
    """Get ActivityService instance."""
    return ActivityService(db)
