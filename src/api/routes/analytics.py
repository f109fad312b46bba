"""
Business analytics API routes.

Routes:
- GET /businesses/{business_id}/analytics - Windowed metrics (owner)
- GET /businesses/{business_id}/analytics/daily - Daily series (owner)
- GET /businesses/{business_id}/analytics/recent - Latest activity events (owner)
- POST /businesses/{business_id}/analytics/view - Public profile view beacon
- POST /businesses/{business_id}/analytics/contact-click - Public contact click beacon

The two beacons fire from public profile pages and take no identity.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel

from src.api.dependencies import get_actor_id, get_activity_service
from src.api.responses import success, dump
from src.lib.logging import get_logger
from src.models.activity_log import ActivityType
from src.services.activity_service import ActivityService


logger = get_logger(__name__)
router = APIRouter(prefix="/businesses/{business_id}/analytics", tags=["analytics"])


class ActivityEntryResponse(BaseModel):
    id: UUID
    business_id: UUID
    activity_type: str
    event_metadata: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}


@router.get("")
def get_business_analytics(
    business_id: UUID,
    period: str = Query("30d", description="One of 7d, 30d, 90d, all"),
    actor_id: UUID = Depends(get_actor_id),
    service: ActivityService = Depends(get_activity_service),
):
    analytics = service.get_analytics(business_id, period=period, actor_id=actor_id)
    analytics['start_date'] = analytics['start_date'].isoformat()
    analytics['end_date'] = analytics['end_date'].isoformat()
    return success(analytics)


@router.get("/daily")
def get_daily_stats(
    business_id: UUID,
    days: int = Query(30, description="Days to look back (1-365)"),
    actor_id: UUID = Depends(get_actor_id),
    service: ActivityService = Depends(get_activity_service),
):
    return success(service.get_daily_stats(business_id, days=days, actor_id=actor_id))


@router.get("/recent")
def get_recent_activity(
    business_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    actor_id: UUID = Depends(get_actor_id),
    service: ActivityService = Depends(get_activity_service),
):
    entries = service.get_recent_activity(business_id, limit=limit, actor_id=actor_id)
    return success([dump(ActivityEntryResponse, e) for e in entries])


@router.post("/view", status_code=status.HTTP_201_CREATED)
def log_profile_view(
    business_id: UUID,
    metadata: Optional[Dict[str, Any]] = Body(None),
    service: ActivityService = Depends(get_activity_service),
):
    service.log_public_event(business_id, ActivityType.PROFILE_VIEWED, metadata)
    return success(None, "View logged")


@router.post("/contact-click", status_code=status.HTTP_201_CREATED)
def log_contact_click(
    business_id: UUID,
    metadata: Optional[Dict[str, Any]] = Body(None),
    service: ActivityService = Depends(get_activity_service),
):
    service.log_public_event(business_id, ActivityType.CONTACT_CLICKED, metadata)
    return success(None, "Contact click logged")
