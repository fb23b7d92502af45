from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from bant_scoring.api.deps import get_analytics_service
from bant_scoring.schemas.analytics import AnalyticsFilters, DateRange, ScoringAnalytics
from bant_scoring.schemas.common import QualificationStatus
from bant_scoring.services.analytics import ScoringAnalyticsService

router = APIRouter(prefix="/scoring", tags=["Analytics"])


@router.get("/analytics", response_model=ScoringAnalytics)
async def scoring_analytics(
    period: DateRange = Query(DateRange.thirty_days),
    start_date: Optional[datetime] = Query(None, description="Required for custom"),
    end_date: Optional[datetime] = Query(None, description="Required for custom"),
    qualification_status: Optional[QualificationStatus] = Query(None),
    assigned_to: Optional[str] = Query(None, max_length=100),
    service: ScoringAnalyticsService = Depends(get_analytics_service),
) -> ScoringAnalytics:
    """Score distribution, BANT breakdown and recommendations."""
    return await service.get_analytics(
        period,
        start_date,
        end_date,
        AnalyticsFilters(
            qualification_status=qualification_status, assigned_to=assigned_to
        ),
    )
