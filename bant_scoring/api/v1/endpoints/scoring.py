from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from bant_scoring.api.deps import get_scoring_service
from bant_scoring.core.config import settings
from bant_scoring.core.rate_limit import limiter
from bant_scoring.schemas.common import QualificationStatus
from bant_scoring.schemas.lead_scoring import (
    CalculateScoreRequest,
    CriteriaCatalogue,
    LeadScoringDetail,
    LeadScoringOut,
    RecalculateAllRequest,
    RecalculationResult,
    ScoreAdjustmentRequest,
    ScoreHistoryOut,
)
from bant_scoring.services.lead_scoring import LeadScoringService

router = APIRouter(prefix="/scoring", tags=["Lead scoring"])


@router.get("/criteria", response_model=CriteriaCatalogue)
async def get_criteria() -> CriteriaCatalogue:
    """Labels of the BANT criteria and qualification states."""
    return LeadScoringService.criteria_catalogue()


@router.get("/leads", response_model=List[LeadScoringOut])
async def list_scorings(
    limit: int = Query(50, ge=1, le=500, description="Max rows to return"),
    status: Optional[QualificationStatus] = Query(None),
    service: LeadScoringService = Depends(get_scoring_service),
) -> List[LeadScoringOut]:
    """Scored leads, highest total first."""
    return await service.list_scorings(
        limit=limit, status=status.value if status else None
    )


@router.get("/leads/{lead_id}", response_model=LeadScoringDetail)
async def get_scoring(
    lead_id: UUID,
    service: LeadScoringService = Depends(get_scoring_service),
) -> LeadScoringDetail:
    return await service.get_scoring_detail(lead_id)


@router.post("/leads/{lead_id}/calculate", response_model=LeadScoringOut)
async def calculate_score(
    lead_id: UUID,
    body: Optional[CalculateScoreRequest] = None,
    service: LeadScoringService = Depends(get_scoring_service),
) -> LeadScoringOut:
    """Compute (or recompute) a lead's BANT score."""
    body = body or CalculateScoreRequest()
    return await service.calculate_score(
        lead_id,
        reason=body.reason,
        reset_adjustment=body.reset_adjustment,
    )


@router.post("/leads/{lead_id}/adjust", response_model=LeadScoringOut)
@limiter.limit(settings.ADJUST_RATE_LIMIT)
async def adjust_score(
    request: Request,
    lead_id: UUID,
    body: ScoreAdjustmentRequest,
    service: LeadScoringService = Depends(get_scoring_service),
) -> LeadScoringOut:
    """Apply a manual adjustment to a lead's score.

    Rate-limited per IP.  The adjustment is replayed on every later
    recalculation until reset.
    """
    return await service.adjust_score(
        lead_id,
        body.adjustment,
        body.notes,
        body.changed_by,
        assigned_to=body.assigned_to,
    )


@router.post("/recalculate-all", response_model=RecalculationResult)
async def recalculate_all(
    body: Optional[RecalculateAllRequest] = None,
    service: LeadScoringService = Depends(get_scoring_service),
) -> RecalculationResult:
    body = body or RecalculateAllRequest()
    return await service.recalculate_all(body.reason)


@router.get("/history", response_model=List[ScoreHistoryOut])
async def recent_history(
    limit: int = Query(100, ge=1, le=500),
    service: LeadScoringService = Depends(get_scoring_service),
) -> List[ScoreHistoryOut]:
    """Most recent score changes across all leads."""
    return await service.list_recent_history(limit=limit)
