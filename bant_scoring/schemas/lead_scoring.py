"""Scoring request/response schemas and engine result types."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from bant_scoring.schemas.common import ChangeReason, Dimension, QualificationStatus


# ---------------------------------------------------------------------------
# Engine results
# ---------------------------------------------------------------------------


class DimensionScore(BaseModel):
    """Outcome of one evaluator inside an aggregation pass."""

    model_config = ConfigDict(frozen=True)

    dimension: Dimension
    raw_score: int = Field(..., ge=0, le=25)
    weight: int = Field(..., ge=0)
    contribution: float = Field(..., ge=0)


class AggregateScore(BaseModel):
    """Result of :func:`bant_scoring.services.aggregator.aggregate`."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(..., ge=0, le=100)
    per_dimension: Dict[Dimension, DimensionScore]
    confidence: int = Field(..., ge=0, le=100)

    def sub_score(self, dimension: Dimension) -> int:
        """Raw 0–25 score of *dimension*; 0 when inactive or unconfigured."""
        entry = self.per_dimension.get(dimension)
        return entry.raw_score if entry else 0


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CalculateScoreRequest(BaseModel):
    """Request body for POST /api/v1/scoring/leads/{lead_id}/calculate."""

    reason: ChangeReason = ChangeReason.automatic_calculation
    reset_adjustment: bool = False


class ScoreAdjustmentRequest(BaseModel):
    """Request body for POST /api/v1/scoring/leads/{lead_id}/adjust.

    The delta range is enforced by the service so that the bound stays
    configurable through ``MAX_MANUAL_ADJUSTMENT``.
    """

    adjustment: int
    notes: str = Field("", max_length=500)
    changed_by: str = Field(..., min_length=1, max_length=100)
    assigned_to: Optional[str] = Field(None, max_length=100)


class RecalculateAllRequest(BaseModel):
    reason: ChangeReason = ChangeReason.config_update


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeadScoringOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lead_id: UUID
    total_score: int = Field(..., ge=0, le=100)
    budget_score: int
    authority_score: int
    need_score: int
    timeline_score: int
    qualification_status: QualificationStatus
    confidence_level: int
    manual_adjustment: int = 0
    notes: Optional[str] = None
    assigned_to: Optional[str] = None
    last_calculated_at: Optional[datetime] = None


class ScoreHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lead_id: UUID
    old_score: int
    new_score: int
    score_change: int
    change_reason: ChangeReason
    changed_by: str
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class LeadScoringDetail(LeadScoringOut):
    history: List[ScoreHistoryOut] = Field(default_factory=list)


class RecalculationFailure(BaseModel):
    lead_id: UUID
    error: str


class RecalculationResult(BaseModel):
    updated_count: int = 0
    errors: List[RecalculationFailure] = Field(default_factory=list)


class CriteriaCatalogue(BaseModel):
    criteria: Dict[str, str]
    qualification_status: Dict[str, str]
