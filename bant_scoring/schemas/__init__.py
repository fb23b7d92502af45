"""Pydantic schemas package – re-exports for convenience."""

# Common enums
from bant_scoring.schemas.common import (
    Dimension as Dimension,
    QualificationStatus as QualificationStatus,
    ChangeReason as ChangeReason,
    LeadType as LeadType,
    SuccessResponse as SuccessResponse,
)

# Lead view
from bant_scoring.schemas.lead import LeadSnapshot as LeadSnapshot

# Configuration
from bant_scoring.schemas.scoring_config import (
    RangeRules as RangeRules,
    CategoricalRules as CategoricalRules,
    Thresholds as Thresholds,
    DimensionConfig as DimensionConfig,
    ScoringConfigSnapshot as ScoringConfigSnapshot,
    ScoringConfigUpdate as ScoringConfigUpdate,
    ScoringConfigOut as ScoringConfigOut,
    ConfigUpdateResponse as ConfigUpdateResponse,
    InitializeConfigResponse as InitializeConfigResponse,
)

# Scoring
from bant_scoring.schemas.lead_scoring import (
    AggregateScore as AggregateScore,
    DimensionScore as DimensionScore,
    CalculateScoreRequest as CalculateScoreRequest,
    ScoreAdjustmentRequest as ScoreAdjustmentRequest,
    RecalculateAllRequest as RecalculateAllRequest,
    LeadScoringOut as LeadScoringOut,
    LeadScoringDetail as LeadScoringDetail,
    ScoreHistoryOut as ScoreHistoryOut,
    RecalculationResult as RecalculationResult,
    RecalculationFailure as RecalculationFailure,
    CriteriaCatalogue as CriteriaCatalogue,
)

# Analytics
from bant_scoring.schemas.analytics import (
    DateRange as DateRange,
    AnalyticsFilters as AnalyticsFilters,
    ScoringAnalytics as ScoringAnalytics,
)
