from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from bant_scoring.schemas.common import Dimension, QualificationStatus


class DateRange(str, Enum):
    seven_days = "7d"
    thirty_days = "30d"
    ninety_days = "90d"
    custom = "custom"


class AnalyticsWindow(BaseModel):
    """Resolved ``[start, end]`` window over ``last_calculated_at``."""

    period: DateRange
    start: datetime
    end: datetime


class AnalyticsFilters(BaseModel):
    qualification_status: Optional[QualificationStatus] = None
    assigned_to: Optional[str] = None


class ScoringOverview(BaseModel):
    total_leads: int = 0
    average_score: float = 0.0
    qualified_leads: int = 0
    qualification_rate: float = Field(0.0, description="Percentage, 0-100")
    hot_leads: int = 0


class DistributionBucket(BaseModel):
    range: str
    count: int
    percentage: float


class DimensionBreakdown(BaseModel):
    """Average sub-score of one dimension and how many leads got each value."""

    average: float = 0.0
    distribution: Dict[str, int] = Field(
        default_factory=dict, description="Sub-score (as text) to lead count"
    )


class Recommendation(BaseModel):
    type: str
    description: str
    impact: str


class ScoringAnalytics(BaseModel):
    window: AnalyticsWindow
    overview: ScoringOverview
    score_distribution: List[DistributionBucket]
    bant_breakdown: Dict[Dimension, DimensionBreakdown]
    recommendations: List[Recommendation] = Field(default_factory=list)
