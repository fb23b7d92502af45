import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from bant_scoring.core.cache import CacheService
from bant_scoring.core.config import settings
from bant_scoring.core.constants import (
    ANALYTICS_PERIOD_DAYS,
    LOW_AVERAGE_SCORE,
    LOW_BAND_CONCENTRATION_PCT,
    LOW_QUALIFICATION_RATE_PCT,
    SCORE_DISTRIBUTION_BANDS,
)
from bant_scoring.core.exceptions import InvalidAnalyticsWindowError
from bant_scoring.repositories.analytics_repository import AnalyticsRepository
from bant_scoring.schemas.analytics import (
    AnalyticsFilters,
    AnalyticsWindow,
    DateRange,
    DimensionBreakdown,
    DistributionBucket,
    Recommendation,
    ScoringAnalytics,
    ScoringOverview,
)
from bant_scoring.schemas.common import Dimension

logger = logging.getLogger(__name__)


def _percentage(part: float, whole: float) -> float:
    return round(part * 100.0 / whole, 2) if whole else 0.0


class ScoringAnalyticsService:
    """Read-only reporting over persisted scores.

    Summaries are cached under a key that embeds the score generation
    counter, so any score write makes older summaries unreachable.
    """

    def __init__(
        self, repo: AnalyticsRepository, cache: Optional[CacheService] = None
    ) -> None:
        self._repo = repo
        self._cache: CacheService = cache or CacheService()

    async def get_analytics(
        self,
        period: DateRange = DateRange.thirty_days,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        filters: Optional[AnalyticsFilters] = None,
        *,
        now: Optional[datetime] = None,
    ) -> ScoringAnalytics:
        """Overview, distribution, BANT breakdown and recommendations.

        Raises:
            InvalidAnalyticsWindowError: ``custom`` period without both
                bounds, or ``start`` after ``end``.
        """
        filters = filters or AnalyticsFilters()
        window = self.resolve_window(
            period, start, end, now=now or datetime.now(timezone.utc)
        )

        generation = await self._cache.current_generation()
        cache_key = self._build_cache_key(generation, window, filters)
        cached = await self._cache.get_json(cache_key)
        if cached is not None:
            return ScoringAnalytics.model_validate(cached)

        query_filters = {
            "qualification_status": filters.qualification_status.value
            if filters.qualification_status
            else None,
            "assigned_to": filters.assigned_to,
        }
        stats = await self._repo.get_overview(window.start, window.end, **query_filters)
        bands = await self._repo.get_band_counts(window.start, window.end, **query_filters)
        averages = await self._repo.get_dimension_averages(
            window.start, window.end, **query_filters
        )
        distributions = await self._repo.get_dimension_distributions(
            window.start, window.end, **query_filters
        )

        overview = self._build_overview(stats)
        distribution = self._build_distribution(bands, overview.total_leads)
        analytics = ScoringAnalytics(
            window=window,
            overview=overview,
            score_distribution=distribution,
            bant_breakdown={
                dimension: DimensionBreakdown(
                    average=round(averages.get(dimension.value, 0.0), 2),
                    distribution=distributions.get(dimension.value, {}),
                )
                for dimension in Dimension
            },
            recommendations=self.build_recommendations(overview, distribution),
        )

        await self._cache.set_json(
            cache_key, analytics.model_dump(mode="json"), ttl=settings.REDIS_CACHE_TTL
        )
        return analytics

    @staticmethod
    def resolve_window(
        period: DateRange,
        start: Optional[datetime],
        end: Optional[datetime],
        *,
        now: datetime,
    ) -> AnalyticsWindow:
        """Turn a period preset or custom bounds into a concrete window."""
        if period == DateRange.custom:
            if start is None or end is None:
                raise InvalidAnalyticsWindowError(
                    "A custom period requires both start and end"
                )
            if start > end:
                raise InvalidAnalyticsWindowError(
                    f"Window start ({start.isoformat()}) is after end ({end.isoformat()})"
                )
            return AnalyticsWindow(period=period, start=start, end=end)

        days = ANALYTICS_PERIOD_DAYS[period.value]
        return AnalyticsWindow(period=period, start=now - timedelta(days=days), end=now)

    @staticmethod
    def _build_cache_key(
        generation: int, window: AnalyticsWindow, filters: AnalyticsFilters
    ) -> str:
        status = filters.qualification_status.value if filters.qualification_status else "all"
        assignee = filters.assigned_to or "all"
        key = f"analytics:{generation}:{window.period.value}:{status}:{assignee}"
        if window.period == DateRange.custom:
            key += f":{window.start.isoformat()}:{window.end.isoformat()}"
        return key

    @staticmethod
    def _build_overview(stats: Dict[str, Any]) -> ScoringOverview:
        total = stats["total_leads"]
        return ScoringOverview(
            total_leads=total,
            average_score=round(stats["average_score"], 2),
            qualified_leads=stats["qualified_leads"],
            qualification_rate=_percentage(stats["qualified_leads"], total),
            hot_leads=stats["hot_leads"],
        )

    @staticmethod
    def _build_distribution(
        band_counts: Dict[str, int], total: int
    ) -> List[DistributionBucket]:
        return [
            DistributionBucket(
                range=label,
                count=band_counts.get(label, 0),
                percentage=_percentage(band_counts.get(label, 0), total),
            )
            for label, _, _ in SCORE_DISTRIBUTION_BANDS
        ]

    @staticmethod
    def build_recommendations(
        overview: ScoringOverview, distribution: List[DistributionBucket]
    ) -> List[Recommendation]:
        """Advisory rules over the aggregates; empty when nothing is scored."""
        if not overview.total_leads:
            return []

        recommendations: List[Recommendation] = []

        if overview.qualification_rate < LOW_QUALIFICATION_RATE_PCT:
            recommendations.append(
                Recommendation(
                    type="configuration",
                    description=(
                        "Qualification rate is low. Consider adjusting the "
                        "BANT weights or rule tables."
                    ),
                    impact="Better return on sales effort",
                )
            )

        lowest_label = SCORE_DISTRIBUTION_BANDS[0][0]
        low_share = sum(b.percentage for b in distribution if b.range == lowest_label)
        if low_share > LOW_BAND_CONCENTRATION_PCT:
            recommendations.append(
                Recommendation(
                    type="lead_quality",
                    description=(
                        f"More than {LOW_BAND_CONCENTRATION_PCT:g}% of leads score "
                        f"in the {lowest_label} band. Review lead sources."
                    ),
                    impact="Lower acquisition costs",
                )
            )

        if overview.average_score < LOW_AVERAGE_SCORE:
            recommendations.append(
                Recommendation(
                    type="process",
                    description=(
                        "Average score is low. Collect more qualification "
                        "data when leads are captured."
                    ),
                    impact="Sharper sales prioritisation",
                )
            )

        return recommendations
