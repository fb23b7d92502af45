from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, case, func, select

from bant_scoring.core.constants import (
    DIMENSIONS,
    QUALIFIED_STATUSES,
    SCORE_DISTRIBUTION_BANDS,
)
from bant_scoring.models.lead_scoring import LeadScoring
from bant_scoring.repositories.base import BaseRepository


class AnalyticsRepository(BaseRepository):
    """Read-only aggregate queries over ``lead_scoring``.

    Every query takes the same window (``last_calculated_at`` between
    *start* and *end*, inclusive) and optional filters, so every
    result sets describe the same population.
    """

    @staticmethod
    def _conditions(
        start: datetime,
        end: datetime,
        qualification_status: Optional[str] = None,
        assigned_to: Optional[str] = None,
    ) -> List[Any]:
        conditions = [
            LeadScoring.last_calculated_at >= start,
            LeadScoring.last_calculated_at <= end,
        ]
        if qualification_status:
            conditions.append(LeadScoring.qualification_status == qualification_status)
        if assigned_to:
            conditions.append(LeadScoring.assigned_to == assigned_to)
        return conditions

    async def get_overview(self, start: datetime, end: datetime, **filters: Any) -> Dict[str, Any]:
        """Total, average score, qualified and hot lead counts."""
        query = select(
            func.count(LeadScoring.lead_id).label("total_leads"),
            func.coalesce(func.avg(LeadScoring.total_score), 0).label("average_score"),
            func.count(
                case(
                    (LeadScoring.qualification_status.in_(sorted(QUALIFIED_STATUSES)), 1)
                )
            ).label("qualified_leads"),
            func.count(
                case((LeadScoring.qualification_status == "hot_lead", 1))
            ).label("hot_leads"),
        ).where(and_(*self._conditions(start, end, **filters)))

        row = (await self._db.execute(query)).mappings().one()
        return {
            "total_leads": int(row["total_leads"] or 0),
            "average_score": float(row["average_score"] or 0),
            "qualified_leads": int(row["qualified_leads"] or 0),
            "hot_leads": int(row["hot_leads"] or 0),
        }

    async def get_band_counts(self, start: datetime, end: datetime, **filters: Any) -> Dict[str, int]:
        """Number of scorings per fixed distribution band label."""
        columns = [
            func.count(
                case((LeadScoring.total_score.between(low, high), 1))
            ).label(label)
            for label, low, high in SCORE_DISTRIBUTION_BANDS
        ]
        query = select(*columns).where(and_(*self._conditions(start, end, **filters)))
        row = (await self._db.execute(query)).mappings().one()
        return {label: int(row[label] or 0) for label, _, _ in SCORE_DISTRIBUTION_BANDS}

    async def get_dimension_averages(
        self, start: datetime, end: datetime, **filters: Any
    ) -> Dict[str, float]:
        """Average raw sub-score per BANT dimension."""
        query = select(
            func.coalesce(func.avg(LeadScoring.budget_score), 0).label("budget"),
            func.coalesce(func.avg(LeadScoring.authority_score), 0).label("authority"),
            func.coalesce(func.avg(LeadScoring.need_score), 0).label("need"),
            func.coalesce(func.avg(LeadScoring.timeline_score), 0).label("timeline"),
        ).where(and_(*self._conditions(start, end, **filters)))
        row = (await self._db.execute(query)).mappings().one()
        return {name: float(value or 0) for name, value in row.items()}

    async def get_dimension_distributions(
        self, start: datetime, end: datetime, **filters: Any
    ) -> Dict[str, Dict[str, int]]:
        """Lead count per raw sub-score value, for each BANT dimension.

        Keys of the inner mapping are the sub-scores as strings, in
        ascending order; values that no lead has are absent.
        """
        conditions = and_(*self._conditions(start, end, **filters))
        distributions: Dict[str, Dict[str, int]] = {}
        for dimension in DIMENSIONS:
            column = getattr(LeadScoring, f"{dimension}_score")
            query = (
                select(column, func.count(LeadScoring.lead_id))
                .where(conditions)
                .group_by(column)
                .order_by(column)
            )
            rows = (await self._db.execute(query)).all()
            distributions[dimension] = {str(score): int(count) for score, count in rows}
        return distributions
