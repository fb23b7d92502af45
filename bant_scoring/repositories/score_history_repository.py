from typing import Any, List
from uuid import UUID

from sqlalchemy import select

from bant_scoring.models.score_history import LeadScoreHistory
from bant_scoring.repositories.base import BaseRepository


class ScoreHistoryRepository(BaseRepository):
    """Append-only access to ``lead_score_history``."""

    async def append(self, **kwargs: Any) -> LeadScoreHistory:
        """Insert a new history record."""
        return await self._add(LeadScoreHistory(**kwargs))

    async def list_for_lead(self, lead_id: UUID) -> List[LeadScoreHistory]:
        """Return a lead's history in chronological order."""
        return await self._scalars(
            select(LeadScoreHistory)
            .where(LeadScoreHistory.lead_id == lead_id)
            .order_by(LeadScoreHistory.created_at)
        )

    async def list_recent(self, limit: int = 100) -> List[LeadScoreHistory]:
        """Return the most recent history rows across all leads."""
        return await self._scalars(
            select(LeadScoreHistory)
            .order_by(LeadScoreHistory.created_at.desc())
            .limit(limit)
        )
