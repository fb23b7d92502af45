from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from bant_scoring.models.lead_scoring import LeadScoring
from bant_scoring.repositories.base import BaseRepository


class LeadScoringRepository(BaseRepository):
    """Encapsulates every query that touches the ``lead_scoring`` table."""

    async def get_by_lead_id(
        self, lead_id: UUID, *, for_update: bool = False
    ) -> Optional[LeadScoring]:
        """Return the current scoring of a lead, or ``None``.

        With ``for_update=True`` the row is locked (``SELECT … FOR
        UPDATE``) until the surrounding transaction ends, serialising
        concurrent writers of the same lead across processes.
        """
        query = select(LeadScoring).where(LeadScoring.lead_id == lead_id)
        if for_update:
            query = query.with_for_update()
        return await self._scalar(query)

    async def save(self, scoring: LeadScoring) -> LeadScoring:
        """Insert a new scoring or persist changes to an existing one."""
        return await self._add(scoring)

    async def list_scorings(
        self, limit: int = 50, status: Optional[str] = None
    ) -> List[LeadScoring]:
        """Return scorings, highest total first, optionally by status."""
        query = select(LeadScoring)
        if status:
            query = query.where(LeadScoring.qualification_status == status)
        query = query.order_by(
            LeadScoring.total_score.desc(), LeadScoring.lead_id
        ).limit(limit)
        return await self._scalars(query)
