from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from bant_scoring.models.lead import Lead
from bant_scoring.repositories.base import BaseRepository


class LeadRepository(BaseRepository):
    """Read-only access to the ``leads`` table."""

    async def get_by_id(self, lead_id: UUID) -> Optional[Lead]:
        """Return a single lead by primary key, or ``None``."""
        return await self._scalar(select(Lead).where(Lead.id == lead_id))

    async def list_ids(self) -> List[UUID]:
        """Return every lead id, oldest lead first."""
        return await self._scalars(select(Lead.id).order_by(Lead.created_at))
