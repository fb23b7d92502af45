import logging
from typing import Any, List, Optional

from sqlalchemy import select, func

from bant_scoring.models.scoring_config import ScoringConfig
from bant_scoring.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ScoringConfigRepository(BaseRepository):
    """Encapsulates queries against the ``scoring_config`` table."""

    async def get_all(self) -> List[ScoringConfig]:
        """Return every dimension config ordered by criteria_type."""
        return await self._scalars(
            select(ScoringConfig).order_by(ScoringConfig.criteria_type)
        )

    async def get_by_dimension(self, dimension: str) -> Optional[ScoringConfig]:
        return await self._scalar(
            select(ScoringConfig).where(ScoringConfig.criteria_type == dimension)
        )

    async def update(self, config: ScoringConfig, **fields: Any) -> ScoringConfig:
        """Apply already-validated *fields* to an existing config row."""
        for name, value in fields.items():
            setattr(config, name, value)
        await self._db.flush()
        return config

    async def seed_if_empty(self) -> int:
        """Insert the default rubric unless any dimension row already exists.

        Returns the number of rows inserted, 0 when the table was
        populated.  Rows come from ``DEFAULT_SCORING_CONFIG``.
        """
        from bant_scoring.core.default_scoring_config import DEFAULT_SCORING_CONFIG

        count_result = await self._db.execute(
            select(func.count()).select_from(ScoringConfig)
        )
        if count_result.scalar():
            return 0

        logger.info("scoring_config table is empty, seeding defaults")
        for config_data in DEFAULT_SCORING_CONFIG:
            self._db.add(ScoringConfig(**config_data))
        await self._db.flush()
        logger.info("Seeded %d default scoring configs", len(DEFAULT_SCORING_CONFIG))
        return len(DEFAULT_SCORING_CONFIG)
