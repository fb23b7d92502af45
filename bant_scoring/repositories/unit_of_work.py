from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bant_scoring.repositories.lead_repository import LeadRepository
from bant_scoring.repositories.lead_scoring_repository import LeadScoringRepository
from bant_scoring.repositories.score_history_repository import ScoreHistoryRepository
from bant_scoring.repositories.scoring_config_repository import ScoringConfigRepository


class ScoringUnitOfWork:
    """Groups the scoring repositories around one ``AsyncSession``.

    The score upsert and its history row are flushed through the same
    session and become durable together on :meth:`commit`.  Leaving the
    ``async with`` block without committing rolls everything back.  On a
    clean exit loaded rows are expunged first, so they stay readable
    (but detached) after the session closes.
    """

    def __init__(self, session_factory: Callable[..., AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "ScoringUnitOfWork":
        self._session = self._session_factory()
        self.leads = LeadRepository(self._session)
        self.configs = ScoringConfigRepository(self._session)
        self.scores = LeadScoringRepository(self._session)
        self.history = ScoreHistoryRepository(self._session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                # keep loaded rows readable once the session is gone
                self._session.expunge_all()
            await self._session.rollback()
        finally:
            await self._session.close()
            self._session = None

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()


def unit_of_work_factory(
    session_factory: Callable[..., AsyncSession],
) -> Callable[[], ScoringUnitOfWork]:
    """Return a zero-argument callable producing fresh units of work."""

    def _factory() -> ScoringUnitOfWork:
        return ScoringUnitOfWork(session_factory)

    return _factory
