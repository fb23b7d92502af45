"""Repository layer – all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains business logic.
"""

from bant_scoring.repositories.lead_repository import LeadRepository
from bant_scoring.repositories.scoring_config_repository import ScoringConfigRepository
from bant_scoring.repositories.lead_scoring_repository import LeadScoringRepository
from bant_scoring.repositories.score_history_repository import ScoreHistoryRepository
from bant_scoring.repositories.analytics_repository import AnalyticsRepository
from bant_scoring.repositories.unit_of_work import ScoringUnitOfWork

__all__ = [
    "LeadRepository",
    "ScoringConfigRepository",
    "LeadScoringRepository",
    "ScoreHistoryRepository",
    "AnalyticsRepository",
    "ScoringUnitOfWork",
]
