from bant_scoring.models.base import Base
from bant_scoring.models.lead import Lead
from bant_scoring.models.scoring_config import ScoringConfig
from bant_scoring.models.lead_scoring import LeadScoring
from bant_scoring.models.score_history import LeadScoreHistory

# Import event listeners to register them
from bant_scoring.models import listeners  # noqa: F401

__all__ = [
    "Base",
    "Lead",
    "ScoringConfig",
    "LeadScoring",
    "LeadScoreHistory",
]
