from datetime import datetime, timezone

from sqlalchemy import event

from bant_scoring.models.lead_scoring import LeadScoring
from bant_scoring.models.score_history import LeadScoreHistory
from bant_scoring.models.scoring_config import ScoringConfig


# Auto updated_at
@event.listens_for(LeadScoring, "before_update")
@event.listens_for(ScoringConfig, "before_update")
def update_timestamp(mapper, connection, target):
    target.updated_at = datetime.now(timezone.utc)


# History is append-only
@event.listens_for(LeadScoreHistory, "before_update")
def block_history_update(mapper, connection, target):
    raise ValueError("lead_score_history rows are append-only")
