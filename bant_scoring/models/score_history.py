from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.sql import func

from bant_scoring.core.constants import CHANGE_REASONS
from bant_scoring.models.base import Base

_REASON_CHECK_CLAUSE: str = (
    f"change_reason IN ({', '.join(repr(r) for r in sorted(CHANGE_REASONS))})"
)


class LeadScoreHistory(Base):
    """Append-only audit trail of lead score changes.

    One row per actual change of ``total_score`` (plus one per explicit
    manual adjustment).  ``details`` snapshots the before/after
    sub-scores or the adjustment metadata.  Rows are never updated.
    """

    __tablename__ = "lead_score_history"
    history_id = Column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    lead_id = Column(
        UUID(as_uuid=True),
        ForeignKey("leads.id", ondelete="CASCADE"),
        nullable=False,
    )
    old_score = Column(Integer, nullable=False)
    new_score = Column(Integer, nullable=False)
    score_change = Column(Integer, nullable=False)
    change_reason = Column(String(30), nullable=False)
    changed_by = Column(String(100), nullable=False, server_default="system")
    details = Column(JSONB)
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.clock_timestamp()
    )

    __table_args__ = (
        Index("ix_lead_score_history_lead_created", "lead_id", "created_at"),
        CheckConstraint(_REASON_CHECK_CLAUSE, name="ck_score_history_change_reason"),
        CheckConstraint(
            "score_change = new_score - old_score", name="ck_score_history_change"
        ),
    )
