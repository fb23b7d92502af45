from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from bant_scoring.models.base import Base


class LeadScoring(Base):
    """Current BANT score of one lead.

    One row per lead (``lead_id`` is UNIQUE).  ``manual_adjustment`` is
    the cumulative human delta, stored apart from the computed
    sub-scores so that every recalculation can replay it on top of the
    freshly computed total.
    """

    __tablename__ = "lead_scoring"
    scoring_id = Column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    lead_id = Column(
        UUID(as_uuid=True),
        ForeignKey("leads.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    total_score = Column(Integer, nullable=False, server_default="0")
    budget_score = Column(Integer, nullable=False, server_default="0")
    authority_score = Column(Integer, nullable=False, server_default="0")
    need_score = Column(Integer, nullable=False, server_default="0")
    timeline_score = Column(Integer, nullable=False, server_default="0")
    qualification_status = Column(
        String(20), nullable=False, server_default="unqualified"
    )
    confidence_level = Column(Integer, nullable=False, server_default="0")
    manual_adjustment = Column(Integer, nullable=False, server_default="0")
    notes = Column(Text)
    assigned_to = Column(String(100))
    last_calculated_at = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_lead_scoring_last_calculated_at", "last_calculated_at"),
        CheckConstraint("total_score BETWEEN 0 AND 100", name="ck_total_score_range"),
        CheckConstraint("budget_score BETWEEN 0 AND 25", name="ck_budget_score_range"),
        CheckConstraint(
            "authority_score BETWEEN 0 AND 25", name="ck_authority_score_range"
        ),
        CheckConstraint("need_score BETWEEN 0 AND 25", name="ck_need_score_range"),
        CheckConstraint(
            "timeline_score BETWEEN 0 AND 25", name="ck_timeline_score_range"
        ),
        CheckConstraint(
            "confidence_level BETWEEN 0 AND 100", name="ck_confidence_level_range"
        ),
        CheckConstraint(
            "qualification_status IN ('unqualified', 'to_review', 'qualified', 'hot_lead')",
            name="ck_qualification_status",
        ),
    )
