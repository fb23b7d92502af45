from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.sql import func

from bant_scoring.core.constants import DIMENSIONS
from bant_scoring.models.base import Base

DIMENSION_CHECK_CLAUSE: str = (
    f"criteria_type IN ({', '.join(repr(d) for d in DIMENSIONS)})"
)


class ScoringConfig(Base):
    """Administrator-maintained configuration of one BANT dimension.

    ``rules`` holds a tagged rule table (``kind`` = ``range`` for budget,
    ``categorical`` for the other three).  Rows are validated into a
    :class:`~bant_scoring.schemas.scoring_config.ScoringConfigSnapshot`
    when loaded, never at evaluation time.  Defaults are seeded from
    ``DEFAULT_SCORING_CONFIG`` when the table is empty.
    """

    __tablename__ = "scoring_config"
    config_id = Column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    criteria_type = Column(String(20), nullable=False)
    weight = Column(Integer, nullable=False, server_default="25")
    is_active = Column(Boolean, nullable=False, server_default="true")
    rules = Column(JSONB, nullable=False)
    thresholds = Column(JSONB)
    bonus_rules = Column(JSONB)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("criteria_type", name="uq_scoring_config_criteria_type"),
        CheckConstraint(DIMENSION_CHECK_CLAUSE, name="ck_scoring_config_criteria_type"),
        CheckConstraint("weight BETWEEN 0 AND 100", name="ck_scoring_config_weight"),
    )
