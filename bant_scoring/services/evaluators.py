"""BANT dimension evaluators and the confidence estimator.

Every function here is pure: it reads a :class:`LeadSnapshot` and a
validated :class:`DimensionConfig` and returns an integer.  Missing lead
fields fall back to the named default sub-scores in
``bant_scoring.core.constants``; they never raise.

Bonuses are added after the base lookup and the sum is clamped to
``[0, MAX_DIMENSION_SCORE]`` once, at the end of each evaluator.
"""

from typing import Callable, Dict, Optional

from bant_scoring.core.constants import (
    AUTHORITY_DEFAULT_SCORE,
    BONUS_DETAILED_SUBMISSION,
    BONUS_HAS_DETAILED_ESTIMATION,
    BONUS_HAS_PROPERTY_ESTIMATION,
    BONUS_PROVIDED_PHONE,
    BONUS_SHORT_TIMELINE,
    BONUS_WANTS_EXPERT_CONTACT,
    BUDGET_NO_ESTIMATE_SCORE,
    BUDGET_UNMATCHED_RANGE_SCORE,
    DETAILED_LEAD_TYPE,
    ESSENTIAL_FIELDS,
    MAX_DIMENSION_SCORE,
    NEED_DEFAULT_SCORE,
    OPTIONAL_FIELDS,
    SHORT_TIMELINES,
    TIMELINE_DEFAULT_SCORE,
    UNSPECIFIED,
)
from bant_scoring.schemas.common import Dimension
from bant_scoring.schemas.lead import LeadSnapshot
from bant_scoring.schemas.scoring_config import DimensionConfig

Evaluator = Callable[[LeadSnapshot, Optional[DimensionConfig]], int]


def clamp_dimension(score: int) -> int:
    """Clamp a raw sub-score into ``[0, MAX_DIMENSION_SCORE]``."""
    return min(MAX_DIMENSION_SCORE, max(0, score))


def _is_disabled(config: Optional[DimensionConfig]) -> bool:
    return config is None or not config.is_active


def _lookup_or_default(config: DimensionConfig, key: Optional[str], default: int) -> int:
    score = config.rules.lookup(key or UNSPECIFIED)
    return default if score is None else score


def evaluate_budget(lead: LeadSnapshot, config: Optional[DimensionConfig]) -> int:
    """Score financial capacity from the estimated property value."""
    if _is_disabled(config):
        return 0

    # a zero estimate counts as no estimate
    if lead.estimated_value:
        score = config.rules.lookup(lead.estimated_value)
        if score is None:
            score = BUDGET_UNMATCHED_RANGE_SCORE
        score += config.bonus(BONUS_HAS_PROPERTY_ESTIMATION)
    else:
        score = BUDGET_NO_ESTIMATE_SCORE

    if lead.surface and lead.rooms:
        score += config.bonus(BONUS_HAS_DETAILED_ESTIMATION)

    return clamp_dimension(score)


def evaluate_authority(lead: LeadSnapshot, config: Optional[DimensionConfig]) -> int:
    """Score decision-making power from the ownership status."""
    if _is_disabled(config):
        return 0

    score = _lookup_or_default(config, lead.ownership_status, AUTHORITY_DEFAULT_SCORE)

    if lead.wants_expert_contact:
        score += config.bonus(BONUS_WANTS_EXPERT_CONTACT)
    if lead.phone:
        score += config.bonus(BONUS_PROVIDED_PHONE)

    return clamp_dimension(score)


def evaluate_need(lead: LeadSnapshot, config: Optional[DimensionConfig]) -> int:
    """Score sale motivation from the project type.

    Detailed estimation requests carry richer data and earn a bonus.
    """
    if _is_disabled(config):
        return 0

    score = _lookup_or_default(config, lead.project_type, NEED_DEFAULT_SCORE)

    if lead.lead_type == DETAILED_LEAD_TYPE:
        score += config.bonus(BONUS_DETAILED_SUBMISSION)

    return clamp_dimension(score)


def evaluate_timeline(lead: LeadSnapshot, config: Optional[DimensionConfig]) -> int:
    """Score urgency from the desired timeframe.

    ``timeline`` (BANT questionnaire) wins over the legacy
    ``sale_timeline`` form field when both are present.
    """
    if _is_disabled(config):
        return 0

    timeline = lead.timeline or lead.sale_timeline or UNSPECIFIED
    score = _lookup_or_default(config, timeline, TIMELINE_DEFAULT_SCORE)

    if timeline in SHORT_TIMELINES:
        score += config.bonus(BONUS_SHORT_TIMELINE)

    return clamp_dimension(score)


EVALUATORS: Dict[Dimension, Evaluator] = {
    Dimension.budget: evaluate_budget,
    Dimension.authority: evaluate_authority,
    Dimension.need: evaluate_need,
    Dimension.timeline: evaluate_timeline,
}


def estimate_confidence(lead: LeadSnapshot) -> int:
    """Percentage of checklist fields the lead has populated (0–100).

    Advisory only: confidence never gates qualification.
    """
    fields = ESSENTIAL_FIELDS + OPTIONAL_FIELDS
    populated = sum(1 for name in fields if getattr(lead, name, None))
    return int(populated * 100 / len(fields) + 0.5)
