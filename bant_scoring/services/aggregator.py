import math
from typing import Dict

from bant_scoring.core.constants import MAX_DIMENSION_SCORE, MAX_TOTAL_SCORE
from bant_scoring.core.exceptions import ConfigurationError
from bant_scoring.schemas.common import Dimension
from bant_scoring.schemas.lead import LeadSnapshot
from bant_scoring.schemas.lead_scoring import AggregateScore, DimensionScore
from bant_scoring.schemas.scoring_config import ScoringConfigSnapshot
from bant_scoring.services.evaluators import EVALUATORS, estimate_confidence


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def aggregate(lead: LeadSnapshot, configs: ScoringConfigSnapshot) -> AggregateScore:
    """Combine the four BANT evaluators into a 0–100 total.

    Each active dimension contributes ``raw * weight / 25`` so a weight
    other than the nominal 25 rescales its influence without touching
    the evaluator's 0–25 arithmetic.  Inactive or unconfigured
    dimensions are skipped entirely (score 0, weight 0).

    Referentially transparent: no clock, randomness or shared state.

    Raises:
        ConfigurationError: when no dimension is active.
    """
    active = configs.active()
    if not active:
        raise ConfigurationError(
            "Cannot score lead: no active scoring dimension configured",
            lead_id=lead.id,
        )

    per_dimension: Dict[Dimension, DimensionScore] = {}
    for config in active:
        raw = EVALUATORS[config.dimension](lead, config)
        per_dimension[config.dimension] = DimensionScore(
            dimension=config.dimension,
            raw_score=raw,
            weight=config.weight,
            contribution=raw * config.weight / MAX_DIMENSION_SCORE,
        )

    subtotal = sum(d.contribution for d in per_dimension.values())
    total = min(MAX_TOTAL_SCORE, max(0, round_half_up(subtotal)))

    return AggregateScore(
        total=total,
        per_dimension=per_dimension,
        confidence=estimate_confidence(lead),
    )
