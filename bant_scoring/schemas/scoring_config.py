"""Typed scoring configuration: rule tables, thresholds and bonuses.

Rule tables arrive from the ``scoring_config`` table as JSON.  They are
parsed into a tagged union (``kind`` = ``range`` | ``categorical``) at
load time so a malformed table fails fast instead of silently falling
back to default sub-scores for every lead.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError
from typing_extensions import Annotated, Self

from bant_scoring.core.constants import MAX_DIMENSION_SCORE
from bant_scoring.core.exceptions import InvalidScoringConfigError
from bant_scoring.schemas.common import Dimension

_RULE_KIND_BY_DIMENSION: Dict[Dimension, str] = {
    Dimension.budget: "range",
    Dimension.authority: "categorical",
    Dimension.need: "categorical",
    Dimension.timeline: "categorical",
}


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------


class RangeBucket(BaseModel):
    """Half-open numeric bucket ``[min, max)``; ``max=None`` is unbounded."""

    model_config = ConfigDict(frozen=True)

    min: Decimal = Field(..., ge=0)
    max: Optional[Decimal] = None
    score: int = Field(..., ge=0, le=MAX_DIMENSION_SCORE)
    label: Optional[str] = None

    @model_validator(mode="after")
    def validate_bounds(self) -> Self:
        if self.max is not None and self.max <= self.min:
            raise ValueError(f"range max ({self.max}) must exceed min ({self.min})")
        return self

    def contains(self, value: Decimal) -> bool:
        return value >= self.min and (self.max is None or value < self.max)


class RangeRules(BaseModel):
    """Numeric lookup table used by the budget dimension."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["range"] = "range"
    ranges: List[RangeBucket] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_no_overlap(self) -> Self:
        ordered = sorted(self.ranges, key=lambda r: r.min)
        for lower, upper in zip(ordered, ordered[1:]):
            if lower.max is None or lower.max > upper.min:
                raise ValueError(
                    f"ranges overlap: [{lower.min}, {lower.max}) and "
                    f"[{upper.min}, {upper.max})"
                )
        return self

    def lookup(self, value: Decimal) -> Optional[int]:
        """Return the score of the bucket containing *value*, or ``None``."""
        for bucket in self.ranges:
            if bucket.contains(value):
                return bucket.score
        return None


class CategoricalRules(BaseModel):
    """Category-to-score map used by authority, need and timeline."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["categorical"] = "categorical"
    mapping: Dict[str, Annotated[int, Field(ge=0, le=MAX_DIMENSION_SCORE)]] = Field(
        ..., min_length=1
    )

    def lookup(self, key: str) -> Optional[int]:
        return self.mapping.get(key)


RuleTable = Annotated[Union[RangeRules, CategoricalRules], Field(discriminator="kind")]


class Thresholds(BaseModel):
    """Per-dimension reporting cutoffs; never consulted by the classifier."""

    model_config = ConfigDict(frozen=True)

    qualified: int = Field(15, ge=0, le=MAX_DIMENSION_SCORE)
    hot_lead: int = Field(20, ge=0, le=MAX_DIMENSION_SCORE)

    @model_validator(mode="after")
    def validate_order(self) -> Self:
        if self.qualified > self.hot_lead:
            raise ValueError("qualified threshold must not exceed hot_lead threshold")
        return self


# ---------------------------------------------------------------------------
# Dimension configuration
# ---------------------------------------------------------------------------


class DimensionConfig(BaseModel):
    """Validated configuration of one BANT dimension."""

    model_config = ConfigDict(frozen=True)

    dimension: Dimension
    weight: int = Field(25, ge=0, le=100)
    is_active: bool = True
    rules: RuleTable
    thresholds: Thresholds = Field(default_factory=Thresholds)
    bonus_rules: Dict[
        str, Annotated[int, Field(ge=-MAX_DIMENSION_SCORE, le=MAX_DIMENSION_SCORE)]
    ] = Field(default_factory=dict)
    description: Optional[str] = None

    @model_validator(mode="after")
    def validate_rule_kind(self) -> Self:
        expected = _RULE_KIND_BY_DIMENSION[self.dimension]
        if self.rules.kind != expected:
            raise ValueError(
                f"{self.dimension.value} requires '{expected}' rules, "
                f"got '{self.rules.kind}'"
            )
        return self

    def bonus(self, name: str) -> int:
        """Configured bonus points for *name*; 0 when not configured."""
        return self.bonus_rules.get(name, 0)


def parse_dimension_config(data: Dict[str, Any]) -> DimensionConfig:
    """Validate a raw config mapping, raising a domain error on failure."""
    dimension = data.get("dimension")
    try:
        return DimensionConfig.model_validate(data)
    except PydanticValidationError as exc:
        raise InvalidScoringConfigError(
            f"Invalid scoring configuration for '{dimension}': "
            f"{exc.errors(include_url=False)}",
            dimension=str(dimension) if dimension is not None else None,
        ) from exc


class ScoringConfigSnapshot(BaseModel):
    """Immutable set of dimension configs used by one scoring pass.

    Passed explicitly into every evaluation so that concurrent passes
    running against different configuration versions stay internally
    consistent.
    """

    model_config = ConfigDict(frozen=True)

    dimensions: Dict[Dimension, DimensionConfig] = Field(default_factory=dict)

    def get(self, dimension: Dimension) -> Optional[DimensionConfig]:
        return self.dimensions.get(dimension)

    def active(self) -> List[DimensionConfig]:
        return [c for c in self.dimensions.values() if c.is_active]

    @classmethod
    def from_rows(cls, rows: Iterable[Any]) -> "ScoringConfigSnapshot":
        """Build a snapshot from ``ScoringConfig`` ORM rows (or look-alikes)."""
        dimensions: Dict[Dimension, DimensionConfig] = {}
        for row in rows:
            config = parse_dimension_config(
                {
                    "dimension": row.criteria_type,
                    "weight": row.weight,
                    "is_active": row.is_active,
                    "rules": row.rules,
                    "thresholds": row.thresholds or {},
                    "bonus_rules": row.bonus_rules or {},
                    "description": row.description,
                }
            )
            if config.dimension in dimensions:
                raise InvalidScoringConfigError(
                    f"Duplicate configuration for '{config.dimension.value}'",
                    dimension=config.dimension.value,
                )
            dimensions[config.dimension] = config
        return cls(dimensions=dimensions)


# ---------------------------------------------------------------------------
# API schemas
# ---------------------------------------------------------------------------


class ScoringConfigUpdate(BaseModel):
    """Request body for PUT /api/v1/scoring/config/{dimension}."""

    weight: Optional[int] = Field(None, ge=0, le=100)
    is_active: Optional[bool] = None
    rules: Optional[Dict[str, Any]] = None
    thresholds: Optional[Dict[str, Any]] = None
    bonus_rules: Optional[Dict[str, int]] = None
    description: Optional[str] = Field(None, max_length=500)


class ScoringConfigOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    criteria_type: Dimension
    weight: int
    is_active: bool
    rules: Dict[str, Any]
    thresholds: Dict[str, Any] = Field(default_factory=dict)
    bonus_rules: Dict[str, int] = Field(default_factory=dict)
    description: Optional[str] = None
    updated_at: Optional[datetime] = None


class ConfigUpdateResponse(BaseModel):
    config: ScoringConfigOut
    recalculation_scheduled: bool = False


class InitializeConfigResponse(BaseModel):
    success: bool = True
    inserted: int = 0
