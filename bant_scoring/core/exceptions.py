from typing import Any, Dict, Optional
from uuid import UUID


class ScoringEngineError(Exception):
    """Base class for all scoring-engine domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except ScoringEngineError`` clause can catch any domain
    error.  ``lead_id`` and ``dimension`` are optional structured
    context for callers that render their own messages.
    """

    error_type = "scoring_error"

    def __init__(
        self,
        detail: str = "An error occurred",
        *,
        lead_id: Optional[UUID] = None,
        dimension: Optional[str] = None,
    ):
        self.detail = detail
        self.lead_id = lead_id
        self.dimension = dimension
        super().__init__(detail)

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation used by the API error handlers."""
        payload: Dict[str, Any] = {"detail": self.detail, "type": self.error_type}
        if self.lead_id is not None:
            payload["lead_id"] = str(self.lead_id)
        if self.dimension is not None:
            payload["dimension"] = self.dimension
        return payload


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------


class NotFoundError(ScoringEngineError):
    """Raised when a referenced lead or score record is absent."""

    error_type = "not_found"


class LeadNotFoundError(NotFoundError):
    """Raised when a requested lead does not exist."""

    error_type = "lead_not_found"

    def __init__(self, detail: str = "Lead not found", **context: Any):
        super().__init__(detail, **context)


class ScoreNotFoundError(NotFoundError):
    """Raised when a lead has never been scored."""

    error_type = "score_not_found"

    def __init__(self, detail: str = "No scoring found for lead", **context: Any):
        super().__init__(detail, **context)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(ScoringEngineError):
    """Raised when caller input or stored configuration is malformed."""

    error_type = "validation_error"


class InvalidAdjustmentError(ValidationError):
    """Raised when a manual adjustment delta is out of range."""

    error_type = "invalid_adjustment"

    def __init__(self, detail: str = "Manual adjustment out of range", **context: Any):
        super().__init__(detail, **context)


class InvalidScoringConfigError(ValidationError):
    """Raised when a dimension's rule table or bonus rules are malformed."""

    error_type = "invalid_scoring_config"

    def __init__(self, detail: str = "Invalid scoring configuration", **context: Any):
        super().__init__(detail, **context)


class InvalidAnalyticsWindowError(ValidationError):
    """Raised when an analytics time window is missing bounds or inverted."""

    error_type = "invalid_analytics_window"

    def __init__(self, detail: str = "Invalid analytics window", **context: Any):
        super().__init__(detail, **context)


class InvalidScoreError(ValidationError):
    """Raised when a total score outside 0–100 is classified."""

    error_type = "invalid_score"

    def __init__(self, detail: str = "Score must be between 0 and 100", **context: Any):
        super().__init__(detail, **context)


# ---------------------------------------------------------------------------
# Configuration / persistence
# ---------------------------------------------------------------------------


class ConfigurationError(ScoringEngineError):
    """Raised when no scoring dimension is active.

    Aggregating zero dimensions would silently produce a score of 0 for
    every lead, so the engine refuses to score instead.
    """

    error_type = "configuration_error"

    def __init__(self, detail: str = "No active scoring dimension configured", **context: Any):
        super().__init__(detail, **context)


class PersistenceError(ScoringEngineError):
    """Raised when the database rejects a read or write.

    The original driver exception is chained as ``__cause__``.  Retry
    policy belongs to the caller; the engine never retries.
    """

    error_type = "persistence_error"

    def __init__(self, detail: str = "Scoring storage unavailable", **context: Any):
        super().__init__(detail, **context)
