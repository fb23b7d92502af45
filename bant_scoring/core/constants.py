from typing import Dict, FrozenSet, Tuple

DIMENSIONS: Tuple[str, ...] = ("budget", "authority", "need", "timeline")

# Every dimension scores on 0..MAX_DIMENSION_SCORE; the nominal weight
# equals the same value so four default dimensions sum to 100.
MAX_DIMENSION_SCORE: int = 25
DEFAULT_DIMENSION_WEIGHT: int = 25
MAX_TOTAL_SCORE: int = 100

# ---------------------------------------------------------------------------
# Fallback sub-scores (business rules, not incidental defaults)
# ---------------------------------------------------------------------------

BUDGET_NO_ESTIMATE_SCORE: int = 8
BUDGET_UNMATCHED_RANGE_SCORE: int = 10
AUTHORITY_DEFAULT_SCORE: int = 5
NEED_DEFAULT_SCORE: int = 8
TIMELINE_DEFAULT_SCORE: int = 10

# Key used when the lead leaves a categorical field empty
UNSPECIFIED: str = "non_renseigne"

# Timeline values counting as immediate or near-term (<= 3 months)
SHORT_TIMELINES: FrozenSet[str] = frozenset({"immediate", "1_3_mois", "3m"})

DETAILED_LEAD_TYPE: str = "estimation_detailed"

# ---------------------------------------------------------------------------
# Bonus rule keys per dimension
# ---------------------------------------------------------------------------

BONUS_HAS_PROPERTY_ESTIMATION: str = "has_property_estimation"
BONUS_HAS_DETAILED_ESTIMATION: str = "has_detailed_estimation"
BONUS_WANTS_EXPERT_CONTACT: str = "wants_expert_contact"
BONUS_PROVIDED_PHONE: str = "provided_phone"
BONUS_DETAILED_SUBMISSION: str = "detailed_submission"
BONUS_SHORT_TIMELINE: str = "short_timeline"

# ---------------------------------------------------------------------------
# Qualification bands: inclusive lower bound per status, ascending
# ---------------------------------------------------------------------------

QUALIFICATION_BANDS: Tuple[Tuple[int, str], ...] = (
    (0, "unqualified"),
    (26, "to_review"),
    (51, "qualified"),
    (76, "hot_lead"),
)

QUALIFIED_STATUSES: FrozenSet[str] = frozenset({"qualified", "hot_lead"})

# ---------------------------------------------------------------------------
# Confidence checklist
# ---------------------------------------------------------------------------

ESSENTIAL_FIELDS: Tuple[str, ...] = (
    "email",
    "first_name",
    "last_name",
    "property_type",
    "address",
    "city",
    "surface",
    "rooms",
)

OPTIONAL_FIELDS: Tuple[str, ...] = (
    "phone",
    "bedrooms",
    "bathrooms",
    "construction_year",
    "ownership_status",
    "project_type",
    "timeline",
)

# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

CHANGE_REASONS: FrozenSet[str] = frozenset(
    {
        "initial_calculation",
        "automatic_calculation",
        "config_update",
        "manual_adjustment",
    }
)

# Reasons a caller may attach to an automatic recalculation
RECALCULATION_REASONS: FrozenSet[str] = frozenset(
    {"automatic_calculation", "config_update"}
)

SYSTEM_ACTOR: str = "system"

# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

# (label, low, high): inclusive on both ends
SCORE_DISTRIBUTION_BANDS: Tuple[Tuple[str, int, int], ...] = (
    ("0-25", 0, 25),
    ("26-50", 26, 50),
    ("51-75", 51, 75),
    ("76-100", 76, 100),
)

LOW_QUALIFICATION_RATE_PCT: float = 30.0
LOW_BAND_CONCENTRATION_PCT: float = 50.0
LOW_AVERAGE_SCORE: float = 45.0

ANALYTICS_PERIOD_DAYS: Dict[str, int] = {"7d": 7, "30d": 30, "90d": 90}

BANT_CRITERIA: Dict[str, str] = {
    "budget": "Budget",
    "authority": "Authority",
    "need": "Need",
    "timeline": "Timeline",
}

QUALIFICATION_LABELS: Dict[str, str] = {
    "unqualified": "Unqualified",
    "to_review": "To review",
    "qualified": "Qualified",
    "hot_lead": "Hot lead",
}
