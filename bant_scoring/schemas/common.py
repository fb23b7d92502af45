from enum import Enum
from pydantic import BaseModel


class Dimension(str, Enum):
    budget = "budget"
    authority = "authority"
    need = "need"
    timeline = "timeline"


class QualificationStatus(str, Enum):
    unqualified = "unqualified"
    to_review = "to_review"
    qualified = "qualified"
    hot_lead = "hot_lead"


class ChangeReason(str, Enum):
    initial_calculation = "initial_calculation"
    automatic_calculation = "automatic_calculation"
    config_update = "config_update"
    manual_adjustment = "manual_adjustment"


class LeadType(str, Enum):
    estimation_quick = "estimation_quick"
    estimation_detailed = "estimation_detailed"
    financing = "financing"
    guide_download = "guide_download"


class SuccessResponse(BaseModel):
    """Generic success response base."""

    success: bool = True
