from bisect import bisect_right

from bant_scoring.core.constants import MAX_TOTAL_SCORE, QUALIFICATION_BANDS
from bant_scoring.core.exceptions import InvalidScoreError
from bant_scoring.schemas.common import QualificationStatus

_BAND_FLOORS = [floor for floor, _ in QUALIFICATION_BANDS]


def classify(total_score: int) -> QualificationStatus:
    """Map a 0–100 total onto its qualification band.

    Bands are ordered and contiguous, so any score change may move a
    lead any number of bands in either direction.
    """
    if not 0 <= total_score <= MAX_TOTAL_SCORE:
        raise InvalidScoreError(
            f"Score {total_score} is outside 0-{MAX_TOTAL_SCORE}"
        )
    index = bisect_right(_BAND_FLOORS, total_score) - 1
    return QualificationStatus(QUALIFICATION_BANDS[index][1])
