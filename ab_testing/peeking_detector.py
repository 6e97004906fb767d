import logging
from dataclasses import dataclass
from typing import Optional

from statistical_analysis.errors import InvalidInputError

logger = logging.getLogger(__name__)

# Two full weekly cycles before results are read
RECOMMENDED_DURATION_DAYS = 14


@dataclass(frozen=True)
class PeekingAssessment:
    is_peeking: bool
    test_duration_days: float
    recommended_duration: int
    days_remaining: float
    sample_progress: Optional[float]
    recommendation: str


class PeekingDetector:
    """Flags results that are read before the test has run long enough.

    The check is advisory: a peeking flag never changes a significance
    verdict, it only marks it for review.
    """

    def __init__(self, recommended_duration: int = RECOMMENDED_DURATION_DAYS):
        if recommended_duration <= 0:
            raise InvalidInputError(
                f"Recommended duration must be positive, got {recommended_duration}",
                field="recommended_duration"
            )
        self.recommended_duration = recommended_duration

    def is_peeking(self, test_duration_days: float) -> bool:
        return test_duration_days < self.recommended_duration

    def assess(
        self,
        test_duration_days: float,
        observed_sample: Optional[int] = None,
        planned_sample: Optional[int] = None
    ) -> PeekingAssessment:
        """Assess elapsed duration and, when a plan exists, sample progress"""
        if test_duration_days < 0:
            raise InvalidInputError(
                f"Test duration must not be negative, got {test_duration_days}",
                field="test_duration_days"
            )

        peeking = self.is_peeking(test_duration_days)
        days_remaining = max(self.recommended_duration - test_duration_days, 0)

        sample_progress = None
        if observed_sample is not None and planned_sample:
            sample_progress = min(observed_sample / planned_sample, 1.0)

        if peeking:
            recommendation = (
                f"Test for at least {self.recommended_duration} days before checking results."
            )
            logger.warning(
                "Results checked after %s of %d recommended days",
                test_duration_days, self.recommended_duration
            )
        elif sample_progress is not None and sample_progress < 1.0:
            recommendation = (
                f"Duration reached but only {sample_progress:.0%} of the planned sample collected. "
                "Avoid drawing conclusions before the target sample size."
            )
        else:
            recommendation = "Test has run long enough to read results."

        return PeekingAssessment(
            is_peeking=peeking,
            test_duration_days=test_duration_days,
            recommended_duration=self.recommended_duration,
            days_remaining=days_remaining,
            sample_progress=sample_progress,
            recommendation=recommendation
        )
