import logging
from dataclasses import dataclass
from typing import Dict, Any

import numpy as np

from statistical_analysis.errors import InvalidInputError
from statistical_analysis.normal_approximation import z_alpha, z_power

logger = logging.getLogger(__name__)

LONG_TEST_THRESHOLD_DAYS = 30


@dataclass(frozen=True)
class SampleSizeResult:
    per_variant: int
    total: int
    days_needed: int
    expected_variant_rate: float
    is_long_duration: bool

    def to_display(self) -> Dict[str, Any]:
        return {
            'per_variant': self.per_variant,
            'total': self.total,
            'days_needed': self.days_needed,
            'expected_variant_rate': f"{self.expected_variant_rate:.2f}",
            'is_long_duration': self.is_long_duration
        }


class SampleSizeEstimator:
    """Observations needed per variant to detect a relative lift in conversion rate.

    Uses the Normal approximation for two proportions with fixed z lookups:

        n = (z_alpha + z_power)^2 * 2 * p_avg * (1 - p_avg) / (p2 - p1)^2

    where p2 is the baseline lifted by the minimum detectable effect and
    p_avg the average of the two rates.
    """

    def __init__(self, long_test_threshold_days: int = LONG_TEST_THRESHOLD_DAYS):
        self.long_test_threshold_days = long_test_threshold_days

    def estimate(
        self,
        baseline_rate: float,
        mde: float,
        alpha: float = 0.05,
        power: float = 0.8,
        daily_traffic: int = 5000
    ) -> SampleSizeResult:
        """Estimate sample size and duration.

        Args:
            baseline_rate: current conversion rate in percent (0-100)
            mde: minimum detectable effect in percent, relative to the baseline
            alpha: significance level, one of 0.01, 0.05, 0.10
            power: statistical power, one of 0.80, 0.90, 0.95
            daily_traffic: visitors per day across both variants

        Raises:
            InvalidInputError: for out-of-range inputs or a zero rate difference
        """
        self._validate(baseline_rate, mde, daily_traffic)

        z_a = z_alpha(alpha)
        z_b = z_power(power)

        p1 = baseline_rate / 100
        p2 = p1 * (1 + mde / 100)

        if p2 == p1:
            raise InvalidInputError(
                "Baseline and target rates are equal; the effect cannot be detected",
                field="mde"
            )
        if p2 > 1:
            raise InvalidInputError(
                f"Target rate {p2 * 100:.2f}% exceeds 100%",
                field="mde"
            )

        p_avg = (p1 + p2) / 2

        numerator = (z_a + z_b) ** 2 * 2 * p_avg * (1 - p_avg)
        denominator = (p2 - p1) ** 2

        if denominator == 0 or not np.isfinite(numerator / denominator):
            raise InvalidInputError(
                "Rate difference is too small to size a test for",
                field="mde"
            )

        per_variant = int(np.ceil(numerator / denominator))
        total = per_variant * 2
        days_needed = int(np.ceil(total / daily_traffic))

        result = SampleSizeResult(
            per_variant=per_variant,
            total=total,
            days_needed=days_needed,
            expected_variant_rate=p2 * 100,
            is_long_duration=days_needed > self.long_test_threshold_days
        )

        logger.debug(
            "Sample size for baseline=%s%% mde=%s%% alpha=%s power=%s: %d per variant, %d days",
            baseline_rate, mde, alpha, power, per_variant, days_needed
        )
        if result.is_long_duration:
            logger.warning(
                "Planned test needs %d days (threshold %d); consider a larger MDE or a higher-traffic page",
                days_needed, self.long_test_threshold_days
            )

        return result

    def _validate(self, baseline_rate: float, mde: float, daily_traffic: int) -> None:
        if not 0 <= baseline_rate <= 100:
            raise InvalidInputError(
                f"Baseline conversion rate must be between 0 and 100, got {baseline_rate}",
                field="baseline_rate"
            )
        if not mde >= 0:
            raise InvalidInputError(
                f"Minimum detectable effect must not be negative, got {mde}",
                field="mde"
            )
        if not np.isfinite(daily_traffic) or daily_traffic <= 0 or int(daily_traffic) != daily_traffic:
            raise InvalidInputError(
                f"Daily traffic must be a positive integer, got {daily_traffic}",
                field="daily_traffic"
            )
