import logging
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

from ab_testing.peeking_detector import RECOMMENDED_DURATION_DAYS
from statistical_analysis.errors import DegenerateComputationError, InvalidInputError
from statistical_analysis.normal_approximation import normal_cdf, z_alpha, z_power
from statistical_analysis.sample_size_calculator import (
    LONG_TEST_THRESHOLD_DAYS,
    SampleSizeEstimator,
    SampleSizeResult,
)
from statistical_analysis.significance_calculator import SignificanceEvaluator, SignificanceResult

logger = logging.getLogger(__name__)

T = TypeVar('T')

CalculationError = Union[InvalidInputError, DegenerateComputationError]


@dataclass(frozen=True)
class CalculationOutcome(Generic[T]):
    """Either a result or the error that prevented it, never both"""
    result: Optional[T] = None
    error: Optional[CalculationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StatisticalEngine:
    """Core statistical calculators for test planning and read-out.

    Methods never raise on bad input; they return a CalculationOutcome so a
    caller recomputing on every input change can display the error instead.
    """

    def __init__(
        self,
        default_alpha: float = 0.05,
        default_power: float = 0.8,
        recommended_duration: int = RECOMMENDED_DURATION_DAYS,
        long_test_threshold_days: int = LONG_TEST_THRESHOLD_DAYS
    ):
        z_alpha(default_alpha)
        z_power(default_power)
        self.default_alpha = default_alpha
        self.default_power = default_power
        self.sample_size_estimator = SampleSizeEstimator(long_test_threshold_days)
        self.significance_evaluator = SignificanceEvaluator(recommended_duration)

    def calculate_sample_size(
        self,
        baseline_rate: float,
        mde: float,
        daily_traffic: int,
        significance_level: float = None,
        power: float = None
    ) -> CalculationOutcome[SampleSizeResult]:
        """Calculate required sample size and test duration"""
        alpha = self.default_alpha if significance_level is None else significance_level
        try:
            result = self.sample_size_estimator.estimate(
                baseline_rate=baseline_rate,
                mde=mde,
                alpha=alpha,
                power=self.default_power if power is None else power,
                daily_traffic=daily_traffic
            )
        except InvalidInputError as e:
            logger.debug("Sample size rejected (%s): %s", e.field, e)
            return CalculationOutcome(error=e)
        return CalculationOutcome(result=result)

    def evaluate_significance(
        self,
        control_visitors: int,
        control_conversions: int,
        variant_visitors: int,
        variant_conversions: int,
        test_duration_days: float,
        significance_level: float = None,
        strict: bool = False
    ) -> CalculationOutcome[SignificanceResult]:
        """Run the two-proportion z-test; degenerate inputs surface as errors only in strict mode"""
        try:
            result = self.significance_evaluator.evaluate(
                control_visitors=control_visitors,
                control_conversions=control_conversions,
                variant_visitors=variant_visitors,
                variant_conversions=variant_conversions,
                test_duration_days=test_duration_days,
                alpha=self.default_alpha if significance_level is None else significance_level,
                strict=strict
            )
        except InvalidInputError as e:
            logger.debug("Significance input rejected (%s): %s", e.field, e)
            return CalculationOutcome(error=e)
        except DegenerateComputationError as e:
            logger.debug("Significance computation degenerate: %s", e.reason.value)
            return CalculationOutcome(error=e)
        return CalculationOutcome(result=result)

    @staticmethod
    def normal_cdf(x: float) -> float:
        return normal_cdf(x)
