import logging
from dataclasses import dataclass
from math import sqrt
from typing import Dict, Tuple, Optional, Any

import numpy as np

from ab_testing.peeking_detector import PeekingDetector, RECOMMENDED_DURATION_DAYS
from statistical_analysis.errors import (
    DegenerateComputationError,
    DegenerateReason,
    InvalidInputError,
)
from statistical_analysis.normal_approximation import Z_CONFIDENCE_95, normal_cdf, z_alpha

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignificanceResult:
    control_rate: float
    variant_rate: float
    improvement_rate: Optional[float]
    z_score: Optional[float]
    p_value: Optional[float]
    ci_lower: Optional[float]
    ci_upper: Optional[float]
    alpha: float
    is_significant: bool
    is_peeking: bool
    recommended_duration: int
    degenerate_reasons: Tuple[DegenerateReason, ...] = ()

    @property
    def is_degenerate(self) -> bool:
        return bool(self.degenerate_reasons)

    @property
    def recommendation(self) -> str:
        if self.is_peeking:
            return f"Test for at least {self.recommended_duration} days before checking results."
        if DegenerateReason.ZERO_STANDARD_ERROR in self.degenerate_reasons:
            return "Both groups have identical all-or-nothing conversion; the test statistic is undefined."
        if not self.is_significant:
            return (
                "No statistically significant difference yet. "
                "Collect more samples or test variants with larger effects."
            )
        if self.variant_rate > self.control_rate:
            return "Variant outperforms control. Implement the variant."
        return "Variant underperforms control. Keep the control experience."

    def to_display(self) -> Dict[str, Any]:
        """Render with the fixed decimals used by the calculator views"""
        def fmt(value: Optional[float], digits: int) -> Optional[str]:
            return None if value is None else f"{value:.{digits}f}"

        return {
            'control_rate': fmt(self.control_rate, 2),
            'variant_rate': fmt(self.variant_rate, 2),
            'improvement_rate': fmt(self.improvement_rate, 2),
            'z_score': fmt(self.z_score, 3),
            'p_value': fmt(self.p_value, 4),
            'ci_lower': fmt(self.ci_lower, 2),
            'ci_upper': fmt(self.ci_upper, 2),
            'is_significant': self.is_significant,
            'is_peeking': self.is_peeking,
            'recommended_duration': self.recommended_duration,
            'degenerate_reasons': [reason.value for reason in self.degenerate_reasons]
        }


class SignificanceEvaluator:
    """Two-proportion z-test between a control and a variant group.

    The p-value uses the polynomial Normal CDF approximation. The confidence
    interval on relative improvement is always built at 95% (z = 1.96), even
    when the test itself uses another alpha.
    """

    def __init__(self, recommended_duration: int = RECOMMENDED_DURATION_DAYS):
        self.peeking_detector = PeekingDetector(recommended_duration)

    def evaluate(
        self,
        control_visitors: int,
        control_conversions: int,
        variant_visitors: int,
        variant_conversions: int,
        test_duration_days: float,
        alpha: float = 0.05,
        strict: bool = False
    ) -> SignificanceResult:
        """Evaluate significance of the observed difference.

        Zero standard error or a zero control rate produce a result with
        ``degenerate_reasons`` set and the undefined fields left as None, or
        raise DegenerateComputationError when ``strict`` is set.
        """
        self._validate(
            control_visitors, control_conversions,
            variant_visitors, variant_conversions,
            test_duration_days
        )
        z_alpha(alpha)

        p1 = control_conversions / control_visitors
        p2 = variant_conversions / variant_visitors
        p_pool = (control_conversions + variant_conversions) / (control_visitors + variant_visitors)

        se = sqrt(p_pool * (1 - p_pool) * (1 / control_visitors + 1 / variant_visitors))
        diff = p2 - p1

        reasons = []
        z_score = None
        p_value = None
        if se == 0:
            reasons.append(DegenerateReason.ZERO_STANDARD_ERROR)
        else:
            z_score = diff / se
            p_value = 2 * (1 - normal_cdf(abs(z_score)))

        improvement_rate = None
        ci_lower = None
        ci_upper = None
        if p1 == 0:
            reasons.append(DegenerateReason.ZERO_CONTROL_RATE)
        else:
            half_width = Z_CONFIDENCE_95 * se
            improvement_rate = diff / p1 * 100
            ci_lower = (diff - half_width) / p1 * 100
            ci_upper = (diff + half_width) / p1 * 100

        if reasons and strict:
            raise DegenerateComputationError(reasons[0])

        result = SignificanceResult(
            control_rate=p1 * 100,
            variant_rate=p2 * 100,
            improvement_rate=improvement_rate,
            z_score=z_score,
            p_value=p_value,
            ci_lower=ci_lower,
            ci_upper=ci_upper,
            alpha=alpha,
            is_significant=p_value is not None and p_value < alpha,
            is_peeking=self.peeking_detector.is_peeking(test_duration_days),
            recommended_duration=self.peeking_detector.recommended_duration,
            degenerate_reasons=tuple(reasons)
        )

        if reasons:
            logger.debug("Degenerate significance computation: %s", [r.value for r in reasons])
        else:
            logger.debug("z=%.3f p=%.4f significant=%s", z_score, p_value, result.is_significant)

        return result

    def _validate(
        self,
        control_visitors: int,
        control_conversions: int,
        variant_visitors: int,
        variant_conversions: int,
        test_duration_days: float
    ) -> None:
        groups = (
            ('control', control_visitors, control_conversions),
            ('variant', variant_visitors, variant_conversions),
        )
        for name, visitors, conversions in groups:
            for kind, count in (('visitors', visitors), ('conversions', conversions)):
                if not np.isfinite(count) or int(count) != count:
                    raise InvalidInputError(
                        f"{name.capitalize()} {kind} must be a whole number, got {count}",
                        field=f"{name}_{kind}"
                    )
            if visitors <= 0:
                raise InvalidInputError(
                    f"{name.capitalize()} visitors must be positive, got {visitors}",
                    field=f"{name}_visitors"
                )
            if conversions < 0:
                raise InvalidInputError(
                    f"{name.capitalize()} conversions must not be negative, got {conversions}",
                    field=f"{name}_conversions"
                )
            if conversions > visitors:
                raise InvalidInputError(
                    f"{name.capitalize()} conversions ({conversions}) exceed visitors ({visitors})",
                    field=f"{name}_conversions"
                )

        if not np.isfinite(test_duration_days) or test_duration_days < 0:
            raise InvalidInputError(
                f"Test duration must be a non-negative number, got {test_duration_days}",
                field="test_duration_days"
            )
