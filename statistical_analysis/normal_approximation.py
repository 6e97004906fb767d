from math import exp
from typing import Dict

from statistical_analysis.errors import InvalidInputError


# Two-tailed critical values keyed by significance level
Z_ALPHA: Dict[float, float] = {
    0.01: 2.576,
    0.05: 1.96,
    0.10: 1.645,
}

# One-tailed z values keyed by statistical power
Z_POWER: Dict[float, float] = {
    0.80: 0.84,
    0.90: 1.28,
    0.95: 1.645,
}

# Interval critical value, fixed at 95% whatever alpha the test uses
Z_CONFIDENCE_95 = 1.96

SUPPORTED_ALPHAS = tuple(sorted(Z_ALPHA))
SUPPORTED_POWERS = tuple(sorted(Z_POWER))


def normal_cdf(x: float) -> float:
    """Standard Normal CDF via the Zelen & Severo polynomial (|error| < 7.5e-8)"""
    t = 1 / (1 + 0.2316419 * abs(x))
    d = 0.3989423 * exp(-x * x / 2)
    p = d * t * (0.3193815 + t * (-0.3565638 + t * (1.781478 + t * (-1.821256 + t * 1.330274))))
    return 1 - p if x >= 0 else p


def z_alpha(alpha: float) -> float:
    """Look up the two-tailed critical value for a supported significance level"""
    key = round(alpha, 4)
    if key not in Z_ALPHA:
        raise InvalidInputError(
            f"Unsupported significance level: {alpha} (expected one of {SUPPORTED_ALPHAS})",
            field="alpha"
        )
    return Z_ALPHA[key]


def z_power(power: float) -> float:
    """Look up the z value for a supported statistical power"""
    key = round(power, 4)
    if key not in Z_POWER:
        raise InvalidInputError(
            f"Unsupported statistical power: {power} (expected one of {SUPPORTED_POWERS})",
            field="power"
        )
    return Z_POWER[key]
