"""
Configuration for the ICE experiment prioritizer.
Override any of these through FrameworkConfig.from_dict or GrowthFramework(config).
"""
from dataclasses import dataclass, fields, asdict
from typing import Dict, Any, Mapping

from statistical_analysis.errors import InvalidInputError
from statistical_analysis.normal_approximation import z_alpha, z_power


STATS_CONFIG = {
    'default_alpha': 0.05,              # Significance level
    'default_power': 0.80,              # Statistical power
    'recommended_duration_days': 14,    # Peeking threshold
    'long_test_threshold_days': 30,     # Warn when a plan runs longer
}

BUSINESS_CONFIG = {
    'default_avg_order_value': 50.0,
    'default_delay_days': 7,
    'loss_aversion_multiplier': 2.5,    # Losses weigh ~2.5x gains
    'top_ideas_limit': 5,
}


@dataclass(frozen=True)
class FrameworkConfig:
    default_alpha: float = STATS_CONFIG['default_alpha']
    default_power: float = STATS_CONFIG['default_power']
    recommended_duration_days: int = STATS_CONFIG['recommended_duration_days']
    long_test_threshold_days: int = STATS_CONFIG['long_test_threshold_days']
    default_avg_order_value: float = BUSINESS_CONFIG['default_avg_order_value']
    default_delay_days: int = BUSINESS_CONFIG['default_delay_days']
    loss_aversion_multiplier: float = BUSINESS_CONFIG['loss_aversion_multiplier']
    top_ideas_limit: int = BUSINESS_CONFIG['top_ideas_limit']

    def __post_init__(self):
        z_alpha(self.default_alpha)
        z_power(self.default_power)
        if self.recommended_duration_days <= 0:
            raise InvalidInputError("recommended_duration_days must be positive", field="recommended_duration_days")
        if self.long_test_threshold_days <= 0:
            raise InvalidInputError("long_test_threshold_days must be positive", field="long_test_threshold_days")
        if self.top_ideas_limit <= 0:
            raise InvalidInputError("top_ideas_limit must be positive", field="top_ideas_limit")

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> 'FrameworkConfig':
        """Build from a mapping, ignoring keys that are not config fields"""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in config.items() if key in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
