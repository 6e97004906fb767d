import logging
from dataclasses import dataclass
from typing import Iterable

from experiment_design.ice_prioritizer import TestIdea
from statistical_analysis.errors import InvalidInputError

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30
LOSS_AVERSION_MULTIPLIER = 2.5


@dataclass(frozen=True)
class OpportunityCost:
    daily: float
    weekly: float
    monthly: float
    psychological: float
    total_loss: float
    psychological_total_loss: float
    delay_days: int


class OpportunityCostCalculator:
    """Revenue forgone by delaying a test idea.

    Losses are also reported scaled by a loss-aversion multiplier, since a
    loss is felt roughly 2.5 times as strongly as an equal gain.
    """

    def __init__(
        self,
        avg_order_value: float = 50.0,
        loss_aversion_multiplier: float = LOSS_AVERSION_MULTIPLIER
    ):
        if avg_order_value < 0:
            raise InvalidInputError(
                f"Average order value must not be negative, got {avg_order_value}",
                field="avg_order_value"
            )
        self.avg_order_value = avg_order_value
        self.loss_aversion_multiplier = loss_aversion_multiplier

    def daily_loss(self, idea: TestIdea, avg_order_value: float = None) -> float:
        aov = self.avg_order_value if avg_order_value is None else avg_order_value
        if aov < 0:
            raise InvalidInputError(
                f"Average order value must not be negative, got {aov}",
                field="avg_order_value"
            )

        current_revenue = (idea.monthly_traffic * idea.current_conversion_rate / 100) * aov
        potential_revenue = current_revenue * (1 + idea.expected_improvement / 100)
        return (potential_revenue - current_revenue) / DAYS_PER_MONTH

    def calculate(
        self,
        idea: TestIdea,
        delay_days: int = 7,
        avg_order_value: float = None
    ) -> OpportunityCost:
        if delay_days < 0:
            raise InvalidInputError(
                f"Delay must not be negative, got {delay_days}",
                field="delay_days"
            )

        daily = self.daily_loss(idea, avg_order_value)
        total_loss = daily * delay_days

        logger.debug("Opportunity cost for %s: %.2f/day over %d days", idea.idea_id, daily, delay_days)

        return OpportunityCost(
            daily=daily,
            weekly=daily * 7,
            monthly=daily * DAYS_PER_MONTH,
            psychological=daily * self.loss_aversion_multiplier,
            total_loss=total_loss,
            psychological_total_loss=total_loss * self.loss_aversion_multiplier,
            delay_days=delay_days
        )

    def total_daily_loss(self, ideas: Iterable[TestIdea], avg_order_value: float = None) -> float:
        """Combined daily loss across a set of ideas still waiting to run"""
        return sum(self.daily_loss(idea, avg_order_value) for idea in ideas)
