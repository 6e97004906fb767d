import logging
import uuid
from dataclasses import fields, replace
from typing import Dict, List, Optional, Any, Union

import pandas as pd

from conversion_optimization.opportunity_cost_calculator import (
    OpportunityCost,
    OpportunityCostCalculator,
)
from experiment_config import FrameworkConfig
from experiment_design.ice_prioritizer import IcePrioritizer, TestIdea, TestStatus
from experiment_design.segment_profiles import SegmentProfiles
from statistical_analysis.errors import InvalidInputError
from statistical_analysis.sample_size_calculator import SampleSizeResult
from statistical_engine import CalculationOutcome, StatisticalEngine

logger = logging.getLogger(__name__)

DASHBOARD_NAME_LIMIT = 20
PROTECTED_FIELDS = ('idea_id', 'created_at')


class GrowthFramework:
    def __init__(self, config: Union[FrameworkConfig, Dict[str, Any], None] = None):
        if isinstance(config, FrameworkConfig):
            self.config = config
        else:
            self.config = FrameworkConfig.from_dict(config or {})

        self.statistical_engine = StatisticalEngine(
            default_alpha=self.config.default_alpha,
            default_power=self.config.default_power,
            recommended_duration=self.config.recommended_duration_days,
            long_test_threshold_days=self.config.long_test_threshold_days
        )
        self.prioritizer = IcePrioritizer(top_limit=self.config.top_ideas_limit)
        self.opportunity_cost_calculator = OpportunityCostCalculator(
            avg_order_value=self.config.default_avg_order_value,
            loss_aversion_multiplier=self.config.loss_aversion_multiplier
        )
        self.segment_profiles = SegmentProfiles()
        self.test_ideas: Dict[str, TestIdea] = {}

    def add_test_idea(
        self,
        name: str,
        impact: int,
        confidence: int,
        ease: int,
        current_conversion_rate: float,
        expected_improvement: float,
        monthly_traffic: int,
        idea_id: Optional[str] = None
    ) -> TestIdea:
        """Create a test idea; new ideas always start as planned"""
        idea = TestIdea(
            idea_id=idea_id or str(uuid.uuid4()),
            name=name.strip() if name else name,
            impact=impact,
            confidence=confidence,
            ease=ease,
            current_conversion_rate=current_conversion_rate,
            expected_improvement=expected_improvement,
            monthly_traffic=monthly_traffic
        )
        if idea.idea_id in self.test_ideas:
            raise ValueError(f"Test idea {idea.idea_id} already exists")

        self.test_ideas[idea.idea_id] = idea
        logger.info("Added test idea %s (%s) with ICE score %d", idea.idea_id, idea.name, idea.ice_score)
        return idea

    def get_test_idea(self, idea_id: str) -> TestIdea:
        if idea_id not in self.test_ideas:
            raise ValueError(f"Test idea {idea_id} not found")
        return self.test_ideas[idea_id]

    def update_test_idea(self, idea_id: str, /, **updates: Any) -> TestIdea:
        """Apply field updates; the ICE score follows any factor change"""
        current = self.get_test_idea(idea_id)

        for protected in PROTECTED_FIELDS:
            if protected in updates:
                raise InvalidInputError(f"{protected} cannot be updated", field=protected)
        if 'ice_score' in updates:
            raise InvalidInputError("ice_score is derived from impact, confidence and ease", field="ice_score")
        known = {f.name for f in fields(TestIdea)}
        for key in updates:
            if key not in known:
                raise InvalidInputError(f"Unknown test idea field: {key}", field=key)

        if 'status' in updates:
            target = self._coerce_status(updates['status'])
            self._check_transition(current, target)
            updates['status'] = target

        updated = replace(current, **updates)
        self.test_ideas[idea_id] = updated
        logger.info("Updated test idea %s: %s", idea_id, sorted(updates))
        return updated

    def change_status(self, idea_id: str, /, status: Union[TestStatus, str]) -> TestIdea:
        return self.update_test_idea(idea_id, status=status)

    def delete_test_idea(self, idea_id: str) -> bool:
        if idea_id not in self.test_ideas:
            return False
        del self.test_ideas[idea_id]
        logger.info("Deleted test idea %s", idea_id)
        return True

    def list_test_ideas(self, status: Optional[TestStatus] = None) -> List[TestIdea]:
        """Ideas ordered by ICE score, optionally restricted to one status"""
        ideas = self.test_ideas.values()
        if status is not None:
            status = self._coerce_status(status)
            ideas = [idea for idea in ideas if idea.status == status]
        return self.prioritizer.rank(ideas)

    def search_test_ideas(
        self,
        query: str = "",
        status: Optional[TestStatus] = None,
        sort_by: str = 'ice_score'
    ) -> List[TestIdea]:
        return self.prioritizer.filter_ideas(
            self.test_ideas.values(),
            query=query,
            status=self._coerce_status(status) if status is not None else None,
            sort_by=sort_by
        )

    def get_dashboard_metrics(self, avg_order_value: float = None) -> Dict[str, Any]:
        """Aggregate portfolio metrics for the dashboard view"""
        frame = self.prioritizer.to_frame(self.test_ideas.values())
        status_counts = {
            status.value: int((frame['status'] == status.value).sum()) if not frame.empty else 0
            for status in TestStatus
        }

        completed = frame[frame['status'] == TestStatus.COMPLETED.value] if not frame.empty else frame
        avg_success_rate = (
            float(pd.to_numeric(completed['actual_result'], errors='coerce').fillna(0).mean())
            if len(completed) > 0 else 0.0
        )

        planned = self.list_test_ideas(TestStatus.PLANNED)
        daily_opportunity_cost = self.opportunity_cost_calculator.total_daily_loss(
            planned, avg_order_value
        )

        top_ideas = self.prioritizer.top(self.test_ideas.values())
        total = len(self.test_ideas)

        return {
            'total_ideas': total,
            'status_counts': status_counts,
            'running_tests': status_counts[TestStatus.RUNNING.value],
            'avg_success_rate': avg_success_rate,
            'daily_opportunity_cost': daily_opportunity_cost,
            'psychological_daily_opportunity_cost': (
                daily_opportunity_cost * self.opportunity_cost_calculator.loss_aversion_multiplier
            ),
            'completion_rate': status_counts[TestStatus.COMPLETED.value] / total * 100 if total else 0.0,
            'top_ideas': top_ideas,
            'ice_distribution': self._ice_distribution(top_ideas)
        }

    def plan_test(
        self,
        idea_id: str,
        significance_level: float = None,
        power: float = None
    ) -> CalculationOutcome[SampleSizeResult]:
        """Sample size for an idea, using its expected improvement as the MDE"""
        idea = self.get_test_idea(idea_id)
        daily_traffic = max(round(idea.monthly_traffic / 30), 0)
        return self.statistical_engine.calculate_sample_size(
            baseline_rate=idea.current_conversion_rate,
            mde=idea.expected_improvement,
            daily_traffic=daily_traffic,
            significance_level=significance_level,
            power=power
        )

    def opportunity_cost(
        self,
        idea_id: str,
        delay_days: int = None,
        avg_order_value: float = None
    ) -> OpportunityCost:
        idea = self.get_test_idea(idea_id)
        return self.opportunity_cost_calculator.calculate(
            idea,
            delay_days=self.config.default_delay_days if delay_days is None else delay_days,
            avg_order_value=avg_order_value
        )

    def ideas_frame(self) -> pd.DataFrame:
        return self.prioritizer.to_frame(self.test_ideas.values())

    @staticmethod
    def _coerce_status(status: Union[TestStatus, str]) -> TestStatus:
        try:
            return TestStatus(status)
        except ValueError:
            raise InvalidInputError(f"Unknown test status: {status!r}", field="status") from None

    def _check_transition(self, idea: TestIdea, target: TestStatus) -> None:
        if target == idea.status:
            return
        if not idea.status.can_transition_to(target):
            raise InvalidInputError(
                f"Cannot move test idea {idea.idea_id} from {idea.status.value} to {target.value}",
                field="status"
            )

    def _ice_distribution(self, ideas: List[TestIdea]) -> List[Dict[str, Any]]:
        distribution = []
        for idea in ideas:
            name = idea.name
            if len(name) > DASHBOARD_NAME_LIMIT:
                name = name[:DASHBOARD_NAME_LIMIT] + '...'
            distribution.append({
                'name': name,
                'ice': idea.ice_score,
                'impact': idea.impact * 100,
                'confidence': idea.confidence * 100,
                'ease': idea.ease * 100
            })
        return distribution
