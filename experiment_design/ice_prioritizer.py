import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Iterable

import pandas as pd

from statistical_analysis.errors import InvalidInputError

logger = logging.getLogger(__name__)


class TestStatus(Enum):
    PLANNED = "planned"
    RUNNING = "running"
    COMPLETED = "completed"

    def can_transition_to(self, target: 'TestStatus') -> bool:
        return target in ALLOWED_TRANSITIONS[self]


# Forward progression plus the retest path completed -> planned
ALLOWED_TRANSITIONS: Dict[TestStatus, frozenset] = {
    TestStatus.PLANNED: frozenset({TestStatus.RUNNING}),
    TestStatus.RUNNING: frozenset({TestStatus.COMPLETED}),
    TestStatus.COMPLETED: frozenset({TestStatus.PLANNED}),
}


class PriorityLevel(Enum):
    TOP = "top"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_score(cls, ice_score: int) -> 'PriorityLevel':
        if ice_score >= 600:
            return cls.TOP
        if ice_score >= 400:
            return cls.HIGH
        if ice_score >= 200:
            return cls.MEDIUM
        return cls.LOW


ICE_FACTOR_RANGE = (1, 10)
SORT_KEYS = ('ice_score', 'created_at', 'expected_improvement')


@dataclass
class TestIdea:
    idea_id: str
    name: str
    impact: int
    confidence: int
    ease: int
    current_conversion_rate: float
    expected_improvement: float
    monthly_traffic: int
    status: TestStatus = TestStatus.PLANNED
    created_at: datetime = field(default_factory=datetime.now)
    actual_result: Optional[float] = None
    test_duration: Optional[int] = None

    # keeps pytest from collecting this class
    __test__ = False

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise InvalidInputError("Test idea name is required", field="name")

        low, high = ICE_FACTOR_RANGE
        for factor in ('impact', 'confidence', 'ease'):
            value = getattr(self, factor)
            if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
                raise InvalidInputError(
                    f"{factor.capitalize()} must be an integer between {low} and {high}, got {value!r}",
                    field=factor
                )

        for metric in ('current_conversion_rate', 'expected_improvement', 'monthly_traffic'):
            if getattr(self, metric) < 0:
                raise InvalidInputError(f"{metric} must not be negative", field=metric)

        if isinstance(self.status, str):
            self.status = TestStatus(self.status)

    @property
    def ice_score(self) -> int:
        """Impact x Confidence x Ease, always derived from the current factors"""
        return self.impact * self.confidence * self.ease

    @property
    def priority_level(self) -> PriorityLevel:
        return PriorityLevel.from_score(self.ice_score)

    @property
    def expected_conversion_rate(self) -> float:
        return self.current_conversion_rate * (1 + self.expected_improvement / 100)

    @property
    def additional_conversions(self) -> int:
        """Extra monthly conversions if the expected improvement materialises"""
        return round(
            (self.monthly_traffic * self.current_conversion_rate / 100) * (self.expected_improvement / 100)
        )

    @property
    def prediction_accuracy(self) -> Optional[float]:
        """Actual over expected improvement, in percent"""
        if self.actual_result is None or self.expected_improvement == 0:
            return None
        return self.actual_result / self.expected_improvement * 100

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['status'] = self.status.value
        data['ice_score'] = self.ice_score
        data['priority_level'] = self.priority_level.value
        data['expected_conversion_rate'] = self.expected_conversion_rate
        data['additional_conversions'] = self.additional_conversions
        return data


class IcePrioritizer:
    """Ranks test ideas with the ICE framework (Impact, Confidence, Ease)"""

    def __init__(self, top_limit: int = 5):
        self.top_limit = top_limit

    def rank(self, ideas: Iterable[TestIdea]) -> List[TestIdea]:
        """Sort by ICE score descending; ties keep their input order"""
        return sorted(ideas, key=lambda idea: idea.ice_score, reverse=True)

    def top(self, ideas: Iterable[TestIdea], n: int = None) -> List[TestIdea]:
        return self.rank(ideas)[:n or self.top_limit]

    def filter_ideas(
        self,
        ideas: Iterable[TestIdea],
        query: str = "",
        status: Optional[TestStatus] = None,
        sort_by: str = 'ice_score'
    ) -> List[TestIdea]:
        """Search by name, filter by status and sort descending by the chosen key"""
        if sort_by not in SORT_KEYS:
            raise InvalidInputError(f"Unknown sort key: {sort_by}", field="sort_by")

        query = query.lower()
        matches = [
            idea for idea in ideas
            if query in idea.name.lower() and (status is None or idea.status == status)
        ]
        return sorted(matches, key=lambda idea: getattr(idea, sort_by), reverse=True)

    def to_frame(self, ideas: Iterable[TestIdea]) -> pd.DataFrame:
        """Tabular view of ideas with derived columns, ranked by ICE score"""
        rows = [idea.to_dict() for idea in self.rank(ideas)]
        if not rows:
            return pd.DataFrame(columns=['idea_id', 'name', 'impact', 'confidence', 'ease',
                                         'ice_score', 'priority_level', 'status'])
        return pd.DataFrame(rows)

    def group_by_priority(self, ideas: Iterable[TestIdea]) -> Dict[PriorityLevel, List[TestIdea]]:
        grouped = {level: [] for level in PriorityLevel}
        for idea in self.rank(ideas):
            grouped[idea.priority_level].append(idea)
        return grouped
