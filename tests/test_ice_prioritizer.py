from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from experiment_design.ice_prioritizer import IcePrioritizer, PriorityLevel, TestIdea, TestStatus
from statistical_analysis.errors import InvalidInputError


def make_idea(idea_id, name, impact, confidence, ease, **kwargs):
    params = dict(
        current_conversion_rate=3.0,
        expected_improvement=10.0,
        monthly_traffic=10000,
    )
    params.update(kwargs)
    return TestIdea(idea_id=idea_id, name=name, impact=impact, confidence=confidence, ease=ease, **params)


class TestTestIdea:
    def test_ice_score(self, checkout_idea):
        assert checkout_idea.ice_score == 8 * 7 * 6

    def test_ice_score_follows_factors(self, checkout_idea):
        checkout_idea.impact = 10
        assert checkout_idea.ice_score == 10 * 7 * 6

    def test_defaults(self, checkout_idea):
        assert checkout_idea.status == TestStatus.PLANNED
        assert checkout_idea.actual_result is None

    def test_status_from_string(self):
        idea = make_idea("a", "Hero image", 5, 5, 5, status="running")
        assert idea.status == TestStatus.RUNNING

    def test_derived_business_metrics(self, checkout_idea):
        assert checkout_idea.expected_conversion_rate == pytest.approx(3.45)
        assert checkout_idea.additional_conversions == 225

    def test_prediction_accuracy(self, checkout_idea):
        assert checkout_idea.prediction_accuracy is None
        checkout_idea.actual_result = 12.0
        assert checkout_idea.prediction_accuracy == pytest.approx(80.0)

    @pytest.mark.parametrize("field,value", [
        ("impact", 0), ("impact", 11), ("confidence", 5.5), ("ease", True), ("ease", "7"),
    ])
    def test_factor_validation(self, checkout_idea, field, value):
        with pytest.raises(InvalidInputError) as exc_info:
            replace(checkout_idea, **{field: value})
        assert exc_info.value.field == field

    def test_name_required(self):
        with pytest.raises(InvalidInputError):
            make_idea("a", "   ", 5, 5, 5)

    def test_negative_traffic_rejected(self):
        with pytest.raises(InvalidInputError):
            make_idea("a", "Hero image", 5, 5, 5, monthly_traffic=-1)

    def test_to_dict(self, checkout_idea):
        data = checkout_idea.to_dict()
        assert data['ice_score'] == 336
        assert data['status'] == "planned"
        assert data['priority_level'] == "medium"


class TestStatusTransitions:
    @pytest.mark.parametrize("source,target", [
        (TestStatus.PLANNED, TestStatus.RUNNING),
        (TestStatus.RUNNING, TestStatus.COMPLETED),
        (TestStatus.COMPLETED, TestStatus.PLANNED),
    ])
    def test_allowed(self, source, target):
        assert source.can_transition_to(target)

    @pytest.mark.parametrize("source,target", [
        (TestStatus.PLANNED, TestStatus.COMPLETED),
        (TestStatus.RUNNING, TestStatus.PLANNED),
        (TestStatus.COMPLETED, TestStatus.RUNNING),
    ])
    def test_rejected(self, source, target):
        assert not source.can_transition_to(target)


@pytest.mark.parametrize("score,level", [
    (1000, PriorityLevel.TOP), (600, PriorityLevel.TOP), (599, PriorityLevel.HIGH),
    (400, PriorityLevel.HIGH), (399, PriorityLevel.MEDIUM), (200, PriorityLevel.MEDIUM),
    (199, PriorityLevel.LOW), (1, PriorityLevel.LOW),
])
def test_priority_thresholds(score, level):
    assert PriorityLevel.from_score(score) == level


class TestIcePrioritizer:
    @pytest.fixture
    def ideas(self):
        now = datetime(2024, 11, 1)
        return [
            make_idea("low", "Footer links", 2, 3, 4, created_at=now),
            make_idea("top", "Checkout redesign", 9, 9, 8, created_at=now - timedelta(days=3),
                      expected_improvement=25.0),
            make_idea("mid", "Checkout badges", 6, 6, 6, created_at=now + timedelta(days=1),
                      status=TestStatus.RUNNING),
            make_idea("tie", "Hero copy", 6, 6, 6, created_at=now - timedelta(days=1)),
        ]

    def test_rank_descending_and_stable(self, ideas):
        ranked = IcePrioritizer().rank(ideas)
        assert [idea.idea_id for idea in ranked] == ["top", "mid", "tie", "low"]

    def test_top(self, ideas):
        assert [idea.idea_id for idea in IcePrioritizer(top_limit=2).top(ideas)] == ["top", "mid"]
        assert len(IcePrioritizer().top(ideas, n=1)) == 1

    def test_search_is_case_insensitive(self, ideas):
        matches = IcePrioritizer().filter_ideas(ideas, query="CHECKOUT")
        assert [idea.idea_id for idea in matches] == ["top", "mid"]

    def test_status_filter(self, ideas):
        matches = IcePrioritizer().filter_ideas(ideas, status=TestStatus.RUNNING)
        assert [idea.idea_id for idea in matches] == ["mid"]

    def test_sort_by_created_at(self, ideas):
        matches = IcePrioritizer().filter_ideas(ideas, sort_by="created_at")
        assert [idea.idea_id for idea in matches] == ["mid", "low", "tie", "top"]

    def test_sort_by_expected_improvement(self, ideas):
        assert IcePrioritizer().filter_ideas(ideas, sort_by="expected_improvement")[0].idea_id == "top"

    def test_unknown_sort_key(self, ideas):
        with pytest.raises(InvalidInputError):
            IcePrioritizer().filter_ideas(ideas, sort_by="name")

    def test_to_frame(self, ideas):
        frame = IcePrioritizer().to_frame(ideas)
        assert list(frame['idea_id']) == ["top", "mid", "tie", "low"]
        assert frame.loc[0, 'ice_score'] == 648
        assert frame.loc[0, 'priority_level'] == "top"

    def test_empty_frame(self):
        frame = IcePrioritizer().to_frame([])
        assert frame.empty
        assert 'ice_score' in frame.columns

    def test_group_by_priority(self, ideas):
        grouped = IcePrioritizer().group_by_priority(ideas)
        assert [idea.idea_id for idea in grouped[PriorityLevel.TOP]] == ["top"]
        assert [idea.idea_id for idea in grouped[PriorityLevel.MEDIUM]] == ["mid", "tie"]
        assert [idea.idea_id for idea in grouped[PriorityLevel.LOW]] == ["low"]
        assert grouped[PriorityLevel.HIGH] == []
