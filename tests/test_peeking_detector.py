import pytest

from ab_testing.peeking_detector import PeekingDetector, RECOMMENDED_DURATION_DAYS
from statistical_analysis.errors import InvalidInputError


@pytest.fixture
def detector():
    return PeekingDetector()


def test_default_threshold_is_two_weeks(detector):
    assert RECOMMENDED_DURATION_DAYS == 14
    assert detector.recommended_duration == 14


@pytest.mark.parametrize("days,expected", [(0, True), (7, True), (13.5, True), (14, False), (21, False)])
def test_strict_less_than(detector, days, expected):
    assert detector.is_peeking(days) is expected


def test_assess_while_peeking(detector):
    assessment = detector.assess(7)
    assert assessment.is_peeking
    assert assessment.days_remaining == 7
    assert assessment.sample_progress is None
    assert "at least 14 days" in assessment.recommendation


def test_assess_duration_reached_but_sample_short(detector):
    assessment = detector.assess(14, observed_sample=40000, planned_sample=80000)
    assert not assessment.is_peeking
    assert assessment.days_remaining == 0
    assert assessment.sample_progress == pytest.approx(0.5)
    assert "50%" in assessment.recommendation


def test_assess_complete(detector):
    assessment = detector.assess(30, observed_sample=120000, planned_sample=100000)
    assert assessment.sample_progress == 1.0
    assert assessment.recommendation == "Test has run long enough to read results."


def test_negative_duration_rejected(detector):
    with pytest.raises(InvalidInputError):
        detector.assess(-1)


def test_non_positive_threshold_rejected():
    with pytest.raises(InvalidInputError):
        PeekingDetector(recommended_duration=0)
