import pytest

from experiment_design.ice_prioritizer import TestIdea
from growth_framework import GrowthFramework
from statistical_analysis.sample_size_calculator import SampleSizeEstimator
from statistical_analysis.significance_calculator import SignificanceEvaluator


@pytest.fixture
def estimator():
    return SampleSizeEstimator()


@pytest.fixture
def evaluator():
    return SignificanceEvaluator()


@pytest.fixture
def checkout_idea():
    return TestIdea(
        idea_id="checkout-cta",
        name="Checkout CTA copy",
        impact=8,
        confidence=7,
        ease=6,
        current_conversion_rate=3.0,
        expected_improvement=15.0,
        monthly_traffic=50000
    )


@pytest.fixture
def framework():
    return GrowthFramework()


@pytest.fixture
def populated_framework(framework):
    framework.add_test_idea("Social proof badges", 9, 8, 7, 3.0, 10.0, 150000, idea_id="social-proof")
    framework.add_test_idea("Countdown timer", 6, 5, 9, 2.5, 8.0, 60000, idea_id="countdown")
    framework.add_test_idea("One-click checkout", 9, 6, 3, 4.0, 20.0, 90000, idea_id="one-click")
    framework.add_test_idea("Trust badges", 4, 4, 9, 3.2, 5.0, 30000, idea_id="trust")
    return framework
