import numpy as np
import pytest
from scipy import stats

from statistical_analysis.errors import InvalidInputError
from statistical_analysis.normal_approximation import normal_cdf, z_alpha, z_power


class TestNormalCdf:
    def test_center_is_one_half(self):
        assert normal_cdf(0) == pytest.approx(0.5, abs=1e-6)

    def test_conventional_critical_value(self):
        assert normal_cdf(1.96) == pytest.approx(0.975, abs=1e-4)

    @pytest.mark.parametrize("x", np.linspace(-6, 6, 121))
    def test_matches_exact_cdf(self, x):
        assert normal_cdf(x) == pytest.approx(stats.norm.cdf(x), abs=1e-6)

    @pytest.mark.parametrize("x", [0.1, 0.5, 1.0, 2.5, 4.0])
    def test_symmetry(self, x):
        assert normal_cdf(x) + normal_cdf(-x) == pytest.approx(1.0)

    def test_monotonic(self):
        values = [normal_cdf(x) for x in np.linspace(-4, 4, 81)]
        assert all(a < b for a, b in zip(values, values[1:]))


class TestCriticalValueTables:
    @pytest.mark.parametrize("alpha,expected", [(0.01, 2.576), (0.05, 1.96), (0.10, 1.645), (0.1, 1.645)])
    def test_alpha_lookup(self, alpha, expected):
        assert z_alpha(alpha) == expected

    @pytest.mark.parametrize("power,expected", [(0.8, 0.84), (0.9, 1.28), (0.95, 1.645)])
    def test_power_lookup(self, power, expected):
        assert z_power(power) == expected

    def test_unsupported_alpha(self):
        with pytest.raises(InvalidInputError) as exc_info:
            z_alpha(0.2)
        assert exc_info.value.field == "alpha"

    def test_unsupported_power(self):
        with pytest.raises(InvalidInputError) as exc_info:
            z_power(0.5)
        assert exc_info.value.field == "power"
