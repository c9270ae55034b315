"""
PURPOSE: Unit tests for variance pooling.

Tests cover:
1. Weighted variance of a weighted sum (normalised weights squared)
2. Time uncertainty: zero at day 0, increasing, sublinear
3. Pooled SD never below the cross-subject SD alone
4. Audit breakdown serialisation
"""

import math

import pytest

from study_forecast.descriptive_stats import compute_category_stats
from study_forecast.variance import (
    compute_pooled_sd,
    compute_time_uncertainty,
    compute_weighted_variance,
    get_variance_breakdown,
)

STATS = [
    {"sd": 5.0, "weight": 50},
    {"sd": 10.0, "weight": 50},
]


class TestWeightedVariance:

    def test_normalised_weights_are_squared(self):
        assert compute_weighted_variance(STATS, 100) == pytest.approx(0.25 * 25 + 0.25 * 100)

    def test_zero_total_weight(self):
        assert compute_weighted_variance(STATS, 0) == 0.0

    def test_single_subject_full_weight(self):
        assert compute_weighted_variance([{"sd": 4.0, "weight": 3}], 3) == pytest.approx(16.0)

    def test_accepts_subject_stats(self):
        stats = compute_category_stats(
            [{"date": "2024-01-01", "score": 70}, {"date": "2024-01-02", "score": 70}], 1
        )
        assert compute_weighted_variance([stats], 1) == pytest.approx(stats.sd ** 2)


class TestTimeUncertainty:

    def test_zero_days(self):
        assert compute_time_uncertainty(0) == 0.0

    def test_negative_days(self):
        assert compute_time_uncertainty(-10) == 0.0

    def test_formula(self):
        assert compute_time_uncertainty(4) == pytest.approx(1.0)
        assert compute_time_uncertainty(30) == pytest.approx(math.sqrt(30) * 0.5)

    def test_strictly_increasing(self):
        values = [compute_time_uncertainty(d) for d in (1, 2, 5, 10, 30, 90, 365)]
        assert all(b > a for a, b in zip(values, values[1:]))

    def test_sublinear(self):
        assert compute_time_uncertainty(100) <= 10 * compute_time_uncertainty(1)
        assert compute_time_uncertainty(100) < 100 * compute_time_uncertainty(1)
        assert compute_time_uncertainty(30) < 30 * compute_time_uncertainty(1)


class TestPooledSD:

    @pytest.mark.parametrize("days", [1, 7, 30, 400])
    def test_time_only_adds(self, days):
        base = math.sqrt(compute_weighted_variance(STATS, 100))
        assert compute_pooled_sd(STATS, 100, days) > base

    def test_zero_days_equals_weighted_sd(self):
        base = math.sqrt(compute_weighted_variance(STATS, 100))
        assert compute_pooled_sd(STATS, 100, 0) == pytest.approx(base)

    def test_today_has_nonzero_spread(self):
        """Two constant subjects still carry their shrunk SDs at day 0."""
        stats = [
            {"sd": 5.0, "weight": 50},
            {"sd": 10.0, "weight": 50},
        ]
        assert compute_pooled_sd(stats, 100, 0) > 0


class TestBreakdown:

    def test_components_add_up(self):
        breakdown = get_variance_breakdown(STATS, 100, 16)
        assert breakdown.time_uncertainty == pytest.approx(2.0)
        assert breakdown.time_variance == pytest.approx(4.0)
        assert breakdown.pooled_variance == pytest.approx(breakdown.weighted_variance + 4.0)
        assert breakdown.pooled_sd == pytest.approx(compute_pooled_sd(STATS, 100, 16))

    def test_to_dict_rounds(self):
        data = get_variance_breakdown(STATS, 100, 30).to_dict()
        assert set(data) == {
            "weightedVariance", "timeUncertainty", "timeVariance", "pooledVariance", "pooledSD",
        }
        assert data["timeUncertainty"] == round(math.sqrt(30) * 0.5, 4)
