"""Tests for the grouped configuration accessors."""

import unittest

from study_forecast import config


class TestConfigGetters(unittest.TestCase):

    def test_shrinkage_prior(self):
        self.assertEqual(config.get_shrinkage_prior(),
                         {"population_sd": 12.0, "prior_strength": 3})

    def test_readiness_thresholds(self):
        thresholds = config.get_readiness_thresholds()
        self.assertEqual(thresholds["min_total_points"], 5)
        self.assertEqual(thresholds["min_distinct_dates"], 1)

    def test_outlook_thresholds_are_ordered(self):
        thresholds = config.get_outlook_thresholds()
        self.assertGreater(thresholds["on_track"], thresholds["at_risk"])

    def test_t_table_is_decreasing(self):
        values = [config.T_CRITICAL_95[df] for df in sorted(config.T_CRITICAL_95)]
        self.assertEqual(values, sorted(values, reverse=True))
        self.assertLess(config.T_CRITICAL_DEFAULT, values[-1])


if __name__ == "__main__":
    unittest.main()
