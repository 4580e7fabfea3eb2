"""
Unit tests for the Monte Carlo harness and parameter sweep.

Covers:
  - Reproducibility from a master seed
  - Degenerate extremes (p = 0, p = 1)
  - Weak monotonicity of the largest cluster in p (statistical)
  - Seed spawning and confidence intervals
"""

from __future__ import annotations

import sys
import unittest
import warnings
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from percolation_engine.monte_carlo import (
    run_monte_carlo,
    parameter_sweep,
    sweep_to_records,
    sweep_trend,
    MonteCarloResult,
)
from percolation_engine.utils import confidence_interval, make_trial_seeds


class TestRunMonteCarlo(unittest.TestCase):

    def test_shapes_and_ci(self):
        r = run_monte_carlo(8, 8, 0.5, trials=6, seed=1)
        self.assertIsInstance(r, MonteCarloResult)
        self.assertEqual(r.largest_fractions.shape, (6,))
        self.assertEqual(r.cluster_counts.shape, (6,))
        self.assertEqual(r.percolated.shape, (6,))
        self.assertLessEqual(r.ci_low, r.mean_largest_fraction)
        self.assertGreaterEqual(r.ci_high, r.mean_largest_fraction)
        self.assertTrue(np.all((r.largest_fractions > 0) & (r.largest_fractions <= 1)))

    def test_reproducible(self):
        a = run_monte_carlo(8, 8, 0.5, trials=4, seed=123)
        b = run_monte_carlo(8, 8, 0.5, trials=4, seed=123)
        np.testing.assert_array_equal(a.largest_fractions, b.largest_fractions)
        np.testing.assert_array_equal(a.cluster_counts, b.cluster_counts)

    def test_p_zero(self):
        r = run_monte_carlo(8, 8, 0.0, trials=3, seed=0)
        np.testing.assert_array_equal(r.cluster_counts, [64, 64, 64])
        self.assertEqual(r.mean_largest_fraction, 1 / 64)
        self.assertEqual(r.variance_largest_fraction, 0.0)
        self.assertEqual((r.ci_low, r.ci_high), (1 / 64, 1 / 64))
        self.assertEqual(r.percolation_probability, 0.0)

    def test_p_one(self):
        r = run_monte_carlo(8, 8, 1.0, trials=3, seed=0)
        self.assertEqual(r.mean_largest_fraction, 1.0)
        self.assertEqual(r.percolation_probability, 1.0)

    def test_too_few_trials_raises(self):
        with self.assertRaises(ValueError):
            run_monte_carlo(4, 4, 0.5, trials=1, seed=0)

    def test_summary_dict_keys(self):
        s = run_monte_carlo(4, 4, 0.5, trials=3, seed=2).summary_dict()
        for key in ("parameter", "mean_largest_fraction", "ci_95_low",
                    "ci_95_high", "percolation_probability", "mean_cluster_count"):
            self.assertIn(key, s)


class TestParameterSweep(unittest.TestCase):

    def test_largest_cluster_grows_with_p(self):
        params = [0.0, 0.25, 0.5, 0.75, 1.0]
        results = parameter_sweep(10, 10, params, trials=20, seed=7)
        means = [r.mean_largest_fraction for r in results]
        self.assertEqual([r.parameter for r in results], params)
        for lo, hi in zip(means, means[1:]):
            self.assertLessEqual(lo, hi)
        trend = sweep_trend(results)
        self.assertAlmostEqual(trend["spearman_rho"], 1.0)
        self.assertEqual(trend["n_decreasing_steps"], 0)

    def test_levels_share_trial_seeds(self):
        results = parameter_sweep(6, 6, [0.0, 1.0], trials=2, seed=5)
        self.assertTrue(all(r.seed == 5 for r in results))

    def test_empty_parameters_raises(self):
        with self.assertRaises(ValueError):
            parameter_sweep(4, 4, [], trials=2, seed=0)

    def test_trend_warns_on_few_levels(self):
        results = parameter_sweep(4, 4, [0.2, 0.8], trials=2, seed=0)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            trend = sweep_trend(results)
        self.assertTrue(any(issubclass(w.category, UserWarning) for w in caught))
        self.assertTrue(np.isnan(trend["spearman_rho"]))

    def test_records(self):
        results = parameter_sweep(4, 4, [0.0, 0.5, 1.0], trials=2, seed=0)
        records = sweep_to_records(results)
        self.assertEqual(len(records), 3)
        self.assertEqual(records[-1]["mean_largest_fraction"], 1.0)
        self.assertEqual(records[0]["mean_cluster_count"], 16.0)


class TestUtils(unittest.TestCase):

    def test_trial_seeds_reproducible_and_32_bit(self):
        a = make_trial_seeds(42, 10)
        self.assertEqual(a, make_trial_seeds(42, 10))
        self.assertEqual(len(set(a)), 10)
        self.assertTrue(all(0 <= s < 2**32 for s in a))
        self.assertNotEqual(a, make_trial_seeds(43, 10))

    def test_trial_seeds_zero(self):
        self.assertEqual(make_trial_seeds(1, 0), [])

    def test_confidence_interval_contains_mean(self):
        x = np.array([0.1, 0.3, 0.2, 0.4, 0.25])
        lo, hi = confidence_interval(x)
        self.assertLess(lo, float(np.mean(x)))
        self.assertGreater(hi, float(np.mean(x)))

    def test_confidence_interval_rejects_bad_input(self):
        with self.assertRaises(ValueError):
            confidence_interval(np.array([1.0]))
        with self.assertRaises(ValueError):
            confidence_interval(np.array([1.0, 2.0]), confidence=1.5)


if __name__ == "__main__":
    unittest.main()
