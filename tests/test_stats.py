"""Tests for benchify.stats — summary statistics of a sample set."""

from __future__ import annotations

import math
import random
import statistics
import unittest

from benchify.stats import Statistics, compute_statistics


class TestComputeStatistics(unittest.TestCase):
    """Tests for compute_statistics()."""

    def test_known_values(self) -> None:
        values = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]
        stats = compute_statistics(values)
        self.assertEqual(stats.count, 8)
        self.assertAlmostEqual(stats.mean, 5.0, places=9)
        self.assertAlmostEqual(stats.min, 2.0)
        self.assertAlmostEqual(stats.max, 9.0)
        # Sum of squared deviations is 32; Bessel's correction divides by 7.
        self.assertAlmostEqual(stats.stdev, math.sqrt(32 / 7), places=9)

    def test_single_sample_has_zero_stdev(self) -> None:
        stats = compute_statistics([0.25])
        self.assertEqual(stats.count, 1)
        self.assertEqual(stats.mean, 0.25)
        self.assertEqual(stats.stdev, 0.0)
        self.assertEqual(stats.min, 0.25)
        self.assertEqual(stats.max, 0.25)

    def test_identical_samples(self) -> None:
        stats = compute_statistics([0.1, 0.1, 0.1])
        self.assertEqual(stats.mean, 0.1)
        self.assertEqual(stats.stdev, 0.0)

    def test_empty_is_a_programming_error(self) -> None:
        with self.assertRaises(AssertionError):
            compute_statistics([])

    def test_accepts_tuples(self) -> None:
        stats = compute_statistics((1.0, 3.0))
        self.assertAlmostEqual(stats.mean, 2.0)
        self.assertAlmostEqual(stats.stdev, math.sqrt(2.0))

    def test_order_does_not_matter(self) -> None:
        a = compute_statistics([0.3, 0.1, 0.2])
        b = compute_statistics([0.1, 0.2, 0.3])
        self.assertEqual(a, b)

    def test_random_samples_bracket_mean(self) -> None:
        """min <= mean <= max and mean matches the arithmetic mean."""
        rng = random.Random(1234)
        for _ in range(200):
            n = rng.randint(1, 50)
            values = [rng.uniform(1e-6, 5.0) for _ in range(n)]
            stats = compute_statistics(values)
            self.assertLessEqual(stats.min, stats.mean)
            self.assertLessEqual(stats.mean, stats.max)
            self.assertAlmostEqual(stats.mean, sum(values) / n, places=9)
            self.assertEqual(stats.count, n)
            if n >= 2:
                self.assertAlmostEqual(stats.stdev, statistics.stdev(values), places=9)

    def test_frozen(self) -> None:
        stats = compute_statistics([1.0, 2.0])
        with self.assertRaises(AttributeError):
            stats.mean = 3.0  # type: ignore[misc]


class TestRatio(unittest.TestCase):
    """Tests for Statistics.ratio_to()."""

    def _stats(self, mean: float) -> Statistics:
        return Statistics(mean=mean, stdev=0.0, min=mean, max=mean, count=1)

    def test_ratio(self) -> None:
        self.assertAlmostEqual(self._stats(0.025).ratio_to(self._stats(0.010)), 2.5)

    def test_ratio_to_self(self) -> None:
        s = self._stats(0.5)
        self.assertEqual(s.ratio_to(s), 1.0)

    def test_zero_baseline(self) -> None:
        self.assertTrue(math.isinf(self._stats(1.0).ratio_to(self._stats(0.0))))
        self.assertTrue(math.isnan(self._stats(0.0).ratio_to(self._stats(0.0))))


class TestToDict(unittest.TestCase):
    def test_fields(self) -> None:
        d = compute_statistics([1.0, 2.0, 3.0]).to_dict()
        self.assertEqual(set(d), {"mean", "stdev", "min", "max", "count"})
        self.assertEqual(d["count"], 3)
        self.assertAlmostEqual(d["mean"], 2.0)


if __name__ == "__main__":
    unittest.main()
