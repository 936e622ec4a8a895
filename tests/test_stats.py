"""Unit tests for netbench.stats -- pure functions."""

import unittest

from netbench.constants import INSTANT_TRANSFER_MBPS
from netbench.stats import (
    calculate_mean,
    compute_speed_mbps,
    format_latency,
    format_size,
    format_speed,
    mebibytes,
)


class TestComputeSpeed(unittest.TestCase):
    def test_hundred_mib_in_eight_seconds(self):
        self.assertAlmostEqual(compute_speed_mbps(104_857_600, 8.0), 100.0)

    def test_ten_mib_in_four_seconds(self):
        self.assertAlmostEqual(compute_speed_mbps(10_485_760, 4.0), 20.0)

    def test_scale_invariant(self):
        for num_bytes, secs in [(1_000_000, 0.7), (52_428_800, 3.3), (123_456_789, 11.1)]:
            self.assertAlmostEqual(
                compute_speed_mbps(num_bytes, secs),
                compute_speed_mbps(num_bytes * 2, secs * 2),
            )

    def test_zero_duration_returns_sentinel(self):
        speed = compute_speed_mbps(1024, 0.0)
        self.assertEqual(speed, INSTANT_TRANSFER_MBPS)
        self.assertLess(speed, float("inf"))

    def test_negative_duration_returns_sentinel(self):
        self.assertEqual(compute_speed_mbps(1024, -0.001), INSTANT_TRANSFER_MBPS)

    def test_zero_bytes(self):
        self.assertEqual(compute_speed_mbps(0, 5.0), 0.0)

    def test_mebibytes(self):
        self.assertEqual(mebibytes(3 * 1_048_576), 3.0)


class TestCalculateMean(unittest.TestCase):
    def test_empty(self):
        self.assertEqual(calculate_mean([]), 0.0)

    def test_values(self):
        self.assertAlmostEqual(calculate_mean([50.0, 60.0, 70.0]), 60.0)

    def test_ints(self):
        self.assertAlmostEqual(calculate_mean([10, 15]), 12.5)


class TestFormatting(unittest.TestCase):
    def test_format_speed_mbps(self):
        self.assertEqual(format_speed(95.5), "95.50 Mbps")

    def test_format_speed_gbps(self):
        self.assertEqual(format_speed(1500.0), "1.50 Gbps")

    def test_format_latency_ms(self):
        self.assertEqual(format_latency(42), "42 ms")

    def test_format_latency_seconds(self):
        self.assertEqual(format_latency(1500.0), "1.50 s")

    def test_format_size(self):
        self.assertEqual(format_size(10 * 1_048_576), "10.0 MB")
        self.assertEqual(format_size(2048), "2.0 KB")


if __name__ == "__main__":
    unittest.main()
