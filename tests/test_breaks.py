from __future__ import annotations

import unittest

import numpy as np

from axis_scales.breaks import (
    BreaksWidth,
    breaks_extended,
    breaks_log,
    breaks_width,
    drop_coincident,
    extended_breaks,
    filter_breaks,
    log_breaks,
    regular_minor_breaks,
    width_breaks,
)


class ExtendedBreaksTests(unittest.TestCase):
    def test_zero_to_hundred_picks_quarters(self) -> None:
        ticks = extended_breaks(0.0, 100.0, 5)
        np.testing.assert_allclose(ticks, [0.0, 25.0, 50.0, 75.0, 100.0])

    def test_unit_interval_scales_like_hundred(self) -> None:
        ticks = extended_breaks(0.0, 1.0, 5)
        np.testing.assert_allclose(ticks, [0.0, 0.25, 0.5, 0.75, 1.0])

    def test_breaks_are_sorted_and_evenly_spaced(self) -> None:
        ticks = extended_breaks(-3.7, 12.2, 5)
        self.assertGreaterEqual(ticks.size, 2)
        steps = np.diff(ticks)
        self.assertTrue(np.all(steps > 0))
        np.testing.assert_allclose(steps, steps[0])

    def test_only_loose_encloses_data(self) -> None:
        ticks = extended_breaks(1.3, 8.7, 5, only_loose=True)
        self.assertLessEqual(ticks[0], 1.3)
        self.assertGreaterEqual(ticks[-1], 8.7)

    def test_very_wide_ranges_stay_finite(self) -> None:
        np.testing.assert_allclose(extended_breaks(0.0, 1e200), extended_breaks(0.0, 1.0) * 1e200)
        ticks = extended_breaks(-1e308, 1e308)
        self.assertGreaterEqual(ticks.size, 2)
        self.assertTrue(np.all(np.isfinite(ticks)))
        self.assertTrue(np.all(np.diff(ticks) > 0))

    def test_zero_width_range_yields_single_break(self) -> None:
        np.testing.assert_allclose(extended_breaks(5.0, 5.0), [5.0])

    def test_non_finite_input_yields_no_breaks(self) -> None:
        self.assertEqual(extended_breaks(np.nan, 1.0).size, 0)

    def test_target_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            extended_breaks(0.0, 1.0, 0)

    def test_callable_wrapper_matches_function(self) -> None:
        np.testing.assert_allclose(breaks_extended(5)((0.0, 100.0)), extended_breaks(0.0, 100.0, 5))


class LogBreaksTests(unittest.TestCase):
    def test_decades(self) -> None:
        np.testing.assert_allclose(log_breaks(1.0, 1000.0), [1.0, 10.0, 100.0, 1000.0])

    def test_wide_range_thins_decades(self) -> None:
        ticks = log_breaks(1.0, 1e20, 5)
        self.assertLess(ticks.size, 21)
        logs = np.log10(ticks)
        np.testing.assert_allclose(logs, np.round(logs))

    def test_narrow_range_adds_sub_decade_multiples(self) -> None:
        ticks = log_breaks(1.0, 10.0, 5)
        np.testing.assert_allclose(ticks, [1.0, 3.0, 10.0, 30.0])

    def test_non_positive_range_yields_no_breaks(self) -> None:
        self.assertEqual(log_breaks(-1.0, 10.0).size, 0)

    def test_factory_validates_base(self) -> None:
        with self.assertRaises(ValueError):
            breaks_log(base=1.0)


class WidthBreaksTests(unittest.TestCase):
    def test_width_with_offset(self) -> None:
        np.testing.assert_allclose(width_breaks(0.0, 4000.0, 800.0, 200.0), [200.0, 1000.0, 1800.0, 2600.0, 3400.0])

    def test_width_without_offset(self) -> None:
        np.testing.assert_allclose(width_breaks(0.0, 4000.0, 800.0), [0.0, 800.0, 1600.0, 2400.0, 3200.0, 4000.0])

    def test_callable_receives_limits(self) -> None:
        fn = breaks_width(800, 200)
        self.assertIsInstance(fn, BreaksWidth)
        np.testing.assert_allclose(fn((0.0, 4000.0)), [200.0, 1000.0, 1800.0, 2600.0, 3400.0])

    def test_width_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            width_breaks(0.0, 1.0, 0.0)
        with self.assertRaises(ValueError):
            breaks_width(-1.0)


class BreakFilteringTests(unittest.TestCase):
    def test_filter_sorts_dedups_and_restricts(self) -> None:
        np.testing.assert_allclose(filter_breaks(np.asarray([3.0, 1.0, 1.0, 5.0, np.nan]), 0.0, 4.0), [1.0, 3.0])

    def test_minor_breaks_are_midpoints(self) -> None:
        minor = regular_minor_breaks(np.asarray([0.0, 25.0, 50.0, 75.0, 100.0]), 0.0, 100.0)
        np.testing.assert_allclose(minor, [12.5, 37.5, 62.5, 87.5])

    def test_minor_breaks_extend_past_outer_majors_within_limits(self) -> None:
        minor = regular_minor_breaks(np.asarray([0.0, 10.0, 20.0]), -6.0, 26.0)
        np.testing.assert_allclose(minor, [-5.0, 5.0, 15.0, 25.0])

    def test_single_major_has_no_minor(self) -> None:
        self.assertEqual(regular_minor_breaks(np.asarray([1.0]), 0.0, 2.0).size, 0)

    def test_drop_coincident_removes_majors(self) -> None:
        minor = drop_coincident(np.asarray([1.0, 2.0, 3.0]), np.asarray([2.0]), atol=1e-9)
        np.testing.assert_allclose(minor, [1.0, 3.0])


if __name__ == "__main__":
    unittest.main()
