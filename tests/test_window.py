from __future__ import annotations

import unittest

from axis_scales.ranges import Range
from axis_scales.window import Viewport


class ViewportTests(unittest.TestCase):
    def test_span_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            Viewport(1.0, 1.0)
        with self.assertRaises(ValueError):
            Viewport(2.0, 1.0)
        self.assertEqual(Viewport.between(5.0, 1.0), Viewport(1.0, 5.0))

    def test_pan(self) -> None:
        self.assertEqual(Viewport(0.0, 10.0).pan(2.5), Viewport(2.5, 12.5))
        self.assertEqual(Viewport(0.0, 10.0).pan(-10.0), Viewport(-10.0, 0.0))

    def test_zoom_around_center(self) -> None:
        self.assertEqual(Viewport(0.0, 10.0).zoom(2.0), Viewport(2.5, 7.5))
        self.assertEqual(Viewport(0.0, 10.0).zoom(0.5), Viewport(-5.0, 15.0))

    def test_zoom_keeps_anchor_in_place(self) -> None:
        self.assertEqual(Viewport(0.0, 10.0).zoom(2.0, anchor=0.0), Viewport(0.0, 5.0))
        zoomed = Viewport(0.0, 10.0).zoom(4.0, anchor=8.0)
        self.assertAlmostEqual((8.0 - zoomed.lower) / zoomed.span, 0.8)

    def test_zoom_factor_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            Viewport(0.0, 1.0).zoom(0.0)

    def test_clamp_to_range(self) -> None:
        self.assertEqual(Viewport(2.0, 4.0).clamp_to(Range(0.0, 10.0)), Viewport(2.0, 4.0))
        self.assertEqual(Viewport(9.0, 12.0).clamp_to(Range(0.0, 10.0)), Viewport(7.0, 10.0))
        self.assertEqual(Viewport(5.0, 15.0).clamp_to(Range(0.0, 8.0)), Viewport(0.0, 8.0))


if __name__ == "__main__":
    unittest.main()
