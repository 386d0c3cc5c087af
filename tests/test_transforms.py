from __future__ import annotations

import math
import unittest

import numpy as np

from axis_scales.errors import ScaleConfigError
from axis_scales.transforms import (
    IDENTITY,
    as_transform,
    exp_transform,
    log_transform,
    transform_by_name,
    transform_names,
)


class TransformTests(unittest.TestCase):
    def test_builtin_names(self) -> None:
        names = transform_names()
        for name in ("identity", "log", "log2", "log10", "sqrt", "reciprocal", "reverse", "logit", "probit", "exp", "atanh"):
            self.assertIn(name, names)

    def test_round_trip_within_domain(self) -> None:
        samples = {
            "identity": [-5.0, 0.0, 3.5],
            "log": [0.1, 1.0, 50.0],
            "log2": [0.5, 2.0, 1024.0],
            "log10": [0.001, 1.0, 1e6],
            "sqrt": [0.0, 4.0, 10.0],
            "reciprocal": [0.5, 2.0, 100.0],
            "reverse": [-2.0, 0.0, 7.0],
            "logit": [0.01, 0.5, 0.99],
            "probit": [0.1, 0.5, 0.9],
            "exp": [-1.0, 0.0, 2.0],
            "atanh": [-0.9, 0.0, 0.5],
        }
        for name, values in samples.items():
            tr = transform_by_name(name)
            with self.subTest(transform=name):
                np.testing.assert_allclose(tr.inverse_transform(tr.transform(values)), values, rtol=1e-9, atol=1e-12)

    def test_out_of_domain_values_become_nan(self) -> None:
        out = transform_by_name("log10").transform([-1.0, 0.0, 10.0])
        self.assertTrue(math.isnan(out[0]))
        self.assertTrue(math.isnan(out[1]))
        self.assertAlmostEqual(out[2], 1.0)

        out = transform_by_name("logit").transform([0.0, 0.5, 1.0])
        self.assertTrue(math.isnan(out[0]))
        self.assertAlmostEqual(out[1], 0.0)
        self.assertTrue(math.isnan(out[2]))

        self.assertTrue(math.isnan(transform_by_name("sqrt").transform([-1.0])[0]))

    def test_missing_values_pass_through_as_nan(self) -> None:
        out = IDENTITY.transform([1.0, np.nan])
        self.assertTrue(math.isnan(out[1]))

    def test_decreasing_transform_swaps_limits(self) -> None:
        reverse = transform_by_name("reverse")
        self.assertEqual(reverse.transform_limits(1.0, 10.0), (-10.0, -1.0))
        self.assertEqual(reverse.transform_limits(None, 10.0), (-10.0, None))
        self.assertEqual(reverse.data_limits(-10.0, -1.0), (1.0, 10.0))

    def test_log_transform_uses_log_breaks(self) -> None:
        np.testing.assert_allclose(transform_by_name("log10").major_breaks((1.0, 1000.0)), [1.0, 10.0, 100.0, 1000.0])

    def test_log_factory_names_and_validation(self) -> None:
        self.assertEqual(log_transform(2.0).name, "log2")
        self.assertEqual(log_transform().name, "log")
        self.assertEqual(exp_transform(10.0).name, "exp-10")
        with self.assertRaises(ScaleConfigError):
            log_transform(1.0)
        with self.assertRaises(ScaleConfigError):
            exp_transform(-2.0)

    def test_unknown_name_is_config_error(self) -> None:
        with self.assertRaises(ScaleConfigError):
            transform_by_name("cube")
        with self.assertRaises(ValueError):
            as_transform("cube")

    def test_as_transform_accepts_instances_and_none(self) -> None:
        tr = log_transform(3.0)
        self.assertIs(as_transform(tr), tr)
        self.assertIs(as_transform(None), IDENTITY)
        self.assertIs(as_transform(" LOG10 "), transform_by_name("log10"))


if __name__ == "__main__":
    unittest.main()
