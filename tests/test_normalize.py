from __future__ import annotations

import datetime as dt
from decimal import Decimal
import math
import unittest

import numpy as np

from axis_scales.adapters.normalize import (
    coerce_categories,
    coerce_datetimes,
    coerce_numeric,
    infer_scale_kind,
    iter_columns,
)
from axis_scales.errors import ScaleDataError

try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None

try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None


class NumericCoercionTests(unittest.TestCase):
    def test_mixed_python_values(self) -> None:
        out = coerce_numeric([1, None, "2.5", Decimal("3")])
        self.assertEqual(out.dtype, np.float64)
        self.assertEqual(out[0], 1.0)
        self.assertTrue(math.isnan(out[1]))
        self.assertEqual(out[2:].tolist(), [2.5, 3.0])

    def test_rejects_non_numeric(self) -> None:
        with self.assertRaises(ScaleDataError):
            coerce_numeric(["x"])
        with self.assertRaises(ScaleDataError):
            coerce_numeric(np.zeros((2, 2)))
        with self.assertRaises(ScaleDataError):
            coerce_numeric("123")

    def test_integer_arrays(self) -> None:
        out = coerce_numeric(np.arange(3))
        self.assertEqual(out.dtype, np.float64)
        self.assertEqual(out.tolist(), [0.0, 1.0, 2.0])

    @unittest.skipIf(pd is None, "pandas not installed")
    def test_pandas_series_with_missing(self) -> None:
        out = coerce_numeric(pd.Series([1.0, None, 3.0]))
        self.assertEqual(out[0], 1.0)
        self.assertTrue(math.isnan(out[1]))

    @unittest.skipIf(torch is None, "torch not installed")
    def test_torch_tensor(self) -> None:
        out = coerce_numeric(torch.tensor([1.0, 2.0], dtype=torch.float32))
        self.assertEqual(out.dtype, np.float64)
        self.assertEqual(out.tolist(), [1.0, 2.0])
        with self.assertRaises(ScaleDataError):
            coerce_numeric(torch.zeros((2, 2)))


class OtherCoercionTests(unittest.TestCase):
    def test_datetimes(self) -> None:
        out = coerce_datetimes([dt.date(1970, 1, 2), None])
        self.assertEqual(out[0], 86400.0)
        self.assertTrue(math.isnan(out[1]))
        with self.assertRaises(ScaleDataError):
            coerce_datetimes("1970-01-01")

    def test_categories_normalize_missing(self) -> None:
        items, declared = coerce_categories(["a", float("nan"), None, 2])
        self.assertEqual(items, ["a", None, None, 2])
        self.assertIsNone(declared)

    def test_iter_columns_requires_mapping(self) -> None:
        self.assertEqual(list(iter_columns({"x": [1]})), [("x", [1])])
        with self.assertRaises(ScaleDataError):
            list(iter_columns([1, 2]))


class InferenceTests(unittest.TestCase):
    def test_inferred_kinds(self) -> None:
        self.assertEqual(infer_scale_kind([1, 2.5, None]), "continuous")
        self.assertEqual(infer_scale_kind(["a", "b"]), "discrete")
        self.assertEqual(infer_scale_kind([True, False]), "discrete")
        self.assertEqual(infer_scale_kind([dt.date(2021, 1, 1)]), "datetime")
        self.assertEqual(infer_scale_kind(np.asarray(["2021-01-01"], dtype="datetime64[D]")), "datetime")
        self.assertEqual(infer_scale_kind(np.asarray([True])), "discrete")
        self.assertEqual(infer_scale_kind([None]), "continuous")
        with self.assertRaises(ScaleDataError):
            infer_scale_kind(42)

    @unittest.skipIf(pd is None, "pandas not installed")
    def test_pandas_dtypes(self) -> None:
        self.assertEqual(infer_scale_kind(pd.Series([1, 2])), "continuous")
        self.assertEqual(infer_scale_kind(pd.Series(pd.to_datetime(["2021-01-01"]))), "datetime")
        self.assertEqual(infer_scale_kind(pd.Series(["a"], dtype="category")), "discrete")
        self.assertEqual(infer_scale_kind(pd.Series(["a", "b"])), "discrete")


if __name__ == "__main__":
    unittest.main()
