from __future__ import annotations

from collections.abc import Mapping, Sequence
import datetime as dt
from decimal import Decimal
from typing import Any, Iterator

import numpy as np

from axis_scales.dates import to_seconds
from axis_scales.errors import ScaleDataError


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]

try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


def iter_columns(data: Any) -> Iterator[tuple[str, Any]]:
    """Yield (aesthetic, values) pairs from a mapping or a pandas DataFrame."""
    if pd is not None and isinstance(data, pd.DataFrame):
        for col in data.columns:
            yield str(col), data[col]
        return
    if not isinstance(data, Mapping):
        raise ScaleDataError("data must be a mapping of aesthetic -> values or a pandas DataFrame")
    for key, values in data.items():
        yield str(key), values


def coerce_numeric(value: Any, *, label: str = "values") -> np.ndarray:
    """Coerce 1-D input to float64; None and non-finite entries stay as NaN."""
    if torch is not None and isinstance(value, torch.Tensor):
        tensor = value.detach()
        if tensor.ndim != 1:
            raise ScaleDataError(f"{label} must be 1-D")
        if tensor.is_cuda:
            tensor = tensor.cpu()
        return tensor.to(torch.float64).numpy()

    if pd is not None and isinstance(value, pd.Series):
        return _coerce_ndarray(value.to_numpy(dtype=object, na_value=None), label=label)

    if isinstance(value, np.ndarray):
        if value.ndim != 1:
            raise ScaleDataError(f"{label} must be 1-D")
        return _coerce_ndarray(value, label=label)

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return _coerce_ndarray(np.asarray(value, dtype=object), label=label)

    raise ScaleDataError(f"unsupported {label} input type: {type(value)!r}")


def coerce_datetimes(value: Any, *, label: str = "values") -> np.ndarray:
    """Coerce date-like 1-D input to epoch seconds (UTC); missing entries become NaN."""
    if pd is not None and isinstance(value, pd.Series):
        value = value.to_numpy()
    elif torch is not None and isinstance(value, torch.Tensor):
        return coerce_numeric(value, label=label)
    if isinstance(value, np.ndarray) and value.ndim != 1:
        raise ScaleDataError(f"{label} must be 1-D")
    if isinstance(value, (str, bytes, bytearray)) or not isinstance(value, (Sequence, np.ndarray)):
        raise ScaleDataError(f"unsupported {label} input type: {type(value)!r}")
    return to_seconds(value)


def _coerce_ndarray(arr: np.ndarray, *, label: str) -> np.ndarray:
    if arr.dtype.kind in {"i", "u", "f", "b"}:
        return arr.astype(np.float64, copy=False)

    out = np.empty(arr.shape[0], dtype=np.float64)
    for i, raw in enumerate(arr.tolist()):
        if raw is None:
            out[i] = np.nan
            continue
        if isinstance(raw, Decimal):
            out[i] = float(raw)
            continue
        try:
            out[i] = float(raw)
        except (TypeError, ValueError) as exc:
            raise ScaleDataError(f"{label} contains non-numeric value at index {i}: {raw!r}") from exc
    return out


def coerce_categories(value: Any, *, label: str = "values") -> tuple[list[Any], tuple[Any, ...] | None]:
    """Return (values, declared order); missing entries become None.

    The declared order is the category order of a pandas Categorical, else None.
    """
    declared: tuple[Any, ...] | None = None
    if pd is not None and isinstance(value, (pd.Series, pd.Categorical)):
        if isinstance(value.dtype, pd.CategoricalDtype):
            declared = tuple(value.dtype.categories.tolist())
        items = list(value.tolist())
    elif torch is not None and isinstance(value, torch.Tensor):
        items = value.detach().cpu().tolist()
    elif isinstance(value, np.ndarray):
        if value.ndim != 1:
            raise ScaleDataError(f"{label} must be 1-D")
        items = value.tolist()
    elif isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        items = list(value)
    else:
        raise ScaleDataError(f"unsupported {label} input type: {type(value)!r}")
    return [None if _is_missing(v) else v for v in items], declared


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float):
        return value != value
    return pd is not None and value is pd.NA


def infer_scale_kind(value: Any) -> str:
    """Guess a scale kind from raw values: continuous, datetime or discrete."""
    if pd is not None and isinstance(value, pd.Series):
        if isinstance(value.dtype, pd.CategoricalDtype) or pd.api.types.is_bool_dtype(value):
            return "discrete"
        if pd.api.types.is_datetime64_any_dtype(value):
            return "datetime"
        if pd.api.types.is_numeric_dtype(value):
            return "continuous"
        value = value.tolist()
    if torch is not None and isinstance(value, torch.Tensor):
        return "discrete" if value.dtype == torch.bool else "continuous"
    if isinstance(value, np.ndarray):
        if value.dtype.kind == "M":
            return "datetime"
        if value.dtype.kind in {"i", "u", "f"}:
            return "continuous"
        if value.dtype.kind == "b":
            return "discrete"
        value = value.tolist()
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes, bytearray)):
        raise ScaleDataError(f"cannot infer a scale for {type(value)!r}")

    present = [v for v in value if not _is_missing(v)]
    if not present:
        return "continuous"
    if all(isinstance(v, (dt.date, np.datetime64)) for v in present):
        return "datetime"
    if all(isinstance(v, (int, float, Decimal, np.number)) and not isinstance(v, (bool, np.bool_)) for v in present):
        return "continuous"
    return "discrete"
