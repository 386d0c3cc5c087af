from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Literal, Sequence

import numpy as np

from axis_scales.errors import ScaleDataError

OobPolicy = Literal["censor", "squish", "keep"]
OOB_POLICIES: tuple[str, ...] = ("censor", "squish", "keep")

Limits = tuple[float | None, float | None]


@dataclass(frozen=True)
class Range:
    """Closed interval in transformed (linear) space."""

    lower: float
    upper: float

    def __post_init__(self) -> None:
        if not (np.isfinite(self.lower) and np.isfinite(self.upper)):
            raise ValueError("Range bounds must be finite")
        if self.lower > self.upper:
            raise ValueError("Range.lower must be <= Range.upper")

    @property
    def width(self) -> float:
        return float(self.upper - self.lower)

    @property
    def is_zero_width(self) -> bool:
        scale = max(1.0, abs(self.lower), abs(self.upper))
        return self.width <= 1e-10 * scale

    def as_tuple(self) -> tuple[float, float]:
        return (float(self.lower), float(self.upper))

    def tolerance(self) -> float:
        return max(1e-12, self.width * 1e-10)

    def contains(self, values: np.ndarray) -> np.ndarray:
        arr = np.asarray(values, dtype=np.float64)
        eps = self.tolerance()
        return (arr >= self.lower - eps) & (arr <= self.upper + eps)

    def union(self, other: "Range") -> "Range":
        return Range(min(self.lower, other.lower), max(self.upper, other.upper))


def train_range(values: np.ndarray) -> Range | None:
    arr = np.asarray(values, dtype=np.float64)
    finite = arr[np.isfinite(arr)]
    if finite.size == 0:
        return None
    return Range(float(np.min(finite)), float(np.max(finite)))


def is_unset(bound: Any) -> bool:
    if bound is None:
        return True
    try:
        return bool(np.isnan(bound))
    except TypeError:
        return False


def resolve_limits(values: np.ndarray, limits: Limits | None = None, *, trained: Range | None = None) -> Range:
    """Resolve a range from transformed values and optional (possibly partial) limits.

    `limits` must already be in transformed space. Unset bounds (None or NaN)
    are taken from `trained` when given, otherwise from the finite values.
    """
    lo, hi = limits if limits is not None else (None, None)
    lo_unset = is_unset(lo)
    hi_unset = is_unset(hi)
    data_range = trained if trained is not None else (train_range(values) if lo_unset or hi_unset else None)
    if (lo_unset or hi_unset) and data_range is None:
        raise ScaleDataError("cannot resolve scale range: no finite values and no limits")

    lower = data_range.lower if lo_unset else float(lo)  # type: ignore[union-attr]
    upper = data_range.upper if hi_unset else float(hi)  # type: ignore[union-attr]
    if lower > upper:
        # A data-derived bound beyond the fixed one collapses onto it.
        if lo_unset:
            lower = upper
        elif hi_unset:
            upper = lower
        else:
            lower, upper = upper, lower
    return Range(lower, upper)


def censor(values: np.ndarray, rng: Range) -> tuple[np.ndarray, int]:
    arr = np.array(values, dtype=np.float64, copy=True)
    outside = np.isfinite(arr) & ~rng.contains(arr)
    arr[outside] = np.nan
    return arr, int(np.count_nonzero(outside))


def squish(values: np.ndarray, rng: Range) -> tuple[np.ndarray, int]:
    arr = np.array(values, dtype=np.float64, copy=True)
    outside = np.isfinite(arr) & ~rng.contains(arr)
    finite = np.isfinite(arr)
    arr[finite] = np.clip(arr[finite], rng.lower, rng.upper)
    return arr, int(np.count_nonzero(outside))


def apply_oob(values: np.ndarray, rng: Range, policy: str = "censor") -> tuple[np.ndarray, int]:
    if policy == "censor":
        return censor(values, rng)
    if policy == "squish":
        return squish(values, rng)
    if policy == "keep":
        return np.array(values, dtype=np.float64, copy=True), 0
    raise ValueError(f"unsupported oob policy: {policy}")


def union_ranges(ranges: Iterable[Range | None]) -> Range | None:
    out: Range | None = None
    for rng in ranges:
        if rng is None:
            continue
        out = rng if out is None else out.union(rng)
    return out


def union_categories(groups: Iterable[Sequence[Any]]) -> tuple[Any, ...]:
    seen: dict[Any, None] = {}
    for group in groups:
        for value in group:
            seen.setdefault(value, None)
    return tuple(seen)
