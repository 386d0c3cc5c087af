"""Date-time support: values are carried as float seconds since the Unix epoch (UTC).

Calendar units (months, years) have irregular lengths, so break lattices are
built with calendar arithmetic rather than a fixed step in seconds.
"""

from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
import math
import re
from typing import Any

import numpy as np

from axis_scales.breaks import filter_breaks
from axis_scales.errors import ScaleConfigError, ScaleDataError

EPOCH = dt.datetime(1970, 1, 1)

UNIT_ALIASES: dict[str, str] = {
    "s": "sec",
    "sec": "sec",
    "secs": "sec",
    "second": "sec",
    "seconds": "sec",
    "min": "min",
    "mins": "min",
    "minute": "min",
    "minutes": "min",
    "h": "hour",
    "hour": "hour",
    "hours": "hour",
    "d": "day",
    "day": "day",
    "days": "day",
    "w": "week",
    "week": "week",
    "weeks": "week",
    "month": "month",
    "months": "month",
    "year": "year",
    "years": "year",
}

FIXED_UNIT_SECONDS: dict[str, float] = {
    "sec": 1.0,
    "min": 60.0,
    "hour": 3600.0,
    "day": 86400.0,
    "week": 7 * 86400.0,
}

# Mean lengths, only used to estimate break counts.
APPROX_UNIT_SECONDS: dict[str, float] = {
    **FIXED_UNIT_SECONDS,
    "month": 30.436875 * 86400.0,
    "year": 365.2425 * 86400.0,
}

_SPEC_RE = re.compile(r"^\s*(\d+)?\s*([A-Za-z]+)\s*$")
MAX_DATE_BREAKS = 10_000


@dataclass(frozen=True)
class DateStep:
    count: int
    unit: str

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ScaleConfigError("date step count must be >= 1")
        if self.unit not in APPROX_UNIT_SECONDS:
            raise ScaleConfigError(f"unsupported date unit: {self.unit}")

    @property
    def approx_seconds(self) -> float:
        return self.count * APPROX_UNIT_SECONDS[self.unit]

    def __str__(self) -> str:
        return f"{self.count} {self.unit}"


def parse_date_step(spec: str | DateStep) -> DateStep:
    """Parse specs such as "1 month", "2 weeks", "15 years" or "hour"."""
    if isinstance(spec, DateStep):
        return spec
    if not isinstance(spec, str):
        raise ScaleConfigError(f"date step must be a string like '2 weeks', got {spec!r}")
    match = _SPEC_RE.match(spec)
    if match is None:
        raise ScaleConfigError(f"invalid date step: {spec!r}")
    count = int(match.group(1)) if match.group(1) else 1
    unit = UNIT_ALIASES.get(match.group(2).lower())
    if unit is None:
        raise ScaleConfigError(f"unknown date unit in {spec!r}")
    return DateStep(count=count, unit=unit)


def parse_offset(offset: Any) -> dt.timedelta:
    if offset is None:
        return dt.timedelta(0)
    if isinstance(offset, dt.timedelta):
        return offset
    if isinstance(offset, (int, float)) and not isinstance(offset, bool):
        return dt.timedelta(seconds=float(offset))
    text = str(offset).strip()
    negative = text.startswith("-")
    step = parse_date_step(text.lstrip("+-"))
    if step.unit not in FIXED_UNIT_SECONDS:
        raise ScaleConfigError(f"date offset must use a fixed-length unit, got {offset!r}")
    delta = dt.timedelta(seconds=step.count * FIXED_UNIT_SECONDS[step.unit])
    return -delta if negative else delta


def _to_naive_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is not None:
        return value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value


def to_seconds(values: Any) -> np.ndarray:
    """Coerce date-like values to float seconds since the epoch; missing values become NaN."""
    if isinstance(values, np.ndarray) and values.dtype.kind == "M":
        micro = values.astype("datetime64[us]")
        out = micro.astype(np.int64).astype(np.float64) / 1e6
        out[np.isnat(micro)] = np.nan
        return out
    if isinstance(values, np.ndarray) and values.dtype.kind in {"i", "u", "f"}:
        return values.astype(np.float64)
    if isinstance(values, (str, dt.date)) or np.isscalar(values):
        values = [values]

    items = list(values)
    out = np.empty(len(items), dtype=np.float64)
    for i, raw in enumerate(items):
        out[i] = _scalar_to_seconds(raw, index=i)
    return out


def _scalar_to_seconds(raw: Any, *, index: int) -> float:
    if raw is None:
        return math.nan
    try:
        if raw != raw:  # NaN, NaT
            return math.nan
    except (TypeError, ValueError):
        pass
    if isinstance(raw, np.datetime64):
        return float(raw.astype("datetime64[us]").astype(np.int64)) / 1e6
    if isinstance(raw, dt.datetime):
        return (_to_naive_utc(raw) - EPOCH).total_seconds()
    if isinstance(raw, dt.date):
        return (dt.datetime(raw.year, raw.month, raw.day) - EPOCH).total_seconds()
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return math.nan
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError as exc:
            raise ScaleDataError(f"value at index {index} is not an ISO date-time: {raw!r}") from exc
        return (_to_naive_utc(parsed) - EPOCH).total_seconds()
    if isinstance(raw, bool):
        raise ScaleDataError(f"value at index {index} is not date-like: {raw!r}")
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ScaleDataError(f"value at index {index} is not date-like: {raw!r}") from exc


def from_seconds(value: float) -> dt.datetime:
    return EPOCH + dt.timedelta(microseconds=round(float(value) * 1e6))


def floor_to_step(value: dt.datetime, step: DateStep) -> dt.datetime:
    unit, count = step.unit, step.count
    if unit == "year":
        return dt.datetime(max(dt.MINYEAR, value.year - value.year % count), 1, 1)
    if unit == "month":
        month0 = (value.month - 1) - (value.month - 1) % count
        return dt.datetime(value.year, month0 + 1, 1)
    if unit == "week":
        day = dt.datetime(value.year, value.month, value.day)
        return day - dt.timedelta(days=day.weekday())
    if unit == "day":
        return dt.datetime(value.year, value.month, value.day)
    if unit == "hour":
        return value.replace(hour=value.hour - value.hour % count, minute=0, second=0, microsecond=0)
    if unit == "min":
        return value.replace(minute=value.minute - value.minute % count, second=0, microsecond=0)
    return value.replace(second=value.second - value.second % count, microsecond=0)


def add_steps(value: dt.datetime, step: DateStep, times: int = 1) -> dt.datetime:
    """Advance `value` by `times` steps; OverflowError past `dt.MAXYEAR`."""
    n = step.count * times
    if step.unit == "year":
        year, month = value.year + n, value.month
    elif step.unit == "month":
        month_index = value.year * 12 + (value.month - 1) + n
        year, month = month_index // 12, month_index % 12 + 1
    else:
        return value + dt.timedelta(seconds=n * FIXED_UNIT_SECONDS[step.unit])
    if year > dt.MAXYEAR:
        raise OverflowError("date value out of range")
    return value.replace(year=year, month=month)


def _shift_back(value: dt.datetime, shift: dt.timedelta) -> dt.datetime:
    if value - dt.datetime.min < abs(shift):
        return dt.datetime.min
    return value - abs(shift)


def date_breaks(lower: float, upper: float, step: str | DateStep, offset: Any = None) -> np.ndarray:
    """Calendar-aligned breaks every `step` within [lower, upper] (epoch seconds)."""
    step = parse_date_step(step)
    shift = parse_offset(offset)
    lo, hi = float(min(lower, upper)), float(max(lower, upper))
    if not (np.isfinite(lo) and np.isfinite(hi)):
        return np.asarray([], dtype=np.float64)
    end = from_seconds(hi)
    anchor = floor_to_step(_shift_back(from_seconds(lo), shift), step)
    out: list[float] = []
    i = 0
    current = anchor
    while current + shift <= end:
        if i >= MAX_DATE_BREAKS:
            raise ScaleConfigError(f"date step `{step}` yields more than {MAX_DATE_BREAKS} breaks")
        out.append((current + shift - EPOCH).total_seconds())
        i += 1
        try:
            current = add_steps(anchor, step, i)
        except OverflowError:
            # The next step lies beyond the calendar and therefore beyond `end`.
            break
    return filter_breaks(np.asarray(out, dtype=np.float64), lo, hi)


AUTO_DATE_STEPS: tuple[DateStep, ...] = (
    DateStep(1, "sec"),
    DateStep(5, "sec"),
    DateStep(15, "sec"),
    DateStep(30, "sec"),
    DateStep(1, "min"),
    DateStep(5, "min"),
    DateStep(15, "min"),
    DateStep(30, "min"),
    DateStep(1, "hour"),
    DateStep(3, "hour"),
    DateStep(6, "hour"),
    DateStep(12, "hour"),
    DateStep(1, "day"),
    DateStep(2, "day"),
    DateStep(1, "week"),
    DateStep(1, "month"),
    DateStep(3, "month"),
    DateStep(6, "month"),
    DateStep(1, "year"),
    DateStep(2, "year"),
    DateStep(5, "year"),
    DateStep(10, "year"),
    DateStep(20, "year"),
    DateStep(50, "year"),
    DateStep(100, "year"),
)


def choose_date_step(lower: float, upper: float, n: int = 5) -> DateStep:
    span = abs(float(upper) - float(lower))
    if span <= 0:
        return AUTO_DATE_STEPS[0]
    best = AUTO_DATE_STEPS[0]
    best_err = math.inf
    for step in AUTO_DATE_STEPS:
        err = abs(span / step.approx_seconds - n)
        # Ties go to the coarser step.
        if err <= best_err:
            best, best_err = step, err
    return best


def auto_date_breaks(lower: float, upper: float, n: int = 5) -> np.ndarray:
    return date_breaks(lower, upper, choose_date_step(lower, upper, n))


@dataclass(frozen=True)
class DateBreaks:
    step: DateStep
    offset: dt.timedelta = dt.timedelta(0)

    def __call__(self, limits: tuple[float, float]) -> np.ndarray:
        return date_breaks(limits[0], limits[1], self.step, self.offset)


def breaks_date(step: str | DateStep, offset: Any = None) -> DateBreaks:
    return DateBreaks(step=parse_date_step(step), offset=parse_offset(offset))
