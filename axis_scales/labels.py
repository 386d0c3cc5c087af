from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
from decimal import Decimal, InvalidOperation
import math
from typing import Any, Callable, Sequence

import numpy as np

from axis_scales.dates import from_seconds
from axis_scales.errors import ScaleConfigError

Labeler = Callable[[np.ndarray], Sequence[str]]


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    decimals = _decimals_from_step(step) if step is not None else 6
    if abs_v != 0 and (abs_v >= 1e6 or (step is not None and abs(step) < 1e-4) or abs_v < 1e-6):
        return _trim_mantissa(f"{value:.4e}")
    return _trim(_format_fixed(value, decimals))


def format_ticks_for_axis(ticks: np.ndarray) -> list[str]:
    """Label breaks with a precision shared by all siblings."""
    ticks = np.asarray(ticks, dtype=np.float64)
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = _break_step(ticks)
    return [format_tick(float(v), step=step) for v in ticks]


def _break_step(ticks: np.ndarray) -> float | None:
    finite = np.unique(ticks[np.isfinite(ticks)])
    if finite.size < 2:
        return None
    diffs = np.diff(finite)
    positive = diffs[diffs > 0]
    if positive.size == 0:
        return None
    return float(np.min(positive))


def _decimals_from_step(step: float | None) -> int:
    if step is None or step <= 0 or not np.isfinite(step):
        return 6
    d = Decimal(repr(float(step))).normalize()
    exp = d.as_tuple().exponent
    decimals = max(0, -int(exp))
    return min(12, decimals)


def _format_fixed(value: float, decimals: int, *, big_mark: str = "", decimal_mark: str = ".") -> str:
    d = Decimal(repr(float(value)))
    quant = Decimal("1").scaleb(-decimals)
    try:
        q = d.quantize(quant)
    except InvalidOperation:
        q = d
    out = format(q, ",f" if big_mark else "f")
    if out.startswith("-") and q == 0:
        out = out[1:]
    if big_mark or decimal_mark != ".":
        out = out.replace(",", "\0").replace(".", decimal_mark).replace("\0", big_mark)
    return out


def _trim(text: str, decimal_mark: str = ".") -> str:
    # Only trim trailing zeros for fractional values (preserve integer zeros like 30, 40).
    if decimal_mark in text:
        text = text.rstrip("0").rstrip(decimal_mark)
    if text == "-0":
        text = "0"
    return text


def _trim_mantissa(text: str) -> str:
    mantissa, _, exponent = text.partition("e")
    if "." in mantissa:
        mantissa = mantissa.rstrip("0").rstrip(".")
    return f"{mantissa}e{exponent}"


@dataclass(frozen=True)
class NumberLabeler:
    """Fixed-point formatter with a shared precision.

    Precision comes from `accuracy` when given, otherwise from the smallest
    gap between the (scaled) breaks so siblings render consistently.
    """

    accuracy: float | None = None
    scale: float = 1.0
    prefix: str = ""
    suffix: str = ""
    big_mark: str = ""
    decimal_mark: str = "."
    trim: bool = True

    def __post_init__(self) -> None:
        if self.accuracy is not None and not (np.isfinite(self.accuracy) and self.accuracy > 0):
            raise ScaleConfigError("accuracy must be > 0")

    def decimals_for(self, values: np.ndarray) -> int:
        if self.accuracy is not None:
            return _decimals_from_step(self.accuracy)
        step = _break_step(values)
        if step is None:
            return 0 if values.size and np.all(np.isclose(values, np.round(values))) else 2
        return _decimals_from_step(step)

    def __call__(self, values: np.ndarray) -> list[str]:
        scaled = np.asarray(values, dtype=np.float64) * self.scale
        decimals = self.decimals_for(scaled)
        out: list[str] = []
        for v in scaled.tolist():
            if not math.isfinite(v):
                out.append("")
                continue
            if self.accuracy is not None:
                v = round(v / self.accuracy) * self.accuracy
            body = _format_fixed(abs(v), decimals, big_mark=self.big_mark, decimal_mark=self.decimal_mark)
            if self.trim and self.accuracy is None:
                body = _trim(body, self.decimal_mark)
            sign = "-" if v < 0 and body.strip("0" + self.decimal_mark + self.big_mark) else ""
            out.append(f"{sign}{self.prefix}{body}{self.suffix}")
        return out


def label_number(
    accuracy: float | None = None,
    *,
    scale: float = 1.0,
    prefix: str = "",
    suffix: str = "",
    big_mark: str = "",
    decimal_mark: str = ".",
    trim: bool = True,
) -> NumberLabeler:
    return NumberLabeler(
        accuracy=accuracy,
        scale=scale,
        prefix=prefix,
        suffix=suffix,
        big_mark=big_mark,
        decimal_mark=decimal_mark,
        trim=trim,
    )


def label_comma(accuracy: float | None = None, **kwargs: Any) -> NumberLabeler:
    kwargs.setdefault("big_mark", ",")
    return label_number(accuracy, **kwargs)


def label_percent(accuracy: float | None = None, *, scale: float = 100.0, suffix: str = "%", **kwargs: Any) -> NumberLabeler:
    return label_number(accuracy, scale=scale, suffix=suffix, **kwargs)


def label_dollar(accuracy: float | None = None, *, prefix: str = "$", big_mark: str = ",", **kwargs: Any) -> NumberLabeler:
    return label_number(accuracy, prefix=prefix, big_mark=big_mark, **kwargs)


SI_BYTE_UNITS: tuple[str, ...] = ("B", "kB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")
BINARY_BYTE_UNITS: tuple[str, ...] = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB", "ZiB", "YiB")


@dataclass(frozen=True)
class BytesLabeler:
    units: str = "auto_si"
    accuracy: float = 1.0

    def __post_init__(self) -> None:
        if self.units not in ("auto_si", "auto_binary") and self.units not in SI_BYTE_UNITS + BINARY_BYTE_UNITS:
            raise ScaleConfigError(f"unknown byte unit: {self.units}")
        if not self.accuracy > 0:
            raise ScaleConfigError("accuracy must be > 0")

    def _family(self) -> tuple[tuple[str, ...], float]:
        if self.units == "auto_binary" or self.units in BINARY_BYTE_UNITS[1:]:
            return BINARY_BYTE_UNITS, 1024.0
        return SI_BYTE_UNITS, 1000.0

    def __call__(self, values: np.ndarray) -> list[str]:
        names, base = self._family()
        decimals = _decimals_from_step(self.accuracy)
        out: list[str] = []
        for v in np.asarray(values, dtype=np.float64).tolist():
            if not math.isfinite(v):
                out.append("")
                continue
            if self.units.startswith("auto"):
                power = 0 if v == 0 else int(math.floor(math.log(abs(v), base) + 1e-9))
                power = min(max(power, 0), len(names) - 1)
            else:
                power = names.index(self.units)
            scaled = round(v / base**power / self.accuracy) * self.accuracy
            out.append(f"{_trim(_format_fixed(scaled, decimals))} {names[power]}")
        return out


def label_bytes(units: str = "auto_si", accuracy: float = 1.0) -> BytesLabeler:
    return BytesLabeler(units=units, accuracy=accuracy)


def ordinal_suffix(n: int) -> str:
    if 10 <= abs(n) % 100 <= 20:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(abs(n) % 10, "th")


def label_ordinal(*, big_mark: str = "") -> Labeler:
    def _labels(values: np.ndarray) -> list[str]:
        out: list[str] = []
        for v in np.asarray(values, dtype=np.float64).tolist():
            if not math.isfinite(v):
                out.append("")
                continue
            n = int(round(v))
            body = f"{n:,}".replace(",", big_mark) if big_mark else str(n)
            out.append(f"{body}{ordinal_suffix(n)}")
        return out

    return _labels


def label_scientific(digits: int = 3) -> Labeler:
    if digits < 1:
        raise ScaleConfigError("digits must be >= 1")

    def _labels(values: np.ndarray) -> list[str]:
        out: list[str] = []
        for v in np.asarray(values, dtype=np.float64).tolist():
            if not math.isfinite(v):
                out.append("")
                continue
            out.append(_trim_mantissa(f"{v:.{digits - 1}e}"))
        return out

    return _labels


def _datetimes(values: np.ndarray) -> list[dt.datetime | None]:
    return [from_seconds(v) if math.isfinite(v) else None for v in np.asarray(values, dtype=np.float64).tolist()]


def label_date(pattern: str = "%Y-%m-%d") -> Labeler:
    """Format epoch-second breaks with strftime directives."""
    if not isinstance(pattern, str) or not pattern:
        raise ScaleConfigError("date label pattern must be a non-empty string")

    def _labels(values: np.ndarray) -> list[str]:
        return ["" if d is None else d.strftime(pattern) for d in _datetimes(values)]

    return _labels


def label_date_short(formats: Sequence[str] = ("%Y", "%b", "%d", "%H:%M"), sep: str = "\n") -> Labeler:
    """Date labels that print a higher-order unit only where it changes.

    Each label is compared against the preceding one; a change in year forces
    month and day to print too. Components that are constant zero across all
    breaks (midnight times, first-of-month days, January months) are dropped.
    """
    if len(formats) != 4:
        raise ScaleConfigError("label_date_short needs four formats: year, month, day, time")

    def _labels(values: np.ndarray) -> list[str]:
        dts = _datetimes(values)
        known = [d for d in dts if d is not None]
        year_fmt, month_fmt, day_fmt, time_fmt = (f or None for f in formats)
        if all(d.hour == 0 and d.minute == 0 for d in known):
            time_fmt = None
            if all(d.day == 1 for d in known):
                day_fmt = None
                if all(d.month == 1 for d in known):
                    month_fmt = None

        out: list[str] = []
        prev: dt.datetime | None = None
        for d in dts:
            if d is None:
                out.append("")
                prev = None
                continue
            year_changed = prev is None or d.year != prev.year
            month_changed = year_changed or d.month != prev.month  # type: ignore[union-attr]
            day_changed = month_changed or d.day != prev.day  # type: ignore[union-attr]
            parts = [
                year_fmt if year_changed else None,
                month_fmt if month_changed else None,
                day_fmt if day_changed else None,
                time_fmt,
            ]
            pattern = sep.join(p for p in reversed(parts) if p)
            out.append(d.strftime(pattern) if pattern else "")
            prev = d
        return out

    return _labels


def auto_date_pattern(values: np.ndarray) -> str:
    known = [d for d in _datetimes(values) if d is not None]
    if not known:
        return "%Y-%m-%d"
    if any(d.second or d.microsecond for d in known):
        return "%Y-%m-%d %H:%M:%S"
    if any(d.hour or d.minute for d in known):
        if len({d.date() for d in known}) == 1:
            return "%H:%M"
        return "%Y-%m-%d %H:%M"
    if all(d.day == 1 for d in known):
        if all(d.month == 1 for d in known):
            return "%Y"
        return "%b %Y"
    return "%Y-%m-%d"


def label_date_auto(values: np.ndarray) -> list[str]:
    return label_date(auto_date_pattern(values))(values)


NAMED_LABELERS: dict[str, Callable[[], Labeler]] = {
    "number": label_number,
    "comma": label_comma,
    "percent": label_percent,
    "dollar": label_dollar,
    "currency": label_dollar,
    "bytes": label_bytes,
    "ordinal": label_ordinal,
    "scientific": label_scientific,
    "date": label_date,
    "date_short": label_date_short,
    "date_auto": lambda: label_date_auto,
}


def labeler_by_name(name: str) -> Labeler:
    key = name.strip().lower()
    try:
        factory = NAMED_LABELERS[key]
    except KeyError as exc:
        known = ", ".join(NAMED_LABELERS)
        raise ScaleConfigError(f"unknown label formatter `{name}` (known: {known})") from exc
    return factory()
