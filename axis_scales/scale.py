from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import logging
import math
from typing import Any

import numpy as np

from axis_scales.adapters.normalize import coerce_datetimes, coerce_numeric
from axis_scales.breaks import drop_coincident, filter_breaks
from axis_scales.config import AUTO, DATE_KINDS, ScaleConfig, is_empty_spec
from axis_scales.dates import DateStep, breaks_date, choose_date_step, date_breaks, from_seconds, to_seconds
from axis_scales.errors import ScaleConfigError
from axis_scales.labels import Labeler, format_ticks_for_axis, label_date_auto
from axis_scales.ranges import Range, apply_oob, is_unset, resolve_limits, train_range
from axis_scales.window import Viewport

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Break:
    value: Any
    position: float
    label: str


@dataclass(frozen=True)
class ResolvedScale:
    """Everything a renderer needs for one aesthetic.

    `continuous_range`, `display_range`, `break_positions` and `minor_breaks`
    live in transformed space; `limits` and `breaks` are in data space (epoch
    seconds for date-time scales, categories for discrete scales).
    `positions` holds one transformed, out-of-bounds handled value per input.
    """

    aesthetic: str
    kind: str
    transform: str
    limits: tuple[Any, ...]
    continuous_range: Range
    display_range: Range
    breaks: tuple[Any, ...]
    break_positions: tuple[float, ...]
    labels: tuple[str, ...]
    minor_breaks: tuple[float, ...]
    positions: np.ndarray = field(compare=False, repr=False)
    n_dropped: int = 0
    n_invalid: int = 0
    warnings: tuple[str, ...] = ()
    categories: tuple[Any, ...] | None = None
    bin_edges: tuple[float, ...] | None = None
    bin_index: np.ndarray | None = field(default=None, compare=False, repr=False)
    window: Viewport | None = None

    def __post_init__(self) -> None:
        # Own read-only copies, so neither the caller's input nor the result can change later.
        positions = np.array(self.positions, dtype=np.float64, copy=True)
        positions.setflags(write=False)
        object.__setattr__(self, "positions", positions)
        if self.bin_index is not None:
            bin_index = np.array(self.bin_index, copy=True)
            bin_index.setflags(write=False)
            object.__setattr__(self, "bin_index", bin_index)

    def break_list(self) -> list[Break]:
        return [Break(v, p, label) for v, p, label in zip(self.breaks, self.break_positions, self.labels)]

    def to_dict(self) -> dict[str, Any]:
        as_date = self.kind in DATE_KINDS
        payload: dict[str, Any] = {
            "aesthetic": self.aesthetic,
            "kind": self.kind,
            "transform": self.transform,
            "limits": [_jsonable(v, as_date=as_date) for v in self.limits],
            "range": list(self.continuous_range.as_tuple()),
            "display_range": list(self.display_range.as_tuple()),
            "breaks": [_jsonable(v, as_date=as_date) for v in self.breaks],
            "break_positions": [_jsonable(v) for v in self.break_positions],
            "labels": list(self.labels),
            "minor_breaks": [_jsonable(v) for v in self.minor_breaks],
            "positions": [_jsonable(v) for v in self.positions.tolist()],
            "n_dropped": self.n_dropped,
            "n_invalid": self.n_invalid,
            "warnings": list(self.warnings),
        }
        if self.categories is not None:
            payload["categories"] = [_jsonable(v) for v in self.categories]
        if self.bin_edges is not None:
            payload["bin_edges"] = [_jsonable(v) for v in self.bin_edges]
        if self.bin_index is not None:
            payload["bin_index"] = [int(v) for v in self.bin_index.tolist()]
        if self.window is not None:
            payload["window"] = [self.window.lower, self.window.upper]
        return payload


def _jsonable(value: Any, *, as_date: bool = False) -> Any:
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if as_date:
            return from_seconds(value).isoformat()
        return value
    if value is None or isinstance(value, (str, int, bool)):
        return value
    return str(value)


class Scale:
    """Base class: one scale per aesthetic, built from a validated config."""

    kind = "continuous"

    def __init__(self, aesthetic: str, config: ScaleConfig | None = None) -> None:
        self.aesthetic = aesthetic
        self.config = config if config is not None else ScaleConfig(kind=self.kind)
        if self.config.kind not in self.accepted_kinds():
            raise ScaleConfigError(f"{type(self).__name__} cannot use a `{self.config.kind}` config")
        self.transform = self.config.get_transform()
        self.expansion = self.config.get_expansion()

    @classmethod
    def accepted_kinds(cls) -> tuple[str, ...]:
        return (cls.kind,)

    def train(self, values: Any) -> Any:
        raise NotImplementedError

    def resolve(self, values: Any, *, trained: Any = None, window: Viewport | None = None) -> ResolvedScale:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(aesthetic={self.aesthetic!r}, kind={self.config.kind!r})"

    def _warn(self, message: str) -> str:
        text = f"{self.aesthetic}: {message}"
        LOGGER.warning("%s", text)
        return text

    def _apply_labeler(self, labeler: Labeler, breaks: Any, count: int) -> tuple[str, ...]:
        try:
            labels = [str(label) for label in labeler(breaks)]
        except (TypeError, ValueError) as exc:
            raise ScaleConfigError(f"{self.aesthetic}: label formatter failed: {exc}") from exc
        if len(labels) != count:
            raise ScaleConfigError(
                f"{self.aesthetic}: label formatter returned {len(labels)} labels for {count} breaks"
            )
        return tuple(labels)


class ContinuousScale(Scale):
    """Numeric scale: transform, limits, out-of-bounds handling, breaks, labels, expansion."""

    kind = "continuous"

    def coerce(self, values: Any) -> np.ndarray:
        return coerce_numeric(values, label=self.aesthetic)

    def transformed(self, values: Any) -> tuple[np.ndarray, int]:
        raw = self.coerce(values)
        out = self.transform.transform(raw)
        n_invalid = int(np.count_nonzero(np.isfinite(raw) & ~np.isfinite(out)))
        if n_invalid:
            LOGGER.debug("%s: %d values outside the %s domain", self.aesthetic, n_invalid, self.transform.name)
        return out, n_invalid

    def train(self, values: Any) -> Range | None:
        transformed, _ = self.transformed(values)
        return train_range(transformed)

    def limits_to_numbers(self, limits: Sequence[Any]) -> list[float | None]:
        return [None if is_unset(v) else float(v) for v in limits]

    def transformed_limits(self) -> tuple[float | None, float | None] | None:
        if self.config.limits is None:
            return None
        lo, hi = self.limits_to_numbers(self.config.limits)
        return self.transform.transform_limits(lo, hi)

    def resolve_range(self, transformed: np.ndarray, trained: Range | None = None) -> Range:
        return resolve_limits(transformed, self.transformed_limits(), trained=trained)

    def resolve(self, values: Any, *, trained: Range | None = None, window: Viewport | None = None) -> ResolvedScale:
        transformed, n_invalid = self.transformed(values)
        rng = self.resolve_range(transformed, trained)
        warnings: list[str] = []
        if window is None:
            positions, n_dropped = apply_oob(transformed, rng, self.config.oob)
            break_range = rng
            display = self.expansion.apply(rng)
        else:
            positions, n_dropped = np.array(transformed, dtype=np.float64, copy=True), 0
            break_range = window.as_range()
            display = break_range
        if n_dropped:
            verb = "removed" if self.config.oob == "censor" else "squished"
            warnings.append(self._warn(f"{verb} {n_dropped} values outside the scale range"))

        breaks, break_positions, labels = self.major_breaks(break_range, display)
        minor = self.minor_breaks(break_range, display, break_positions)
        return ResolvedScale(
            aesthetic=self.aesthetic,
            kind=self.config.kind,
            transform=self.transform.name,
            limits=self.transform.data_limits(rng.lower, rng.upper),
            continuous_range=rng,
            display_range=display,
            breaks=tuple(float(b) for b in breaks),
            break_positions=tuple(float(p) for p in break_positions),
            labels=labels,
            minor_breaks=tuple(float(m) for m in minor),
            positions=positions,
            n_dropped=n_dropped,
            n_invalid=n_invalid,
            warnings=tuple(warnings),
            window=window,
        )

    def data_limits(self, rng: Range) -> tuple[float, float]:
        return self.transform.data_limits(rng.lower, rng.upper)

    def explicit_to_numbers(self, values: Any) -> np.ndarray:
        return coerce_numeric(list(values) if not isinstance(values, np.ndarray) else values, label="breaks")

    def auto_breaks(self, limits: tuple[float, float]) -> np.ndarray:
        return self.transform.major_breaks(limits, self.config.n_breaks)

    def default_labels(self, breaks: np.ndarray) -> list[str]:
        return format_ticks_for_axis(breaks)

    def major_breaks(self, rng: Range, display: Range) -> tuple[np.ndarray, np.ndarray, tuple[str, ...]]:
        """Return (data-space breaks, positions, labels), ordered by position.

        Generated breaks are restricted to `rng`; explicit breaks are only
        restricted to the expanded `display` range.
        """
        spec = self.config.breaks
        explicit_labels: Sequence[Any] | None = None
        if is_empty_spec(spec):
            candidates = np.asarray([], dtype=np.float64)
            keep = rng
        elif spec is AUTO:
            candidates = np.asarray(self.auto_breaks(self.data_limits(rng)), dtype=np.float64)
            keep = rng
        elif callable(spec):
            candidates = np.asarray(self.explicit_to_numbers(spec(self.data_limits(rng))), dtype=np.float64)
            keep = rng
        else:
            candidates = self.explicit_to_numbers(spec)
            keep = display
            if _is_label_sequence(self.config.labels):
                explicit_labels = self.config.labels

        positions = self.transform.transform(candidates)
        order = _select(positions, keep)
        breaks = candidates[order]
        break_positions = positions[order]
        labels = self.labels_for(breaks, order, explicit_labels)
        return breaks, break_positions, labels

    def labels_for(self, breaks: np.ndarray, order: np.ndarray, explicit: Sequence[Any] | None) -> tuple[str, ...]:
        spec = self.config.labels
        count = int(breaks.size)
        labeler = self.config.labeler()
        if labeler is not None:
            return self._apply_labeler(labeler, breaks, count) if count else ()
        if spec is AUTO:
            return tuple(self.default_labels(breaks))
        if is_empty_spec(spec):
            return ("",) * count
        if explicit is not None:
            return tuple(str(explicit[i]) for i in order.tolist())
        if len(spec) != count:
            raise ScaleConfigError(f"{self.aesthetic}: labels has {len(spec)} entries but there are {count} breaks")
        return tuple(str(label) for label in spec)

    def minor_breaks(self, rng: Range, display: Range, major_positions: np.ndarray) -> np.ndarray:
        spec = self.config.minor_breaks
        if is_empty_spec(spec):
            return np.asarray([], dtype=np.float64)
        if spec is AUTO:
            minor = self.auto_minor_breaks(rng, major_positions)
        elif callable(spec):
            candidates = self.explicit_to_numbers(spec(self.data_limits(rng)))
            minor = filter_breaks(self.transform.transform(candidates), rng.lower, rng.upper)
        else:
            candidates = self.explicit_to_numbers(spec)
            minor = filter_breaks(self.transform.transform(candidates), display.lower, display.upper)
        atol = max(1e-12, rng.width * 1e-9)
        return drop_coincident(minor, np.asarray(major_positions, dtype=np.float64), atol=atol)

    def auto_minor_breaks(self, rng: Range, major_positions: np.ndarray) -> np.ndarray:
        if np.asarray(major_positions).size == 0:
            return np.asarray([], dtype=np.float64)
        return np.asarray(self.transform.minor_breaks(major_positions, rng.lower, rng.upper), dtype=np.float64)


class DateTimeScale(ContinuousScale):
    """Continuous scale over epoch seconds with calendar-aware breaks and labels."""

    kind = "datetime"

    @classmethod
    def accepted_kinds(cls) -> tuple[str, ...]:
        return DATE_KINDS

    def coerce(self, values: Any) -> np.ndarray:
        return coerce_datetimes(values, label=self.aesthetic)

    def limits_to_numbers(self, limits: Sequence[Any]) -> list[float | None]:
        seconds = to_seconds(list(limits))
        return [None if math.isnan(v) else float(v) for v in seconds.tolist()]

    def explicit_to_numbers(self, values: Any) -> np.ndarray:
        if isinstance(values, np.ndarray) and values.dtype.kind in {"i", "u", "f", "M"}:
            return to_seconds(values)
        return to_seconds(list(values))

    def date_step(self, limits: tuple[float, float]) -> DateStep:
        step = choose_date_step(limits[0], limits[1], self.config.n_breaks)
        if self.config.kind == "date" and step.approx_seconds < 86400.0:
            return DateStep(1, "day")
        return step

    def auto_breaks(self, limits: tuple[float, float]) -> np.ndarray:
        if self.config.date_breaks is not None:
            return breaks_date(self.config.date_breaks)(limits)
        return date_breaks(limits[0], limits[1], self.date_step(limits))

    def default_labels(self, breaks: np.ndarray) -> list[str]:
        return label_date_auto(breaks)

    def auto_minor_breaks(self, rng: Range, major_positions: np.ndarray) -> np.ndarray:
        if self.config.date_minor_breaks is None:
            return super().auto_minor_breaks(rng, major_positions)
        return date_breaks(rng.lower, rng.upper, self.config.date_minor_breaks)


def _is_label_sequence(spec: Any) -> bool:
    if spec is AUTO or spec is None or callable(spec) or isinstance(spec, (str, Mapping)):
        return False
    return len(spec) > 0


def _select(positions: np.ndarray, keep: Range) -> np.ndarray:
    """Indices of finite, in-range, unique positions in ascending order (first occurrence wins)."""
    positions = np.asarray(positions, dtype=np.float64)
    if positions.size == 0:
        return np.asarray([], dtype=np.intp)
    eps = max(1e-12, keep.width * 1e-10)
    mask = np.isfinite(positions) & (positions >= keep.lower - eps) & (positions <= keep.upper + eps)
    candidates = np.flatnonzero(mask)
    if candidates.size == 0:
        return candidates
    _, first = np.unique(positions[candidates], return_index=True)
    return candidates[first]


def make_scale(aesthetic: str, config: ScaleConfig | None = None) -> Scale:
    """Build the scale class matching `config.kind`."""
    from axis_scales.binned import BinnedScale
    from axis_scales.discrete import DiscreteScale

    config = config if config is not None else ScaleConfig()
    if config.kind == "discrete":
        return DiscreteScale(aesthetic, config)
    if config.kind == "binned":
        return BinnedScale(aesthetic, config)
    if config.kind in DATE_KINDS:
        return DateTimeScale(aesthetic, config)
    return ContinuousScale(aesthetic, config)
