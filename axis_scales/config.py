from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields
import math
import numbers
from pathlib import Path
import tomllib
from typing import Any

from axis_scales.breaks import breaks_width
from axis_scales.dates import parse_date_step, to_seconds
from axis_scales.errors import ScaleConfigError, ScaleDataError
from axis_scales.expansion import DEFAULT_CONTINUOUS_EXPANSION, DEFAULT_DISCRETE_EXPANSION, Expansion, as_expansion
from axis_scales.labels import Labeler, label_date, labeler_by_name
from axis_scales.ranges import OOB_POLICIES, is_unset
from axis_scales.transforms import IDENTITY, Transform, as_transform


class _Auto:
    """Sentinel for "compute this from the data"."""

    _instance: "_Auto | None" = None

    def __new__(cls) -> "_Auto":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "AUTO"

    def __reduce__(self) -> str:
        return "AUTO"


AUTO = _Auto()

SCALE_KINDS: tuple[str, ...] = ("continuous", "datetime", "date", "discrete", "binned")
CONTINUOUS_KINDS: tuple[str, ...] = ("continuous", "binned")
DATE_KINDS: tuple[str, ...] = ("datetime", "date")
BIN_POSITIONS: tuple[str, ...] = ("center", "left", "right")


def is_empty_spec(spec: Any) -> bool:
    """True for `None` or an empty explicit sequence: suppress the element."""
    if spec is None:
        return True
    if isinstance(spec, (str, bytes, Mapping)) or callable(spec) or spec is AUTO:
        return False
    try:
        return len(spec) == 0
    except TypeError:
        return False


def is_explicit_sequence(spec: Any) -> bool:
    if spec is None or spec is AUTO or callable(spec):
        return False
    return isinstance(spec, Sequence) and not isinstance(spec, (str, bytes)) or _is_array(spec)


def _is_array(spec: Any) -> bool:
    return hasattr(spec, "__array__") and hasattr(spec, "__len__")


@dataclass(frozen=True)
class ScaleConfig:
    """Per-scale configuration, validated when constructed.

    `breaks`, `minor_breaks` and `labels` take `AUTO` (computed), `None` or an
    empty sequence (suppressed), an explicit sequence, or a callable. Labels
    also accept a formatter name (e.g. "percent") and, for discrete scales, a
    mapping that overrides labels per category.
    """

    kind: str = "continuous"
    limits: Any = None
    breaks: Any = AUTO
    minor_breaks: Any = AUTO
    labels: Any = AUTO
    transform: str | Transform = "identity"
    expand: Any = AUTO
    n_breaks: int = 5
    oob: str = "censor"
    date_breaks: str | None = None
    date_minor_breaks: str | None = None
    date_labels: str | None = None
    nice_breaks: bool = True
    right: bool = True
    position: str = "center"

    def __post_init__(self) -> None:
        if self.kind not in SCALE_KINDS:
            raise ScaleConfigError(f"unsupported scale kind: {self.kind}")
        if self.oob not in OOB_POLICIES:
            raise ScaleConfigError(f"unsupported oob policy: {self.oob}")
        if isinstance(self.n_breaks, bool) or not isinstance(self.n_breaks, int) or self.n_breaks <= 0:
            raise ScaleConfigError("n_breaks must be a positive integer")
        if self.position not in BIN_POSITIONS:
            raise ScaleConfigError(f"unsupported bin position: {self.position}")

        transform = self.get_transform()
        if transform is not IDENTITY and self.kind not in CONTINUOUS_KINDS:
            raise ScaleConfigError(f"{self.kind} scales do not support transform `{transform.name}`")
        self.get_expansion()
        self._validate_limits()
        self._validate_date_options()
        self._validate_spec("breaks", self.breaks)
        self._validate_spec("minor_breaks", self.minor_breaks)
        self._validate_labels()

    @property
    def is_discrete(self) -> bool:
        return self.kind == "discrete"

    @property
    def is_date(self) -> bool:
        return self.kind in DATE_KINDS

    def get_transform(self) -> Transform:
        return as_transform(self.transform)

    def get_expansion(self) -> Expansion:
        default = DEFAULT_DISCRETE_EXPANSION if self.is_discrete else DEFAULT_CONTINUOUS_EXPANSION
        return as_expansion(None if self.expand is AUTO else self.expand, default)

    def _validate_limits(self) -> None:
        if self.limits is None:
            return
        if not is_explicit_sequence(self.limits):
            raise ScaleConfigError("limits must be a sequence")
        if self.is_discrete:
            seen: set[Any] = set()
            for value in self.limits:
                if value in seen:
                    raise ScaleConfigError(f"duplicate category in limits: {value!r}")
                seen.add(value)
            return
        if len(self.limits) != 2:
            raise ScaleConfigError("continuous limits must be a (lower, upper) pair")
        if self.is_date:
            self._validate_date_limits()
            return
        for bound in self.limits:
            if is_unset(bound):
                continue
            if isinstance(bound, bool) or not isinstance(bound, numbers.Real):
                raise ScaleConfigError(f"limit bounds must be numbers or None, got {bound!r}")
        lo, hi = self.limits
        if not is_unset(lo) and not is_unset(hi) and lo > hi:
            raise ScaleConfigError("limits lower bound must be <= upper bound")
        transform = self.get_transform()
        for bound in self.limits:
            if not is_unset(bound) and not math.isfinite(float(transform.transform([bound])[0])):
                raise ScaleConfigError(f"limit {bound!r} is outside the {transform.name} domain")

    def _validate_date_limits(self) -> None:
        try:
            lo, hi = to_seconds(list(self.limits)).tolist()
        except ScaleDataError as exc:
            raise ScaleConfigError(f"invalid date limits: {exc}") from exc
        if not math.isnan(lo) and not math.isnan(hi) and lo > hi:
            raise ScaleConfigError("limits lower bound must be <= upper bound")

    def _validate_date_options(self) -> None:
        options = {
            "date_breaks": self.date_breaks,
            "date_minor_breaks": self.date_minor_breaks,
            "date_labels": self.date_labels,
        }
        for name, value in options.items():
            if value is not None and not self.is_date:
                raise ScaleConfigError(f"{name} is only valid for date-time scales")
        if self.date_breaks is not None:
            if self.breaks is not AUTO:
                raise ScaleConfigError("breaks and date_breaks are mutually exclusive")
            parse_date_step(self.date_breaks)
        if self.date_minor_breaks is not None:
            if self.minor_breaks is not AUTO:
                raise ScaleConfigError("minor_breaks and date_minor_breaks are mutually exclusive")
            parse_date_step(self.date_minor_breaks)
        if self.date_labels is not None:
            if self.labels is not AUTO:
                raise ScaleConfigError("labels and date_labels are mutually exclusive")
            label_date(self.date_labels)

    def _validate_spec(self, name: str, spec: Any) -> None:
        if spec is AUTO or spec is None or callable(spec):
            return
        if isinstance(spec, (str, bytes, Mapping)) or not is_explicit_sequence(spec):
            raise ScaleConfigError(f"{name} must be AUTO, None, a sequence or a callable, got {spec!r}")
        if self.is_discrete and name == "minor_breaks" and len(spec) > 0:
            raise ScaleConfigError("discrete scales do not have minor breaks")

    def _validate_labels(self) -> None:
        labels = self.labels
        if labels is AUTO or labels is None or callable(labels):
            return
        if isinstance(labels, str):
            labeler_by_name(labels)
            return
        if isinstance(labels, Mapping):
            if not self.is_discrete:
                raise ScaleConfigError("label mappings are only valid for discrete scales")
            return
        if not is_explicit_sequence(labels):
            raise ScaleConfigError(f"unsupported labels spec: {labels!r}")
        expected = self.explicit_break_count()
        if expected is not None and len(labels) > 0 and len(labels) != expected:
            raise ScaleConfigError(f"labels has {len(labels)} entries but breaks has {expected}")

    def explicit_break_count(self) -> int | None:
        """Number of breaks known before seeing data, or None."""
        if is_explicit_sequence(self.breaks):
            return len(self.breaks)
        if self.is_discrete and self.breaks is AUTO and self.limits is not None:
            return len(self.limits)
        return None

    def labeler(self) -> Labeler | None:
        """Callable labeler for named/callable specs and date_labels."""
        if self.date_labels is not None:
            return label_date(self.date_labels)
        if isinstance(self.labels, str):
            return labeler_by_name(self.labels)
        if callable(self.labels) and not isinstance(self.labels, Mapping):
            return self.labels
        return None


_CONFIG_FIELDS = {f.name for f in fields(ScaleConfig)}


def config_from_dict(payload: Mapping[str, Any]) -> ScaleConfig:
    """Build a config from plain data (e.g. a TOML table).

    `"auto"` inside limits leaves that bound unset; `breaks = {width, offset}`
    requests fixed-width breaks and `breaks = {n}` sets the automatic target.
    """
    unknown = set(payload) - _CONFIG_FIELDS
    if unknown:
        raise ScaleConfigError(f"unknown scale config fields: {', '.join(sorted(unknown))}")
    kwargs: dict[str, Any] = dict(payload)

    limits = kwargs.get("limits")
    if isinstance(limits, list):
        kind = str(kwargs.get("kind", "continuous"))
        if kind != "discrete":
            limits = [None if isinstance(v, str) and v.strip().lower() == "auto" else v for v in limits]
        kwargs["limits"] = tuple(limits)

    breaks = kwargs.get("breaks", AUTO)
    if isinstance(breaks, Mapping):
        kwargs["breaks"] = _breaks_from_mapping(breaks, kwargs)
    elif isinstance(breaks, list):
        kwargs["breaks"] = tuple(breaks)

    for key in ("minor_breaks", "labels"):
        if isinstance(kwargs.get(key), list):
            kwargs[key] = tuple(kwargs[key])

    if isinstance(kwargs.get("expand"), list):
        kwargs["expand"] = tuple(kwargs["expand"])
    try:
        return ScaleConfig(**kwargs)
    except TypeError as exc:
        raise ScaleConfigError(str(exc)) from exc


def _breaks_from_mapping(spec: Mapping[str, Any], kwargs: dict[str, Any]) -> Any:
    if "width" in spec:
        unknown = set(spec) - {"width", "offset"}
        if unknown:
            raise ScaleConfigError(f"unknown breaks keys: {', '.join(sorted(unknown))}")
        try:
            return breaks_width(float(spec["width"]), float(spec.get("offset", 0.0)))
        except ValueError as exc:
            raise ScaleConfigError(str(exc)) from exc
    if set(spec) == {"n"}:
        try:
            kwargs["n_breaks"] = int(spec["n"])
        except (TypeError, ValueError) as exc:
            raise ScaleConfigError(f"breaks.n must be an integer, got {spec['n']!r}") from exc
        return AUTO
    raise ScaleConfigError(f"unsupported breaks table: {dict(spec)!r}")


def load_config(path: str | Path) -> dict[str, ScaleConfig]:
    """Load one ScaleConfig per top-level TOML table (`[x]`, `[y]`, ...)."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"scale config not found: {config_path}")
    with config_path.open("rb") as f:
        try:
            raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ScaleConfigError(f"invalid TOML in {config_path}: {exc}") from exc
    configs: dict[str, ScaleConfig] = {}
    for aesthetic, table in raw.items():
        if not isinstance(table, Mapping):
            raise ScaleConfigError(f"`{aesthetic}` must be a table")
        try:
            configs[aesthetic] = config_from_dict(table)
        except ScaleConfigError as exc:
            raise ScaleConfigError(f"[{aesthetic}] {exc}") from exc
    return configs
