from __future__ import annotations

from dataclasses import dataclass
import math
from statistics import NormalDist
from typing import Any, Callable

import numpy as np

from axis_scales.breaks import extended_breaks, log_breaks, regular_minor_breaks
from axis_scales.errors import ScaleConfigError

ArrayFn = Callable[[np.ndarray], np.ndarray]
BreakStrategy = Callable[[float, float, int], np.ndarray]
MinorStrategy = Callable[[np.ndarray, float, float], np.ndarray]


@dataclass(frozen=True)
class Transform:
    """Monotonic mapping between data space and a display-linear space.

    `breaks` generates major breaks in data space for data-space limits.
    Values whose forward image is not finite are replaced with NaN.
    """

    name: str
    forward: ArrayFn
    inverse: ArrayFn
    domain: tuple[float, float] = (-math.inf, math.inf)
    increasing: bool = True
    breaks: BreakStrategy = extended_breaks
    minor_breaks: MinorStrategy = regular_minor_breaks

    def transform(self, values: Any) -> np.ndarray:
        arr = np.asarray(values, dtype=np.float64)
        with np.errstate(all="ignore"):
            out = np.asarray(self.forward(arr), dtype=np.float64)
        invalid = np.isfinite(arr) & (~np.isfinite(out) | (arr < self.domain[0]) | (arr > self.domain[1]))
        if np.any(invalid):
            out = np.array(out, copy=True)
            out[invalid] = np.nan
        return out

    def inverse_transform(self, values: Any) -> np.ndarray:
        arr = np.asarray(values, dtype=np.float64)
        with np.errstate(all="ignore"):
            return np.asarray(self.inverse(arr), dtype=np.float64)

    def transform_limits(self, lower: float | None, upper: float | None) -> tuple[float | None, float | None]:
        lo = None if lower is None else float(self.transform([lower])[0])
        hi = None if upper is None else float(self.transform([upper])[0])
        if not self.increasing:
            lo, hi = hi, lo
        return (lo, hi)

    def data_limits(self, lower: float, upper: float) -> tuple[float, float]:
        a, b = self.inverse_transform([lower, upper]).tolist()
        return (min(a, b), max(a, b))

    def major_breaks(self, limits: tuple[float, float], n: int = 5) -> np.ndarray:
        return np.asarray(self.breaks(limits[0], limits[1], n), dtype=np.float64)


def _identity(x: np.ndarray) -> np.ndarray:
    return x


def _negate(x: np.ndarray) -> np.ndarray:
    return -x


def _reciprocal(x: np.ndarray) -> np.ndarray:
    return 1.0 / x


def _logit(x: np.ndarray) -> np.ndarray:
    return np.log(x / (1.0 - x))


def _logistic(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


_NORMAL = NormalDist()


def _probit(x: np.ndarray) -> np.ndarray:
    flat = np.asarray(x, dtype=np.float64).ravel()
    out = np.full(flat.shape, np.nan, dtype=np.float64)
    valid = (flat > 0.0) & (flat < 1.0)
    out[valid] = [_NORMAL.inv_cdf(float(p)) for p in flat[valid]]
    return out.reshape(np.shape(x))


def _probit_inverse(x: np.ndarray) -> np.ndarray:
    flat = np.asarray(x, dtype=np.float64).ravel()
    out = np.full(flat.shape, np.nan, dtype=np.float64)
    valid = ~np.isnan(flat)
    out[valid] = [_NORMAL.cdf(float(v)) for v in flat[valid]]
    return out.reshape(np.shape(x))


def _log_name(base: float) -> str:
    if base == math.e:
        return "log"
    if float(base).is_integer():
        return f"log{int(base)}"
    return f"log-{base:g}"


def log_transform(base: float = math.e) -> Transform:
    if base <= 0 or base == 1:
        raise ScaleConfigError("log base must be > 0 and != 1")
    log_base = math.log(base)
    return Transform(
        name=_log_name(base),
        forward=lambda x: np.log(x) / log_base,
        inverse=lambda x: np.power(base, x),
        domain=(0.0, math.inf),
        breaks=lambda lo, hi, n: log_breaks(lo, hi, n, base),
    )


def exp_transform(base: float = math.e) -> Transform:
    if base <= 0 or base == 1:
        raise ScaleConfigError("exp base must be > 0 and != 1")
    log_base = math.log(base)
    return Transform(
        name="exp" if base == math.e else f"exp-{base:g}",
        forward=lambda x: np.power(base, x),
        inverse=lambda x: np.log(x) / log_base,
    )


IDENTITY = Transform(name="identity", forward=_identity, inverse=_identity)

TRANSFORMS: dict[str, Transform] = {
    "identity": IDENTITY,
    "log": log_transform(math.e),
    "log2": log_transform(2.0),
    "log10": log_transform(10.0),
    "sqrt": Transform(name="sqrt", forward=np.sqrt, inverse=np.square, domain=(0.0, math.inf)),
    "reciprocal": Transform(name="reciprocal", forward=_reciprocal, inverse=_reciprocal, increasing=False),
    "reverse": Transform(name="reverse", forward=_negate, inverse=_negate, increasing=False),
    "logit": Transform(name="logit", forward=_logit, inverse=_logistic, domain=(0.0, 1.0)),
    "probit": Transform(name="probit", forward=_probit, inverse=_probit_inverse, domain=(0.0, 1.0)),
    "exp": exp_transform(math.e),
    "atanh": Transform(name="atanh", forward=np.arctanh, inverse=np.tanh, domain=(-1.0, 1.0)),
}


def transform_names() -> tuple[str, ...]:
    return tuple(TRANSFORMS)


def transform_by_name(name: str) -> Transform:
    key = name.strip().lower()
    try:
        return TRANSFORMS[key]
    except KeyError as exc:
        known = ", ".join(TRANSFORMS)
        raise ScaleConfigError(f"unknown transform `{name}` (known: {known})") from exc


def as_transform(spec: str | Transform | None) -> Transform:
    if spec is None:
        return IDENTITY
    if isinstance(spec, Transform):
        return spec
    if isinstance(spec, str):
        return transform_by_name(spec)
    raise ScaleConfigError(f"unsupported transform spec: {spec!r}")
