from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from axis_scales.errors import ScaleConfigError
from axis_scales.ranges import Range

Pair = float | tuple[float, float] | Sequence[float]


@dataclass(frozen=True)
class Expansion:
    mult_lower: float = 0.0
    add_lower: float = 0.0
    mult_upper: float = 0.0
    add_upper: float = 0.0

    def __post_init__(self) -> None:
        for name in ("mult_lower", "add_lower", "mult_upper", "add_upper"):
            if not np.isfinite(getattr(self, name)):
                raise ScaleConfigError(f"Expansion.{name} must be finite")

    @property
    def is_zero(self) -> bool:
        return self.mult_lower == self.add_lower == self.mult_upper == self.add_upper == 0.0

    def apply(self, rng: Range, *, zero_width: float = 1.0) -> Range:
        lower, upper = expand_range(rng.lower, rng.upper, self, zero_width=zero_width)
        return Range(lower, upper)


def _pair(value: Pair, name: str) -> tuple[float, float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (float(value), float(value))
    if isinstance(value, Sequence) and not isinstance(value, str) and len(value) == 2:
        return (float(value[0]), float(value[1]))
    raise ScaleConfigError(f"{name} must be a number or a (lower, upper) pair, got {value!r}")


def expansion(mult: Pair = 0.0, add: Pair = 0.0) -> Expansion:
    """Build an expansion from multiplicative and additive parts, each a scalar or (lower, upper)."""
    mult_lo, mult_hi = _pair(mult, "mult")
    add_lo, add_hi = _pair(add, "add")
    return Expansion(mult_lower=mult_lo, add_lower=add_lo, mult_upper=mult_hi, add_upper=add_hi)


NO_EXPANSION = Expansion()
DEFAULT_CONTINUOUS_EXPANSION = expansion(mult=0.05)
DEFAULT_DISCRETE_EXPANSION = expansion(add=0.6)


def expand_range(lower: float, upper: float, policy: Expansion, *, zero_width: float = 1.0) -> tuple[float, float]:
    width = float(upper - lower)
    if width <= 1e-10 * max(1.0, abs(lower), abs(upper)):
        width = zero_width
    return (
        float(lower - (policy.mult_lower * width + policy.add_lower)),
        float(upper + (policy.mult_upper * width + policy.add_upper)),
    )


def as_expansion(spec: Any, default: Expansion) -> Expansion:
    if spec is None or spec is True:
        return default
    if spec is False:
        return NO_EXPANSION
    if isinstance(spec, Expansion):
        return spec
    if isinstance(spec, (int, float)):
        return expansion(mult=float(spec))
    if isinstance(spec, Mapping):
        unknown = set(spec) - {"mult", "add"}
        if unknown:
            raise ScaleConfigError(f"unknown expansion keys: {', '.join(sorted(unknown))}")
        return expansion(mult=spec.get("mult", 0.0), add=spec.get("add", 0.0))
    if isinstance(spec, Sequence) and not isinstance(spec, str):
        values = [float(v) for v in spec]
        if len(values) == 2:
            return expansion(mult=values[0], add=values[1])
        if len(values) == 4:
            return Expansion(mult_lower=values[0], add_lower=values[1], mult_upper=values[2], add_upper=values[3])
    raise ScaleConfigError(f"unsupported expansion spec: {spec!r}")
