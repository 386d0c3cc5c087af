from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from axis_scales.ranges import Range


@dataclass(frozen=True)
class Viewport:
    """Visual-only window over a scale, in transformed space.

    Unlike limits, a viewport never censors data: values outside it keep their
    positions and only breaks and the display range follow the window.
    """

    lower: float
    upper: float

    def __post_init__(self) -> None:
        if not (np.isfinite(self.lower) and np.isfinite(self.upper)):
            raise ValueError("viewport bounds must be finite")
        if self.upper - self.lower <= 1e-12:
            raise ValueError("viewport span must be > 0")

    @classmethod
    def between(cls, a: float, b: float) -> "Viewport":
        return cls(float(min(a, b)), float(max(a, b)))

    @property
    def span(self) -> float:
        return float(self.upper - self.lower)

    @property
    def center(self) -> float:
        return (self.lower + self.upper) * 0.5

    def as_range(self) -> Range:
        return Range(self.lower, self.upper)

    def pan(self, delta: float) -> "Viewport":
        delta = float(delta)
        return Viewport(self.lower + delta, self.upper + delta)

    def zoom(self, factor: float, *, anchor: float | None = None) -> "Viewport":
        """Zoom in (`factor > 1`) or out around `anchor`, which keeps its relative position."""
        if factor <= 0:
            raise ValueError("zoom factor must be > 0")
        pivot = float(anchor) if anchor is not None else self.center
        span = max(1e-12, self.span / float(factor))
        ratio = (pivot - self.lower) / self.span
        left = pivot - span * ratio
        return Viewport(left, left + span)

    def clamp_to(self, rng: Range) -> "Viewport":
        """Slide (and if needed shrink) the window so it lies inside `rng`."""
        if rng.is_zero_width:
            return self
        span = min(self.span, rng.width)
        start = max(rng.lower, min(rng.upper - span, self.lower))
        return Viewport(start, start + span)
