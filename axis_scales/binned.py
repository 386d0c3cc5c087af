from __future__ import annotations

import logging
from typing import Any

import numpy as np

from axis_scales.config import AUTO
from axis_scales.ranges import Range, apply_oob
from axis_scales.scale import ContinuousScale, ResolvedScale
from axis_scales.window import Viewport

LOGGER = logging.getLogger(__name__)


def assign_bins(values: np.ndarray, edges: np.ndarray, *, right: bool = True, tol: float = 0.0) -> np.ndarray:
    """Bin index per value, -1 for missing or out-of-range values.

    With `right=True` bins are (a, b] and the lowest bin is closed on the
    left; otherwise bins are [a, b) and the highest bin is closed on the right.
    """
    values = np.asarray(values, dtype=np.float64)
    edges = np.asarray(edges, dtype=np.float64)
    out = np.full(values.shape, -1, dtype=np.int64)
    finite = np.isfinite(values)
    if edges.size == 0:
        return out
    v = values[finite]
    if edges.size == 1:
        out[finite] = np.where(np.abs(v - edges[0]) <= tol, 0, -1)
        return out

    v = np.where(np.abs(v - edges[0]) <= tol, edges[0], v)
    v = np.where(np.abs(v - edges[-1]) <= tol, edges[-1], v)
    nbins = edges.size - 1
    if right:
        idx = np.searchsorted(edges, v, side="left") - 1
        idx[v == edges[0]] = 0
    else:
        idx = np.searchsorted(edges, v, side="right") - 1
        idx[v == edges[-1]] = nbins - 1
    idx[(idx < 0) | (idx >= nbins)] = -1
    out[finite] = idx
    return out


def bin_positions(index: np.ndarray, edges: np.ndarray, position: str = "center") -> np.ndarray:
    """Representative position of each value's bin; NaN where the index is -1."""
    index = np.asarray(index, dtype=np.int64)
    edges = np.asarray(edges, dtype=np.float64)
    out = np.full(index.shape, np.nan, dtype=np.float64)
    valid = index >= 0
    if edges.size == 1:
        out[valid] = edges[0]
        return out
    if edges.size == 0:
        return out
    lefts, rights = edges[:-1], edges[1:]
    if position == "left":
        reps = lefts
    elif position == "right":
        reps = rights
    else:
        reps = (lefts + rights) * 0.5
    out[valid] = reps[index[valid]]
    return out


class BinnedScale(ContinuousScale):
    """Continuous range cut into bins at the major breaks."""

    kind = "binned"

    def resolve_range(self, transformed: np.ndarray, trained: Range | None = None) -> Range:
        rng = super().resolve_range(transformed, trained)
        if not self.config.nice_breaks or self.config.breaks is not AUTO or rng.is_zero_width:
            return rng
        fixed = self.transformed_limits() or (None, None)
        nice = self.transform.transform(self.auto_breaks(self.data_limits(rng)))
        nice = nice[np.isfinite(nice)]
        if nice.size < 2:
            return rng
        lower = rng.lower if fixed[0] is not None else min(rng.lower, float(nice.min()))
        upper = rng.upper if fixed[1] is not None else max(rng.upper, float(nice.max()))
        if lower != rng.lower or upper != rng.upper:
            LOGGER.debug("%s: bins widened to nice limits [%g, %g]", self.aesthetic, lower, upper)
        return Range(lower, upper)

    def resolve(self, values: Any, *, trained: Range | None = None, window: Viewport | None = None) -> ResolvedScale:
        transformed, n_invalid = self.transformed(values)
        rng = self.resolve_range(transformed, trained)
        clipped, n_dropped = apply_oob(transformed, rng, self.config.oob)
        warnings: list[str] = []
        if n_dropped:
            verb = "removed" if self.config.oob == "censor" else "squished"
            warnings.append(self._warn(f"{verb} {n_dropped} values outside the scale range"))

        display = window.as_range() if window is not None else self.expansion.apply(rng)
        breaks, break_positions, labels = self.major_breaks(rng, display)
        # Only inner edges carry a break; the limits close the outer bins.
        eps = rng.tolerance()
        inner = (break_positions > rng.lower + eps) & (break_positions < rng.upper - eps)
        edges = np.unique(np.concatenate(([rng.lower], break_positions[inner], [rng.upper])))

        visible = inner
        if window is not None:
            visible = inner & (break_positions >= window.lower) & (break_positions <= window.upper)
        labels = tuple(label for label, keep in zip(labels, visible.tolist()) if keep)

        index = assign_bins(clipped, edges, right=self.config.right, tol=eps)
        return ResolvedScale(
            aesthetic=self.aesthetic,
            kind=self.kind,
            transform=self.transform.name,
            limits=self.transform.data_limits(rng.lower, rng.upper),
            continuous_range=rng,
            display_range=display,
            breaks=tuple(float(b) for b in breaks[visible]),
            break_positions=tuple(float(p) for p in break_positions[visible]),
            labels=labels,
            minor_breaks=(),
            positions=bin_positions(index, edges, self.config.position),
            n_dropped=n_dropped,
            n_invalid=n_invalid,
            warnings=tuple(warnings),
            bin_edges=tuple(float(e) for e in edges),
            bin_index=index,
            window=window,
        )
