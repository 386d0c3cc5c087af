from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Callable, Sequence

import numpy as np

# Step multiples ordered by niceness, and weights for simplicity, coverage,
# density and legibility (Talbot, Lin & Hanrahan 2010).
Q_STEPS: tuple[float, ...] = (1.0, 5.0, 2.0, 2.5, 4.0, 3.0)
WEIGHTS: tuple[float, float, float, float] = (0.25, 0.2, 0.5, 0.05)

_EPS = float(np.finfo(np.float64).eps) * 100.0
_SEARCH_MIN = 1e-100
_SEARCH_MAX = 1e100

BreakFunction = Callable[[tuple[float, float]], Sequence[float] | np.ndarray]


def _empty() -> np.ndarray:
    return np.asarray([], dtype=np.float64)


def _simplicity(q_index: int, n_steps: int, j: int, lmin: float, lmax: float, lstep: float) -> float:
    rem = lmin % lstep
    has_zero = (rem < _EPS or lstep - rem < _EPS) and lmin <= 0 and lmax >= 0
    return 1.0 - q_index / (n_steps - 1) - j + (1.0 if has_zero else 0.0)


def _simplicity_max(q_index: int, n_steps: int, j: int) -> float:
    return 2.0 - q_index / (n_steps - 1) - j


def _coverage(dmin: float, dmax: float, lmin: float, lmax: float) -> float:
    unit = 0.1 * (dmax - dmin)
    return 1.0 - 0.5 * (((dmax - lmax) / unit) ** 2 + ((dmin - lmin) / unit) ** 2)


def _coverage_max(dmin: float, dmax: float, span: float) -> float:
    data_span = dmax - dmin
    if span > data_span:
        half = (span - data_span) / 2.0
        return 1.0 - ((half / (0.1 * data_span)) ** 2)
    return 1.0


def _density(k: int, m: int, dmin: float, dmax: float, lmin: float, lmax: float) -> float:
    r = (k - 1) / (lmax - lmin)
    rt = (m - 1) / (max(lmax, dmax) - min(dmin, lmin))
    return 2.0 - max(r / rt, rt / r)


def _density_max(k: int, m: int) -> float:
    if k >= m:
        return 2.0 - (k - 1) / (m - 1)
    return 1.0


def extended_breaks(
    vmin: float,
    vmax: float,
    n: int = 5,
    *,
    only_loose: bool = False,
) -> np.ndarray:
    """Choose roughly `n` round breaks covering [vmin, vmax].

    `n` is a target: the search scores candidate lattices on simplicity,
    coverage and density, so the result may hold more or fewer breaks.
    With `only_loose` the breaks always enclose the data range.
    """
    if n <= 0:
        raise ValueError("n must be > 0")
    if not (np.isfinite(vmin) and np.isfinite(vmax)):
        return _empty()
    dmin, dmax = float(min(vmin, vmax)), float(max(vmin, vmax))
    if dmax - dmin < _EPS * max(1.0, abs(dmin), abs(dmax)):
        return np.asarray([dmin], dtype=np.float64)
    magnitude = max(abs(dmin), abs(dmax))
    if not (_SEARCH_MIN < magnitude < _SEARCH_MAX and math.isfinite(dmax - dmin)):
        # Search on a rescaled copy so squared spans and 10**z stay representable.
        scale = 10.0 ** math.floor(math.log10(magnitude))
        return extended_breaks(dmin / scale, dmax / scale, n, only_loose=only_loose) * scale

    m = max(int(n), 2)
    w_simp, w_cov, w_dens, w_leg = WEIGHTS
    n_steps = len(Q_STEPS)
    best_score = -2.0
    best: tuple[int, int, float, int, int] | None = None  # start, j, q, z, k

    j = 1
    searching = True
    while searching:
        for q_index, q in enumerate(Q_STEPS):
            sm = _simplicity_max(q_index, n_steps, j)
            if w_simp * sm + w_cov + w_dens + w_leg < best_score:
                searching = False
                break
            k = 2
            while True:
                dm = _density_max(k, m)
                if w_simp * sm + w_cov + w_dens * dm + w_leg < best_score:
                    break
                delta = (dmax - dmin) / (k + 1) / j / q
                z = int(math.ceil(math.log10(delta)))
                while True:
                    step = j * q * 10.0**z
                    cm = _coverage_max(dmin, dmax, step * (k - 1))
                    if w_simp * sm + w_cov * cm + w_dens * dm + w_leg < best_score:
                        break
                    min_start = int(math.floor(dmax / step)) * j - (k - 1) * j
                    max_start = int(math.ceil(dmin / step)) * j
                    if min_start > max_start:
                        z += 1
                        continue
                    for start in range(min_start, max_start + 1):
                        lmin = start * (step / j)
                        lmax = lmin + step * (k - 1)
                        score = (
                            w_simp * _simplicity(q_index, n_steps, j, lmin, lmax, step)
                            + w_cov * _coverage(dmin, dmax, lmin, lmax)
                            + w_dens * _density(k, m, dmin, dmax, lmin, lmax)
                            + w_leg
                        )
                        if score > best_score and (not only_loose or (lmin <= dmin and lmax >= dmax)):
                            best_score = score
                            best = (start, j, q, z, k)
                    z += 1
                k += 1
        j += 1

    if best is None:
        return np.asarray([dmin, dmax], dtype=np.float64)
    start, j, q, z, k = best
    unit = q * 10.0**z
    ticks = (start + j * np.arange(k, dtype=np.float64)) * unit
    # q carries at most one decimal digit, so 1 - z decimals are exact.
    decimals = max(0, 1 - z)
    if decimals <= 15:
        ticks = np.round(ticks, decimals)
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=unit * 1e-9)] = 0.0
    return ticks


def log_breaks(vmin: float, vmax: float, n: int = 5, base: float = 10.0) -> np.ndarray:
    """Breaks at integer powers of `base`, falling back to sub-decade multiples for narrow ranges."""
    if n <= 0:
        raise ValueError("n must be > 0")
    lo, hi = float(min(vmin, vmax)), float(max(vmin, vmax))
    if not (np.isfinite(lo) and np.isfinite(hi)) or lo <= 0:
        return _empty()
    log_base = math.log(base)
    rng = (math.log(lo) / log_base, math.log(hi) / log_base)
    lo_i = int(math.floor(rng[0]))
    hi_i = int(math.ceil(rng[1]))
    if lo_i == hi_i:
        return np.asarray([base**lo_i], dtype=np.float64)

    by = (hi_i - lo_i) // n + 1
    while True:
        breaks = np.power(float(base), np.arange(lo_i, hi_i + 1, by, dtype=np.float64))
        if _count_within(breaks, lo, hi) >= n - 2:
            return breaks
        if by <= 1:
            break
        by -= 1
    return _log_sub_breaks(lo, hi, lo_i, hi_i, n, base)


def _count_within(breaks: np.ndarray, lo: float, hi: float) -> int:
    return int(np.count_nonzero((breaks >= lo) & (breaks <= hi)))


def _log_sub_breaks(lo: float, hi: float, lo_i: int, hi_i: int, n: int, base: float) -> np.ndarray:
    decades = np.power(float(base), np.arange(lo_i, hi_i + 1, dtype=np.float64))
    if base <= 2:
        return decades
    log_base = math.log(base)
    steps = [1.0]
    candidates = [float(c) for c in range(1, int(base) + 1) if 1 < c < base]

    def min_gap(candidate: float) -> float:
        vals = sorted(steps + [candidate, float(base)])
        logs = [math.log(v) / log_base for v in vals]
        return min(b - a for a, b in zip(logs, logs[1:]))

    breaks = decades
    relevant = 0
    while candidates:
        best_idx = max(range(len(candidates)), key=lambda i: min_gap(candidates[i]))
        steps.append(candidates.pop(best_idx))
        breaks = np.sort(np.outer(decades, np.asarray(steps, dtype=np.float64)).ravel())
        relevant = _count_within(breaks, lo, hi)
        if relevant >= n - 2:
            break

    if relevant > 0 and relevant >= n - 2:
        lower_end = max(int(np.flatnonzero(breaks >= lo)[0]) - 1, 0)
        upper_end = min(int(np.flatnonzero(breaks <= hi)[-1]) + 1, breaks.size - 1)
        return breaks[lower_end : upper_end + 1]
    return extended_breaks(lo, hi, n)


def width_breaks(vmin: float, vmax: float, width: float, offset: float = 0.0) -> np.ndarray:
    """Breaks on the lattice `offset + k * width` that fall inside [vmin, vmax]."""
    if not np.isfinite(width) or width <= 0:
        raise ValueError("break width must be > 0")
    lo, hi = float(min(vmin, vmax)), float(max(vmin, vmax))
    if not (np.isfinite(lo) and np.isfinite(hi)):
        return _empty()
    k0 = int(math.floor((lo - offset) / width))
    k1 = int(math.ceil((hi - offset) / width))
    ticks = offset + np.arange(k0, k1 + 1, dtype=np.float64) * width
    return filter_breaks(ticks, lo, hi)


def filter_breaks(breaks: np.ndarray, lower: float, upper: float) -> np.ndarray:
    arr = np.asarray(breaks, dtype=np.float64)
    arr = arr[np.isfinite(arr)]
    if arr.size == 0:
        return arr
    eps = max(1e-12, abs(upper - lower) * 1e-10)
    mask = (arr >= lower - eps) & (arr <= upper + eps)
    return np.unique(arr[mask])


def regular_minor_breaks(major: np.ndarray, lower: float, upper: float) -> np.ndarray:
    """Midpoints between consecutive majors, extended one step past the outer majors within limits."""
    b = np.sort(np.asarray(major, dtype=np.float64))
    b = b[np.isfinite(b)]
    if b.size < 2:
        return _empty()
    first_step = float(b[1] - b[0])
    last_step = float(b[-1] - b[-2])
    if lower < b[0]:
        b = np.concatenate(([b[0] - first_step], b))
    if upper > b[-1]:
        b = np.concatenate((b, [b[-1] + last_step]))
    mids = (b[:-1] + b[1:]) * 0.5
    return filter_breaks(mids, lower, upper)


def drop_coincident(minor: np.ndarray, major: np.ndarray, *, atol: float) -> np.ndarray:
    if minor.size == 0 or major.size == 0:
        return minor
    close = np.isclose(minor[:, None], major[None, :], rtol=0.0, atol=atol).any(axis=1)
    return minor[~close]


@dataclass(frozen=True)
class BreaksExtended:
    n: int = 5

    def __post_init__(self) -> None:
        if self.n <= 0:
            raise ValueError("n must be > 0")

    def __call__(self, limits: tuple[float, float]) -> np.ndarray:
        return extended_breaks(limits[0], limits[1], self.n)


@dataclass(frozen=True)
class BreaksLog:
    n: int = 5
    base: float = 10.0

    def __post_init__(self) -> None:
        if self.n <= 0:
            raise ValueError("n must be > 0")
        if self.base <= 1:
            raise ValueError("log base must be > 1")

    def __call__(self, limits: tuple[float, float]) -> np.ndarray:
        return log_breaks(limits[0], limits[1], self.n, self.base)


@dataclass(frozen=True)
class BreaksWidth:
    width: float
    offset: float = 0.0

    def __post_init__(self) -> None:
        if not np.isfinite(self.width) or self.width <= 0:
            raise ValueError("break width must be > 0")
        if not np.isfinite(self.offset):
            raise ValueError("break offset must be finite")

    def __call__(self, limits: tuple[float, float]) -> np.ndarray:
        return width_breaks(limits[0], limits[1], self.width, self.offset)


def breaks_extended(n: int = 5) -> BreaksExtended:
    return BreaksExtended(n=n)


def breaks_log(n: int = 5, base: float = 10.0) -> BreaksLog:
    return BreaksLog(n=n, base=base)


def breaks_width(width: float, offset: float = 0.0) -> BreaksWidth:
    return BreaksWidth(width=float(width), offset=float(offset))
