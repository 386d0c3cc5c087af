from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
from typing import Any

import numpy as np

from axis_scales.adapters.normalize import coerce_categories
from axis_scales.config import AUTO, is_empty_spec
from axis_scales.errors import ScaleConfigError, ScaleDataError
from axis_scales.ranges import Range, union_categories
from axis_scales.scale import ResolvedScale, Scale
from axis_scales.window import Viewport

LOGGER = logging.getLogger(__name__)


def default_categories(values: Sequence[Any]) -> tuple[Any, ...]:
    """Sorted unique values, or first-appearance order when they do not sort."""
    unique = union_categories([[v for v in values if v is not None]])
    try:
        return tuple(sorted(unique))
    except TypeError:
        return unique


class DiscreteScale(Scale):
    """Categories mapped to positions 1..n in category order."""

    kind = "discrete"

    def train(self, values: Any) -> tuple[Any, ...]:
        items, declared = coerce_categories(values, label=self.aesthetic)
        if declared is not None:
            return declared
        return default_categories(items)

    def categories(self, items: Sequence[Any], declared: tuple[Any, ...] | None, trained: Sequence[Any] | None) -> tuple[Any, ...]:
        if self.config.limits is not None:
            return tuple(self.config.limits)
        if trained is not None:
            return tuple(trained)
        if declared is not None:
            return declared
        return default_categories(items)

    def resolve(
        self,
        values: Any,
        *,
        trained: Sequence[Any] | None = None,
        window: Viewport | None = None,
    ) -> ResolvedScale:
        items, declared = coerce_categories(values, label=self.aesthetic)
        categories = self.categories(items, declared, trained)
        if not categories:
            raise ScaleDataError(f"{self.aesthetic}: cannot resolve a discrete scale without categories")
        LOGGER.debug("%s: %d categories", self.aesthetic, len(categories))

        index = {category: i + 1 for i, category in enumerate(categories)}
        positions = np.full(len(items), np.nan, dtype=np.float64)
        unknown = 0
        for i, item in enumerate(items):
            if item is None:
                continue
            pos = index.get(item)
            if pos is None:
                unknown += 1
                continue
            positions[i] = pos

        warnings: list[str] = []
        if unknown:
            warnings.append(self._warn(f"removed {unknown} values not in the scale categories"))

        rng = Range(1.0, float(len(categories)))
        display = window.as_range() if window is not None else self.expansion.apply(rng)
        keep = window.as_range() if window is not None else None

        breaks = self.select_breaks(categories, keep)
        break_positions = tuple(float(index[b]) for b in breaks)
        labels = self.labels_for(breaks)
        return ResolvedScale(
            aesthetic=self.aesthetic,
            kind=self.kind,
            transform="identity",
            limits=categories,
            continuous_range=rng,
            display_range=display,
            breaks=breaks,
            break_positions=break_positions,
            labels=labels,
            minor_breaks=(),
            positions=positions,
            n_dropped=unknown,
            n_invalid=0,
            warnings=tuple(warnings),
            categories=categories,
            window=window,
        )

    def select_breaks(self, categories: tuple[Any, ...], keep: Range | None) -> tuple[Any, ...]:
        spec = self.config.breaks
        if is_empty_spec(spec):
            return ()
        if spec is AUTO:
            wanted = categories
        else:
            chosen = spec(categories) if callable(spec) else spec
            requested = set(chosen)
            wanted = tuple(c for c in categories if c in requested)
        if keep is None:
            return wanted
        return tuple(c for i, c in enumerate(categories, start=1) if c in wanted and keep.lower <= i <= keep.upper)

    def labels_for(self, breaks: tuple[Any, ...]) -> tuple[str, ...]:
        spec = self.config.labels
        labeler = self.config.labeler()
        if labeler is not None:
            return self._apply_labeler(labeler, list(breaks), len(breaks)) if breaks else ()
        if spec is AUTO:
            return tuple(str(b) for b in breaks)
        if is_empty_spec(spec):
            return ("",) * len(breaks)
        if isinstance(spec, Mapping):
            return tuple(str(spec.get(b, b)) for b in breaks)
        return self._sequence_labels(spec, breaks)

    def _sequence_labels(self, spec: Sequence[Any], breaks: tuple[Any, ...]) -> tuple[str, ...]:
        # Explicit labels pair with the explicit breaks (or the limits) in the order given.
        source = self.config.breaks if self.config.breaks is not AUTO and not callable(self.config.breaks) else None
        if source is None and self.config.limits is not None:
            source = self.config.limits
        if source is not None:
            if len(spec) != len(source):
                raise ScaleConfigError(f"{self.aesthetic}: labels has {len(spec)} entries but breaks has {len(source)}")
            lookup = {b: str(label) for b, label in zip(source, spec)}
            return tuple(lookup[b] for b in breaks)
        if len(spec) != len(breaks):
            raise ScaleConfigError(f"{self.aesthetic}: labels has {len(spec)} entries but there are {len(breaks)} breaks")
        return tuple(str(label) for label in spec)
