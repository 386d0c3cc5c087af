from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
import logging
from pathlib import Path
from typing import Any

from axis_scales.adapters.normalize import infer_scale_kind, iter_columns
from axis_scales.config import ScaleConfig, load_config
from axis_scales.discrete import DiscreteScale
from axis_scales.errors import ScaleDataError
from axis_scales.ranges import union_categories, union_ranges
from axis_scales.scale import ResolvedScale, Scale, make_scale
from axis_scales.window import Viewport

LOGGER = logging.getLogger(__name__)


class ScaleEngine:
    """Resolves every aesthetic of a layer (or of many panels) against its config.

    Aesthetics without a config get a default scale inferred from their values.
    """

    def __init__(self, configs: Mapping[str, ScaleConfig] | None = None) -> None:
        self.configs: dict[str, ScaleConfig] = dict(configs or {})

    @classmethod
    def from_file(cls, path: str | Path) -> "ScaleEngine":
        return cls(load_config(path))

    def scale_for(self, aesthetic: str, values: Any = None) -> Scale:
        config = self.configs.get(aesthetic)
        if config is None:
            if values is None:
                raise ScaleDataError(f"no config and no values for aesthetic `{aesthetic}`")
            kind = infer_scale_kind(values)
            LOGGER.debug("%s: inferred %s scale", aesthetic, kind)
            config = ScaleConfig(kind=kind)
        return make_scale(aesthetic, config)

    def resolve(
        self,
        data: Any,
        *,
        windows: Mapping[str, Viewport] | None = None,
    ) -> dict[str, ResolvedScale]:
        windows = windows or {}
        out: dict[str, ResolvedScale] = {}
        for aesthetic, values in iter_columns(data):
            scale = self.scale_for(aesthetic, values)
            out[aesthetic] = scale.resolve(values, window=windows.get(aesthetic))
        return out

    def resolve_panels(
        self,
        panels: Sequence[Any],
        *,
        shared: Iterable[str] = (),
    ) -> list[dict[str, ResolvedScale]]:
        """Resolve each panel; aesthetics in `shared` train on the union of all panels first."""
        columns = [dict(iter_columns(panel)) for panel in panels]
        scales: dict[str, Scale] = {}
        for panel in columns:
            for aesthetic, values in panel.items():
                if aesthetic not in scales:
                    scales[aesthetic] = self.scale_for(aesthetic, values)

        trained: dict[str, Any] = {}
        for aesthetic in shared:
            scale = scales.get(aesthetic)
            if scale is None:
                LOGGER.debug("shared aesthetic `%s` is not present in any panel", aesthetic)
                continue
            per_panel = [scale.train(panel[aesthetic]) for panel in columns if aesthetic in panel]
            if isinstance(scale, DiscreteScale):
                trained[aesthetic] = union_categories(per_panel)
            else:
                trained[aesthetic] = union_ranges(per_panel)
            LOGGER.debug("%s: shared training over %d panels", aesthetic, len(per_panel))

        results: list[dict[str, ResolvedScale]] = []
        for panel in columns:
            resolved: dict[str, ResolvedScale] = {}
            for aesthetic, values in panel.items():
                resolved[aesthetic] = scales[aesthetic].resolve(values, trained=trained.get(aesthetic))
            results.append(resolved)
        return results
