from axis_scales.binned import BinnedScale
from axis_scales.breaks import breaks_extended, breaks_log, breaks_width, extended_breaks, log_breaks, width_breaks
from axis_scales.config import AUTO, ScaleConfig, config_from_dict, load_config
from axis_scales.dates import breaks_date, date_breaks
from axis_scales.discrete import DiscreteScale
from axis_scales.engine import ScaleEngine
from axis_scales.errors import ScaleConfigError, ScaleDataError, ScaleError
from axis_scales.expansion import Expansion, expand_range, expansion
from axis_scales.labels import (
    label_bytes,
    label_comma,
    label_date,
    label_date_short,
    label_dollar,
    label_number,
    label_ordinal,
    label_percent,
    label_scientific,
)
from axis_scales.ranges import Range, union_categories, union_ranges
from axis_scales.scale import Break, ContinuousScale, DateTimeScale, ResolvedScale, Scale, make_scale
from axis_scales.transforms import Transform, exp_transform, log_transform, transform_by_name
from axis_scales.window import Viewport

__all__ = [
    "AUTO",
    "BinnedScale",
    "Break",
    "ContinuousScale",
    "DateTimeScale",
    "DiscreteScale",
    "Expansion",
    "Range",
    "ResolvedScale",
    "Scale",
    "ScaleConfig",
    "ScaleConfigError",
    "ScaleDataError",
    "ScaleEngine",
    "ScaleError",
    "Transform",
    "Viewport",
    "breaks_date",
    "breaks_extended",
    "breaks_log",
    "breaks_width",
    "config_from_dict",
    "date_breaks",
    "exp_transform",
    "expand_range",
    "expansion",
    "extended_breaks",
    "label_bytes",
    "label_comma",
    "label_date",
    "label_date_short",
    "label_dollar",
    "label_number",
    "label_ordinal",
    "label_percent",
    "label_scientific",
    "load_config",
    "log_breaks",
    "log_transform",
    "make_scale",
    "transform_by_name",
    "union_categories",
    "union_ranges",
    "width_breaks",
]
