from axis_scales.adapters.normalize import (
    coerce_categories,
    coerce_datetimes,
    coerce_numeric,
    infer_scale_kind,
    iter_columns,
)

__all__ = ["coerce_categories", "coerce_datetimes", "coerce_numeric", "infer_scale_kind", "iter_columns"]
