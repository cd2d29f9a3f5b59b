from sherlok.data.pipeline import (
    DERIVED_FEATURES,
    MinMaxScale,
    NormalizedBatch,
    add_derived_features,
    denormalize,
    normalize,
    parse,
    strip_derived_features,
)

__all__ = [
    "DERIVED_FEATURES",
    "MinMaxScale",
    "NormalizedBatch",
    "add_derived_features",
    "denormalize",
    "normalize",
    "parse",
    "strip_derived_features",
]
