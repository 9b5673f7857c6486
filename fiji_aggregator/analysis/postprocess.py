"""Optional per-column post-processing of aggregation matrices.

Both steps work on every column independently and only look at that
column's own non-NaN values:

1) Outlier trim: values strictly outside the [10th, 90th] percentile window
   become NaN. Percentiles use the midpoint ("hazen") definition, where the
   k-th of n sorted values sits at 100 * (k - 0.5) / n, clamped to the
   column min and max. Two values are therefore never outliers.
2) Rescale: linear map of the column onto [0, 1] using its own min and max.
   NaN passes through, an all-NaN column is left untouched, a constant
   column maps to 0.

When both are enabled the trim runs first, so the rescale range is taken
from the trimmed column.
"""

from __future__ import annotations

from dataclasses import replace

import numpy as np

from fiji_aggregator.models.results import AggregationMatrix


OUTLIER_PERCENTILES = (10.0, 90.0)


def _as_2d(values: np.ndarray) -> np.ndarray:
    a = np.array(values, dtype=float, copy=True)
    if a.ndim == 1:
        a = a[:, None]
    if a.ndim != 2:
        raise ValueError(f"Expected 1D or 2D array, got shape {a.shape}")
    return a


def trim_outliers(
    values: np.ndarray,
    lower: float = OUTLIER_PERCENTILES[0],
    upper: float = OUTLIER_PERCENTILES[1],
) -> np.ndarray:
    """Replace per-column values outside the [lower, upper] percentiles with NaN."""
    was_1d = np.ndim(values) == 1
    a = _as_2d(values)
    for j in range(a.shape[1]):
        col = a[:, j]
        ok = np.isfinite(col)
        if not np.any(ok):
            continue
        lo, hi = np.percentile(col[ok], [lower, upper], method="hazen")
        out = ok & ((col < lo) | (col > hi))
        col[out] = np.nan
    return a[:, 0] if was_1d else a


def rescale_columns(values: np.ndarray) -> np.ndarray:
    """Map each column's non-NaN values linearly onto [0, 1]."""
    was_1d = np.ndim(values) == 1
    a = _as_2d(values)
    for j in range(a.shape[1]):
        col = a[:, j]
        ok = np.isfinite(col)
        if not np.any(ok):
            continue
        lo = float(np.min(col[ok]))
        hi = float(np.max(col[ok]))
        span = hi - lo
        if span > 0:
            col[ok] = (col[ok] - lo) / span
        else:
            col[ok] = 0.0
    return a[:, 0] if was_1d else a


def postprocess(matrix: AggregationMatrix, *, remove_outliers: bool, rescale: bool) -> AggregationMatrix:
    """Apply the enabled steps (trim before rescale) and return a new matrix."""
    vals = matrix.values
    if remove_outliers:
        vals = trim_outliers(vals)
    if rescale:
        vals = rescale_columns(vals)
    if vals is matrix.values:
        return matrix
    return replace(matrix, values=vals)
