from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Sequence

import numpy as np

from fiji_aggregator.errors import EmptyResultError
from fiji_aggregator.models.results import AggregationMatrix


def canonicalize_zeros(values: np.ndarray) -> np.ndarray:
    """Return a float copy of ``values`` with exact zeros replaced by NaN.

    Upstream measurement exports write 0 for "not measured", so a zero is
    never a legitimate observation here.
    """
    out = np.array(values, dtype=float, copy=True)
    out[out == 0.0] = np.nan
    return out


def build_matrix(
    group_values: Mapping[object, Sequence[float]],
    *,
    labels: Optional[Sequence[str]] = None,
    name: str = "",
) -> AggregationMatrix:
    """NaN-padded ``(L, N)`` matrix from per-group value lists.

    Parameters
    ----------
    group_values:
        Ordered mapping group -> values; one column per key, in key order.
        Keys that are paths become the matrix ``sources``.
    labels:
        Optional column labels; defaults to the key basenames / strings.
    name:
        Measurement name stored on the matrix.

    Raises
    ------
    EmptyResultError
        If every group's value list is empty (or there are no groups).
    """
    keys = list(group_values.keys())
    cols = [np.asarray(list(group_values[k]), dtype=float).ravel() for k in keys]
    L = max((c.size for c in cols), default=0)
    if L == 0:
        raise EmptyResultError(f"No values extracted for '{name or 'matrix'}' in any group.")

    mat = np.full((L, len(cols)), np.nan, dtype=float)
    for j, c in enumerate(cols):
        mat[: c.size, j] = c
    mat = canonicalize_zeros(mat)

    if labels is None:
        labels = [k.name if isinstance(k, Path) else str(k) for k in keys]
    elif len(labels) != len(keys):
        raise ValueError(f"labels length {len(labels)} does not match group count {len(keys)}")
    sources = tuple(k for k in keys if isinstance(k, Path))
    return AggregationMatrix(
        values=mat,
        labels=tuple(str(x) for x in labels),
        sources=sources if len(sources) == len(keys) else (),
        name=name,
    )
