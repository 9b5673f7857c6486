from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from fiji_aggregator.models.catalog import Group
from fiji_aggregator.models.records import MeasurementRecord

if TYPE_CHECKING:
    from fiji_aggregator.models.config import AggregationConfig


@dataclass(frozen=True)
class AggregationMatrix:
    """Rectangular observations x groups matrix.

    Attributes
    ----------
    values:
        Float array of shape ``(L, N)``; L is the largest group size of the
        run and N the number of surviving groups. Unused cells are NaN.
    labels:
        Column labels, one per group (folder basenames).
    sources:
        Group root folder per column.
    name:
        Measurement name (e.g. ``"Mean"``, ``"IntDen"``, ``"PCC"``).
    """

    values: np.ndarray
    labels: Tuple[str, ...]
    sources: Tuple[Path, ...] = ()
    name: str = ""

    @property
    def n_rows(self) -> int:
        return int(self.values.shape[0])

    @property
    def n_cols(self) -> int:
        return int(self.values.shape[1])

    def column(self, label: str) -> np.ndarray:
        """Return the column for a group label (first match)."""
        try:
            k = self.labels.index(label)
        except ValueError:
            raise KeyError(f"No column labelled '{label}' in matrix '{self.name}'.") from None
        return self.values[:, k]

    def to_frame(self) -> pd.DataFrame:
        """Return a DataFrame (one column per group). Duplicate labels are de-duplicated."""
        cols: List[str] = []
        seen: Dict[str, int] = {}
        for lab in self.labels:
            n = seen.get(lab, 0)
            cols.append(lab if n == 0 else f"{lab}_{n}")
            seen[lab] = n + 1
        df = pd.DataFrame(self.values, columns=cols)
        df.index.name = "observation"
        return df


@dataclass(frozen=True)
class AggregationResult:
    """Everything a run hands to the presentation layer.

    Attributes
    ----------
    matrix:
        The primary matrix (``value_field`` in table mode, PCC in log mode),
        after optional post-processing.
    matrices:
        All matrices built in this run, keyed by measurement name.
    groups:
        Surviving groups in column order.
    records:
        Extracted MeasurementRecords per group root, in extraction order.
    warnings:
        Non-fatal diagnostics collected during discovery and extraction.
    config:
        The configuration that produced this result.
    """

    matrix: AggregationMatrix
    matrices: Dict[str, AggregationMatrix]
    groups: Tuple[Group, ...]
    records: Dict[Path, Tuple[MeasurementRecord, ...]] = field(default_factory=dict)
    warnings: Tuple[str, ...] = ()
    config: Optional["AggregationConfig"] = None

    @property
    def labels(self) -> Tuple[str, ...]:
        return self.matrix.labels

    def n_observations(self) -> Dict[str, int]:
        """Non-NaN observation count per group label of the primary matrix."""
        counts = np.sum(np.isfinite(self.matrix.values), axis=0)
        return {lab: int(c) for lab, c in zip(self.matrix.labels, counts)}
