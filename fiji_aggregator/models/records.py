from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional, Tuple

import pandas as pd


ExtractionMode = Literal["table", "log"]
ParseKind = Literal["table", "lines"]


@dataclass(frozen=True)
class MeasurementRecord:
    """
    Measurement values extracted from one source file.

    Structured mode ("table"): one record per kept ROI row, carrying the
    numeric fields verbatim from the results table.

    Free-text mode ("log"): one record per file, carrying every value matched
    in that file (in file order) in ``values``.
    """
    source_path: Path
    mode: ExtractionMode

    label: Optional[str] = None
    area: Optional[float] = None
    mean: Optional[float] = None
    integrated_density: Optional[float] = None
    std_dev: Optional[float] = None
    max: Optional[float] = None
    circularity: Optional[float] = None

    values: Tuple[float, ...] = ()

    def field(self, name: str) -> Optional[float]:
        """Look up a structured field by its results-table column name."""
        attr = TABLE_FIELD_ATTRS.get(name)
        if attr is None:
            raise KeyError(f"Unknown measurement field '{name}'.")
        return getattr(self, attr)


# Results-table column name -> MeasurementRecord attribute
TABLE_FIELD_ATTRS = {
    "Label": "label",
    "Area": "area",
    "Mean": "mean",
    "IntDen": "integrated_density",
    "StdDev": "std_dev",
    "Max": "max",
    "Circ_": "circularity",
}

NUMERIC_TABLE_FIELDS: Tuple[str, ...] = ("Mean", "IntDen", "Area", "StdDev", "Max", "Circ_")


@dataclass(frozen=True)
class StructuredTable:
    """A file that parsed as a delimited table (cells kept as strings)."""
    source_path: Path
    df: pd.DataFrame
    kind: ParseKind = "table"


@dataclass(frozen=True)
class RawLines:
    """A file that could only be read line by line."""
    source_path: Path
    lines: Tuple[str, ...]
    kind: ParseKind = "lines"
