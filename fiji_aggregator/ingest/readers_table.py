"""
Reader for Fiji "Analyze > Measure" results tables.

Fiji exports results either as comma-separated CSV or as tab-separated TXT,
usually with an unnamed leading index column. The delimiter is sniffed.

Header names are normalised the way table importers sanitise variable names:
every character outside ``[0-9A-Za-z_]`` becomes ``_`` (``Circ.`` -> ``Circ_``,
``%Area`` -> ``_Area``), so callers always see the canonical names
``Label, Area, Mean, IntDen, StdDev, Max, Circ_``.
"""

from __future__ import annotations

import csv
import re
from pathlib import Path
from typing import List, Sequence

import pandas as pd

from fiji_aggregator.errors import ParseError, SchemaError


_RE_BAD_HEADER_CHARS = re.compile(r"[^0-9A-Za-z_]")


def normalize_header(name: object) -> str:
    return _RE_BAD_HEADER_CHARS.sub("_", str(name).strip())


def read_results_table(path: str | Path) -> pd.DataFrame:
    """Parse a results table; raise ParseError if the file is not a readable table."""
    fp = Path(path).expanduser().resolve()
    try:
        df = pd.read_csv(fp, sep=None, engine="python")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, csv.Error, OSError) as e:
        raise ParseError(f"Failed to read table {fp}: {type(e).__name__}: {e}") from e
    df.columns = [normalize_header(c) for c in df.columns]
    return df


def check_required_columns(df: pd.DataFrame, required: Sequence[str], source: str | Path = "") -> None:
    """Raise SchemaError listing every required column absent from ``df``."""
    present = set(df.columns)
    missing: List[str] = [c for c in required if c not in present]
    if missing:
        where = f" in {source}" if source else ""
        raise SchemaError(f"Missing required columns{where}: {', '.join(missing)}")
