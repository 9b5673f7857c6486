from __future__ import annotations

import csv
import logging
import re
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from fiji_aggregator.errors import ParseError
from fiji_aggregator.models.records import RawLines, StructuredTable


logger = logging.getLogger(__name__)

# signed decimal, optional exponent: "0.84", "-.5", "+3", "1.2e-3"
_RE_FLOAT = re.compile(r"[+\-]?\d*\.?\d+(?:[eE][+\-]?\d+)?")

ParsedLog = Union[StructuredTable, RawLines]


def read_log(path: str | Path) -> ParsedLog:
    """
    Read a free-text log (e.g. Coloc2 output).

    The file is first parsed as a tab-delimited table without header. When
    that fails (ragged rows, undecodable bytes, empty file) it is re-read as
    plain lines. ParseError is raised only when both attempts fail.

    Blank lines are kept in both variants, so row and line numbers match
    the file.
    """
    fp = Path(path).expanduser().resolve()
    try:
        df = pd.read_csv(
            fp,
            sep="\t",
            header=None,
            dtype=str,
            quoting=csv.QUOTE_NONE,
            keep_default_na=False,
            skip_blank_lines=False,
            engine="python",
        )
        return StructuredTable(source_path=fp, df=df)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, csv.Error) as e:
        logger.debug("Table parse failed for %s (%s); reading lines", fp, type(e).__name__)

    try:
        text = fp.read_text(errors="ignore")
    except OSError as e:
        raise ParseError(f"Failed to read {fp}: {e}") from e
    return RawLines(source_path=fp, lines=tuple(text.splitlines()))


def last_float_token(text: str) -> Optional[float]:
    """Last signed float / scientific-notation token in ``text``, or None."""
    found = _RE_FLOAT.findall(str(text))
    if not found:
        return None
    try:
        return float(found[-1])
    except ValueError:
        return None


def parse_float_token(text: str) -> float:
    """Parse a cell or line into a float; raise ParseError if there is no number."""
    s = str(text).strip()
    try:
        return float(s)
    except ValueError:
        pass
    v = last_float_token(s)
    if v is None:
        raise ParseError(f"No numeric value in {s!r}")
    return v
