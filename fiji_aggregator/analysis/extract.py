"""Measurement extraction: leaf folders -> MeasurementRecords and scalar values.

Two modes, selected by ``AggregationConfig.mode``:

1) ``table`` -- Fiji results tables

   One file per leaf folder: the first file matching ``file_pattern`` whose
   name contains the dataset label (case-insensitive), or the first matching
   file when none does. Rows are kept iff

     - Label contains the dataset label (when one is configured)
     - min_area < Area < max_area
     - Circ_ > min_circ

   A table lacking a required column raises SchemaError; the run is aborted
   rather than returning a partial matrix.

2) ``log`` -- Coloc2 text logs

   Every file matching ``file_pattern`` whose name contains the channel id.
   Each line containing ``marker`` contributes one value: the adjacent table
   cell when the file parsed as a table and the cell is present, otherwise
   the last numeric token in the line. Lines without a usable number are
   reported as warnings and skipped.

Leaves without matching files are skipped with a warning or abort the run,
according to ``ignore_empty_folders``.
"""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from fiji_aggregator.errors import EmptyResultError, ParseError
from fiji_aggregator.ingest.readers_log import ParsedLog, last_float_token, parse_float_token, read_log
from fiji_aggregator.ingest.readers_table import check_required_columns, read_results_table
from fiji_aggregator.models.catalog import Group
from fiji_aggregator.models.config import AggregationConfig
from fiji_aggregator.models.records import NUMERIC_TABLE_FIELDS, TABLE_FIELD_ATTRS, MeasurementRecord


logger = logging.getLogger(__name__)

PCC_FIELD = "PCC"


@dataclass(frozen=True)
class GroupMeasurements:
    """Extraction output for one group.

    values maps a measurement name (``"Mean"``, ``"IntDen"``, ... or ``"PCC"``)
    to the group's raw scalars, in leaf / file / row order.
    """

    group: Group
    records: Tuple[MeasurementRecord, ...] = ()
    values: Dict[str, List[float]] = field(default_factory=dict)
    warnings: Tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# File selection
# ---------------------------------------------------------------------------


def list_measurement_files(folder: str | Path, pattern: str) -> List[Path]:
    """Non-hidden files in ``folder`` matching the glob ``pattern`` (case-insensitive), name order."""
    d = Path(folder)
    pat = pattern.lower()
    out = [
        p for p in d.iterdir()
        if p.is_file() and not p.name.startswith(".") and fnmatch.fnmatchcase(p.name.lower(), pat)
    ]
    return sorted(out, key=lambda p: p.name)


def select_log_files(folder: str | Path, pattern: str, channel_id: str) -> List[Path]:
    needle = channel_id.lower()
    return [p for p in list_measurement_files(folder, pattern) if needle in p.name.lower()]


def select_table_file(folder: str | Path, pattern: str, dataset_label: str = "") -> Optional[Path]:
    files = list_measurement_files(folder, pattern)
    if not files:
        return None
    if dataset_label:
        needle = dataset_label.lower()
        for p in files:
            if needle in p.name.lower():
                return p
    return files[0]


# ---------------------------------------------------------------------------
# Structured table mode
# ---------------------------------------------------------------------------


def _needed_columns(config: AggregationConfig) -> List[str]:
    cols = list(config.required_columns)
    extra = ["Area", "Circ_", config.value_field]
    if config.dataset_label_or_channel_id:
        extra.append("Label")
    for c in extra:
        if c not in cols:
            cols.append(c)
    return cols


def _cell(v: object) -> Optional[float]:
    return None if pd.isna(v) else float(v)


def filter_table_rows(df: pd.DataFrame, config: AggregationConfig) -> pd.DataFrame:
    """Return the rows passing the label, area and circularity filters."""
    area = pd.to_numeric(df["Area"], errors="coerce")
    circ = pd.to_numeric(df["Circ_"], errors="coerce")
    keep = (area > float(config.min_area)) & (area < float(config.max_area)) & (circ > float(config.min_circ))
    label = config.dataset_label_or_channel_id
    if label:
        keep &= df["Label"].fillna("").astype(str).str.contains(label, case=False, regex=False)
    return df.loc[keep.fillna(False).astype(bool)]


def extract_table_records(path: str | Path, config: AggregationConfig) -> List[MeasurementRecord]:
    """Read one results table and return one record per kept row.

    Raises SchemaError when required columns are missing and ParseError when
    the file cannot be read as a table.
    """
    fp = Path(path)
    df = read_results_table(fp)
    check_required_columns(df, _needed_columns(config), fp)

    kept = filter_table_rows(df, config)
    numeric = {
        c: pd.to_numeric(kept[c], errors="coerce")
        for c in NUMERIC_TABLE_FIELDS
        if c in kept.columns
    }
    records: List[MeasurementRecord] = []
    for idx in kept.index:
        kwargs = {TABLE_FIELD_ATTRS[c]: _cell(s.loc[idx]) for c, s in numeric.items()}
        if "Label" in kept.columns:
            lab = kept.at[idx, "Label"]
            kwargs["label"] = None if pd.isna(lab) else str(lab)
        records.append(MeasurementRecord(source_path=fp.resolve(), mode="table", **kwargs))
    return records


# ---------------------------------------------------------------------------
# Free-text log mode
# ---------------------------------------------------------------------------


def _line_value(line: str) -> float:
    v = last_float_token(line)
    if v is None:
        raise ParseError(f"No numeric value in line {line.strip()!r}")
    return v


def extract_marker_values(parsed: ParsedLog, marker: str) -> Tuple[List[float], List[str]]:
    """
    Values on every line containing ``marker`` (case-insensitive), in file order.

    Returns ``(values, warnings)``; lines whose number cannot be extracted
    produce a warning instead of a value.
    """
    needle = marker.lower()
    values: List[float] = []
    warnings: List[str] = []

    def _take(getter, lineno: int) -> None:
        try:
            values.append(getter())
        except ParseError as e:
            msg = f"{parsed.source_path.name} line {lineno}: {e}"
            warnings.append(msg)
            logger.warning(msg)

    if parsed.kind == "table":
        for lineno, row in enumerate(parsed.df.itertuples(index=False), start=1):
            cells = ["" if pd.isna(c) else str(c).strip() for c in row]
            hit = next((i for i, c in enumerate(cells) if needle in c.lower()), None)
            if hit is None:
                continue
            line = "\t".join(c for c in cells if c)
            if hit + 1 < len(cells) and cells[hit + 1]:
                adjacent = cells[hit + 1]
                _take(lambda: parse_float_token(adjacent), lineno)
            else:
                _take(lambda: _line_value(line), lineno)
    else:
        for lineno, line in enumerate(parsed.lines, start=1):
            if needle in line.lower():
                _take(lambda: _line_value(line), lineno)
    return values, warnings


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class MeasurementExtractor:
    """
    Extract measurements for every leaf folder of a group.

    The extractor never aborts on a single unreadable file or line; it does
    abort on schema violations and, unless ``ignore_empty_folders`` is set,
    on leaves without matching files.
    """

    def __init__(self, config: AggregationConfig):
        self.config = config.validate()

    def extract_group(self, group: Group) -> GroupMeasurements:
        if self.config.mode == "log":
            return self._extract_log_group(group)
        return self._extract_table_group(group)

    def extract_all(self, groups: Sequence[Group]) -> List[GroupMeasurements]:
        return [self.extract_group(g) for g in groups]

    def _empty_leaf(self, leaf: Path, warnings: List[str]) -> None:
        if not self.config.ignore_empty_folders:
            raise EmptyResultError(
                f"No measurement files matching '{self.config.file_pattern}' in '{leaf}'."
            )
        msg = f"Skipping empty folder: {leaf}"
        warnings.append(msg)
        logger.warning(msg)

    def _extract_table_group(self, group: Group) -> GroupMeasurements:
        cfg = self.config
        warnings: List[str] = []
        records: List[MeasurementRecord] = []
        for leaf in group.leaves:
            chosen = select_table_file(leaf, cfg.file_pattern, cfg.dataset_label_or_channel_id)
            if chosen is None:
                self._empty_leaf(leaf, warnings)
                continue
            logger.info("Reading: %s", chosen)
            try:
                rows = extract_table_records(chosen, cfg)
            except ParseError as e:
                warnings.append(str(e))
                logger.warning("%s", e)
                continue
            if not rows:
                warnings.append(f"No ROIs matched the selection criteria in {chosen}")
            records.extend(rows)

        values = {name: [r.field(name) for r in records] for name in NUMERIC_TABLE_FIELDS}
        values = {k: [float("nan") if v is None else v for v in vs] for k, vs in values.items()}
        return GroupMeasurements(group=group, records=tuple(records), values=values, warnings=tuple(warnings))

    def _extract_log_group(self, group: Group) -> GroupMeasurements:
        cfg = self.config
        warnings: List[str] = []
        records: List[MeasurementRecord] = []
        pcc: List[float] = []
        for leaf in group.leaves:
            files = select_log_files(leaf, cfg.file_pattern, cfg.dataset_label_or_channel_id)
            if not files:
                self._empty_leaf(leaf, warnings)
                continue
            for fp in files:
                try:
                    parsed = read_log(fp)
                except ParseError as e:
                    warnings.append(str(e))
                    logger.warning("%s", e)
                    continue
                found, line_warnings = extract_marker_values(parsed, cfg.marker)
                warnings.extend(line_warnings)
                if found:
                    records.append(MeasurementRecord(source_path=parsed.source_path, mode="log", values=tuple(found)))
                    pcc.extend(found)
        return GroupMeasurements(group=group, records=tuple(records), values={PCC_FIELD: pcc}, warnings=tuple(warnings))
