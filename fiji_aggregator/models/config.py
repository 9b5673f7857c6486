"""Aggregation configuration -- bundles every parameter that affects a run.

An AggregationConfig groups the whole configuration surface of one
aggregation run into one frozen dataclass. It can be:

- Built from one of the two presets (Coloc2 logs, Fiji results tables)
- Overridden field-by-field via ``dataclasses.replace()``
- Serialized to/from a dict for JSON provenance

There are no interactive prompts: a missing root folder or channel id fails
fast with :class:`~fiji_aggregator.errors.ConfigError` in :meth:`validate`.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from fiji_aggregator.errors import ConfigError
from fiji_aggregator.models.catalog import SelectorSpec
from fiji_aggregator.models.records import NUMERIC_TABLE_FIELDS


REQUIRED_TABLE_COLUMNS: Tuple[str, ...] = ("Label", "Area", "Mean", "IntDen", "StdDev", "Max", "Circ_")
PEARSON_MARKER = "Pearson's R value (no threshold)"

_MODES = ("table", "log")
_LAYOUTS = ("nested", "flat")


@dataclass(frozen=True)
class AggregationConfig:
    """Frozen configuration for one aggregation run.

    Required fields
    ---------------
    root_path : str or Path
        Condition folder to scan.
    strict_selector : bool
        Selectors must match at the start of the folder name.
    ignore_empty_folders : bool
        Skip (with a warning) leaves without matching files and groups without
        leaves instead of aborting the run. The two original use cases disagree
        on the default, so it has none.

    Optional fields
    ---------------
    mode : str
        ``"table"`` (Fiji results tables) or ``"log"`` (Coloc2 text logs).
    layout : str
        ``"nested"``: root/<group>/<subfolder>/<leaf>. ``"flat"``: every folder
        up to depth 3 matching ``file_selector`` is a group of its own.
    folder_selector, subfolder_selector, file_selector : str
        Regexes for levels 1, 2 and 3. ``subfolder_selector=None`` disables
        level-2 gating.
    file_pattern : str
        Glob for measurement files inside a leaf folder.
    dataset_label_or_channel_id : str
        Table mode: ROI label substring (empty keeps all rows). Log mode:
        file id that coloc file names must contain (required).
    min_area, max_area, min_circ : float
        ROI filters for table mode (exclusive bounds).
    rescale, remove_outliers : bool
        Post-processing switches, applied independently.
    marker : str
        Log mode: line marker preceding the value.
    value_field : str
        Table mode: column used for the primary matrix.
    required_columns : tuple of str
        Table mode: columns that must be present.
    """

    root_path: Any
    strict_selector: bool
    ignore_empty_folders: bool

    mode: str = "table"
    layout: str = "nested"

    folder_selector: str = "res"
    subfolder_selector: Optional[str] = None
    file_selector: str = "res"

    file_pattern: str = "*.txt"
    dataset_label_or_channel_id: str = ""

    min_area: float = 20.0
    max_area: float = 200.0
    min_circ: float = 0.10

    rescale: bool = False
    remove_outliers: bool = False

    marker: str = PEARSON_MARKER
    value_field: str = "Mean"
    required_columns: Tuple[str, ...] = REQUIRED_TABLE_COLUMNS

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    @classmethod
    def for_coloc2(
        cls,
        root_path: Any,
        channel_id: str,
        *,
        strict_selector: bool,
        ignore_empty_folders: bool,
        **overrides: Any,
    ) -> AggregationConfig:
        """Coloc2 log layout: root/res*/Process*/coloc2*/coloc_*<channel_id>*."""
        base: Dict[str, Any] = dict(
            root_path=root_path,
            strict_selector=strict_selector,
            ignore_empty_folders=ignore_empty_folders,
            mode="log",
            layout="nested",
            folder_selector="res",
            subfolder_selector="Process",
            file_selector="coloc2",
            file_pattern="coloc_*",
            dataset_label_or_channel_id=channel_id,
        )
        base.update(overrides)
        return cls.from_dict(base)

    @classmethod
    def for_fiji_table(
        cls,
        root_path: Any,
        dataset_label: str = "",
        *,
        strict_selector: bool,
        ignore_empty_folders: bool,
        **overrides: Any,
    ) -> AggregationConfig:
        """Fiji results tables: every folder up to depth 3 matching 'res' is a group."""
        base: Dict[str, Any] = dict(
            root_path=root_path,
            strict_selector=strict_selector,
            ignore_empty_folders=ignore_empty_folders,
            mode="table",
            layout="flat",
            file_selector="res",
            file_pattern="*.txt",
            dataset_label_or_channel_id=dataset_label,
        )
        base.update(overrides)
        return cls.from_dict(base)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @property
    def root(self) -> Path:
        return Path(self.root_path).expanduser()

    def selectors(self) -> Tuple[SelectorSpec, Optional[SelectorSpec], SelectorSpec]:
        """(folder, subfolder, file) selector specs sharing the strict flag."""
        strict = bool(self.strict_selector)
        sub = None if self.subfolder_selector is None else SelectorSpec(self.subfolder_selector, strict)
        return (
            SelectorSpec(self.folder_selector, strict),
            sub,
            SelectorSpec(self.file_selector, strict),
        )

    def validate(self) -> AggregationConfig:
        """Raise ConfigError for absent or inconsistent parameters; return self."""
        if self.root_path is None or str(self.root_path).strip() == "":
            raise ConfigError("root_path is required (no folder picker is available).")
        if not isinstance(self.strict_selector, bool):
            raise ConfigError("strict_selector must be set explicitly to True or False.")
        if not isinstance(self.ignore_empty_folders, bool):
            raise ConfigError("ignore_empty_folders must be set explicitly to True or False.")
        if self.mode not in _MODES:
            raise ConfigError(f"Unknown mode '{self.mode}' (expected one of {_MODES}).")
        if self.layout not in _LAYOUTS:
            raise ConfigError(f"Unknown layout '{self.layout}' (expected one of {_LAYOUTS}).")
        if not self.file_pattern:
            raise ConfigError("file_pattern must not be empty.")

        # compiles every selector; raises ConfigError on a bad regex
        self.selectors()

        if self.mode == "log":
            if not str(self.dataset_label_or_channel_id or "").strip():
                raise ConfigError("dataset_label_or_channel_id (file id) is required to identify coloc files.")
            if not str(self.marker or "").strip():
                raise ConfigError("marker is required in log mode.")
        else:
            for name, v in (("min_area", self.min_area), ("max_area", self.max_area), ("min_circ", self.min_circ)):
                try:
                    ok = math.isfinite(float(v))
                except (TypeError, ValueError):
                    ok = False
                if not ok:
                    raise ConfigError(f"{name} must be a finite number, got {v!r}.")
            if float(self.min_area) >= float(self.max_area):
                raise ConfigError(f"min_area ({self.min_area}) must be smaller than max_area ({self.max_area}).")
            if self.value_field not in NUMERIC_TABLE_FIELDS:
                raise ConfigError(f"value_field '{self.value_field}' is not one of {NUMERIC_TABLE_FIELDS}.")
            if not self.required_columns:
                raise ConfigError("required_columns must not be empty.")
        return self

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly dict (paths become strings, tuples become lists)."""
        d = asdict(self)
        d["root_path"] = None if self.root_path is None else str(self.root_path)
        d["required_columns"] = list(d["required_columns"])
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> AggregationConfig:
        """Reconstruct from a dict (e.g. loaded from JSON)."""
        d = dict(d)  # shallow copy
        missing = [k for k in ("root_path", "strict_selector", "ignore_empty_folders") if k not in d]
        if missing:
            raise ConfigError(f"Missing required configuration keys: {', '.join(missing)}")
        if "required_columns" in d and not isinstance(d["required_columns"], tuple):
            d["required_columns"] = tuple(d["required_columns"])
        unknown = set(d) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return cls(**d)
