from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from fiji_aggregator.analysis.pipeline import run_aggregation
from fiji_aggregator.errors import AggregationError, ConfigError
from fiji_aggregator.models.config import AggregationConfig
from fiji_aggregator.models.results import AggregationResult


_BOOL_TRUE = {"true", "1", "yes", "on"}
_BOOL_FALSE = {"false", "0", "no", "off"}


def _parse_bool(v: Optional[str]) -> Optional[bool]:
    if v is None:
        return None
    vv = str(v).strip().lower()
    if vv in _BOOL_TRUE:
        return True
    if vv in _BOOL_FALSE:
        return False
    raise ConfigError(f"Expected a boolean (true/false), got {v!r}")


def _load_config_file(path: str | Path) -> Dict[str, Any]:
    p = Path(path).expanduser()
    if not p.exists() or not p.is_file():
        raise ConfigError(f"Config file not found: {p}")
    try:
        d = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file {p} is not valid JSON: {e}") from e
    if not isinstance(d, dict):
        raise ConfigError(f"Config file {p} must contain a JSON object.")
    return d


def write_outputs(result: AggregationResult, out_dir: str | Path) -> Dict[str, Path]:
    """Write one CSV per matrix plus a JSON sidecar with the configuration."""
    out = Path(out_dir).expanduser()
    out.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}
    for name, mat in result.matrices.items():
        fp = out / f"{name}.csv"
        mat.to_frame().to_csv(fp)
        written[name] = fp
    meta = {
        "config": result.config.to_dict() if result.config is not None else None,
        "groups": [str(g.root) for g in result.groups],
        "n_observations": result.n_observations(),
        "warnings": list(result.warnings),
    }
    fp = out / "aggregation.json"
    fp.write_text(json.dumps(meta, indent=2), encoding="utf-8")
    written["metadata"] = fp
    return written


def config_from_args(ns: Any) -> AggregationConfig:
    d: Dict[str, Any] = _load_config_file(ns.config) if ns.config else {}
    cli: Dict[str, Any] = dict(
        root_path=ns.root,
        mode=ns.mode,
        layout=ns.layout,
        folder_selector=ns.folder_selector,
        subfolder_selector=ns.subfolder_selector,
        file_selector=ns.file_selector,
        strict_selector=_parse_bool(ns.strict_selector),
        ignore_empty_folders=_parse_bool(ns.ignore_empty_folders),
        file_pattern=ns.file_pattern,
        dataset_label_or_channel_id=ns.label,
        min_area=ns.min_area,
        max_area=ns.max_area,
        min_circ=ns.min_circ,
        marker=ns.marker,
        value_field=ns.value_field,
        rescale=_parse_bool(ns.rescale),
        remove_outliers=_parse_bool(ns.remove_outliers),
    )
    d.update({k: v for k, v in cli.items() if v is not None})
    return AggregationConfig.from_dict(d).validate()


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse
    import textwrap

    p = argparse.ArgumentParser(
        prog="fiji-aggregate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Aggregate per-folder Fiji measurement exports into NaN-padded matrices.

            mode=table reads Fiji results tables (Label, Area, Mean, IntDen, StdDev, Max, Circ.).
            mode=log reads Coloc2 text logs and extracts Pearson's R values.
            Options not given on the command line are taken from --config (JSON).
            """
        ),
    )

    p.add_argument("root", nargs="?", default=None, help="Condition folder to scan")
    p.add_argument("--config", default=None, help="JSON file with AggregationConfig fields")
    p.add_argument("--mode", choices=("table", "log"), default=None, help="Extraction mode")
    p.add_argument("--layout", choices=("nested", "flat"), default=None, help="Folder layout")
    p.add_argument("--folder-selector", default=None, help="Regex for level-1 group folders")
    p.add_argument("--subfolder-selector", default=None, help="Regex for level-2 folders")
    p.add_argument("--file-selector", default=None, help="Regex for leaf folders")
    p.add_argument("--strict-selector", default=None, help="true/false: selectors must match at name start")
    p.add_argument("--ignore-empty-folders", default=None, help="true/false: skip empty folders instead of failing")
    p.add_argument("--file-pattern", default=None, help="Glob for measurement files inside leaf folders")
    p.add_argument("--label", default=None, help="Dataset label (table mode) or channel/file id (log mode)")
    p.add_argument("--min-area", type=float, default=None)
    p.add_argument("--max-area", type=float, default=None)
    p.add_argument("--min-circ", type=float, default=None)
    p.add_argument("--marker", default=None, help="Log mode: marker text preceding the value")
    p.add_argument("--value-field", default=None, help="Table mode: column of the primary matrix")
    p.add_argument("--rescale", default=None, help="true/false: rescale every column to [0, 1]")
    p.add_argument("--remove-outliers", default=None, help="true/false: NaN-out values outside the 10-90th percentiles")
    p.add_argument("--out-dir", default=None, help="Output directory (default: <root>/aggregation_out)")
    p.add_argument("-v", "--verbose", action="store_true", help="Print progress messages")

    ns = p.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.INFO if ns.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        cfg = config_from_args(ns)
        result = run_aggregation(cfg)
    except AggregationError as e:
        print(f"[error] {type(e).__name__}: {e}")
        return 2

    out_dir = ns.out_dir if ns.out_dir else cfg.root / "aggregation_out"
    written = write_outputs(result, out_dir)

    for w in result.warnings:
        print(f"[warn] {w}")
    m = result.matrix
    print(f"[info] {m.name}: {m.n_rows} observations x {m.n_cols} groups")
    for lab, n in result.n_observations().items():
        print(f"  {lab}: n={n}")
    for name, fp in written.items():
        print(f"[info] wrote {name}: {fp}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
