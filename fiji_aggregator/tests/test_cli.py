"""Tests for the fiji-aggregate command line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from fiji_aggregator.errors import ConfigError
from fiji_aggregator.models.config import AggregationConfig
from fiji_aggregator.scripts.aggregate import _parse_bool, main


def _make_coloc_tree(root: Path) -> None:
    for group, values in (("res_A", [0.5, 0.7]), ("res_B", [0.9])):
        leaf = root / group / "Process_1" / "coloc2"
        leaf.mkdir(parents=True)
        for i, v in enumerate(values, start=1):
            (leaf / f"coloc_GFP_{i}.txt").write_text(f"Pearson's R value (no threshold)\t{v}\n")


def test_parse_bool() -> None:
    assert _parse_bool("Yes") is True
    assert _parse_bool("0") is False
    assert _parse_bool(None) is None
    with pytest.raises(ConfigError):
        _parse_bool("maybe")


def test_main_writes_matrix_and_metadata(tmp_path: Path, capsys) -> None:
    root = tmp_path / "cond"
    _make_coloc_tree(root)
    out = tmp_path / "out"
    rc = main(
        [
            str(root),
            "--mode", "log",
            "--subfolder-selector", "Process",
            "--file-selector", "coloc2",
            "--file-pattern", "coloc_*",
            "--label", "GFP",
            "--strict-selector", "true",
            "--ignore-empty-folders", "false",
            "--out-dir", str(out),
        ]
    )
    assert rc == 0

    df = pd.read_csv(out / "PCC.csv", index_col=0)
    assert list(df.columns) == ["res_A", "res_B"]
    assert df["res_A"].tolist() == [0.5, 0.7]
    assert df["res_B"].isna().tolist() == [False, True]

    meta = json.loads((out / "aggregation.json").read_text(encoding="utf-8"))
    assert meta["n_observations"] == {"res_A": 2, "res_B": 1}
    assert meta["config"]["mode"] == "log"
    assert meta["config"]["strict_selector"] is True

    printed = capsys.readouterr().out
    assert "[info] PCC: 2 observations x 2 groups" in printed


def test_main_reads_json_config(tmp_path: Path) -> None:
    root = tmp_path / "cond"
    _make_coloc_tree(root)
    cfg = {
        "root_path": str(root),
        "mode": "log",
        "subfolder_selector": "Process",
        "file_selector": "coloc2",
        "file_pattern": "coloc_*",
        "dataset_label_or_channel_id": "GFP",
        "strict_selector": True,
        "ignore_empty_folders": False,
    }
    cfg_fp = tmp_path / "config.json"
    cfg_fp.write_text(json.dumps(cfg), encoding="utf-8")

    assert main(["--config", str(cfg_fp), "--rescale", "true"]) == 0
    df = pd.read_csv(root / "aggregation_out" / "PCC.csv", index_col=0)
    assert df["res_A"].tolist() == [0.0, 1.0]


def test_command_line_overrides_config_switches(tmp_path: Path) -> None:
    root = tmp_path / "cond"
    _make_coloc_tree(root)
    cfg = AggregationConfig.for_coloc2(
        root, "GFP", strict_selector=True, ignore_empty_folders=False, rescale=True
    )
    cfg_fp = tmp_path / "config.json"
    cfg_fp.write_text(json.dumps(cfg.to_dict()), encoding="utf-8")
    out = tmp_path / "out"

    assert main(["--config", str(cfg_fp), "--rescale", "false", "--out-dir", str(out)]) == 0
    df = pd.read_csv(out / "PCC.csv", index_col=0)
    assert df["res_A"].tolist() == [0.5, 0.7]
    meta = json.loads((out / "aggregation.json").read_text(encoding="utf-8"))
    assert meta["config"]["rescale"] is False


def test_non_numeric_filter_in_config_is_reported(tmp_path: Path, capsys) -> None:
    root = tmp_path / "cond"
    _make_coloc_tree(root)
    cfg = {
        "root_path": str(root),
        "strict_selector": True,
        "ignore_empty_folders": False,
        "min_area": "abc",
    }
    cfg_fp = tmp_path / "config.json"
    cfg_fp.write_text(json.dumps(cfg), encoding="utf-8")

    assert main(["--config", str(cfg_fp)]) == 2
    printed = capsys.readouterr().out
    assert "[error] ConfigError" in printed
    assert "min_area" in printed


def test_main_requires_explicit_flags(tmp_path: Path, capsys) -> None:
    root = tmp_path / "cond"
    _make_coloc_tree(root)
    rc = main([str(root), "--mode", "log", "--label", "GFP"])
    assert rc == 2
    assert "ConfigError" in capsys.readouterr().out


def test_main_missing_root(tmp_path: Path, capsys) -> None:
    rc = main(
        [
            str(tmp_path / "missing"),
            "--strict-selector", "true",
            "--ignore-empty-folders", "true",
        ]
    )
    assert rc == 2
    assert "NotFoundError" in capsys.readouterr().out
