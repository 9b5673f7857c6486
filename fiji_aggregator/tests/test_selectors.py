from __future__ import annotations

from pathlib import Path

import pytest

from fiji_aggregator.errors import ConfigError
from fiji_aggregator.ingest.selectors import match, select
from fiji_aggregator.models.catalog import PathNode, SelectorSpec


def test_strict_selector_matches_only_at_start() -> None:
    names = ["res_Cond1", "Xres_Cond2", "RES_Cond3"]
    mask = match(names, SelectorSpec("res", strict=True))
    assert mask == [True, False, True]


def test_non_strict_selector_matches_anywhere() -> None:
    names = ["res_Cond1", "Xres_Cond2", "RES_Cond3", "control"]
    mask = match(names, SelectorSpec("res", strict=False))
    assert mask == [True, True, True, False]


def test_strict_uses_first_match_position() -> None:
    # 'coloc2' occurs at offset 0 and again later; the first occurrence counts
    assert match(["coloc2_coloc2"], SelectorSpec("coloc2", strict=True)) == [True]
    assert match(["run_coloc2"], SelectorSpec("coloc2", strict=True)) == [False]


def test_regex_pattern_is_supported() -> None:
    mask = match(["well_A01", "well_B12", "wellX"], SelectorSpec(r"well_[a-h]\d{2}", strict=True))
    assert mask == [True, True, False]


def test_empty_names_give_empty_mask() -> None:
    assert match([], SelectorSpec("res", strict=True)) == []


def test_invalid_pattern_raises_config_error() -> None:
    with pytest.raises(ConfigError):
        SelectorSpec("res(", strict=False)


def test_select_keeps_node_order() -> None:
    nodes = [
        PathNode(Path("/d/res_b"), 1),
        PathNode(Path("/d/ctrl"), 1),
        PathNode(Path("/d/res_a"), 1),
    ]
    out = select(nodes, SelectorSpec("res", strict=True))
    assert [n.name for n in out] == ["res_b", "res_a"]
