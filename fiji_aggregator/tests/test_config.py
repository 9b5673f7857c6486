"""Tests for AggregationConfig."""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path

import pytest

from fiji_aggregator.errors import ConfigError
from fiji_aggregator.models.config import REQUIRED_TABLE_COLUMNS, AggregationConfig


# -----------------------------------------------------------------------
# Construction and presets
# -----------------------------------------------------------------------


def test_flags_have_no_defaults() -> None:
    with pytest.raises(TypeError):
        AggregationConfig(root_path="/data")  # type: ignore[call-arg]


def test_coloc2_preset() -> None:
    c = AggregationConfig.for_coloc2("/data", "GFP", strict_selector=True, ignore_empty_folders=False)
    assert c.mode == "log"
    assert c.layout == "nested"
    assert (c.folder_selector, c.subfolder_selector, c.file_selector) == ("res", "Process", "coloc2")
    assert c.file_pattern == "coloc_*"
    assert c.dataset_label_or_channel_id == "GFP"
    assert c.validate() is c


def test_fiji_table_preset() -> None:
    c = AggregationConfig.for_fiji_table("/data", strict_selector=True, ignore_empty_folders=True)
    assert c.mode == "table"
    assert c.layout == "flat"
    assert (c.min_area, c.max_area, c.min_circ) == (20.0, 200.0, 0.10)
    assert c.required_columns == REQUIRED_TABLE_COLUMNS
    assert c.rescale is False and c.remove_outliers is False
    c.validate()


def test_config_frozen_and_replace() -> None:
    c = AggregationConfig.for_fiji_table("/data", strict_selector=True, ignore_empty_folders=True)
    with pytest.raises(dataclasses.FrozenInstanceError):
        c.rescale = True  # type: ignore[misc]
    c2 = dataclasses.replace(c, rescale=True)
    assert c2.rescale is True
    assert c.rescale is False


def test_selectors_share_strict_flag() -> None:
    c = AggregationConfig.for_coloc2("/data", "GFP", strict_selector=False, ignore_empty_folders=False)
    folder, sub, leaf = c.selectors()
    assert not folder.strict and not leaf.strict
    assert sub is not None and sub.pattern == "Process"

    c2 = dataclasses.replace(c, subfolder_selector=None)
    assert c2.selectors()[1] is None


# -----------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------


@pytest.mark.parametrize(
    "overrides",
    [
        dict(root_path=""),
        dict(root_path=None),
        dict(dataset_label_or_channel_id="  "),
        dict(folder_selector="res["),
        dict(mode="image"),
        dict(layout="tree"),
        dict(marker=""),
        dict(file_pattern=""),
    ],
)
def test_log_config_validation_errors(overrides) -> None:
    c = AggregationConfig.for_coloc2("/data", "GFP", strict_selector=True, ignore_empty_folders=False)
    with pytest.raises(ConfigError):
        dataclasses.replace(c, **overrides).validate()


@pytest.mark.parametrize(
    "overrides",
    [
        dict(min_area=300.0),
        dict(max_area=float("nan")),
        dict(min_area="abc"),
        dict(min_circ=None),
        dict(value_field="Label"),
        dict(required_columns=()),
        dict(strict_selector=None),
    ],
)
def test_table_config_validation_errors(overrides) -> None:
    c = AggregationConfig.for_fiji_table("/data", strict_selector=True, ignore_empty_folders=True)
    with pytest.raises(ConfigError):
        dataclasses.replace(c, **overrides).validate()


def test_table_mode_allows_empty_label() -> None:
    c = AggregationConfig.for_fiji_table("/data", "", strict_selector=True, ignore_empty_folders=True)
    assert c.validate().dataset_label_or_channel_id == ""


# -----------------------------------------------------------------------
# Serialization
# -----------------------------------------------------------------------


def test_to_dict_is_json_serializable_and_round_trips() -> None:
    c = AggregationConfig.for_coloc2(Path("/data/exp1"), "GFP", strict_selector=True, ignore_empty_folders=False)
    d = c.to_dict()
    assert d["root_path"] == str(Path("/data/exp1"))
    assert isinstance(d["required_columns"], list)
    c2 = AggregationConfig.from_dict(json.loads(json.dumps(d)))
    assert c2.required_columns == c.required_columns
    assert dataclasses.replace(c2, root_path=c.root_path) == c


def test_from_dict_requires_explicit_flags() -> None:
    with pytest.raises(ConfigError) as ei:
        AggregationConfig.from_dict({"root_path": "/data", "strict_selector": True})
    assert "ignore_empty_folders" in str(ei.value)


def test_from_dict_rejects_unknown_keys() -> None:
    with pytest.raises(ConfigError):
        AggregationConfig.from_dict(
            {"root_path": "/data", "strict_selector": True, "ignore_empty_folders": True, "plotArea": True}
        )
