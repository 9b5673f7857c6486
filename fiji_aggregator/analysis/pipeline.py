from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fiji_aggregator.analysis.extract import PCC_FIELD, GroupMeasurements, MeasurementExtractor
from fiji_aggregator.analysis.matrix import build_matrix
from fiji_aggregator.analysis.postprocess import postprocess
from fiji_aggregator.errors import EmptyResultError
from fiji_aggregator.ingest.discovery import GroupDiscovery
from fiji_aggregator.models.catalog import GroupCatalog
from fiji_aggregator.models.config import AggregationConfig
from fiji_aggregator.models.records import NUMERIC_TABLE_FIELDS
from fiji_aggregator.models.results import AggregationMatrix, AggregationResult


logger = logging.getLogger(__name__)


def primary_field(config: AggregationConfig) -> str:
    return PCC_FIELD if config.mode == "log" else config.value_field


def assemble_matrices(
    config: AggregationConfig,
    measurements: List[GroupMeasurements],
) -> Dict[str, AggregationMatrix]:
    """Build (and post-process) one matrix per measurement name.

    The primary field must yield at least one value, otherwise the run fails
    with EmptyResultError. Secondary fields that are empty everywhere are
    left out.
    """
    names = [PCC_FIELD] if config.mode == "log" else list(NUMERIC_TABLE_FIELDS)
    primary = primary_field(config)
    labels = [m.group.label for m in measurements]

    out: Dict[str, AggregationMatrix] = {}
    for name in names:
        per_group = {m.group.root: m.values.get(name, []) for m in measurements}
        try:
            mat = build_matrix(per_group, labels=labels, name=name)
        except EmptyResultError:
            if name == primary:
                raise EmptyResultError(
                    f"No {name} values were found in any of the {len(measurements)} groups."
                ) from None
            continue
        out[name] = postprocess(mat, remove_outliers=config.remove_outliers, rescale=config.rescale)
    return out


def run_aggregation(
    config: AggregationConfig,
    *,
    catalog: Optional[GroupCatalog] = None,
) -> AggregationResult:
    """
    Run discovery, extraction, matrix assembly and post-processing.

    ``catalog`` may be passed to reuse an existing discovery result.
    """
    config = config.validate()
    if catalog is None:
        catalog = GroupDiscovery().build_catalog(config)
    logger.info("Root directory: %s", catalog.root_dir)

    measurements = MeasurementExtractor(config).extract_all(catalog.groups)

    warnings: List[str] = list(catalog.warnings)
    for m in measurements:
        warnings.extend(m.warnings)

    matrices = assemble_matrices(config, measurements)
    primary = matrices[primary_field(config)]

    logger.info(
        "Done. Extracted %s values for %d groups (%d rows).",
        primary.name, primary.n_cols, primary.n_rows,
    )
    return AggregationResult(
        matrix=primary,
        matrices=matrices,
        groups=tuple(catalog.groups),
        records={m.group.root: m.records for m in measurements},
        warnings=tuple(warnings),
        config=config,
    )
