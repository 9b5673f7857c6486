"""Analysis package.

Design principle:
  - Ingest produces a :class:`~fiji_aggregator.models.catalog.GroupCatalog`
    (which folders belong to which group).
  - Analysis reads the measurement files of that catalog and produces
    NaN-padded :class:`~fiji_aggregator.models.results.AggregationMatrix`
    objects, one column per group.

Project-wide hard constraint:
  - Missing observations are NaN, never 0, and never dropped.
"""

from .matrix import build_matrix
from .pipeline import run_aggregation
from .postprocess import rescale_columns, trim_outliers

__all__ = [
    "build_matrix",
    "rescale_columns",
    "run_aggregation",
    "trim_outliers",
]
