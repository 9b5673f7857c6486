"""Fiji Aggregator -- Python tooling for aggregating microscopy measurement exports.

This package provides tools for:
- Discovering condition/well folders in an ad-hoc, convention-based folder tree
- Filtering folders per hierarchy level with regex selectors
- Grouping leaf (file-containing) folders under their owning group folder
- Extracting per-object measurements from Fiji results tables
- Extracting Pearson's R values from Coloc2 text logs
- Assembling NaN-padded matrices (observations x groups) for statistics
- Optional per-column outlier trimming and [0, 1] rescaling

Key principles:
- No interactive prompts: every run is fully described by an AggregationConfig
- No silent padding: one column per surviving group, NaN for missing observations
- Full traceability: skipped folders and unparsable lines are recorded as warnings

Main subpackages:
- ingest: Folder scanning, selectors, grouping, low-level file readers
- analysis: Measurement extraction, matrix assembly, post-processing, pipeline
- models: Data models (PathNode, Group, MeasurementRecord, AggregationConfig, ...)
- scripts: Command-line entry point
"""

__version__ = "0.1.0"

__all__ = []
