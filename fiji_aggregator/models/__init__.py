from .catalog import Group, GroupCatalog, PathNode, SelectorSpec
from .config import AggregationConfig
from .records import MeasurementRecord, RawLines, StructuredTable
from .results import AggregationMatrix, AggregationResult

__all__ = [
    "AggregationConfig",
    "AggregationMatrix",
    "AggregationResult",
    "Group",
    "GroupCatalog",
    "MeasurementRecord",
    "PathNode",
    "RawLines",
    "SelectorSpec",
    "StructuredTable",
]
