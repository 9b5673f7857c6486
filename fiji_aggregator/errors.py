"""Error taxonomy for aggregation runs.

Every error also derives from the built-in exception a caller would naturally
catch (``FileNotFoundError`` for a missing root, ``ValueError`` otherwise), so
code written against the built-ins keeps working.
"""

from __future__ import annotations


class AggregationError(Exception):
    """Base class for all errors raised by fiji_aggregator."""


class NotFoundError(AggregationError, FileNotFoundError):
    """Root folder is missing or is not a directory."""


class SchemaError(AggregationError, ValueError):
    """A structured measurement table lacks required columns."""


class EmptyResultError(AggregationError, ValueError):
    """No surviving groups, leaves, files or values where none are tolerated."""


class ParseError(AggregationError, ValueError):
    """A numeric token could not be extracted from a matched line or file."""


class ConfigError(AggregationError, ValueError):
    """A required configuration parameter is absent or invalid."""
