"""
Core of the performance aggregator: data model, configuration, errors and
the concurrent aggregation engine.
"""

from .config import Configuration, LoggingSettings, StorageSettings, configure_logging
from .errors import (
    AggregatorError,
    AggregatorStorageError,
    CollectionFailedError,
    CollectorError,
    CollectorTimeoutError,
    ConfigurationError,
    ConnectionFailedError,
    DataNotFoundError,
    DataParsingFailedError,
    ExecutionFailedError,
    InvalidDataError,
    InvalidProjectPathError,
    StorageError,
    StorageFailureError,
    ToolNotFoundError,
    UnsupportedProjectError,
)
from .models import MetricRecord, MetricSource, MetricType, TimeRange

__all__ = [
    "Configuration",
    "LoggingSettings",
    "StorageSettings",
    "configure_logging",
    "MetricRecord",
    "MetricSource",
    "MetricType",
    "TimeRange",
    "AggregatorError",
    "AggregatorStorageError",
    "CollectionFailedError",
    "CollectorError",
    "CollectorTimeoutError",
    "ConfigurationError",
    "ConnectionFailedError",
    "DataNotFoundError",
    "DataParsingFailedError",
    "ExecutionFailedError",
    "InvalidDataError",
    "InvalidProjectPathError",
    "StorageError",
    "StorageFailureError",
    "ToolNotFoundError",
    "UnsupportedProjectError",
]
