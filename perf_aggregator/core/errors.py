"""
Exception taxonomy for collection, aggregation and storage.

- CollectorError: local to one collector, never fatal to a collection round
- AggregatorError: surfaced to callers of the aggregation engine
- StorageError: raised by storage backends
"""

from typing import List, Optional, Sequence


class CollectorError(Exception):
    """Base class for failures inside a single collector."""

    kind = "collector_error"

    def __init__(self, detail: str, collector_id: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.collector_id = collector_id

    def __str__(self) -> str:
        prefix = f"[{self.collector_id}] " if self.collector_id else ""
        return f"{prefix}{self.describe()}"

    def describe(self) -> str:
        return self.detail


class ExecutionFailedError(CollectorError):
    kind = "execution_failed"

    def describe(self) -> str:
        return f"Execution failed: {self.detail}"


class DataParsingFailedError(CollectorError):
    kind = "data_parsing_failed"

    def describe(self) -> str:
        return f"Failed to parse data: {self.detail}"


class ToolNotFoundError(CollectorError):
    kind = "tool_not_found"

    def __init__(self, tool: str, collector_id: Optional[str] = None):
        super().__init__(tool, collector_id)
        self.tool = tool

    def describe(self) -> str:
        return f"Required tool not found: {self.tool}"


class UnsupportedProjectError(CollectorError):
    kind = "unsupported_project"

    def __init__(self, reason: str, collector_id: Optional[str] = None):
        super().__init__(reason, collector_id)
        self.reason = reason

    def describe(self) -> str:
        return f"Unsupported project: {self.reason}"


class CollectorTimeoutError(CollectorError):
    kind = "timeout"

    def __init__(self, operation: str, collector_id: Optional[str] = None):
        super().__init__(operation, collector_id)
        self.operation = operation

    def describe(self) -> str:
        return f"Operation timed out: {self.operation}"


class AggregatorError(Exception):
    """Base class for errors surfaced by the aggregation engine."""


class CollectionFailedError(AggregatorError):
    """Every registered collector failed; carries each underlying error."""

    def __init__(self, errors: Sequence[CollectorError]):
        self.errors: List[CollectorError] = list(errors)
        summary = "; ".join(str(e) for e in self.errors)
        super().__init__(f"All {len(self.errors)} collectors failed: {summary}")


class AggregatorStorageError(AggregatorError):
    """Collection succeeded but persisting the merged records failed."""

    def __init__(self, inner: BaseException):
        self.inner = inner
        super().__init__(f"Failed to store collected metrics: {inner}")


class InvalidProjectPathError(AggregatorError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Invalid project path: {path}")


class ConfigurationError(AggregatorError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Configuration error: {reason}")


class StorageError(Exception):
    """Base class for storage backend failures."""


class StorageFailureError(StorageError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Storage failure: {reason}")


class DataNotFoundError(StorageError):
    def __init__(self, what: str = "requested data"):
        super().__init__(f"Data not found: {what}")


class InvalidDataError(StorageError):
    def __init__(self, detail: str = "stored data is invalid"):
        super().__init__(f"Invalid data: {detail}")


class ConnectionFailedError(StorageError):
    def __init__(self, target: str = "storage backend"):
        super().__init__(f"Connection failed: {target}")
