"""
Core data model for performance measurements.

This module defines the record shape every collector produces:
- MetricSource: Where a measurement came from (build, test suite, profiler, ...)
- MetricType: What kind of quantity was measured, with its canonical unit
- MetricRecord: One immutable measurement with location and provenance
- TimeRange: Inclusive window used by storage queries and reports

Records are created once by a collector, written once to storage and then
only read or swept by retention. Nothing mutates a record in place.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MetricSource(str, Enum):
    """Origin of a measurement."""
    BUILD_TIME = "buildTime"    # Build system timing
    TEST_SUITE = "testSuite"    # Test harness durations
    PROFILER = "profiler"       # cProfile function timings
    SYSTEM = "system"           # Host resource sampling
    CUSTOM = "custom"           # Named via MetricRecord.custom_source_name

    @property
    def display_name(self) -> str:
        return _SOURCE_DISPLAY_NAMES[self]


_SOURCE_DISPLAY_NAMES = {
    MetricSource.BUILD_TIME: "Build Time",
    MetricSource.TEST_SUITE: "Test Suite",
    MetricSource.PROFILER: "Profiler",
    MetricSource.SYSTEM: "System",
    MetricSource.CUSTOM: "Custom",
}


class MetricType(str, Enum):
    """Kind of quantity measured."""
    CPU_TIME = "cpuTime"
    MEMORY_USAGE = "memoryUsage"
    DISK_IO = "diskIO"
    NETWORK_LATENCY = "networkLatency"
    BUILD_DURATION = "buildDuration"
    STARTUP_TIME = "startupTime"
    FRAME_RATE = "frameRate"
    ENERGY_IMPACT = "energyImpact"
    CUSTOM = "custom"

    @property
    def display_name(self) -> str:
        return _TYPE_DISPLAY_NAMES[self]

    @property
    def default_unit(self) -> str:
        """Canonical unit used when a record is created without one."""
        return _TYPE_DEFAULT_UNITS[self]


_TYPE_DISPLAY_NAMES = {
    MetricType.CPU_TIME: "CPU Time",
    MetricType.MEMORY_USAGE: "Memory Usage",
    MetricType.DISK_IO: "Disk I/O",
    MetricType.NETWORK_LATENCY: "Network Latency",
    MetricType.BUILD_DURATION: "Build Duration",
    MetricType.STARTUP_TIME: "Startup Time",
    MetricType.FRAME_RATE: "Frame Rate",
    MetricType.ENERGY_IMPACT: "Energy Impact",
    MetricType.CUSTOM: "Custom",
}

_TYPE_DEFAULT_UNITS = {
    MetricType.CPU_TIME: "seconds",
    MetricType.MEMORY_USAGE: "MB",
    MetricType.DISK_IO: "MB/s",
    MetricType.NETWORK_LATENCY: "ms",
    MetricType.BUILD_DURATION: "seconds",
    MetricType.STARTUP_TIME: "seconds",
    MetricType.FRAME_RATE: "fps",
    MetricType.ENERGY_IMPACT: "mAh",
    MetricType.CUSTOM: "",
}


@dataclass(frozen=True, eq=False)
class MetricRecord:
    """
    One immutable performance measurement.

    Equality and hashing use ``id`` alone, so two records describing the
    same measured value are still distinct unless they share an id.

    Attributes:
        project_name: Project the measurement belongs to (required)
        source: Where the measurement came from
        type: What was measured
        value: Measured value
        unit: Unit of ``value``; defaults to ``type.default_unit``
        id: Unique identifier (uuid4 hex by default)
        timestamp: When the measurement was taken (UTC)
        metadata: Free-form string annotations
        file_path: Source file the measurement refers to, if any
        function_name: Function the measurement refers to, if any
        line_number: Line the measurement refers to, if any
        commit_hash: Commit the measured code was built from
        branch_name: Branch the measured code was built from
        custom_source_name: Display name when ``source`` is CUSTOM
        custom_type_name: Display name when ``type`` is CUSTOM
    """
    project_name: str
    source: MetricSource
    type: MetricType
    value: float
    unit: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=utc_now)
    metadata: Dict[str, str] = field(default_factory=dict)
    file_path: Optional[str] = None
    function_name: Optional[str] = None
    line_number: Optional[int] = None
    commit_hash: Optional[str] = None
    branch_name: Optional[str] = None
    custom_source_name: Optional[str] = None
    custom_type_name: Optional[str] = None

    def __post_init__(self):
        if not self.project_name or not isinstance(self.project_name, str):
            raise ValueError("project_name cannot be empty")
        if not isinstance(self.id, str) or not self.id:
            raise ValueError(f"id must be a non-empty string, got {self.id!r}")
        if not isinstance(self.metadata, dict):
            raise ValueError(f"metadata must be a mapping, got {type(self.metadata).__name__}")
        if self.line_number is not None and not isinstance(self.line_number, int):
            raise ValueError(f"line_number must be an integer, got {self.line_number!r}")

        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "source", MetricSource(self.source))
        object.__setattr__(self, "type", MetricType(self.type))
        object.__setattr__(self, "value", float(self.value))
        if self.unit is None:
            object.__setattr__(self, "unit", self.type.default_unit)
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        object.__setattr__(
            self, "metadata", {str(k): str(v) for k, v in self.metadata.items()}
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetricRecord):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def display_source(self) -> str:
        if self.source == MetricSource.CUSTOM and self.custom_source_name:
            return self.custom_source_name
        return self.source.display_name

    @property
    def display_type(self) -> str:
        if self.type == MetricType.CUSTOM and self.custom_type_name:
            return self.custom_type_name
        return self.type.display_name

    @property
    def display_value(self) -> str:
        return f"{self.value:.2f} {self.unit}".rstrip()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "project_name": self.project_name,
            "source": self.source.value,
            "type": self.type.value,
            "value": self.value,
            "unit": self.unit,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
            "file_path": self.file_path,
            "function_name": self.function_name,
            "line_number": self.line_number,
            "commit_hash": self.commit_hash,
            "branch_name": self.branch_name,
            "custom_source_name": self.custom_source_name,
            "custom_type_name": self.custom_type_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetricRecord":
        """
        Create from dictionary.

        Raises:
            ValueError: If the data does not describe a valid record
        """
        if not isinstance(data, dict):
            raise ValueError(f"Record data must be a JSON object, got {type(data).__name__}")
        missing = [key for key in ("id", "project_name", "source", "type", "value", "timestamp") if key not in data]
        if missing:
            raise ValueError(f"Record data is missing fields: {', '.join(missing)}")
        if isinstance(data["value"], bool) or not isinstance(data["value"], (int, float)):
            raise ValueError(f"Record value must be a number, got {data['value']!r}")
        if not isinstance(data["timestamp"], str):
            raise ValueError(f"Record timestamp must be an ISO-8601 string, got {data['timestamp']!r}")

        return cls(
            id=data["id"],
            project_name=data["project_name"],
            source=MetricSource(data["source"]),
            type=MetricType(data["type"]),
            value=data["value"],
            unit=data.get("unit"),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            metadata=data.get("metadata") or {},
            file_path=data.get("file_path"),
            function_name=data.get("function_name"),
            line_number=data.get("line_number"),
            commit_hash=data.get("commit_hash"),
            branch_name=data.get("branch_name"),
            custom_source_name=data.get("custom_source_name"),
            custom_type_name=data.get("custom_type_name"),
        )

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "MetricRecord":
        """Create from JSON string."""
        return cls.from_dict(json.loads(json_str))


@dataclass(frozen=True)
class TimeRange:
    """
    Inclusive time window.

    Attributes:
        start: First instant included in the window
        end: Last instant included in the window
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))
        if self.start > self.end:
            raise ValueError(
                f"TimeRange start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= ensure_utc(timestamp) <= self.end

    @classmethod
    def last_days(cls, days: int, now: Optional[datetime] = None) -> "TimeRange":
        end = ensure_utc(now) if now else utc_now()
        return cls(start=end - timedelta(days=days), end=end)

    @classmethod
    def last_hours(cls, hours: int, now: Optional[datetime] = None) -> "TimeRange":
        end = ensure_utc(now) if now else utc_now()
        return cls(start=end - timedelta(hours=hours), end=end)

    @classmethod
    def all_time(cls, now: Optional[datetime] = None) -> "TimeRange":
        """Window from the earliest representable instant up to now."""
        end = ensure_utc(now) if now else utc_now()
        return cls(start=datetime.min.replace(tzinfo=timezone.utc), end=end)

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class Provenance:
    """Commit and branch the measured code was built from."""
    commit_hash: Optional[str] = None
    branch_name: Optional[str] = None
