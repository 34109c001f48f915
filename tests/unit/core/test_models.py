"""
Unit tests for the core data model.

Tests MetricSource, MetricType, MetricRecord and TimeRange.
"""

import dataclasses
import json
from datetime import datetime, timedelta, timezone

import pytest

from perf_aggregator.core.models import (
    MetricRecord,
    MetricSource,
    MetricType,
    TimeRange,
)


class TestMetricType:
    """Test MetricType enum."""

    def test_default_units(self):
        """Test canonical units for each type."""
        assert MetricType.CPU_TIME.default_unit == "seconds"
        assert MetricType.MEMORY_USAGE.default_unit == "MB"
        assert MetricType.DISK_IO.default_unit == "MB/s"
        assert MetricType.NETWORK_LATENCY.default_unit == "ms"
        assert MetricType.BUILD_DURATION.default_unit == "seconds"
        assert MetricType.FRAME_RATE.default_unit == "fps"
        assert MetricType.ENERGY_IMPACT.default_unit == "mAh"
        assert MetricType.CUSTOM.default_unit == ""

    def test_from_string(self):
        assert MetricType("buildDuration") == MetricType.BUILD_DURATION
        assert MetricSource("testSuite") == MetricSource.TEST_SUITE

    def test_invalid_type(self):
        with pytest.raises(ValueError):
            MetricType("invalid")

    def test_every_member_has_display_name(self):
        for member in MetricType:
            assert member.display_name
        for member in MetricSource:
            assert member.display_name


class TestMetricRecord:
    """Test MetricRecord dataclass."""

    def test_unit_defaults_from_type(self):
        record = MetricRecord(
            project_name="app",
            source=MetricSource.BUILD_TIME,
            type=MetricType.BUILD_DURATION,
            value=12.0,
        )
        assert record.unit == "seconds"

    def test_explicit_unit_kept(self):
        record = MetricRecord(
            project_name="app",
            source=MetricSource.SYSTEM,
            type=MetricType.MEMORY_USAGE,
            value=1.5,
            unit="GB",
        )
        assert record.unit == "GB"

    def test_ids_are_unique(self):
        a = MetricRecord(project_name="app", source=MetricSource.CUSTOM, type=MetricType.CUSTOM, value=1)
        b = MetricRecord(project_name="app", source=MetricSource.CUSTOM, type=MetricType.CUSTOM, value=1)
        assert a.id != b.id
        assert a != b

    def test_equality_by_id_only(self):
        a = MetricRecord(id="same", project_name="app", source=MetricSource.CUSTOM,
                         type=MetricType.CPU_TIME, value=1.0)
        b = MetricRecord(id="same", project_name="other", source=MetricSource.SYSTEM,
                         type=MetricType.DISK_IO, value=99.0)
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_record_is_immutable(self):
        record = MetricRecord(project_name="app", source=MetricSource.CUSTOM,
                              type=MetricType.CPU_TIME, value=1.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.value = 2.0

    def test_project_name_required(self):
        with pytest.raises(ValueError, match="project_name"):
            MetricRecord(project_name="", source=MetricSource.CUSTOM,
                         type=MetricType.CPU_TIME, value=1.0)

    def test_naive_timestamp_treated_as_utc(self):
        record = MetricRecord(
            project_name="app",
            source=MetricSource.CUSTOM,
            type=MetricType.CPU_TIME,
            value=1.0,
            timestamp=datetime(2025, 1, 15, 10, 30),
        )
        assert record.timestamp.tzinfo == timezone.utc
        assert record.timestamp.hour == 10

    def test_display_helpers(self):
        record = MetricRecord(
            project_name="app",
            source=MetricSource.CUSTOM,
            type=MetricType.CUSTOM,
            value=3.14159,
            unit="widgets",
            custom_source_name="Bench Harness",
            custom_type_name="widgetRate",
        )
        assert record.display_source == "Bench Harness"
        assert record.display_type == "widgetRate"
        assert record.display_value == "3.14 widgets"

    def test_display_falls_back_to_enum_names(self):
        record = MetricRecord(project_name="app", source=MetricSource.BUILD_TIME,
                              type=MetricType.BUILD_DURATION, value=12.0)
        assert record.display_source == "Build Time"
        assert record.display_type == "Build Duration"
        assert record.display_value == "12.00 seconds"

    def test_to_dict_serialization(self):
        timestamp = datetime(2025, 1, 15, 10, 30, 45, tzinfo=timezone.utc)
        record = MetricRecord(
            id="abc",
            project_name="app",
            source=MetricSource.PROFILER,
            type=MetricType.CPU_TIME,
            value=0.25,
            timestamp=timestamp,
            metadata={"calls": "3"},
            file_path="app/main.py",
            function_name="run",
            line_number=42,
            commit_hash="deadbeef",
            branch_name="main",
        )
        data = record.to_dict()

        assert data["id"] == "abc"
        assert data["source"] == "profiler"
        assert data["type"] == "cpuTime"
        assert data["timestamp"] == "2025-01-15T10:30:45+00:00"
        assert data["metadata"] == {"calls": "3"}
        assert data["line_number"] == 42
        assert data["commit_hash"] == "deadbeef"

    def test_json_roundtrip_preserves_fields(self):
        record = MetricRecord(
            project_name="app",
            source=MetricSource.TEST_SUITE,
            type=MetricType.CPU_TIME,
            value=0.5,
            metadata={"phase": "call"},
            file_path="tests/test_x.py",
            function_name="test_y",
        )
        restored = MetricRecord.from_json(record.to_json())

        assert restored == record
        assert restored.to_dict() == record.to_dict()
        assert json.loads(record.to_json())["project_name"] == "app"


class TestMetricRecordValidation:
    """Test rejection of malformed record data."""

    def _valid_data(self):
        return MetricRecord(
            project_name="app",
            source=MetricSource.CUSTOM,
            type=MetricType.CPU_TIME,
            value=1.0,
        ).to_dict()

    @pytest.mark.parametrize("field_name,bad_value", [
        ("metadata", ["oops"]),
        ("metadata", "phase=call"),
        ("value", "fast"),
        ("value", None),
        ("timestamp", 1700000000),
        ("line_number", "12"),
        ("id", ""),
        ("project_name", 42),
    ])
    def test_wrong_field_types_raise_value_error(self, field_name, bad_value):
        data = self._valid_data()
        data[field_name] = bad_value

        with pytest.raises(ValueError):
            MetricRecord.from_dict(data)

    def test_missing_fields(self):
        data = self._valid_data()
        del data["timestamp"]

        with pytest.raises(ValueError, match="timestamp"):
            MetricRecord.from_dict(data)

    def test_non_object_json(self):
        with pytest.raises(ValueError):
            MetricRecord.from_json("[1, 2, 3]")

    def test_metadata_must_be_mapping(self):
        with pytest.raises(ValueError, match="metadata"):
            MetricRecord(project_name="app", source=MetricSource.CUSTOM,
                         type=MetricType.CPU_TIME, value=1.0, metadata=["x"])


class TestTimeRange:
    """Test TimeRange."""

    def test_start_after_end_rejected(self):
        now = datetime.now(timezone.utc)
        with pytest.raises(ValueError):
            TimeRange(start=now, end=now - timedelta(seconds=1))

    def test_contains_is_inclusive(self):
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        end = datetime(2025, 1, 2, tzinfo=timezone.utc)
        window = TimeRange(start=start, end=end)

        assert window.contains(start)
        assert window.contains(end)
        assert not window.contains(start - timedelta(microseconds=1))
        assert not window.contains(end + timedelta(microseconds=1))

    def test_last_days(self):
        now = datetime(2025, 3, 1, tzinfo=timezone.utc)
        window = TimeRange.last_days(30, now=now)
        assert window.end == now
        assert window.start == now - timedelta(days=30)

    def test_last_hours(self):
        now = datetime(2025, 3, 1, 12, tzinfo=timezone.utc)
        window = TimeRange.last_hours(6, now=now)
        assert window.start == datetime(2025, 3, 1, 6, tzinfo=timezone.utc)

    def test_all_time_covers_old_records(self):
        window = TimeRange.all_time()
        assert window.contains(datetime(1970, 1, 1, tzinfo=timezone.utc))
