"""
Configuration management for the performance aggregator.

This module provides configuration dataclasses and utilities for loading
the aggregator configuration from YAML (or JSON) files, dictionaries, or
programmatically, plus the loguru sink setup driven by that configuration.
"""

import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger

DEFAULT_COLLECTORS = ["buildTime", "tests", "profiler", "system"]
STORAGE_TYPES = ("memory", "file", "sqlite", "influxDB")


@dataclass
class StorageSettings:
    """
    Storage backend settings.

    Attributes:
        type: Backend type ("memory" or "file"; "sqlite"/"influxDB" are
              recognised names without an implementation)
        path: Root directory for file storage
        connection_string: Connection string for networked backends
        retention_days: Records older than this are removed by the retention sweep
    """
    type: str = "memory"
    path: Optional[str] = None
    connection_string: Optional[str] = None
    retention_days: int = 90

    def __post_init__(self):
        if self.type not in STORAGE_TYPES:
            raise ValueError(f"Unknown storage type: {self.type}")
        if self.retention_days < 0:
            raise ValueError(f"retention_days must be >= 0, got {self.retention_days}")


@dataclass
class LoggingSettings:
    """Logging sink settings."""
    level: str = "INFO"
    file: Optional[str] = None
    rotation: str = "10 MB"


@dataclass
class Configuration:
    """
    Complete configuration for a performance aggregator instance.

    Attributes:
        project_name: Project every collected record is attributed to
        enabled_collectors: Collector ids allowed to run
        storage: Storage backend settings
        baseline_commit: Commit whose metrics reports compare against
        default_time_range_days: Report window used when none is given
        collectors: Per-collector options keyed by collector id
        logging: Logging sink settings
    """
    project_name: str
    enabled_collectors: List[str] = field(default_factory=lambda: list(DEFAULT_COLLECTORS))
    storage: StorageSettings = field(default_factory=StorageSettings)
    baseline_commit: Optional[str] = None
    default_time_range_days: int = 30
    collectors: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.project_name:
            raise ValueError("project_name cannot be empty")
        if self.default_time_range_days <= 0:
            raise ValueError(
                f"default_time_range_days must be positive, got {self.default_time_range_days}"
            )

        if isinstance(self.storage, dict):
            self.storage = StorageSettings(**self.storage)
        if isinstance(self.logging, dict):
            self.logging = LoggingSettings(**self.logging)
        self.enabled_collectors = list(self.enabled_collectors)

    @classmethod
    def default_for(cls, project_name: str) -> "Configuration":
        return cls(project_name=project_name)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "Configuration":
        """
        Load configuration from a YAML (or JSON) file.

        Args:
            yaml_path: Path to configuration file

        Returns:
            Configuration instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If config file is malformed
        """
        log = logger.bind(context="Configuration.from_yaml")
        log.info(f"Loading configuration from {yaml_path}")

        config_file = Path(yaml_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(config_file, "r") as f:
            config_data = yaml.safe_load(f) or {}

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "Configuration":
        """
        Create configuration from dictionary.

        Unknown top-level keys are ignored with a warning.
        """
        known_fields = set(cls.__dataclass_fields__)
        params = {}
        for key, value in config_dict.items():
            if key in known_fields:
                params[key] = value
            else:
                logger.warning(f"Ignoring unknown configuration key: {key}")
        return cls(**params)

    def to_yaml(self, yaml_path: str):
        """Save configuration to YAML file."""
        log = logger.bind(context="Configuration.to_yaml")
        log.info(f"Saving configuration to {yaml_path}")

        config_file = Path(yaml_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=True)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def collector_options(self, collector_id: str) -> Dict[str, Any]:
        return dict(self.collectors.get(collector_id) or {})


def configure_logging(settings: LoggingSettings) -> None:
    """Replace loguru's default handler with sinks from the settings."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    if settings.file:
        logger.add(
            settings.file,
            level=settings.level,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {name}:{function}:{line} | {message}",
            rotation=settings.rotation
        )
