"""Configuration parsing for counterinfo.

Parses .counterinfo/config.toml files for combiner and logging settings.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_DIR = ".counterinfo"
CONFIG_FILE = "config.toml"

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5


@dataclass
class CombinerConfig:
    """Configuration for the sample combiner."""

    aggregate_details: bool = False


@dataclass
class LoggingConfig:
    """Configuration for log output."""

    level: str = DEFAULT_LOG_LEVEL
    file: str = ""  # empty means stderr
    max_bytes: int = DEFAULT_MAX_BYTES
    backup_count: int = DEFAULT_BACKUP_COUNT

    @property
    def level_number(self) -> int:
        """Numeric logging level for the configured level name."""
        return logging.getLevelName(self.level.upper())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoggingConfig:
        """Create a LoggingConfig from a dictionary.

        Args:
            data: Dictionary of logging configuration values.

        Returns:
            A configured LoggingConfig instance.

        Raises:
            ValueError: If the level name, file or a size is invalid.
        """
        level = data.get("level", DEFAULT_LOG_LEVEL)
        if not isinstance(level, str) or not isinstance(
            logging.getLevelName(level.upper()), int
        ):
            raise ValueError(f"Invalid log level '{level}'")

        max_bytes = data.get("max_bytes", DEFAULT_MAX_BYTES)
        backup_count = data.get("backup_count", DEFAULT_BACKUP_COUNT)
        if not isinstance(max_bytes, int) or max_bytes < 0:
            raise ValueError(f"Invalid logging.max_bytes: {max_bytes!r}")
        if not isinstance(backup_count, int) or backup_count < 0:
            raise ValueError(f"Invalid logging.backup_count: {backup_count!r}")

        log_file = data.get("file", "")
        if not isinstance(log_file, str):
            raise ValueError(f"Invalid logging.file: expected a string, got {log_file!r}")

        return cls(
            level=level.upper(),
            file=log_file,
            max_bytes=max_bytes,
            backup_count=backup_count,
        )


@dataclass
class Config:
    """Main configuration container."""

    version: str = "1"
    combiner: CombinerConfig = field(default_factory=CombinerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    config_path: Path | None = None

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        """Load configuration from a file.

        Args:
            path: Path to config file. If None, searches for
                  .counterinfo/config.toml in current directory and parents.

        Returns:
            Loaded configuration.

        Raises:
            FileNotFoundError: If no config file found.
            ValueError: If config file is invalid.
        """
        if path is None:
            path = cls._find_config()

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {path}: {e}") from e

        return cls._from_dict(data, path)

    @classmethod
    def load_or_default(cls, path: Path | None = None) -> Config:
        """Load configuration or return default if not found."""
        try:
            return cls.load(path)
        except FileNotFoundError:
            return cls()

    @classmethod
    def _find_config(cls) -> Path:
        """Find config file by searching current directory and parents."""
        cwd = Path.cwd()
        for parent in [cwd, *cwd.parents]:
            config_path = parent / CONFIG_DIR / CONFIG_FILE
            if config_path.exists():
                return config_path

        # Return expected path even if it doesn't exist
        return cwd / CONFIG_DIR / CONFIG_FILE

    @classmethod
    def _from_dict(cls, data: dict[str, Any], path: Path) -> Config:
        """Create a Config from a dictionary."""
        for section in ("counterinfo", "combiner", "logging"):
            if not isinstance(data.get(section, {}), dict):
                raise ValueError(f"Invalid [{section}] section: expected a table")

        version = data.get("counterinfo", {}).get("version", "1")
        if not isinstance(version, str):
            raise ValueError(f"Invalid counterinfo.version: {version!r}")

        combiner_data = data.get("combiner", {})
        aggregate_details = combiner_data.get("aggregate_details", False)
        if not isinstance(aggregate_details, bool):
            raise ValueError(
                f"Invalid combiner.aggregate_details: expected boolean, "
                f"got {aggregate_details!r}"
            )

        return cls(
            version=version,
            combiner=CombinerConfig(aggregate_details=aggregate_details),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
            config_path=path,
        )

    def get_value(self, key_path: str) -> Any:
        """Get a configuration value by dot-separated path.

        Args:
            key_path: Dot-separated path to value (e.g. "combiner.aggregate_details").

        Returns:
            The configuration value.

        Raises:
            KeyError: If path is invalid.
        """
        parts = key_path.split(".")
        current = self
        for part in parts:
            if hasattr(current, part):
                current = getattr(current, part)
            elif isinstance(current, dict) and part in current:
                current = current[part]
            else:
                raise KeyError(f"Invalid config path: {key_path}")
        return current
