"""Configuration management for procdoc using Pydantic models."""

import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from procdoc.exceptions import ConfigurationError

CONFIG_FILE_NAME = ".procdoc.json"


class FingerprintMode(str, Enum):
    """How validation results are keyed in the cache."""
    PATH_AND_CONTENT = "path+content"
    CONTENT = "content"


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


class ValidationConfig(BaseModel):
    """Validation configuration section."""
    cache_enabled: bool = Field(alias="cacheEnabled", default=True)
    cache_max_entries: int | None = Field(alias="cacheMaxEntries", default=None)
    cache_ttl_seconds: float | None = Field(alias="cacheTtlSeconds", default=None)
    fingerprint_mode: FingerprintMode = Field(
        alias="fingerprintMode", default=FingerprintMode.PATH_AND_CONTENT
    )
    forbid_dtd: bool = Field(alias="forbidDtd", default=True)
    schema_version: str = Field(alias="schemaVersion", default="1.0")

    @field_validator("cache_max_entries")
    @classmethod
    def validate_cache_max_entries(cls, v):
        if v is not None and v < 1:
            raise ValueError("cache_max_entries must be >= 1")
        return v

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_cache_ttl_seconds(cls, v):
        if v is not None and v <= 0:
            raise ValueError("cache_ttl_seconds must be > 0")
        return v

    model_config = ConfigDict(populate_by_name=True)


class ParserConfig(BaseModel):
    """Parser configuration section."""
    default_version: str = Field(alias="defaultVersion", default="1.0")
    collect_additional_properties: bool = Field(
        alias="collectAdditionalProperties", default=True
    )
    forbid_dtd: bool = Field(alias="forbidDtd", default=True)

    model_config = ConfigDict(populate_by_name=True)


class BatchConfig(BaseModel):
    """Batch validation configuration section."""
    max_workers: int | None = Field(alias="maxWorkers", default=None)

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v):
        if v is not None and v < 1:
            raise ValueError("max_workers must be >= 1")
        return v

    model_config = ConfigDict(populate_by_name=True)


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.INFO

    model_config = ConfigDict(use_enum_values=True)


class ProcdocConfig(BaseModel):
    """Complete procdoc configuration model."""
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")


def load_config(config_path: str | Path | None = None) -> ProcdocConfig:
    """Load configuration from file with fallback to defaults.

    Args:
        config_path: Optional path to configuration file. If None, searches
                    current directory and parents for .procdoc.json

    Returns:
        ProcdocConfig: Loaded and validated configuration

    Raises:
        ConfigurationError: If the configuration file is invalid
    """
    if config_path is None:
        config_path = find_config_file()
    else:
        config_path = Path(config_path)

    if config_path and config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in config file {config_path}: {e}") from e
        try:
            return ProcdocConfig(**config_data)
        except (ValidationError, TypeError) as e:
            raise ConfigurationError(f"Failed to load config from {config_path}: {e}") from e

    return create_default_config()


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find .procdoc.json configuration file by searching up directory tree.

    Args:
        start_dir: Directory to start search from (default: current directory)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = Path(start_dir).resolve()

    while True:
        config_file = current / CONFIG_FILE_NAME
        if config_file.exists():
            return config_file

        parent = current.parent
        if parent == current:  # Reached root directory
            break
        current = parent

    return None


def create_default_config() -> ProcdocConfig:
    """Create default configuration with sensible defaults."""
    return ProcdocConfig()
