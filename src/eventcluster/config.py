"""Central Configuration System for the event clustering engine.

This module is the single source of truth for application configuration.
Services take their section of the configuration explicitly; nothing reads
global state implicitly.

The configuration system supports:
- Multi-source configuration (environment variables > config file > defaults)
- Nested sections for clustering, correlation, suggestions and logging
- Eager validation: invalid thresholds raise, they are never clamped

Example:
    >>> from eventcluster.config import get_config
    >>>
    >>> cfg = get_config()
    >>> cfg.clustering.temporal_threshold_minutes
    60
    >>> cfg.suggestions.cache_ttl_seconds
    3600

Config File Format (YAML):
    ```yaml
    clustering:
      temporal_threshold_minutes: 60
      spatial_threshold_meters: 1000   # .inf disables spatial gating
      burst_threshold_seconds: 30
      min_burst_size: 3
      max_burst_size: 50

    correlation:
      max_time_gap_hours: 6
      max_location_distance_meters: 500
      min_photos_for_event: 3
      people_overlap_threshold: 0.7
      celebration_density_threshold: 20
      weights:
        time: 0.5
        location: 0.3
        people: 0.15
        density: 0.05

    suggestions:
      cache_ttl_seconds: 3600
      max_weight: 2.0
      min_weight: 0.1

    logging:
      level: INFO
      log_file: ~/.eventcluster/logs/eventcluster.log

    debug: false
    ```

Environment variables use the ``EVENTCLUSTER_`` prefix and ``__`` between
nested keys, e.g. ``EVENTCLUSTER_CLUSTERING__MIN_BURST_SIZE=4``.
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from eventcluster.clustering.configuration import ClusteringConfiguration
from eventcluster.intelligence.models import CorrelationConfig, SuggestionConfig

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class ConfigError(Exception):
    """Base exception for configuration errors.

    Raised when configuration values fail validation. All configuration
    exceptions inherit from this class.
    """

    pass


class ConfigFileError(ConfigError):
    """Exception raised for YAML config file issues.

    Raised when:
    - Config file exists but cannot be read
    - Config file contains malformed YAML
    - Config file top level is not a mapping
    """

    pass


# =============================================================================
# Configuration Sections
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings applied by ``eventcluster.utils.logging.setup_logging``."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_file: Path | None = None
    quiet_third_party: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("log_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Any:
        """Expand ~ in log file paths."""
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Configuration priority (highest wins):
    1. Environment variables (EVENTCLUSTER_*)
    2. Config file (YAML) / constructor arguments
    3. In-code defaults

    Attributes:
        clustering: Clustering thresholds.
        correlation: Event correlation settings.
        suggestions: Feedback loop and cache settings.
        logging: Logging settings.
        debug: Enable debug mode (debug-level logging).
    """

    clustering: ClusteringConfiguration = Field(default_factory=ClusteringConfiguration)
    correlation: CorrelationConfig = Field(default_factory=CorrelationConfig)
    suggestions: SuggestionConfig = Field(default_factory=SuggestionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    debug: bool = Field(default=False, description="Enable debug mode.")

    model_config = {
        "env_prefix": "EVENTCLUSTER_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore unknown fields for forward compatibility
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment variables override file values passed as init kwargs."""
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    def effective_log_level(self) -> str:
        """DEBUG when debug mode is on, otherwise the configured level."""
        return "DEBUG" if self.debug else self.logging.level


# =============================================================================
# Module-Level Functions
# =============================================================================


def _find_config_file(path: Path | None) -> Path | None:
    """Return the first existing config file among the search locations."""
    if path is not None:
        if not path.exists():
            raise ConfigFileError(f"Config file not found: {path}")
        return path

    search_paths = [
        Path("./eventcluster.yaml"),
        Path("./eventcluster.yml"),
        Path.home() / ".eventcluster" / "config.yaml",
    ]
    for search_path in search_paths:
        if search_path.exists():
            return search_path
    return None


def _read_config_file(config_file: Path) -> dict[str, Any]:
    """Parse a YAML config file into a dict."""
    try:
        content = config_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(f"Failed to read config file {config_file}: {e}") from e

    if not content.strip():
        return {}

    try:
        loaded = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Failed to parse config file {config_file}: {e}") from e

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigFileError(
            f"Config file {config_file} must contain a mapping, got {type(loaded).__name__}"
        )
    return loaded


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from file, environment, and defaults.

    If no config file is found, uses defaults and environment only.

    Args:
        path: Optional path to config file. If None, searches default locations.

    Returns:
        Fully-populated AppConfig instance.

    Raises:
        ConfigFileError: If the config file cannot be read or parsed.
        ConfigError: If any value fails validation.

    Example:
        >>> config = load_config()  # Use defaults and env vars
        >>> config = load_config(Path("./eventcluster.yaml"))
    """
    config_file = _find_config_file(path)
    config_data: dict[str, Any] = {}

    if config_file is not None:
        config_data = _read_config_file(config_file)
        logger.debug(f"Loaded config file {config_file}")

    try:
        return AppConfig(**config_data)
    except ValidationError as e:
        source = f" (from {config_file})" if config_file else ""
        raise ConfigError(f"Invalid configuration{source}: {e}") from e


@functools.lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the cached configuration singleton.

    Loads configuration once and returns the same instance on subsequent calls.

    Returns:
        Cached AppConfig instance.
    """
    return load_config()


def reset_config() -> None:
    """Clear the configuration cache for testing.

    After calling this, the next call to get_config() will reload
    configuration from sources.
    """
    get_config.cache_clear()
