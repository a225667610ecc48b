"""
Settings for quadcluster.

Settings come from a YAML file (config/settings.yaml by default) whose
strings may reference environment variables as ${NAME} or ${NAME:default}.
The result is validated into the pydantic models below and cached process-wide
by ConfigManager.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from quadcluster.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHMS = ("distance", "grid", "simple")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# =============================================================================
# Configuration Models (Pydantic)
# =============================================================================

class ServiceSettings(BaseModel):
    """Identity stamped on log events."""
    name: str = Field(default="quadcluster", description="Service name")
    version: str = Field(default="1.0.0", description="Service version")
    environment: str = Field(default="production", description="Environment (development, staging, production)")


class QuadTreeSettings(BaseModel):
    """Spatial index settings."""
    max_elements: int = Field(default=64, ge=1, description="Items per leaf before it splits")
    max_depth: int = Field(default=30, ge=0, description="Depth at which leaves stop splitting")


class DistanceSettings(BaseModel):
    """Non-hierarchical distance-based algorithm settings."""
    cluster_distance_points: int = Field(default=100, ge=1, description="Cluster radius in screen points")


class GridSettings(BaseModel):
    """Grid-based algorithm settings."""
    grid_cell_size_points: float = Field(default=100.0, gt=0.0, description="Grid cell size in screen points")


class SimpleSettings(BaseModel):
    """Simple (round-robin) algorithm settings."""
    cluster_count: int = Field(default=10, ge=1, description="Number of clusters")


class ClusteringAlgorithmsSettings(BaseModel):
    """Parameters keyed by algorithm name."""
    distance: DistanceSettings = Field(default_factory=DistanceSettings)
    grid: GridSettings = Field(default_factory=GridSettings)
    simple: SimpleSettings = Field(default_factory=SimpleSettings)


class ClusteringSettings(BaseModel):
    """Engine defaults and per-algorithm parameters."""
    default_algorithm: str = Field(default="distance", description="Default clustering algorithm")
    default_zoom: float = Field(default=10.0, description="Zoom used when none is given")
    algorithms: ClusteringAlgorithmsSettings = Field(default_factory=ClusteringAlgorithmsSettings)

    @field_validator("default_algorithm")
    @classmethod
    def validate_algorithm(cls, value: str) -> str:
        value = value.lower()
        if value not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"default_algorithm must be one of {SUPPORTED_ALGORITHMS}")
        return value


class FileLoggingSettings(BaseModel):
    """Optional rotating log file."""
    enabled: bool = Field(default=False, description="Enable file logging")
    path: str = Field(default="logs/quadcluster.log", description="Log file path")


class LoggingSettings(BaseModel):
    """structlog output settings."""
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="console", description="Log format (json or console)")
    file: FileLoggingSettings = Field(default_factory=FileLoggingSettings)

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"level must be one of {LOG_LEVELS}")
        return value

    @field_validator("format")
    @classmethod
    def validate_format(cls, value: str) -> str:
        if value not in ("json", "console"):
            raise ValueError("format must be 'json' or 'console'")
        return value


class Settings(BaseModel):
    """All settings sections."""
    service: ServiceSettings = Field(default_factory=ServiceSettings)
    quadtree: QuadTreeSettings = Field(default_factory=QuadTreeSettings)
    clustering: ClusteringSettings = Field(default_factory=ClusteringSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def algorithm_params(self, algorithm: str) -> Dict[str, Any]:
        """Default constructor params for an algorithm, quad tree limits included."""
        params = getattr(self.clustering.algorithms, algorithm).model_dump()
        if algorithm == "distance":
            params["max_elements"] = self.quadtree.max_elements
            params["max_depth"] = self.quadtree.max_depth
        return params


# =============================================================================
# Loading
# =============================================================================

CONFIG_ENV_VAR = "QUADCLUSTER_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/settings.yaml")

# ${NAME} or ${NAME:default}
ENV_REFERENCE = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


class ConfigManager:
    """
    Process-wide settings cache.

    The first `load_config()` decides where settings come from; later calls
    return the same object until `reload_config()` or `reset()`.
    """

    _instance: Optional["ConfigManager"] = None
    _settings: Optional[Settings] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def load_config(cls, config_path: Optional[str] = None) -> Settings:
        """
        Load and validate settings, once.

        Without `config_path`, $QUADCLUSTER_CONFIG and then
        config/settings.yaml are tried; if neither exists the built-in
        defaults are used.

        Raises:
            FileNotFoundError: `config_path` was given but does not exist
            ConfigurationError: The YAML is malformed or fails validation
        """
        if cls._settings is not None:
            return cls._settings

        path = cls._locate(config_path)
        if path is None:
            logger.warning(f"No settings file found, using defaults ({CONFIG_ENV_VAR} unset or missing)")
            cls._settings = Settings()
            return cls._settings

        logger.info(f"Loading settings from {path}")
        raw = cls._substitute_env_vars(cls._read_yaml(path))

        try:
            cls._settings = Settings.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Settings in {path} failed validation: {e}")
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                details={"path": str(path)},
            ) from e

        return cls._settings

    @staticmethod
    def _locate(config_path: Optional[str]) -> Optional[Path]:
        if config_path is not None:
            path = Path(config_path)
            if not path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return path

        candidates = [Path(os.getenv(CONFIG_ENV_VAR, str(DEFAULT_CONFIG_PATH))), DEFAULT_CONFIG_PATH]
        return next((path for path in candidates if path.exists()), None)

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r") as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML configuration: {e}",
                details={"path": str(path)},
            ) from e

    @classmethod
    def _substitute_env_vars(cls, value: Any) -> Any:
        """Expand ${NAME} and ${NAME:default} in every string, recursively. Unset names without a default become ""."""
        if isinstance(value, dict):
            return {key: cls._substitute_env_vars(item) for key, item in value.items()}
        if isinstance(value, list):
            return [cls._substitute_env_vars(item) for item in value]
        if isinstance(value, str):
            return ENV_REFERENCE.sub(lambda m: os.getenv(m.group(1), m.group(2) or ""), value)
        return value

    @classmethod
    def get_settings(cls) -> Settings:
        return cls._settings if cls._settings is not None else cls.load_config()

    @classmethod
    def reload_config(cls, config_path: Optional[str] = None) -> Settings:
        """Forget cached settings and load again."""
        cls.reset()
        return cls.load_config(config_path)

    @classmethod
    def reset(cls) -> None:
        cls._settings = None


def get_settings() -> Settings:
    """Shortcut for ConfigManager.get_settings()."""
    return ConfigManager.get_settings()
