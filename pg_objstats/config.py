"""
Run configuration.

Settings are read once from the YAML configuration file. Connection keys
stay in the raw settings dictionary handed to the connector; the analysis
thresholds are frozen into a ``StatsConfig`` that every check receives.
"""

from dataclasses import dataclass
import logging

import yaml

from pg_objstats.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"


@dataclass(frozen=True)
class StatsConfig:
    """Read-only thresholds shared by every category of a run."""
    top_databases_n: int = 5
    top_tables_n: int = 10
    top_indexes_n: int = 10
    min_observations: int = 10000
    fk_min_table_mb: float = 9
    fk_min_writes: int = 1000
    fk_min_parent_writes: int = 1000
    fk_min_parent_mb: float = 10

    def __post_init__(self):
        for name in ('top_databases_n', 'top_tables_n', 'top_indexes_n'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigError(f"Invalid '{name}'", f"expected a positive integer, got {value!r}")
        for name in ('min_observations', 'fk_min_table_mb', 'fk_min_writes',
                     'fk_min_parent_writes', 'fk_min_parent_mb'):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
                raise ConfigError(f"Invalid '{name}'", f"expected a non-negative number, got {value!r}")

    @classmethod
    def from_settings(cls, settings):
        """Builds the configuration from the ``object_stats`` settings block.

        Args:
            settings (dict): The full settings loaded from the YAML file.

        Returns:
            StatsConfig: The frozen configuration.

        Raises:
            ConfigError: If the block is malformed or holds unknown keys.
        """
        section = (settings or {}).get('object_stats') or {}
        if not isinstance(section, dict):
            raise ConfigError("Invalid 'object_stats' section", f"expected a mapping, got {type(section).__name__}")

        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(section) - known)
        if unknown:
            raise ConfigError("Unknown 'object_stats' settings", ", ".join(unknown))

        return cls(**section)


def load_settings(config_file):
    """Loads the main YAML configuration file.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        with open(config_file, 'r') as f:
            settings = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading settings from {config_file}", str(e)) from e

    if settings is None:
        return {}
    if not isinstance(settings, dict):
        raise ConfigError(f"Error loading settings from {config_file}", "top level must be a mapping")
    logger.debug(f"Loaded settings from {config_file}")
    return settings
