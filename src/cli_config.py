"""Runtime configuration for the CLI.

Values are merged with the following precedence: command line flags, then
the ``-c`` configuration file, then ``DEPTREE_*`` environment variables,
then the defaults in :class:`constants.Constants`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional

import yaml

from common.logging_utils import add_file_handler, configure_logging
from constants import Constants
from exceptions import ConfigError
from hierarchy.filters import FilterSet, filters_from_cli
from versioning.frameworks import Framework, parse_framework
from versioning.models import FloatBehavior

logger = logging.getLogger(__name__)

# Keys accepted in the configuration file, mapped to the CLI dest they mirror
_FILE_KEYS = {
    "feed_url": "FEED_URL",
    "target_framework": "TARGET_FRAMEWORK",
    "writer_type": "WRITER_TYPE",
    "dependency_exclusion_filters": "DEPENDENCY_EXCLUSION_FILTERS",
    "expansion_exclusion_filters": "EXPANSION_EXCLUSION_FILTERS",
    "float_behavior": "FLOAT_BEHAVIOR",
    "include_prerelease": "INCLUDE_PRERELEASE",
    "max_concurrency": "MAX_CONCURRENCY",
    "username": "USERNAME",
    "password": "PASSWORD",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
}

_ENV_KEYS = {
    "feed_url": Constants.ENV_FEED_URL,
    "target_framework": Constants.ENV_TARGET_FRAMEWORK,
    "username": Constants.ENV_USERNAME,
    "password": Constants.ENV_PASSWORD,
    "log_level": Constants.ENV_LOG_LEVEL,
}


def load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load the configuration file.

    Both YAML and JSON files are accepted. Settings may sit at the top level
    or under a ``deptree`` section.

    Args:
        config_path: Path to the YAML/JSON config file, or None.

    Returns:
        Configuration dict, empty when no path was given.

    Raises:
        ConfigError: If the file is missing, unreadable or malformed.
    """
    if not config_path:
        return {}
    if not os.path.isfile(config_path):
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load config file {config_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    section = data.get("deptree", data)
    if not isinstance(section, dict):
        raise ConfigError(f"Section 'deptree' of {config_path} must be a mapping")

    unknown = sorted(set(section) - set(_FILE_KEYS))
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
    return {k: v for k, v in section.items() if k in _FILE_KEYS}


def _as_list(value: Any, key: str) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ConfigError(f"Config key '{key}' must be a string or a list of strings")


@dataclass
class HierarchyConfig:  # pylint: disable=too-many-instance-attributes
    """Effective settings for one CLI run."""

    feed_url: str = Constants.DEFAULT_FEED_URL
    target_framework: str = Constants.DEFAULT_TARGET_FRAMEWORK
    writer_type: str = Constants.DEFAULT_WRITER_TYPE
    dependency_exclusion_filters: Optional[List[str]] = None
    expansion_exclusion_filters: Optional[List[str]] = None
    float_behavior: str = Constants.DEFAULT_FLOAT_BEHAVIOR
    include_prerelease: bool = False
    max_concurrency: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    log_level: Optional[str] = None
    log_file: Optional[str] = None

    @classmethod
    def from_args(cls, args: Any, file_config: Optional[Dict[str, Any]] = None) -> "HierarchyConfig":
        """Create config from CLI arguments, the config file and the environment.

        Args:
            args: Parsed CLI arguments namespace.
            file_config: Mapping returned by :func:`load_config_file`.

        Returns:
            HierarchyConfig instance.

        Raises:
            ConfigError: If a merged value is invalid.
        """
        file_config = file_config or {}
        config = cls()
        for f in fields(cls):
            value = getattr(args, _FILE_KEYS[f.name], None)
            if value is None:
                value = file_config.get(f.name)
            if value is None and f.name in _ENV_KEYS:
                env_value = os.environ.get(_ENV_KEYS[f.name])
                value = env_value.strip() if env_value and env_value.strip() else None
            if value is not None:
                setattr(config, f.name, value)

        config.dependency_exclusion_filters = _as_list(
            config.dependency_exclusion_filters, "dependency_exclusion_filters"
        )
        config.expansion_exclusion_filters = _as_list(
            config.expansion_exclusion_filters, "expansion_exclusion_filters"
        )
        config.writer_type = str(config.writer_type).lower()
        if config.writer_type not in Constants.SUPPORTED_WRITERS:
            raise ConfigError(f"Unsupported writer type: {config.writer_type}")
        config.float_behavior = str(config.float_behavior).lower()
        if config.float_behavior not in Constants.SUPPORTED_FLOAT_BEHAVIORS:
            raise ConfigError(f"Unsupported float behavior: {config.float_behavior}")
        if config.max_concurrency is not None:
            try:
                config.max_concurrency = int(config.max_concurrency)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"max_concurrency must be an integer: {config.max_concurrency!r}") from exc
            if config.max_concurrency < 1:
                raise ConfigError("max_concurrency must be at least 1")
        config.include_prerelease = bool(config.include_prerelease)
        if config.log_level is not None:
            config.log_level = str(config.log_level).upper()
        return config

    def framework(self) -> Framework:
        return parse_framework(self.target_framework)

    def floating(self) -> FloatBehavior:
        return FloatBehavior(self.float_behavior)

    def dependency_filters(self) -> FilterSet:
        return filters_from_cli(
            self.dependency_exclusion_filters, Constants.DEFAULT_DEPENDENCY_EXCLUSION_FILTERS
        )

    def expansion_filters(self) -> FilterSet:
        return filters_from_cli(
            self.expansion_exclusion_filters, Constants.DEFAULT_EXPANSION_EXCLUSION_FILTERS
        )


def setup_logging(config: HierarchyConfig) -> None:
    """Configure logging from the effective settings.

    Args:
        config: Merged configuration.
    """
    configure_logging(config.log_level)
    if config.log_file:
        add_file_handler(config.log_file)
