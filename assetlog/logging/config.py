"""
Configuration System - environment-selected logger configuration

Reads a YAML file holding one logger configuration per environment and
selects the one for the running environment.

Example configuration file (logger.yml):
    prod:
      level: INFO
      output_paths: [stdout, "/var/log/${SERVICE}/app.log"]
      appends: [request_id, user_id]
      rotation:            # optional
        max_size: 50MB
        max_backups: 1
        max_age: 1d
    dev:
      level: debug
      output_paths: [stderr]
      appends: [request_id]

The environment entries may also be nested under a top-level ``configs`` key.
"""

import math
import os
import re
from dataclasses import dataclass, replace

import yaml
from beartype.roar import BeartypeException
from beartype.typing import Any, Dict, List, Optional
from humanfriendly import InvalidSize, InvalidTimespan, parse_size, parse_timespan
from serde import SerdeError, deserialize, field, from_dict, serialize

from assetlog.constants import (
    DEFAULT_MAX_AGE_DAYS,
    DEFAULT_MAX_BACKUPS,
    DEFAULT_MAX_SIZE_MB,
    ENVIRONMENT_DEV,
    KNOWN_ENVIRONMENTS,
    MEGABYTE,
    SECONDS_PER_DAY,
)
from assetlog.exceptions import ConfigMissingForEnvironment, ConfigParseError, ConfigReadError, MissingEnvironment

CONFIGS_KEY = "configs"


@serialize
@deserialize
@dataclass(frozen=True)
class RotationPolicy:
    """Rotation limits applied to every file destination of a logger"""

    max_bytes: int = DEFAULT_MAX_SIZE_MB * MEGABYTE
    backup_count: int = DEFAULT_MAX_BACKUPS
    max_age_seconds: int = DEFAULT_MAX_AGE_DAYS * SECONDS_PER_DAY


@serialize
@deserialize
@dataclass(frozen=True)
class LoggerConfig:
    """Severity threshold, output identifiers and context fields of one logger"""

    level: str = ""
    output_paths: List[str] = field(default_factory=list)
    appends: List[str] = field(default_factory=list)
    rotation: RotationPolicy = field(default_factory=RotationPolicy)


def resolve_environment(environment: str) -> str:
    """
    Normalize an environment name.

    Args:
        environment: Environment name, e.g. "prod"

    Returns:
        "prod" or "test" unchanged, "dev" for any other name

    Raises:
        MissingEnvironment: environment is empty
    """
    if not environment:
        raise MissingEnvironment()
    if environment in KNOWN_ENVIRONMENTS:
        return environment
    return ENVIRONMENT_DEV


def load_logger_configs(file_path) -> Dict[str, LoggerConfig]:
    """
    Read and parse a logger config file.

    Args:
        file_path: Path to the YAML file

    Returns:
        Mapping of environment name to LoggerConfig

    Raises:
        ConfigReadError: the file could not be read
        ConfigParseError: the content is not valid YAML or has the wrong shape
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigReadError(file_path, str(e)) from e

    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigParseError(file_path, str(e)) from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigParseError(file_path, "Top level must be a mapping of environment names.")
    if set(document) == {CONFIGS_KEY} and isinstance(document[CONFIGS_KEY], dict):
        document = document[CONFIGS_KEY]

    document = substitute_env_vars(document)
    return {str(environment): _parse_entry(file_path, environment, entry) for environment, entry in document.items()}


def load_config(environment: str, file_path) -> LoggerConfig:
    """
    Load the logger config selected by an already resolved environment name.

    Raises:
        ConfigReadError, ConfigParseError: see load_logger_configs
        ConfigMissingForEnvironment: the file has no entry for environment
    """
    configs = load_logger_configs(file_path)
    if environment not in configs:
        raise ConfigMissingForEnvironment(environment, file_path)
    return configs[environment]


def _parse_entry(file_path, environment, entry: Any) -> LoggerConfig:
    if entry is None:
        entry = {}
    if not isinstance(entry, dict):
        raise ConfigParseError(file_path, f"Entry '{environment}' must be a mapping.")

    values = {key: value for key, value in entry.items() if value is not None}
    rotation = _parse_rotation(file_path, environment, values.pop("rotation", None))

    if "level" in values and not isinstance(values["level"], str):
        raise ConfigParseError(file_path, f"'{environment}.level' must be a string.")
    for key in ("output_paths", "appends"):
        if key in values and not _is_string_list(values[key]):
            raise ConfigParseError(file_path, f"'{environment}.{key}' must be a list of strings.")

    try:
        config = from_dict(LoggerConfig, values)
    except (SerdeError, BeartypeException, TypeError, ValueError) as e:
        raise ConfigParseError(file_path, f"Entry '{environment}': {e}") from e
    return replace(config, rotation=rotation)


def _parse_rotation(file_path, environment, raw: Any) -> RotationPolicy:
    if raw is None:
        return RotationPolicy()
    if not isinstance(raw, dict):
        raise ConfigParseError(file_path, f"'{environment}.rotation' must be a mapping.")

    try:
        max_bytes = _parse_megabytes(raw.get("max_size", DEFAULT_MAX_SIZE_MB))
        max_age_seconds = _parse_days(raw.get("max_age", DEFAULT_MAX_AGE_DAYS))
    except (InvalidSize, InvalidTimespan) as e:
        raise ConfigParseError(file_path, f"'{environment}.rotation': {e}") from e
    if max_bytes <= 0:
        raise ConfigParseError(file_path, f"'{environment}.rotation.max_size' must be positive.")
    if max_age_seconds < 0:
        raise ConfigParseError(file_path, f"'{environment}.rotation.max_age' must not be negative.")

    backup_count = raw.get("max_backups", DEFAULT_MAX_BACKUPS)
    if isinstance(backup_count, bool) or not isinstance(backup_count, int) or backup_count < 0:
        raise ConfigParseError(file_path, f"'{environment}.rotation.max_backups' must be a non-negative integer.")

    return RotationPolicy(max_bytes=max_bytes, backup_count=backup_count, max_age_seconds=max_age_seconds)


def _parse_megabytes(value: Any) -> int:
    # Unit-less numbers are megabytes, sizes with a unit go through humanfriendly ("50MB", "1 GiB")
    number = _as_number(value)
    if number is not None:
        return int(number * MEGABYTE)
    return int(parse_size(str(value), binary=True))


def _parse_days(value: Any) -> int:
    # Unit-less numbers are days, spans with a unit go through humanfriendly ("1d", "12h")
    number = _as_number(value)
    if number is not None:
        return int(number * SECONDS_PER_DAY)
    return int(parse_timespan(str(value)))


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def substitute_env_vars(config: Any) -> Any:
    """
    Recursively substitute environment variables in configuration.

    Supports ${VAR_NAME} syntax. Unknown variables are left unchanged.

    Example:
        output_paths: ["/var/log/${SERVICE}/app.log"]
        With SERVICE=billing, becomes:
        output_paths: [/var/log/billing/app.log]
    """
    if isinstance(config, str):

        def replace_env(match):
            var_name = match.group(1)
            return os.environ.get(var_name, match.group(0))

        return re.sub(r"\$\{([^}]+)\}", replace_env, config)

    elif isinstance(config, dict):
        return {k: substitute_env_vars(v) for k, v in config.items()}

    elif isinstance(config, list):
        return [substitute_env_vars(item) for item in config]

    else:
        return config
