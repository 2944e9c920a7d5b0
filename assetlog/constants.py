FAULT_MAPPING = dict(
    unsupported_level="Unsupported log level '{level}'. Must be one of: DEBUG, INFO, WARN, ERROR, FATAL.",
    missing_environment="Environment is not set. Please provide one of: prod, test, dev.",
    config_read_error="Error occurred while opening the logger config file ({file_path}). "
    "Make sure that the file exists or the path is correct.",
    config_parse_error="Error occurred while parsing the logger config file ({file_path}). "
    "Make sure that the structure of the file is correct. {reason}",
    config_missing_for_environment="Logger config file ({file_path}) has no entry for environment '{environment}'.",
    invalid_context_value="Context value for '{key}' must be a string, got {type_name}. "
    "Format the value before adding it to the context.",
)

ENVIRONMENT_PROD = "prod"
ENVIRONMENT_TEST = "test"
ENVIRONMENT_DEV = "dev"
KNOWN_ENVIRONMENTS = (ENVIRONMENT_PROD, ENVIRONMENT_TEST)

ENV_VAR_ENVIRONMENT = "ASSETLOG_ENV"
ENV_VAR_CONFIG_FILE = "ASSETLOG_CONFIG"
DEFAULT_CONFIG_FILE = "logger.yml"

DEFAULT_LOGGER_NAME = "assetlog"

STDOUT = "stdout"
STDERR = "stderr"

# Rotation defaults for file destinations
DEFAULT_MAX_SIZE_MB = 50
DEFAULT_MAX_BACKUPS = 1
DEFAULT_MAX_AGE_DAYS = 1
MEGABYTE = 1024 * 1024
SECONDS_PER_DAY = 24 * 60 * 60
