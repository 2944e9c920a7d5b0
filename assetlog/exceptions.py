from assetlog.constants import FAULT_MAPPING


class AssetLogError(Exception):
    """Base class for errors raised while constructing a logger."""


class UnsupportedLevel(AssetLogError):
    """Exception raised for a severity name outside DEBUG, INFO, WARN, ERROR and FATAL.

    Attributes:
        level: the offending severity name, as passed in
    """

    def __init__(self, level):
        self.level = level
        super().__init__(FAULT_MAPPING["unsupported_level"].format(level=level))


class MissingEnvironment(AssetLogError):
    """Exception raised when file-based construction gets an empty environment."""

    def __init__(self):
        super().__init__(FAULT_MAPPING["missing_environment"])


class ConfigReadError(AssetLogError):
    """Exception raised when the logger config file cannot be read.

    Attributes:
        file_path: path of the config file
        reason: description of the underlying I/O error
    """

    def __init__(self, file_path, reason=""):
        self.file_path = file_path
        self.reason = reason
        super().__init__(FAULT_MAPPING["config_read_error"].format(file_path=file_path))


class ConfigParseError(AssetLogError):
    """Exception raised when the logger config file has invalid content.

    Attributes:
        file_path: path of the config file
        reason: what was wrong with the content
    """

    def __init__(self, file_path, reason=""):
        self.file_path = file_path
        self.reason = reason
        super().__init__(FAULT_MAPPING["config_parse_error"].format(file_path=file_path, reason=reason).strip())


class ConfigMissingForEnvironment(AssetLogError):
    """Exception raised when the parsed config file has no entry for the environment.

    Attributes:
        environment: resolved environment name that was looked up
        file_path: path of the config file
    """

    def __init__(self, environment: str, file_path):
        self.environment = environment
        self.file_path = file_path
        super().__init__(
            FAULT_MAPPING["config_missing_for_environment"].format(environment=environment, file_path=file_path)
        )
