"""
AssetLog - context enriching facade over StructuredLogger

Usage:
    from assetlog.logging import new_logger, RequestContext

    logger = new_logger("info", ["stdout"], ["request_id"])
    ctx = RequestContext({"request_id": "abc123"})
    logger.info(ctx, "hello")
    # {"timestamp": "...", "level": "INFO", "logger": "assetlog", "message": "hello", "request_id": "abc123"}

    logger.infof(ctx, "processed %d items in %.1fs", 12, 0.4)
"""

import os
from collections.abc import Mapping
from dataclasses import replace

from beartype.typing import Any, Iterable, Optional

from assetlog.constants import DEFAULT_CONFIG_FILE, DEFAULT_LOGGER_NAME, ENV_VAR_CONFIG_FILE, ENV_VAR_ENVIRONMENT
from assetlog.logging.config import LoggerConfig, RotationPolicy, load_config, resolve_environment
from assetlog.logging.context import ContextEnricher, FieldAccessor, current_context
from assetlog.logging.file_handler import build_sink
from assetlog.logging.structured_logger import LogLevel, StructuredLogger, resolve_level


def _text(arg) -> str:
    try:
        return str(arg)
    except Exception as e:
        return f"<unprintable {type(arg).__name__}: {e}>"


def _sprint(args) -> str:
    # A space goes only between two adjacent operands that are not strings
    parts = []
    for i, arg in enumerate(args):
        if i > 0 and not isinstance(arg, str) and not isinstance(args[i - 1], str):
            parts.append(" ")
        parts.append(_text(arg))
    return "".join(parts)


def _sprintf(template: str, args) -> str:
    """
    Apply printf-style ``%`` formatting.

    A malformed template is not an error: the template is written as is,
    followed by the arguments separated by spaces.
    """
    if not args:
        return template
    if len(args) == 1 and isinstance(args[0], Mapping) and args[0]:
        args = args[0]
    try:
        return template % args
    except Exception:
        return " ".join([template] + [_text(arg) for arg in (args.values() if isinstance(args, Mapping) else args)])


class AssetLog:
    """
    Logger bound to a config whose ``appends`` names are read from the
    request context of every call and attached as fields.

    Each call builds a private view of the underlying logger; the underlying
    logger and its sink are shared by all calls and never modified.
    """

    def __init__(
        self,
        logger: StructuredLogger,
        config: LoggerConfig,
        enricher: Optional[ContextEnricher] = None,
        use_ambient_context: bool = False,
    ):
        self._logger = logger
        self._config = config
        self._enricher = enricher or ContextEnricher(config.appends)
        self.use_ambient_context = use_ambient_context

    @property
    def logger(self) -> StructuredLogger:
        return self._logger

    @property
    def config(self) -> LoggerConfig:
        """Copy of the bound config, changing its lists does not affect the logger"""
        return replace(
            self._config, output_paths=list(self._config.output_paths), appends=list(self._config.appends)
        )

    @property
    def enricher(self) -> ContextEnricher:
        return self._enricher

    def with_accessor(self, name: str, accessor: FieldAccessor) -> "AssetLog":
        """
        Return a logger that also attaches ``name``, read with ``accessor``.

        Example:
            logger = logger.with_accessor("user_id", lambda ctx: ctx.user.id)
        """
        return AssetLog(
            self._logger, self._config, self._enricher.with_accessor(name, accessor), self.use_ambient_context
        )

    def _enriched(self, ctx: Any) -> StructuredLogger:
        if ctx is None and self.use_ambient_context:
            ctx = current_context()
        fields = self._enricher.enrich(ctx)
        if not fields:
            return self._logger
        return self._logger.with_fields(fields)

    def _emit(self, level: LogLevel, ctx: Any, message: str, exc_info: bool = False):
        self._enriched(ctx).emit(level, message, exc_info=exc_info)

    def debug(self, ctx: Any, *args):
        self._emit(LogLevel.DEBUG, ctx, _sprint(args))

    def debugf(self, ctx: Any, template: str, *args):
        self._emit(LogLevel.DEBUG, ctx, _sprintf(template, args))

    def info(self, ctx: Any, *args):
        self._emit(LogLevel.INFO, ctx, _sprint(args))

    def infof(self, ctx: Any, template: str, *args):
        self._emit(LogLevel.INFO, ctx, _sprintf(template, args))

    def warn(self, ctx: Any, *args):
        self._emit(LogLevel.WARN, ctx, _sprint(args))

    def warnf(self, ctx: Any, template: str, *args):
        self._emit(LogLevel.WARN, ctx, _sprintf(template, args))

    warningf = warnf

    def error(self, ctx: Any, *args, exc_info: bool = False):
        self._emit(LogLevel.ERROR, ctx, _sprint(args), exc_info=exc_info)

    def errorf(self, ctx: Any, template: str, *args, exc_info: bool = False):
        self._emit(LogLevel.ERROR, ctx, _sprintf(template, args), exc_info=exc_info)

    def fatal(self, ctx: Any, *args, exc_info: bool = False):
        """Log at FATAL and exit the process with status 1"""
        self._emit(LogLevel.FATAL, ctx, _sprint(args), exc_info=exc_info)

    def fatalf(self, ctx: Any, template: str, *args, exc_info: bool = False):
        """Log a formatted message at FATAL and exit the process with status 1"""
        self._emit(LogLevel.FATAL, ctx, _sprintf(template, args), exc_info=exc_info)

    def sync(self):
        self._logger.sync()

    def close(self):
        self._logger.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _build(config: LoggerConfig, name: str, use_ambient_context: bool) -> AssetLog:
    level = resolve_level(config.level)
    sink = build_sink(config.output_paths, config.rotation)
    logger = StructuredLogger(name, level=level, output_stream=sink)
    return AssetLog(logger, config, ContextEnricher(config.appends), use_ambient_context=use_ambient_context)


def new_logger(
    level: str,
    output_paths: Iterable[str],
    appends: Iterable[str],
    rotation: Optional[RotationPolicy] = None,
    name: str = DEFAULT_LOGGER_NAME,
    use_ambient_context: bool = False,
) -> AssetLog:
    """
    Build a logger without a config file.

    Args:
        level: Severity threshold, one of DEBUG, INFO, WARN, ERROR, FATAL in any casing
        output_paths: "stdout", "stderr" or file paths, every record goes to all of them
        appends: Context keys attached to every record
        rotation: Rotation limits for file outputs (default: 50MB, 1 backup, 1 day)
        name: Logger name written to every record
        use_ambient_context: Read the context bound with bind_context when a call passes None

    Raises:
        UnsupportedLevel: level is not a known severity
    """
    resolve_level(level)
    config = LoggerConfig(
        level=level,
        output_paths=list(output_paths),
        appends=list(appends),
        rotation=rotation or RotationPolicy(),
    )
    return _build(config, name, use_ambient_context)


def new_logger_from_config_file(
    environment: str, file_path, name: str = DEFAULT_LOGGER_NAME, use_ambient_context: bool = False
) -> AssetLog:
    """
    Build a logger from the entry of a YAML config file selected by environment.

    "prod" and "test" select their own entry, any other name selects "dev".

    Raises:
        MissingEnvironment: environment is empty
        ConfigReadError: the file could not be read
        ConfigParseError: the file content is invalid
        ConfigMissingForEnvironment: the file has no entry for the environment
        UnsupportedLevel: the selected entry has an unknown level
    """
    resolved = resolve_environment(environment)
    config = load_config(resolved, file_path)
    return _build(config, name, use_ambient_context)


def new_logger_from_env(file_path=None, name: str = DEFAULT_LOGGER_NAME, use_ambient_context: bool = False) -> AssetLog:
    """
    Build a logger from ASSETLOG_ENV and ASSETLOG_CONFIG.

    file_path takes precedence over ASSETLOG_CONFIG, which defaults to logger.yml.
    """
    environment = os.environ.get(ENV_VAR_ENVIRONMENT, "")
    file_path = file_path or os.environ.get(ENV_VAR_CONFIG_FILE, DEFAULT_CONFIG_FILE)
    return new_logger_from_config_file(environment, file_path, name=name, use_ambient_context=use_ambient_context)
