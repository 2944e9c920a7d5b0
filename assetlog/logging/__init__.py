"""
assetlog logging - context enriching structured logging

Provides:
- Structured logging (NDJSON, one JSON object per line)
- Five ordered levels: DEBUG, INFO, WARN, ERROR, FATAL
- Request context fields attached to every record
- Output to stdout, stderr and rotating files at the same time
- Direct or environment-selected file based construction

Usage:
    from assetlog.logging import new_logger, RequestContext

    logger = new_logger("info", ["stdout", "/var/log/app/app.log"], ["request_id"])
    ctx = RequestContext({"request_id": "abc123"})
    logger.info(ctx, "Operation completed")
    logger.errorf(ctx, "Upload of %s failed", "report.csv")

Configuration:
    # logger.yml
    prod:
      level: INFO
      output_paths: [stdout]
      appends: [request_id]

    from assetlog.logging import new_logger_from_config_file
    logger = new_logger_from_config_file("prod", "logger.yml")

    # or, reading ASSETLOG_ENV and ASSETLOG_CONFIG
    from assetlog.logging import new_logger_from_env
    logger = new_logger_from_env()
"""

from assetlog.logging.asset_log import AssetLog, new_logger, new_logger_from_config_file, new_logger_from_env
from assetlog.logging.config import LoggerConfig, RotationPolicy
from assetlog.logging.context import ContextEnricher, RequestContext, bind_context, current_context
from assetlog.logging.structured_logger import LogLevel, StructuredLogger, resolve_level

__all__ = [
    "AssetLog",
    "ContextEnricher",
    "LogLevel",
    "LoggerConfig",
    "RequestContext",
    "RotationPolicy",
    "StructuredLogger",
    "bind_context",
    "current_context",
    "new_logger",
    "new_logger_from_config_file",
    "new_logger_from_env",
    "resolve_level",
]
