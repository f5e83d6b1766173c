"""
Logging configuration for the tanX client.

Console plus rotating files, optional JSON output. Every handler carries the
credential redaction filter and stamps the flow correlation id.
"""

import copy
import logging
import logging.config
from typing import Optional

from .config import get_settings


LOGGER_ROOT = "tanx"

DEFAULT_LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "redact": {
            "()": "tanx.utils.structured_logging.CredentialRedactionFilter"
        },
        "correlation": {
            "()": "tanx.utils.structured_logging.CorrelationIdFilter"
        }
    },
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s [%(correlation_id)s]: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S"
        },
        "detailed": {
            "format": (
                "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d "
                "[%(correlation_id)s] - %(message)s (%(funcName)s)"
            ),
            "datefmt": "%Y-%m-%d %H:%M:%S"
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(correlation_id)s %(message)s"
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "standard",
            "filters": ["redact", "correlation"],
            "stream": "ext://sys.stdout"
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "detailed",
            "filters": ["redact", "correlation"],
            "filename": "tanx_client.log",
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "delay": True
        },
        "error_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "ERROR",
            "formatter": "detailed",
            "filters": ["redact", "correlation"],
            "filename": "tanx_errors.log",
            "maxBytes": 10485760,
            "backupCount": 5,
            "delay": True
        }
    },
    "loggers": {
        LOGGER_ROOT: {
            "level": "INFO",
            "handlers": ["console", "file", "error_file"],
            "propagate": False
        }
    },
    "root": {
        "level": "WARNING",
        "handlers": ["console"]
    }
}


def build_logging_config(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    json_format: bool = False,
    console_only: bool = False
) -> dict:
    """
    Build a dictConfig mapping from the defaults.

    Args:
        level: Log level for the ``tanx`` logger tree
        log_file: Optional log file path (errors go to ``<name>_errors.log``)
        json_format: Use the python-json-logger formatter
        console_only: Skip the rotating file handlers

    Returns:
        Configuration dict accepted by ``logging.config.dictConfig``
    """
    config = copy.deepcopy(DEFAULT_LOGGING_CONFIG)
    package_logger = config["loggers"][LOGGER_ROOT]

    if level:
        package_logger["level"] = level.upper()

    if log_file:
        config["handlers"]["file"]["filename"] = log_file
        config["handlers"]["error_file"]["filename"] = log_file.replace(".log", "_errors.log")

    if json_format:
        config["handlers"]["console"]["formatter"] = "json"
        config["handlers"]["file"]["formatter"] = "json"

    if console_only:
        del config["handlers"]["file"]
        del config["handlers"]["error_file"]
        package_logger["handlers"] = ["console"]

    return config


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    json_format: bool = False,
    console_only: bool = False
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR); ``TANX_LOG_LEVEL`` when None
        log_file: Optional log file path
        json_format: Use JSON formatting
        console_only: Log to stdout only
    """
    if level is None:
        level = get_settings().log_level

    logging.config.dictConfig(
        build_logging_config(level, log_file, json_format, console_only)
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance under the ``tanx`` tree.

    Args:
        name: Logger name (``tanx.`` prefix optional)

    Returns:
        Logger instance
    """
    if name == LOGGER_ROOT or name.startswith(LOGGER_ROOT + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")
