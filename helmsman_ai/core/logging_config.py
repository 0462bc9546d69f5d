"""
Logging setup for Helmsman-AI.

``setup_logging`` installs a single console handler on the root logger, adds a
file handler under ``LOG_FILE_DIR`` when file logging is switched on, and
applies ``MODULE_LOG_LEVELS``. The run loop and tool executor log per-iteration
and per-call detail at DEBUG; stores, approvals and third-party libraries are
kept quieter.

Defaults are read from ``Settings``: ``HELMSMAN_AI_LOG_LEVEL``, ``LOG_FORMAT``
(``simple``, ``detailed`` or ``json``), ``LOG_FILE_DIR`` and ``ENABLE_FILE_LOGGING``.
"""

import logging
import os
from pathlib import Path
from typing import Optional


def _get_logging_config():
    """Read logging defaults from ``Settings``, falling back to the raw environment variables."""
    try:
        from helmsman_ai.core.config import settings

        return {
            "log_level": settings.log_level.upper(),
            "log_format": settings.log_format,
            "log_file_dir": settings.log_file_dir,
            "enable_file_logging": settings.enable_file_logging,
        }
    except Exception:
        # Invalid settings must not stop logging; read the raw variables instead.
        return {
            "log_level": os.getenv("HELMSMAN_AI_LOG_LEVEL", "INFO").upper(),
            "log_format": os.getenv("LOG_FORMAT", "detailed"),
            "log_file_dir": os.getenv("LOG_FILE_DIR", "logs"),
            "enable_file_logging": os.getenv("ENABLE_FILE_LOGGING", "false").lower() in ("true", "1", "yes"),
        }


_config = _get_logging_config()
LOG_LEVEL = _config["log_level"]
LOG_FORMAT = _config["log_format"]
LOG_FILE_DIR = _config["log_file_dir"]
ENABLE_FILE_LOGGING = _config["enable_file_logging"]


SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)


# Per-logger levels applied by setup_logging
MODULE_LOG_LEVELS = {
    "helmsman_ai.agent_core": "DEBUG",
    "helmsman_ai.agent_core.runtime": "DEBUG",
    "helmsman_ai.agent_core.tools": "DEBUG",
    "helmsman_ai.agent_core.repos": "INFO",
    "helmsman_ai.agent_core.memory": "INFO",
    "helmsman_ai.agent_core.approval": "INFO",
    "helmsman_ai.core": "INFO",
    # Third-party
    "langgraph": "WARNING",
    "logfire": "WARNING",
    "asyncio": "WARNING",
}


def _format_for(fmt: str) -> str:
    if fmt == "json":
        return JSON_FORMAT
    if fmt == "simple":
        return SIMPLE_FORMAT
    return DETAILED_FORMAT


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Override default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Override default format (simple, detailed, json)
        enable_file: Whether to enable file logging (only honoured when ENABLE_FILE_LOGGING is on)
    """
    level = (log_level or LOG_LEVEL).upper()
    fmt = log_format or LOG_FORMAT

    formatter = logging.Formatter(_format_for(fmt), datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if enable_file and ENABLE_FILE_LOGGING:
        Path(LOG_FILE_DIR).mkdir(parents=True, exist_ok=True)
        log_file = Path(LOG_FILE_DIR) / "helmsman_ai.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info(
        f"Logging configured: level={level}, format={fmt}, file_logging={enable_file and ENABLE_FILE_LOGGING}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A configured logger instance
    """
    return logging.getLogger(name)
