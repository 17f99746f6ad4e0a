"""Logging setup for command-line runs.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the CLI entry point.
"""
import logging
import logging.config
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

LOGGER_NAME = "silentverify"
SUMMARY_LOGGER_NAME = f"{LOGGER_NAME}.summary"

FILE_FORMAT = "{asctime} {levelname:<7} {name} - {message}"
CONSOLE_FORMAT = "{levelname:<7} {message}"


def log_file_path(log_dir: str, run_label: str = "run") -> Path:
    """``<log_dir>/silentverify_<label>_<YYYYmmdd_HHMMSS>.log``"""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(log_dir) / f"{LOGGER_NAME}_{run_label}_{stamp}.log"


def build_logging_config(
    log_path: str,
    level: str = "INFO",
    console: bool = True,
    console_level: str = "WARNING",
) -> Dict[str, Any]:
    """dictConfig for the package logger and the run summary logger.

    Both loggers share one file handler, so lines land in the order they were
    emitted; summary lines are told apart by their logger name. When
    ``console`` is set they also share one stream handler.
    """
    handlers: Dict[str, Dict[str, Any]] = {
        "file": {
            "class": "logging.FileHandler",
            "formatter": "detailed",
            "filename": log_path,
            "encoding": "utf-8",
            "mode": "w",
            "level": "DEBUG",
        },
    }
    main_handlers = ["file"]
    summary_handlers = ["file"]
    if console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": "console",
            "level": console_level.upper(),
        }
        main_handlers.append("console")
        summary_handlers.append("console")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {"format": FILE_FORMAT, "style": "{"},
            "console": {"format": CONSOLE_FORMAT, "style": "{"},
        },
        "handlers": handlers,
        "loggers": {
            LOGGER_NAME: {"level": level.upper(), "handlers": main_handlers, "propagate": False},
            SUMMARY_LOGGER_NAME: {"level": "INFO", "handlers": summary_handlers, "propagate": False},
        },
        "root": {"handlers": []},
    }


def setup_logging(
    log_dir: str = "./logs",
    console: bool = True,
    level: str = "INFO",
    quiet_console: bool = False,
    console_level: Optional[str] = None,
    log_file: Optional[str] = None,
    run_label: str = "run",
) -> Tuple[logging.Logger, logging.Logger]:
    """
    Install file and console handlers for a CLI run.

    Args:
        log_dir: Directory for timestamped log files
        console: Whether to log to the console at all
        level: Level of the package logger
        quiet_console: Only errors reach the console
        console_level: Console level when not quiet (defaults to ``level``)
        log_file: Explicit log file path, overrides ``log_dir``
        run_label: Command name used in the timestamped file name

    Returns:
        ``(logger, summary_logger)``
    """
    log_path = Path(log_file) if log_file else log_file_path(log_dir, run_label)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    effective_console = "ERROR" if quiet_console else (console_level or level)
    logging.config.dictConfig(
        build_logging_config(str(log_path), level=level, console=console, console_level=effective_console)
    )
    logging.captureWarnings(True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.info("Logging initialised. File: %s", log_path)
    return logger, logging.getLogger(SUMMARY_LOGGER_NAME)
