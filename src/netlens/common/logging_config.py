"""
Logging configuration for the netlens library.

All modules obtain their logger through get_logger(__name__), which places
them under the "netlens" logger hierarchy. Applications call setup_logging()
once to attach handlers; until then the library stays silent apart from
Python's last-resort handler for warnings.

Configuration is resolved from explicit arguments first, then from
environment variables, then from defaults:

- NETLENS_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL
- NETLENS_LOG_FILE: path of a rotating log file
- NETLENS_LOG_DIR: directory for "netlens.log" when no file is given
- NETLENS_LOG_FORMAT: format string for text output
- NETLENS_LOG_CONSOLE: enable console output (true/false)
- NETLENS_LOG_JSON: emit one JSON object per record (true/false)
"""

import json
import logging
import logging.handlers
import os
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any


ROOT_LOGGER_NAME = "netlens"
PERFORMANCE_LOGGER_NAME = "netlens.performance"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s:%(lineno)d | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_FILENAME = "netlens.log"
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5

ENV_LOG_LEVEL = "NETLENS_LOG_LEVEL"
ENV_LOG_FILE = "NETLENS_LOG_FILE"
ENV_LOG_DIR = "NETLENS_LOG_DIR"
ENV_LOG_FORMAT = "NETLENS_LOG_FORMAT"
ENV_LOG_CONSOLE = "NETLENS_LOG_CONSOLE"
ENV_LOG_JSON = "NETLENS_LOG_JSON"

_RESERVED_RECORD_KEYS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "taskName",
    "processName", "process", "exc_info", "exc_text",
    "stack_info", "message"
}


class JSONFormatter(logging.Formatter):
    """
    Formatter emitting one JSON object per log record.

    Fields passed through ``extra=`` (for example the timing data attached by
    log_performance_metric) are copied into the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_obj[key] = value

        return json.dumps(log_obj, default=str)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Parameters
    ----------
    name : str
        The name for the logger (typically __name__)

    Returns
    -------
    logging.Logger
        Logger that inherits the handlers installed by setup_logging()

    Examples
    --------
    >>> logger = get_logger(__name__)
    >>> logger.debug("Visiting node %s", node_id)
    """
    return logging.getLogger(name)


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console: Optional[bool] = None,
    json_format: Optional[bool] = None,
    format_string: Optional[str] = None,
    date_format: Optional[str] = None,
    max_file_size: Optional[int] = None,
    backup_count: Optional[int] = None,
    force_setup: bool = False
) -> logging.Logger:
    """
    Set up logging for the netlens logger hierarchy.

    Parameters
    ----------
    level : str, optional
        Logging level. Falls back to NETLENS_LOG_LEVEL, then INFO.
    log_file : str, optional
        Path to a rotating log file. Falls back to NETLENS_LOG_FILE.
    log_dir : str, optional
        Directory used for "netlens.log" when no log file is given.
        Falls back to NETLENS_LOG_DIR. No file is written if neither is set.
    console : bool, optional
        Whether to log to stdout. Falls back to NETLENS_LOG_CONSOLE, then True.
    json_format : bool, optional
        Whether to emit JSON records. Falls back to NETLENS_LOG_JSON, then False.
    format_string : str, optional
        Format string for text output. Falls back to NETLENS_LOG_FORMAT.
    date_format : str, optional
        Date format for timestamps.
    max_file_size : int, optional
        Size in bytes before the log file rotates. Defaults to 10MB.
    backup_count : int, optional
        Number of rotated files to keep. Defaults to 5.
    force_setup : bool, default False
        Replace existing handlers instead of returning early.

    Returns
    -------
    logging.Logger
        The configured "netlens" logger

    Raises
    ------
    ValueError
        If an invalid logging level is specified

    Examples
    --------
    >>> logger = setup_logging(level="DEBUG")
    >>> logger = setup_logging(log_dir="/tmp/netlens", json_format=True, force_setup=True)
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)

    if not force_setup and root_logger.handlers:
        return root_logger

    if force_setup:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

    config = _resolve_logging_config(
        level=level,
        log_file=log_file,
        log_dir=log_dir,
        console=console,
        json_format=json_format,
        format_string=format_string,
        date_format=date_format,
        max_file_size=max_file_size,
        backup_count=backup_count
    )

    log_level = logging.getLevelName(config["level"].upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Invalid logging level: {config['level']}")
    root_logger.setLevel(log_level)

    if config["json_format"]:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt=config["format_string"],
            datefmt=config["date_format"]
        )

    if config["console"]:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if config["log_file"]:
        log_path = Path(config["log_file"])
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=str(log_path),
            maxBytes=config["max_file_size"],
            backupCount=config["backup_count"],
            encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.propagate = False

    root_logger.info(
        "Logging configured: level=%s, console=%s, file=%s, json=%s",
        config["level"], config["console"],
        config["log_file"] or "None", config["json_format"]
    )

    return root_logger


def _resolve_logging_config(**kwargs) -> Dict[str, Any]:
    """Merge arguments, environment variables and defaults (in that order)."""
    def _get_bool_env(env_var: str, default: bool) -> bool:
        value = os.getenv(env_var, "").lower()
        if value in ("true", "yes", "1", "on"):
            return True
        elif value in ("false", "no", "0", "off"):
            return False
        else:
            return default

    level = kwargs.get("level") or os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)

    log_file = kwargs.get("log_file") or os.getenv(ENV_LOG_FILE)
    log_dir = kwargs.get("log_dir") or os.getenv(ENV_LOG_DIR)
    if not log_file and log_dir:
        log_file = os.path.join(log_dir, DEFAULT_LOG_FILENAME)

    console = kwargs.get("console")
    if console is None:
        console = _get_bool_env(ENV_LOG_CONSOLE, True)

    json_format = kwargs.get("json_format")
    if json_format is None:
        json_format = _get_bool_env(ENV_LOG_JSON, False)

    format_string = (
        kwargs.get("format_string") or
        os.getenv(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT)
    )

    return {
        "level": level,
        "log_file": log_file,
        "console": console,
        "json_format": json_format,
        "format_string": format_string,
        "date_format": kwargs.get("date_format") or DEFAULT_DATE_FORMAT,
        "max_file_size": kwargs.get("max_file_size") or DEFAULT_MAX_FILE_SIZE,
        "backup_count": kwargs.get("backup_count") or DEFAULT_BACKUP_COUNT,
    }


def configure_external_library_logging(
    libraries: Optional[Dict[str, str]] = None
) -> None:
    """
    Quiet the loggers of third-party libraries used by netlens.

    Parameters
    ----------
    libraries : Dict[str, str], optional
        Mapping of logger name to level. Defaults to WARNING for networkit,
        polars, scipy and concurrent.futures.
    """
    config = libraries or {
        "networkit": "WARNING",
        "polars": "WARNING",
        "scipy": "WARNING",
        "concurrent.futures": "WARNING",
    }

    for library_name, level in config.items():
        library_level = logging.getLevelName(level.upper())
        if isinstance(library_level, int):
            logging.getLogger(library_name).setLevel(library_level)


def log_function_entry(func_name: str, **kwargs) -> None:
    """
    Log entry into a public function together with its key arguments.

    Only emitted when the "netlens.debug" logger is enabled for DEBUG.
    """
    logger = get_logger("netlens.debug")
    if logger.isEnabledFor(logging.DEBUG):
        param_str = ", ".join([f"{k}={v}" for k, v in kwargs.items()])
        logger.debug("Entering %s(%s)", func_name, param_str)


def log_performance_metric(
    operation: str,
    duration: float,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log the duration of an operation on the "netlens.performance" logger.

    Parameters
    ----------
    operation : str
        Name of the operation that was timed
    duration : float
        Duration in seconds
    details : Dict[str, Any], optional
        Additional details about the operation (node count, etc.)
    """
    logger = get_logger(PERFORMANCE_LOGGER_NAME)

    message = f"Performance: {operation} completed in {duration:.3f}s"

    if details:
        detail_str = ", ".join([f"{k}={v}" for k, v in details.items()])
        message += f" ({detail_str})"

    logger.info(message, extra={"operation": operation, "duration": duration})


class LoggingTimer:
    """
    Context manager for timing operations with automatic logging.

    Examples
    --------
    >>> with LoggingTimer("betweenness", {"nodes": 34}):
    ...     scores = betweenness_centrality(graph)
    """

    def __init__(self, operation: str, details: Optional[Dict[str, Any]] = None):
        self.operation = operation
        self.details = details or {}
        self.start_time: Optional[float] = None
        self.duration: Optional[float] = None

    def __enter__(self) -> "LoggingTimer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            self.duration = time.perf_counter() - self.start_time
            details = dict(self.details)
            if exc_type is not None:
                details["failed"] = exc_type.__name__
            log_performance_metric(self.operation, self.duration, details)
