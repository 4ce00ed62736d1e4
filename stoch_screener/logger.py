import logging
import os
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="-")


def set_correlation_id(cid: str | None = None) -> str:
    """Tag every following log line in this context with ``cid`` (random if omitted)."""
    cid = cid or uuid.uuid4().hex[:8]
    _correlation_id.set(cid)
    return cid


class _CorrelationFilter(logging.Filter):
    def filter(self, record):
        record.cid = _correlation_id.get()
        return True


class StructuredLogger:
    """Simple wrapper to support key-value logging"""

    def __init__(self, logger):
        self._logger = logger

    def _format_msg(self, msg, **kwargs):
        if kwargs:
            kv_str = " ".join(f"{k}={v}" for k, v in kwargs.items())
            return f"{msg} {kv_str}"
        return msg

    def debug(self, msg, **kwargs):
        self._logger.debug(self._format_msg(msg, **kwargs))

    def info(self, msg, **kwargs):
        self._logger.info(self._format_msg(msg, **kwargs))

    def warning(self, msg, **kwargs):
        self._logger.warning(self._format_msg(msg, **kwargs))

    def error(self, msg, **kwargs):
        self._logger.error(self._format_msg(msg, **kwargs))

    def exception(self, msg, **kwargs):
        self._logger.exception(self._format_msg(msg, **kwargs))

    def set_level(self, level: str):
        numeric_level = getattr(logging, level.upper(), logging.INFO)
        self._logger.setLevel(numeric_level)
        for handler in self._logger.handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(numeric_level)


def setup_logger(level: str = "INFO", log_file: bool = True, log_dir: str = "logs"):
    """
    Setup logging with console and optional file output

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Whether to also log to file
        log_dir: Directory for the daily log file

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    base_logger = logging.getLogger("stoch_screener")
    base_logger.setLevel(numeric_level)
    base_logger.handlers = []  # Clear existing handlers
    base_logger.propagate = False

    correlation = _CorrelationFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.addFilter(correlation)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(message)s cid=%(cid)s",
        datefmt="%H:%M:%S"
    ))
    base_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_dir)
        log_path.mkdir(exist_ok=True)

        log_path = log_path / f"screener_{datetime.now():%Y%m%d}.log"
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # File gets all logs
        file_handler.addFilter(correlation)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s - %(message)s cid=%(cid)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        base_logger.addHandler(file_handler)

        base_logger.debug(f"Logging to file: {log_path}")

    return StructuredLogger(base_logger)


# Log level and file output from environment (defaults: INFO, file on)
_log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
_log_to_file = os.environ.get("LOG_TO_FILE", "1").lower() not in ("0", "false", "no")
logger = setup_logger(level=_log_level, log_file=_log_to_file,
                      log_dir=os.environ.get("LOG_DIR", "logs"))
