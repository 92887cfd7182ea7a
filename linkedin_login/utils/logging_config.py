import logging
import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from linkedin_login.config import settings

PACKAGE_LOGGER = "linkedin_login"


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "path": record.pathname,
            "line": record.lineno
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


class DelegatingHandler(logging.Handler):
    """Forwards package log records to an object with info/warning/error/debug methods."""

    def __init__(self, target):
        super().__init__()
        self.target = target

    def _method(self, levelno: int):
        if levelno >= logging.ERROR:
            names = ("error",)
        elif levelno >= logging.WARNING:
            names = ("warning", "warn")
        elif levelno >= logging.INFO:
            names = ("info",)
        else:
            names = ("debug",)
        for name in names:
            method = getattr(self.target, name, None)
            if callable(method):
                return method
        return self.target.info

    def emit(self, record):
        try:
            self._method(record.levelno)(self.format(record))
        except Exception:
            self.handleError(record)


def setup_logging(log_file: Optional[str] = None, level: int = logging.INFO):
    logger = logging.getLogger()
    logger.setLevel(level)

    # Console handler
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    logger.addHandler(handler)

    # File handler (JSON)
    log_file = log_file if log_file is not None else settings.log_file
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)


def set_logger(custom_logger) -> bool:
    """Route all package logging to ``custom_logger`` instead of the root handlers.

    Returns False, keeping the current setup, when the object has no ``info`` method.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if custom_logger is None or not callable(getattr(custom_logger, "info", None)):
        package_logger.warning("Invalid logger provided. Using default.")
        return False

    for existing in list(package_logger.handlers):
        if isinstance(existing, DelegatingHandler):
            package_logger.removeHandler(existing)
    package_logger.addHandler(DelegatingHandler(custom_logger))
    package_logger.setLevel(logging.DEBUG)
    package_logger.propagate = False
    return True


def reset_logger() -> None:
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(package_logger.handlers):
        if isinstance(existing, DelegatingHandler):
            package_logger.removeHandler(existing)
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
