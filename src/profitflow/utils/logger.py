"""
Centralized Logging Configuration
==================================
Consistent logging for the ledger, ingestion and reporting services.

Every profitflow logger writes to stdout (plus an optional file) with
the same line format. The CLI calls configure_package_logging once;
loggers created before or after that pick up the same level and file.

Usage:
    from profitflow.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Import started")
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Dict, Optional, Union

PACKAGE_LOGGER = 'profitflow'

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Package-wide defaults, updated by configure_package_logging
_state: Dict[str, object] = {'level': logging.INFO, 'log_file': None}


def _to_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _attach_handlers(logger: logging.Logger, level: int, log_file: Optional[Path]) -> None:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for handler in logger.handlers:
        handler.setLevel(level)


def get_logger(
    name: str,
    log_file: Optional[Union[str, Path]] = None,
    level: Optional[Union[int, str]] = None
) -> logging.Logger:
    """
    Create and configure a logger instance.

    Parameters
    ----------
    name : str
        Logger name (typically __name__ of the calling module)
    log_file : str or Path, optional
        Extra log file. Defaults to the package-wide file, if any.
    level : int or str, optional
        Logging level. Defaults to the package-wide level (INFO).

    Returns
    -------
    logging.Logger
        Configured logger instance

    Example
    -------
    >>> logger = get_logger(__name__)
    >>> logger.info("Imported 12 days")
    2026-02-04 10:30:00 | INFO     | profitflow.services.order_ingestion | Imported 12 days
    """
    logger = logging.getLogger(name)

    # Already configured
    if logger.handlers:
        return logger

    resolved = _to_level(level if level is not None else _state['level'])
    target = log_file if log_file is not None else _state['log_file']

    logger.setLevel(resolved)
    _attach_handlers(logger, resolved, Path(target) if target else None)
    logger.propagate = False
    return logger


def configure_package_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None
) -> logging.Logger:
    """
    Apply a level (and optional log file) to every profitflow logger.

    Existing loggers are reconfigured in place; loggers created later
    inherit the new defaults through get_logger.
    """
    resolved = _to_level(level)
    _state['level'] = resolved
    _state['log_file'] = Path(log_file) if log_file else None

    for name, candidate in list(logging.Logger.manager.loggerDict.items()):
        if not isinstance(candidate, logging.Logger):
            continue
        if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + '.'):
            continue
        for handler in list(candidate.handlers):
            candidate.removeHandler(handler)
            handler.close()
        candidate.setLevel(resolved)
        _attach_handlers(candidate, resolved, _state['log_file'])
        candidate.propagate = False

    return get_logger(PACKAGE_LOGGER)


class LogContext:
    """
    Context manager for structured logging of operations.

    Usage:
        with LogContext(logger, "Importing orders export"):
            # ... operation code ...
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.info(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = (datetime.now() - self.start_time).total_seconds()

        if exc_type is None:
            self.logger.info(f"Completed: {self.operation} ({elapsed:.2f}s)")
        else:
            self.logger.error(f"Failed: {self.operation} ({elapsed:.2f}s) - {exc_val}")

        # Don't suppress exceptions
        return False
