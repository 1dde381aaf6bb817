"""Logging setup for the eventcluster package.

Installs a Rich console handler (and optionally a plain file handler) on the
``eventcluster`` logger. Library modules only ever call
``logging.getLogger(__name__)``; nothing is printed until an application
calls ``setup_logging``.

Messages at INFO and above carry counts and timings only, never coordinates
or person identifiers.

Example:
    >>> from eventcluster.utils.logging import setup_logging, LogContext
    >>> setup_logging(level="DEBUG")
    >>> with LogContext("Clustering 1000 assets") as ctx:
    ...     clusters = service.cluster_assets(assets)
    >>> ctx.elapsed
    0.04
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from eventcluster.config import AppConfig


# =============================================================================
# Constants
# =============================================================================

PACKAGE_NAME = "eventcluster"

# Loggers that are noisy at DEBUG when the engine runs inside an app
NOISY_LOGGERS = [
    "asyncio",
    "concurrent.futures",
]

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_console = Console(stderr=True)


# =============================================================================
# Setup Functions
# =============================================================================


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    quiet_third_party: bool = True,
) -> logging.Logger:
    """Configure the package logger.

    Calling it again replaces the previous handlers.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional file that receives the same records.
        quiet_third_party: Raise noisy stdlib loggers to WARNING.

    Returns:
        The configured ``eventcluster`` logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    package_logger = logging.getLogger(PACKAGE_NAME)
    package_logger.setLevel(numeric_level)

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=_console,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=numeric_level == logging.DEBUG,
        markup=False,
    )
    console_handler.setLevel(numeric_level)
    package_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
        package_logger.addHandler(file_handler)

    if quiet_third_party:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    package_logger.propagate = False
    package_logger.debug(f"Logging configured: level={level}, file={log_file}")
    return package_logger


def setup_logging_from_config(config: AppConfig) -> logging.Logger:
    """Apply the ``logging`` section of an AppConfig (DEBUG when ``debug`` is set)."""
    return setup_logging(
        level=config.effective_log_level(),
        log_file=config.logging.log_file,
        quiet_third_party=config.logging.quiet_third_party,
    )


def get_logger(name: str) -> logging.Logger:
    """Logger under the package namespace.

    Example:
        >>> get_logger("pipeline").name
        'eventcluster.pipeline'
    """
    if name != PACKAGE_NAME and not name.startswith(f"{PACKAGE_NAME}."):
        name = f"{PACKAGE_NAME}.{name}"
    return logging.getLogger(name)


# =============================================================================
# Log Context Manager
# =============================================================================


class LogContext:
    """Times a block and logs its start and outcome.

    Attributes:
        message: Description of the operation.
        level: Level of the start and completion records.
        logger: Logger receiving the records.
        elapsed: Seconds spent in the block (set on exit).
    """

    def __init__(
        self,
        message: str,
        level: int = logging.INFO,
        logger: logging.Logger | None = None,
    ) -> None:
        self.message = message
        self.level = level
        self.logger = logger or logging.getLogger(PACKAGE_NAME)
        self.elapsed: float = 0.0
        self._start_time: float = 0.0

    def __enter__(self) -> "LogContext":
        self._start_time = time.perf_counter()
        self.logger.log(self.level, f"{self.message}...")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.elapsed = time.perf_counter() - self._start_time

        if exc_type is not None:
            self.logger.error(f"{self.message} failed after {self.elapsed:.2f}s: {exc_val}")
        else:
            self.logger.log(self.level, f"{self.message} completed in {self.elapsed:.2f}s")
