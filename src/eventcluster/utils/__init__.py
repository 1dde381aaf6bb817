"""Shared utilities."""

from eventcluster.utils.logging import LogContext, get_logger, setup_logging, setup_logging_from_config

__all__ = ["LogContext", "get_logger", "setup_logging", "setup_logging_from_config"]
