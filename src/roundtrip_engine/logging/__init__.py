"""Logging infrastructure shared by the coordinator and worker processes."""

from .log_service import LOGGER_NAME, LogService, get_log_service, reset_logging

__all__ = ["LOGGER_NAME", "LogService", "get_log_service", "reset_logging"]
