"""Logging infrastructure with chat session context."""
import logging
import os
import sys
import threading
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional


def app_home() -> Path:
    """Directory holding FinSight's logs and persisted configuration."""
    return Path(os.getenv("FINSIGHT_HOME", str(Path.home() / ".finsight")))


class SessionContextFilter(logging.Filter):
    """Add chat session context to log records; the context is per thread."""

    def __init__(self):
        super().__init__()
        self._local = threading.local()

    @property
    def session_id(self) -> Optional[str]:
        return getattr(self._local, "session_id", None)

    @session_id.setter
    def session_id(self, value: Optional[str]):
        self._local.session_id = value

    def filter(self, record):
        """Add session_id to record."""
        record.session_id = self.session_id or "system"
        return True


class FinSightLogger:
    """Centralized logging manager."""

    def __init__(self, log_level: str = "INFO", max_file_size_mb: int = 10, backup_count: int = 30):
        self.log_dir = app_home() / "logs"
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.log_file = self.log_dir / "finsight.log"
        self.session_filter = SessionContextFilter()

        self.logger = logging.getLogger("finsight")
        self.logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        self.logger.propagate = False

        # Remove existing handlers
        self.logger.handlers.clear()

        file_handler = RotatingFileHandler(
            self.log_file,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)

        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] [session:%(session_id)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        file_handler.setFormatter(formatter)
        console_handler.setFormatter(formatter)

        file_handler.addFilter(self.session_filter)
        console_handler.addFilter(self.session_filter)

        self.logger.addHandler(file_handler)
        self.logger.addHandler(console_handler)

    def set_session_context(self, session_id: Optional[str]):
        """Set current chat session context for logging."""
        self.session_filter.session_id = session_id

    def get_logger(self) -> logging.Logger:
        """Get the configured logger."""
        return self.logger


# Global logger instance
_logger_instance: Optional[FinSightLogger] = None


def get_logger(log_level: str = "INFO") -> logging.Logger:
    """Get or create global logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = FinSightLogger(log_level)
    return _logger_instance.get_logger()


def configure_logging(log_level: str = "INFO", max_file_size_mb: int = 10, backup_count: int = 30) -> logging.Logger:
    """(Re)build the global logger from application settings."""
    global _logger_instance
    _logger_instance = FinSightLogger(log_level, max_file_size_mb, backup_count)
    return _logger_instance.get_logger()


def set_session_context(session_id: Optional[str]):
    """Set chat session context for logging."""
    global _logger_instance
    if _logger_instance:
        _logger_instance.set_session_context(session_id)
