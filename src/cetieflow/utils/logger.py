"""Logging infrastructure with affaire context."""
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from .paths import get_app_dir


class AffaireContextFilter(logging.Filter):
    """Add the affaire identifier being worked on to log records."""

    def __init__(self):
        super().__init__()
        self.affaire_id: Optional[str] = None

    def filter(self, record):
        record.affaire_id = self.affaire_id or "system"
        return True


class CetieFlowLogger:
    """Centralized logging manager."""

    def __init__(self, log_level: str = "INFO", max_file_size_mb: int = 10, backup_count: int = 30):
        self.log_dir = get_app_dir() / "logs"
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.log_file = self.log_dir / "service.log"
        self.affaire_filter = AffaireContextFilter()

        self.logger = logging.getLogger("cetieflow")
        self.logger.setLevel(getattr(logging, log_level.upper()))
        self.logger.propagate = False

        # Remove existing handlers
        self.logger.handlers.clear()

        file_handler = RotatingFileHandler(
            self.log_file,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)

        # Console only carries warnings: user-facing notices go through the notifier
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)

        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] [affaire:%(affaire_id)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        file_handler.setFormatter(formatter)
        console_handler.setFormatter(formatter)

        file_handler.addFilter(self.affaire_filter)
        console_handler.addFilter(self.affaire_filter)

        self.logger.addHandler(file_handler)
        self.logger.addHandler(console_handler)

    def set_affaire_context(self, affaire_id: Optional[str]):
        """Set current affaire context for logging."""
        self.affaire_filter.affaire_id = affaire_id

    def get_logger(self) -> logging.Logger:
        """Get the configured logger."""
        return self.logger


# Global logger instance
_logger_instance: Optional[CetieFlowLogger] = None


def get_logger(log_level: str = "INFO") -> logging.Logger:
    """Get or create global logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = CetieFlowLogger(log_level)
    return _logger_instance.get_logger()


def configure_logging(log_level: str, max_file_size_mb: int, backup_count: int) -> logging.Logger:
    """Rebuild the global logger from loaded settings."""
    global _logger_instance
    _logger_instance = CetieFlowLogger(log_level, max_file_size_mb, backup_count)
    return _logger_instance.get_logger()


def set_affaire_context(affaire_id: Optional[str]):
    """Set affaire context for logging."""
    global _logger_instance
    if _logger_instance:
        _logger_instance.set_affaire_context(affaire_id)
