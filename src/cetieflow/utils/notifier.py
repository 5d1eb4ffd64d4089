"""Transient user-facing notices."""
import sys
from typing import List, Tuple

from .logger import get_logger

logger = get_logger()

INFO = "info"
ERROR = "error"


class Notifier:
    """Receives short notices naming the step that succeeded or failed."""

    def notify(self, message: str, level: str = INFO) -> None:
        raise NotImplementedError

    def info(self, message: str) -> None:
        self.notify(message, INFO)

    def error(self, message: str) -> None:
        self.notify(message, ERROR)


class ConsoleNotifier(Notifier):
    """Prints notices to the terminal and mirrors them in the log file."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout

    def notify(self, message: str, level: str = INFO) -> None:
        marker = "✓" if level == INFO else "✗"
        print(f"{marker} {message}", file=self.stream)
        logger.info(f"notice [{level}]: {message}")


class RecordingNotifier(Notifier):
    """Keeps notices in memory."""

    def __init__(self):
        self.notices: List[Tuple[str, str]] = []

    def notify(self, message: str, level: str = INFO) -> None:
        self.notices.append((level, message))

    @property
    def messages(self) -> List[str]:
        return [message for _, message in self.notices]

    @property
    def errors(self) -> List[str]:
        return [message for level, message in self.notices if level == ERROR]
