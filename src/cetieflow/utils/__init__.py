"""Utility modules."""
from .logger import get_logger, set_affaire_context
from .exceptions import (
    CetieFlowError,
    ConfigError,
    NetworkError,
    HttpError,
    NotFoundError,
    FolderNotFoundError,
    DocumentNotFoundError,
    TemplateNotFoundError,
    AuthError,
    InteractionRequiredError,
    AuthCancelledError,
    ValidationError,
    IdentifierValidationError,
    LocalIOError,
    UnsupportedFormatError,
    FinalizeInProgressError
)
from .notifier import Notifier, ConsoleNotifier, RecordingNotifier

__all__ = [
    "get_logger",
    "set_affaire_context",
    "CetieFlowError",
    "ConfigError",
    "NetworkError",
    "HttpError",
    "NotFoundError",
    "FolderNotFoundError",
    "DocumentNotFoundError",
    "TemplateNotFoundError",
    "AuthError",
    "InteractionRequiredError",
    "AuthCancelledError",
    "ValidationError",
    "IdentifierValidationError",
    "LocalIOError",
    "UnsupportedFormatError",
    "FinalizeInProgressError",
    "Notifier",
    "ConsoleNotifier",
    "RecordingNotifier"
]
