"""Custom exception classes for CetieFlow."""
from typing import Optional


class CetieFlowError(Exception):
    """Base exception for CetieFlow."""
    pass


class ConfigError(CetieFlowError):
    """Configuration-related errors."""
    pass


class NetworkError(CetieFlowError):
    """Transport-level failures (host unreachable, connection reset, timeout)."""
    pass


class HttpError(CetieFlowError):
    """Non-2xx answer from the file-store."""

    def __init__(self, message: str, status_code: int, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self):
        return f"{self.args[0]} (HTTP {self.status_code})"


class NotFoundError(CetieFlowError):
    """An expected remote entity is absent."""
    pass


class FolderNotFoundError(NotFoundError):
    """No affaire folder matches the identifier."""
    pass


class DocumentNotFoundError(NotFoundError):
    """No document with the requested prefix in the PV folder."""
    pass


class TemplateNotFoundError(NotFoundError):
    """The standards folder holds no usable template."""
    pass


class AuthError(CetieFlowError):
    """Token acquisition failed."""
    pass


class InteractionRequiredError(AuthError):
    """Silent acquisition is impossible, the user must sign in."""
    pass


class AuthCancelledError(AuthError):
    """The user abandoned the interactive sign-in."""
    pass


class ValidationError(CetieFlowError):
    """Data validation errors."""
    pass


class IdentifierValidationError(ValidationError):
    """Malformed affaire identifier."""
    pass


class LocalIOError(CetieFlowError):
    """Local scratch file missing or unwritable."""
    pass


class UnsupportedFormatError(CetieFlowError):
    """Document extension the opener cannot handle."""
    pass


class FinalizeInProgressError(CetieFlowError):
    """A finalize run is already active for this session."""
    pass
