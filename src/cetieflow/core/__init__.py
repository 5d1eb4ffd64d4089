"""Affaire folder operations."""
from .identifier import ProjectIdentifier, validate_identifier, is_valid_identifier
from .locator import FolderLocator, LocatedFolder
from .session import DocumentSession, FolderBrowser
from .photos import PhotoEntry, PhotoManager
from .validation import PveaState, ValidationRecord, ValidationStore
from .templates import StandardTemplate, TemplateCatalog, filter_templates
from .documents import DocumentOpener, OpenResult

__all__ = [
    "ProjectIdentifier",
    "validate_identifier",
    "is_valid_identifier",
    "FolderLocator",
    "LocatedFolder",
    "DocumentSession",
    "FolderBrowser",
    "PhotoEntry",
    "PhotoManager",
    "PveaState",
    "ValidationRecord",
    "ValidationStore",
    "StandardTemplate",
    "TemplateCatalog",
    "filter_templates",
    "DocumentOpener",
    "OpenResult"
]
