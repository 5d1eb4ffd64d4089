"""Microsoft Graph integration module."""
from .models import DriveItem, FolderHandle, WORD_MIME_TYPE
from .client import GraphClient

__all__ = ["DriveItem", "FolderHandle", "WORD_MIME_TYPE", "GraphClient"]
