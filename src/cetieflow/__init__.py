"""CetieFlow: affaire folders on SharePoint/OneDrive from the field."""

__version__ = "1.0.0"
