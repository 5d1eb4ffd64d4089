"""Local application data locations."""
import os
from pathlib import Path

APP_DIR_NAME = "CetieFlow"


def get_app_dir() -> Path:
    """Return (and create) the per-user application data directory.

    ``CETIEFLOW_HOME`` wins, then ``%LOCALAPPDATA%`` on Windows, then the XDG
    data directory.
    """
    override = os.getenv("CETIEFLOW_HOME")
    if override:
        app_dir = Path(override)
    elif os.getenv("LOCALAPPDATA"):
        app_dir = Path(os.getenv("LOCALAPPDATA")) / APP_DIR_NAME
    else:
        base = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
        app_dir = Path(base) / APP_DIR_NAME
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir
