"""Per-affaire session state and sub-folder resolution."""
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from .identifier import ProjectIdentifier
from .locator import LocatedFolder
from cetieflow.config.settings import AppSettings
from cetieflow.graph.client import GraphClient
from cetieflow.graph.models import DriveItem, FolderHandle
from cetieflow.utils.exceptions import NotFoundError
from cetieflow.utils.logger import get_logger

if TYPE_CHECKING:
    from .photos import PhotoEntry
    from .validation import ValidationRecord

logger = get_logger()


@dataclass
class EditedDocument:
    """A PDF handed to a local viewer; re-uploaded when its mtime moves."""
    local_path: Path
    remote_name: str
    modified_ns: int


@dataclass
class DocumentSession:
    """State owned by one opened affaire folder."""
    identifier: ProjectIdentifier
    client_name: str
    folder: FolderHandle
    folder_name: str = ""
    photos_folder_id: Optional[str] = None
    pv_folder_id: Optional[str] = None
    photos: List["PhotoEntry"] = field(default_factory=list)
    validation: Optional["ValidationRecord"] = None
    editing: Optional[EditedDocument] = None
    finalize_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @classmethod
    def from_located(cls, located: LocatedFolder) -> "DocumentSession":
        return cls(
            identifier=located.identifier,
            client_name=located.client_name,
            folder=located.handle,
            folder_name=located.folder_name
        )

    @property
    def drive_id(self) -> str:
        return self.folder.drive_id

    @property
    def folder_id(self) -> str:
        return self.folder.folder_id


class FolderBrowser:
    """Lists the main folder and keeps the Photos/PV handles of a session current."""

    def __init__(self, graph: GraphClient, settings: AppSettings):
        self.graph = graph
        self.settings = settings

    def list_main_folder(self, session: DocumentSession) -> List[DriveItem]:
        return self.graph.list_children(session.drive_id, session.folder_id)

    def refresh_handles(self, session: DocumentSession) -> List[DriveItem]:
        """
        Re-fetch both sub-folder handles from the remote listing.

        Handles are cleared first so a folder removed remotely does not linger.

        Returns:
            The main folder children
        """
        children = self.list_main_folder(session)
        session.photos_folder_id = None
        session.pv_folder_id = None
        for item in children:
            if not item.is_folder:
                continue
            name = item.name.lower()
            if name == self.settings.photos_folder.lower():
                session.photos_folder_id = item.id
            if name == self.settings.pv_folder.lower():
                session.pv_folder_id = item.id
        logger.debug(
            f"Sub-folders: photos={session.photos_folder_id is not None} "
            f"pv={session.pv_folder_id is not None}"
        )
        return children

    def find_subfolder(self, session: DocumentSession, name: str) -> Optional[str]:
        """Return the id of the first child folder named ``name`` (case-insensitive)."""
        for item in self.list_main_folder(session):
            if item.is_folder and item.name.lower() == name.lower():
                return item.id
        return None

    def require_pv_folder(self, session: DocumentSession) -> str:
        """PV folder id, looked up lazily and cached on the session."""
        if session.pv_folder_id is None:
            session.pv_folder_id = self.find_subfolder(session, self.settings.pv_folder)
        if session.pv_folder_id is None:
            raise NotFoundError("Sous-dossier PV introuvable")
        return session.pv_folder_id

    def require_photos_folder(self, session: DocumentSession) -> str:
        """Photos folder id, always re-resolved from the remote listing."""
        session.photos_folder_id = self.find_subfolder(session, self.settings.photos_folder)
        if session.photos_folder_id is None:
            raise NotFoundError("Dossier Photos introuvable")
        return session.photos_folder_id
