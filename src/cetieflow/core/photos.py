"""Photo attachments of an affaire: listing, naming, upload, deletion."""
import re
import shutil
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional

from .session import DocumentSession, FolderBrowser
from cetieflow.config.settings import AppSettings
from cetieflow.graph.client import GraphClient
from cetieflow.graph.models import DriveItem
from cetieflow.utils.exceptions import CetieFlowError, LocalIOError, NotFoundError
from cetieflow.utils.logger import get_logger
from cetieflow.utils.notifier import Notifier

logger = get_logger()

_CONTENT_TYPES = {".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".png": "image/png"}


@dataclass(frozen=True)
class PhotoEntry:
    """A remote image in the Photos sub-folder."""
    id: str
    name: str

    @classmethod
    def from_item(cls, item: DriveItem) -> "PhotoEntry":
        return cls(id=item.id, name=item.name)


def photo_name(day: date, identifier: str, counter: int) -> str:
    return f"PHOTO_{day.strftime('%y%m%d')}_{identifier}_{counter}.jpg"


def smallest_missing_counter(used: List[int]) -> int:
    """Smallest positive integer absent from ``used``."""
    taken = set(used)
    counter = 1
    while counter in taken:
        counter += 1
    return counter


class PhotoManager:
    """Manages the Photos sub-folder of an affaire."""

    def __init__(
        self,
        graph: GraphClient,
        settings: AppSettings,
        browser: FolderBrowser,
        notifier: Notifier,
        scratch_dir: Path
    ):
        self.graph = graph
        self.settings = settings
        self.browser = browser
        self.notifier = notifier
        self.scratch_dir = Path(scratch_dir)
        self.scratch_dir.mkdir(parents=True, exist_ok=True)

    def list_photos(self, session: DocumentSession) -> List[PhotoEntry]:
        """
        List images in the Photos sub-folder, in remote listing order.

        Raises:
            NotFoundError: If the session has no Photos folder handle
        """
        if session.photos_folder_id is None:
            raise NotFoundError("Dossier Photos introuvable")
        items = self.graph.list_children(session.drive_id, session.photos_folder_id)
        return [PhotoEntry.from_item(item) for item in items if self._is_photo(item)]

    def refresh(self, session: DocumentSession) -> List[PhotoEntry]:
        """Re-fetch sub-folder handles and the photo list from the remote folder."""
        self.browser.refresh_handles(session)
        if session.photos_folder_id is None:
            session.photos = []
            self.notifier.error("Dossier Photos introuvable")
            return []
        session.photos = self.list_photos(session)
        logger.debug(f"{len(session.photos)} photos")
        return session.photos

    def next_photo_name(self, session: DocumentSession, today: Optional[date] = None) -> str:
        """
        Name for the next capture, filling the lowest free counter of the day.

        Always lists the folder again: photos may have been deleted out of order.
        """
        if session.photos_folder_id is None:
            raise NotFoundError("Dossier Photos introuvable")
        today = today or date.today()
        pattern = re.compile(
            rf"^PHOTO_{today.strftime('%y%m%d')}_{re.escape(session.identifier)}_(\d+)\.jpg$",
            re.IGNORECASE
        )

        counters = []
        for item in self.graph.list_children(session.drive_id, session.photos_folder_id):
            match = pattern.match(item.name)
            if match:
                counters.append(int(match.group(1)))

        return photo_name(today, session.identifier, smallest_missing_counter(counters))

    def upload(self, session: DocumentSession, local_path: Path, remote_name: Optional[str] = None) -> PhotoEntry:
        """
        Upload a local image into the Photos sub-folder.

        Args:
            session: Open affaire session
            local_path: Image on disk
            remote_name: Target name, defaults to the local file name

        Raises:
            LocalIOError: Local file is absent
            NotFoundError: Photos sub-folder cannot be re-resolved
        """
        local_path = Path(local_path)
        if not local_path.is_file():
            raise LocalIOError("Fichier photo introuvable localement")
        remote_name = remote_name or local_path.name

        photos_folder_id = self.browser.require_photos_folder(session)
        content_type = _CONTENT_TYPES.get(local_path.suffix.lower(), "image/jpeg")
        item = self.graph.upload(
            session.drive_id,
            photos_folder_id,
            remote_name,
            local_path.read_bytes(),
            content_type
        )

        logger.info(f"Uploaded photo {remote_name}")
        self.notifier.info("Photo enregistrée")
        try:
            self.refresh(session)
        except CetieFlowError as e:
            # The photo is stored; only the listing is stale
            logger.error(f"Refresh after uploading {remote_name} failed: {e}")
            self.notifier.error("Erreur récupération photos")
        return PhotoEntry.from_item(item)

    def capture(self, session: DocumentSession, source: Path, today: Optional[date] = None) -> PhotoEntry:
        """Name a freshly taken picture, stage it in scratch and upload it."""
        source = Path(source)
        if not source.is_file():
            raise LocalIOError(f"Photo introuvable : {source}")
        name = self.next_photo_name(session, today)
        staged = self.scratch_dir / name
        try:
            shutil.copyfile(source, staged)
        except OSError as e:
            raise LocalIOError(f"Erreur création fichier : {e}")
        try:
            return self.upload(session, staged, name)
        finally:
            staged.unlink(missing_ok=True)

    def delete(self, session: DocumentSession, photo: PhotoEntry, confirm: Callable[[str], bool]) -> bool:
        """Delete a photo once the user confirms. Returns False when declined."""
        if not confirm("Êtes-vous sûr de vouloir supprimer cette photo ?"):
            return False
        self.graph.delete(session.drive_id, photo.id)
        logger.info(f"Deleted photo {photo.name}")
        self.notifier.info("Photo supprimée")
        try:
            self.refresh(session)
        except CetieFlowError as e:
            logger.error(f"Refresh after deleting {photo.name} failed: {e}")
            self.notifier.error("Erreur récupération photos")
        return True

    def download(self, session: DocumentSession, photo: PhotoEntry) -> Path:
        """Fetch a photo into the scratch directory for viewing."""
        content = self.graph.download(session.drive_id, photo.id)
        local_path = self.scratch_dir / photo.name
        try:
            local_path.write_bytes(content)
        except OSError as e:
            raise LocalIOError(f"Erreur téléchargement : {e}")
        return local_path

    def _is_photo(self, item: DriveItem) -> bool:
        return not item.is_folder and item.extension in self.settings.photo_extensions
