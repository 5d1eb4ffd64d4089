"""Resolve an affaire identifier to its folder on the production site."""
from dataclasses import dataclass
from typing import List

from .identifier import ProjectIdentifier
from cetieflow.config.settings import AppSettings
from cetieflow.graph.client import GraphClient
from cetieflow.graph.models import DriveItem, FolderHandle
from cetieflow.utils.exceptions import FolderNotFoundError, NotFoundError
from cetieflow.utils.logger import get_logger

logger = get_logger()


@dataclass(frozen=True)
class LocatedFolder:
    """Outcome of a successful lookup."""
    identifier: ProjectIdentifier
    folder_name: str
    client_name: str
    handle: FolderHandle


def client_name_from_folder(folder_name: str, fallback: str = "Client") -> str:
    """Folder names read ``<num>_<project>_<client>_...``; the client is the third segment."""
    parts = folder_name.split("_")
    return parts[2] if len(parts) > 2 else fallback


class FolderLocator:
    """Site -> drive -> working folder -> affaire folder lookup."""

    def __init__(self, graph: GraphClient, settings: AppSettings):
        self.graph = graph
        self.settings = settings

    def locate(self, identifier: ProjectIdentifier) -> LocatedFolder:
        """
        Find the affaire folder whose name contains the identifier.

        Raises:
            FolderNotFoundError: No folder name contains the identifier
            NotFoundError: The site has no drive
            HttpError, NetworkError: Transport or API failure at any hop
        """
        site = self.graph.get_site(self.settings.site_path)
        logger.debug(f"Resolved site {self.settings.site_path}")

        drives = self.graph.list_drives(site["id"])
        if not drives:
            raise NotFoundError(f"No drive on site {self.settings.site_path}")
        drive_id = drives[0]["id"]

        children = self.graph.list_children_by_path(drive_id, self.settings.search_path)
        folder = self._select(children, identifier)

        client_name = client_name_from_folder(folder.name, self.settings.client_fallback)
        logger.info(f"Located affaire {identifier} in folder '{folder.name}' (client {client_name})")
        return LocatedFolder(
            identifier=identifier,
            folder_name=folder.name,
            client_name=client_name,
            handle=FolderHandle(drive_id=drive_id, folder_id=folder.id)
        )

    def _select(self, children: List[DriveItem], identifier: ProjectIdentifier) -> DriveItem:
        matches = [item for item in children if identifier in item.name]
        if not matches:
            raise FolderNotFoundError("Affaire non trouvée")
        if len(matches) > 1:
            # Listing order is not guaranteed by the API; keep the first but say so
            names = ", ".join(item.name for item in matches)
            logger.warning(f"Several folders contain {identifier}: {names}; using '{matches[0].name}'")
        return matches[0]
