"""Standard PVEA templates: listing, search filtering and copy into PV."""
import re
from dataclasses import dataclass
from typing import List

from .session import DocumentSession, FolderBrowser
from cetieflow.config.settings import AppSettings
from cetieflow.graph.client import GraphClient
from cetieflow.graph.models import DriveItem
from cetieflow.utils.exceptions import TemplateNotFoundError
from cetieflow.utils.logger import get_logger
from cetieflow.utils.notifier import Notifier

logger = get_logger()


@dataclass(frozen=True)
class StandardTemplate:
    """A read-only template file in the standards folder."""
    id: str
    name: str

    @property
    def display_name(self) -> str:
        return self.name.rsplit(".", 1)[0] if "." in self.name else self.name

    @property
    def extension(self) -> str:
        return self.name.rsplit(".", 1)[1] if "." in self.name else ""


def filter_templates(templates: List[StandardTemplate], query: str) -> List[StandardTemplate]:
    """Case-insensitive substring match on the display name; empty query keeps all."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(templates)
    return [t for t in templates if needle in t.display_name.lower()]


def target_name(identifier: str, client_name: str, template: StandardTemplate) -> str:
    """``PVEA_<identifier>_<client>.<ext>`` with whitespace runs in the client turned to ``_``."""
    client = re.sub(r"\s+", "_", client_name)
    name = f"PVEA_{identifier}_{client}"
    return f"{name}.{template.extension}" if template.extension else name


class TemplateCatalog:
    """PVEA fallback used when the PV folder has no PVEA yet."""

    def __init__(self, graph: GraphClient, settings: AppSettings, browser: FolderBrowser, notifier: Notifier):
        self.graph = graph
        self.settings = settings
        self.browser = browser
        self.notifier = notifier

    def list_templates(self, session: DocumentSession) -> List[StandardTemplate]:
        """
        List the standard templates available in the session drive.

        Raises:
            TemplateNotFoundError: The folder holds no usable template
        """
        items = self.graph.list_children_by_path(session.drive_id, self.settings.templates_path)
        templates = [
            StandardTemplate(id=item.id, name=item.name)
            for item in items
            if self._is_template(item)
        ]
        if not templates:
            raise TemplateNotFoundError("Aucun PVEA standard trouvé")
        logger.debug(f"{len(templates)} standard templates")
        return templates

    def copy_template(self, session: DocumentSession, template: StandardTemplate) -> str:
        """
        Ask the store to copy a template into PV under the affaire's PVEA name.

        The copy is asynchronous on the store side; acceptance counts as success.

        Returns:
            The name given to the copy
        """
        pv_folder_id = self.browser.require_pv_folder(session)
        name = target_name(session.identifier, session.client_name, template)
        monitor = self.graph.copy(session.drive_id, template.id, pv_folder_id, name)
        logger.info(f"Copy of '{template.name}' to PV as '{name}' accepted (monitor: {monitor})")

        self.notifier.info("PVEA inséré dans PV")
        self.browser.refresh_handles(session)
        return name

    def _is_template(self, item: DriveItem) -> bool:
        return not item.is_folder and item.extension in self.settings.template_extensions
