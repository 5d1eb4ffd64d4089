"""Opening FP/PVEE/PVEA documents and syncing locally edited PDFs back."""
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .session import DocumentSession, EditedDocument, FolderBrowser
from .templates import StandardTemplate, TemplateCatalog
from cetieflow.config.settings import AppSettings
from cetieflow.graph.client import GraphClient
from cetieflow.graph.models import DriveItem
from cetieflow.utils.exceptions import (
    CetieFlowError,
    DocumentNotFoundError,
    LocalIOError,
    UnsupportedFormatError,
    ValidationError
)
from cetieflow.utils.logger import get_logger
from cetieflow.utils.notifier import Notifier

logger = get_logger()

DOCUMENT_PREFIXES = ("FP", "PVEE", "PVEA")

# OpenResult kinds
LOCAL_PDF = "local_pdf"
WEB_EDIT = "web_edit"
TEMPLATE_COPIED = "template_copied"
CANCELLED = "cancelled"

TemplateChooser = Callable[[List[StandardTemplate]], Optional[StandardTemplate]]


@dataclass
class OpenResult:
    """Which path ``DocumentOpener.open`` took."""
    kind: str
    name: Optional[str] = None
    local_path: Optional[Path] = None
    url: Optional[str] = None


class DocumentOpener:
    """Finds a prefixed document in PV and hands it to a viewer or editor."""

    def __init__(
        self,
        graph: GraphClient,
        settings: AppSettings,
        browser: FolderBrowser,
        templates: TemplateCatalog,
        notifier: Notifier,
        scratch_dir: Path,
        launcher: Callable[[str], object] = webbrowser.open
    ):
        self.graph = graph
        self.settings = settings
        self.browser = browser
        self.templates = templates
        self.notifier = notifier
        self.scratch_dir = Path(scratch_dir)
        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        self.launcher = launcher

    def find_document(self, session: DocumentSession, prefix: str) -> Optional[DriveItem]:
        """First file in PV whose name starts with ``<prefix>_<identifier>``."""
        pv_folder_id = self.browser.require_pv_folder(session)
        wanted = f"{prefix}_{session.identifier}"
        for item in self.graph.list_children(session.drive_id, pv_folder_id):
            if not item.is_folder and item.name.startswith(wanted):
                return item
        return None

    def open(
        self,
        session: DocumentSession,
        prefix: str,
        choose_template: Optional[TemplateChooser] = None
    ) -> OpenResult:
        """
        Open the affaire document carrying the given prefix.

        PDFs are downloaded and launched locally; office files open through an
        edit link. A missing PVEA falls back to copying a standard template.

        Args:
            session: Open affaire session
            prefix: One of FP, PVEE, PVEA
            choose_template: Picks a template from the list, None to cancel

        Raises:
            DocumentNotFoundError: No FP/PVEE document in PV
            UnsupportedFormatError: The document is neither a PDF nor an office file
        """
        prefix = prefix.upper()
        if prefix not in DOCUMENT_PREFIXES:
            raise ValidationError(f"Unknown document prefix: {prefix}")

        document = self.find_document(session, prefix)
        if document is None:
            if prefix == "PVEA":
                return self._fallback_to_template(session, choose_template)
            raise DocumentNotFoundError(f"{prefix} non trouvé")

        logger.info(f"Opening {document.name}")
        if document.extension == ".pdf":
            return self._open_pdf(session, document)
        if document.extension in self.settings.web_edit_extensions:
            return self._open_web(session, document)
        raise UnsupportedFormatError(f"Format non supporté : {document.name}")

    def _open_pdf(self, session: DocumentSession, document: DriveItem) -> OpenResult:
        content = self.graph.download(session.drive_id, document.id)
        local_path = self.scratch_dir / document.name
        try:
            local_path.write_bytes(content)
            modified_ns = local_path.stat().st_mtime_ns
        except OSError as e:
            raise LocalIOError(f"Erreur fichier local PDF : {e}")

        session.editing = EditedDocument(local_path=local_path, remote_name=document.name, modified_ns=modified_ns)
        self.launcher(local_path.resolve().as_uri())
        return OpenResult(kind=LOCAL_PDF, name=document.name, local_path=local_path)

    def _open_web(self, session: DocumentSession, document: DriveItem) -> OpenResult:
        url = self.graph.create_link(session.drive_id, document.id, "edit")
        self.launcher(url)
        return OpenResult(kind=WEB_EDIT, name=document.name, url=url)

    def _fallback_to_template(
        self,
        session: DocumentSession,
        choose_template: Optional[TemplateChooser]
    ) -> OpenResult:
        if choose_template is None:
            raise DocumentNotFoundError("PVEA non trouvé")
        templates = self.templates.list_templates(session)
        chosen = choose_template(templates)
        if chosen is None:
            logger.info("Template selection cancelled")
            return OpenResult(kind=CANCELLED)
        name = self.templates.copy_template(session, chosen)
        return OpenResult(kind=TEMPLATE_COPIED, name=name)

    def sync_edited(self, session: DocumentSession) -> bool:
        """
        Upload the PDF opened earlier if it changed on disk.

        The edit marker is always cleared; a failed upload is reported once.

        Returns:
            True when a new version was uploaded
        """
        editing = session.editing
        if editing is None:
            return False
        session.editing = None

        if not editing.local_path.exists():
            self.notifier.error("Erreur : fichier PDF introuvable localement")
            return False
        if editing.local_path.stat().st_mtime_ns == editing.modified_ns:
            logger.debug(f"{editing.remote_name} unchanged")
            return False
        if session.pv_folder_id is None:
            self.notifier.error("Erreur : dossier PV introuvable pour upload")
            return False

        try:
            self.graph.upload(
                session.drive_id,
                session.pv_folder_id,
                editing.remote_name,
                editing.local_path.read_bytes(),
                "application/pdf"
            )
        except (CetieFlowError, OSError) as e:
            logger.error(f"Re-upload of {editing.remote_name} failed: {e}")
            self.notifier.error(f"Erreur réupload PDF : {e}")
            return False

        logger.info(f"Re-uploaded {editing.remote_name}")
        self.notifier.info("PDF mis à jour sur OneDrive")
        return True
