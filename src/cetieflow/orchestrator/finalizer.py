"""Finalize saga: delete record -> convert Word documents -> archive -> reminder.

Each step is a named method run in order by ``FinalizeOrchestrator.run``.
Failures inside the conversion loop are recorded per document and the loop
moves on; nothing is retried and nothing is rolled back.
"""
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from cetieflow.config.settings import AppSettings
from cetieflow.core.session import DocumentSession, FolderBrowser
from cetieflow.graph.client import GraphClient
from cetieflow.graph.models import DriveItem
from cetieflow.utils.exceptions import (
    CetieFlowError,
    FinalizeInProgressError,
    NotFoundError,
    ValidationError
)
from cetieflow.utils.logger import get_logger
from cetieflow.utils.notifier import Notifier

logger = get_logger()

CONVERTED = "converted"
DOWNLOAD_FAILED = "download_failed"
UPLOAD_FAILED = "upload_failed"
DELETE_FAILED = "delete_failed"


@dataclass
class ConversionOutcome:
    item: str
    outcome: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == CONVERTED


@dataclass
class FinalizeTargets:
    """Handles resolved by the first step."""
    pv_folder_id: str
    validation_file_id: Optional[str] = None


@dataclass
class FinalizeResult:
    identifier: str
    cancelled: bool = False
    validation_deleted: bool = False
    conversions: List[ConversionOutcome] = field(default_factory=list)
    moved: bool = False
    reminder_created: bool = False

    @property
    def files_converted(self) -> int:
        return sum(1 for c in self.conversions if c.ok)

    @property
    def files_failed(self) -> int:
        return sum(1 for c in self.conversions if not c.ok)


def pdf_name_for(word_name: str) -> str:
    stem = word_name.rsplit(".", 1)[0] if "." in word_name else word_name
    return f"{stem}.pdf"


class FinalizeOrchestrator:
    """Orchestrates the flow: validation.json -> PV conversions -> archive move."""

    def __init__(self, graph: GraphClient, settings: AppSettings, browser: FolderBrowser, notifier: Notifier):
        self.graph = graph
        self.settings = settings
        self.browser = browser
        self.notifier = notifier

    def run(self, session: DocumentSession, confirm: Callable[[str], bool]) -> FinalizeResult:
        """
        Validate and export an affaire folder.

        Args:
            session: Open affaire session with its validation record loaded
            confirm: Yes/no prompt

        Returns:
            FinalizeResult; ``moved`` tells the caller to leave the session

        Raises:
            FinalizeInProgressError: Another finalize holds this session
            ValidationError: The record does not allow finalizing
            NotFoundError: The PV sub-folder is missing
        """
        if not session.finalize_lock.acquire(blocking=False):
            raise FinalizeInProgressError("Validation déjà en cours")
        try:
            return self._run_locked(session, confirm)
        finally:
            session.finalize_lock.release()

    def _run_locked(self, session: DocumentSession, confirm: Callable[[str], bool]) -> FinalizeResult:
        result = FinalizeResult(identifier=session.identifier)

        if session.validation is None or not session.validation.can_finalize:
            raise ValidationError("Impossible de valider : tous les documents ne sont pas validés.")
        if not confirm(f"Êtes-vous sûr de vouloir valider et exporter le dossier {session.identifier} ?"):
            result.cancelled = True
            return result

        logger.info(f"Finalizing affaire {session.identifier}")
        self.notifier.info("Chargement...")

        targets = self._locate_targets(session)
        documents = self._collect_word_documents(session, targets.pv_folder_id)
        result.validation_deleted = self._delete_validation_record(session, targets)
        result.conversions = self.convert_word_documents(session, targets.pv_folder_id, documents)
        result.moved = self._move_folder(session)
        if result.moved:
            result.reminder_created = self._drop_reminder(session)

        logger.info(
            f"Finalize of {session.identifier}: {result.files_converted} converted, "
            f"{result.files_failed} failed, moved={result.moved}"
        )
        return result

    def _locate_targets(self, session: DocumentSession) -> FinalizeTargets:
        """Step 1: PV folder (required) and validation.json (optional) from a fresh listing."""
        children = self.browser.list_main_folder(session)
        pv_name = self.settings.pv_folder.lower()
        pv = next((i for i in children if i.is_folder and i.name.lower() == pv_name), None)
        if pv is None:
            raise NotFoundError("Erreur récupération dossier PV")
        session.pv_folder_id = pv.id

        record = next((i for i in children if i.name == self.settings.validation_file), None)
        return FinalizeTargets(pv_folder_id=pv.id, validation_file_id=record.id if record else None)

    def _collect_word_documents(self, session: DocumentSession, pv_folder_id: str) -> List[DriveItem]:
        """Step 2."""
        documents = [
            item for item in self.graph.list_children(session.drive_id, pv_folder_id)
            if item.is_word_document
        ]
        logger.info(f"{len(documents)} Word documents to convert")
        return documents

    def _delete_validation_record(self, session: DocumentSession, targets: FinalizeTargets) -> bool:
        """Step 3: best effort, a failure does not stop the saga."""
        if targets.validation_file_id is None:
            return False
        try:
            self.graph.delete(session.drive_id, targets.validation_file_id)
        except CetieFlowError as e:
            logger.error(f"Could not delete {self.settings.validation_file}: {e}")
            return False
        logger.info(f"Deleted {self.settings.validation_file}")
        return True

    def convert_word_documents(
        self,
        session: DocumentSession,
        pv_folder_id: str,
        documents: List[DriveItem]
    ) -> List[ConversionOutcome]:
        """
        Step 4: replace each Word document in PV by its store-side PDF rendering.

        Runs one document at a time; a failed document is reported and skipped.
        """
        outcomes = []
        for document in documents:
            outcome = self._convert_one(session, pv_folder_id, document)
            if not outcome.ok:
                self.notifier.error(outcome.error)
            outcomes.append(outcome)
        return outcomes

    def _convert_one(self, session: DocumentSession, pv_folder_id: str, document: DriveItem) -> ConversionOutcome:
        pdf_name = pdf_name_for(document.name)

        try:
            pdf = self.graph.download(session.drive_id, document.id, convert_to="pdf")
        except CetieFlowError as e:
            logger.error(f"Conversion of {document.name} failed: {e}")
            return ConversionOutcome(document.name, DOWNLOAD_FAILED, f"Erreur conversion {pdf_name} : {e}")

        try:
            self.graph.upload(session.drive_id, pv_folder_id, pdf_name, pdf, "application/pdf")
        except CetieFlowError as e:
            logger.error(f"Upload of {pdf_name} failed: {e}")
            return ConversionOutcome(document.name, UPLOAD_FAILED, f"Erreur upload {pdf_name} : {e}")

        try:
            self.graph.delete(session.drive_id, document.id)
        except CetieFlowError as e:
            logger.error(f"Delete of {document.name} failed: {e}")
            return ConversionOutcome(document.name, DELETE_FAILED, f"Erreur suppression {document.name} : {e}")

        logger.info(f"Converted {document.name} -> {pdf_name}")
        return ConversionOutcome(document.name, CONVERTED)

    def _move_folder(self, session: DocumentSession) -> bool:
        """Step 5."""
        try:
            self.graph.move(session.drive_id, session.folder_id, self.settings.archive_path)
        except CetieFlowError as e:
            logger.error(f"Move of {session.folder_name or session.identifier} failed: {e}")
            self.notifier.error(f"Erreur déplacement : {e}")
            return False
        self.notifier.info("Dossier validé")
        return True

    def _drop_reminder(self, session: DocumentSession) -> bool:
        """Step 6: empty marker file asking an operator to run the export script."""
        try:
            self.graph.create_empty_file(session.drive_id, session.folder_id, self.settings.reminder_file)
        except CetieFlowError as e:
            logger.error(f"Reminder file not created: {e}")
            self.notifier.error("Impossible de créer le rappel")
            return False
        return True
