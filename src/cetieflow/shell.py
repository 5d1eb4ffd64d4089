"""Interactive session shell bound to one affaire folder."""
import cmd
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from cetieflow.core.documents import DocumentOpener, LOCAL_PDF, TEMPLATE_COPIED, WEB_EDIT
from cetieflow.core.locator import FolderLocator
from cetieflow.core.photos import PhotoEntry, PhotoManager
from cetieflow.core.session import DocumentSession, FolderBrowser
from cetieflow.core.templates import StandardTemplate, TemplateCatalog, filter_templates
from cetieflow.core.validation import PveaState, ValidationStore
from cetieflow.graph.client import GraphClient
from cetieflow.orchestrator.finalizer import FinalizeOrchestrator
from cetieflow.utils.exceptions import CetieFlowError, NetworkError
from cetieflow.utils.logger import get_logger, set_affaire_context
from cetieflow.utils.notifier import Notifier

logger = get_logger()

_YES = ("o", "oui", "y", "yes")


@dataclass
class Services:
    """Everything a session needs, wired once per run."""
    graph: GraphClient
    notifier: Notifier
    browser: FolderBrowser
    locator: FolderLocator
    photos: PhotoManager
    validation: ValidationStore
    templates: TemplateCatalog
    documents: DocumentOpener
    finalizer: FinalizeOrchestrator
    launcher: Callable[[str], object] = webbrowser.open


def describe_error(error: CetieFlowError) -> str:
    if isinstance(error, NetworkError):
        return "Erreur réseau : veuillez vérifier votre connexion Internet"
    return str(error)


class AffaireShell(cmd.Cmd):
    """Commands available while an affaire folder is open."""

    def __init__(
        self,
        services: Services,
        session: DocumentSession,
        input_func: Callable[[str], str] = input,
        stdin=None,
        stdout=None
    ):
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False
        self.services = services
        self.session = session
        self.notifier = services.notifier
        self.input_func = input_func
        self.prompt = f"[{session.identifier}] > "
        self.intro = (
            f"Affaire {session.identifier} ({session.client_name}). "
            f"Tapez 'help' pour la liste des commandes."
        )

    # -- plumbing -----------------------------------------------------------

    def precmd(self, line: str) -> str:
        # Back from an external viewer: push any edited PDF before the next command
        self.services.documents.sync_edited(self.session)
        return line

    def onecmd(self, line: str) -> bool:
        try:
            return super().onecmd(line)
        except CetieFlowError as e:
            logger.error(f"Command '{line}' failed: {e}")
            self.notifier.error(describe_error(e))
            return False

    def emptyline(self) -> bool:
        return False

    def postloop(self) -> None:
        set_affaire_context(None)

    def ask(self, question: str) -> bool:
        return self.input_func(f"{question} [o/N] ").strip().lower() in _YES

    def _out(self, text: str = "") -> None:
        print(text, file=self.stdout)

    def _photo_at(self, arg: str) -> Optional[PhotoEntry]:
        try:
            index = int(arg) - 1
        except ValueError:
            self.notifier.error("Numéro de photo attendu")
            return None
        if not 0 <= index < len(self.session.photos):
            self.notifier.error(f"Aucune photo n°{arg}")
            return None
        return self.session.photos[index]

    # -- photos -------------------------------------------------------------

    def do_photos(self, arg):
        """photos: list the photos of the affaire"""
        photos = self.services.photos.refresh(self.session)
        self._out(f"{len(photos)} photo(s)")
        for number, photo in enumerate(photos, start=1):
            self._out(f"  {number:>3}. {photo.name}")

    def do_capture(self, arg):
        """capture <file>: upload a picture under the next free photo name"""
        if not arg.strip():
            self.notifier.error("Usage : capture <fichier>")
            return
        photo = self.services.photos.capture(self.session, Path(arg.strip()))
        self._out(f"  {photo.name}")

    def do_view(self, arg):
        """view <n>: download photo n and open it"""
        photo = self._photo_at(arg)
        if photo is None:
            return
        self.notifier.info("Chargement...")
        local_path = self.services.photos.download(self.session, photo)
        self.services.launcher(local_path.resolve().as_uri())

    def do_delete(self, arg):
        """delete <n>: delete photo n after confirmation"""
        photo = self._photo_at(arg)
        if photo is None:
            return
        self.services.photos.delete(self.session, photo, self.ask)

    # -- documents ----------------------------------------------------------

    def do_open(self, arg):
        """open FP|PVEE|PVEA: open the document, PVEA falls back to a standard template"""
        prefix = arg.strip().upper()
        if not prefix:
            self.notifier.error("Usage : open FP|PVEE|PVEA")
            return
        result = self.services.documents.open(self.session, prefix, self.choose_template)
        if result.kind == LOCAL_PDF:
            self._out(f"  {result.name} ouvert localement, il sera renvoyé après modification")
        elif result.kind == WEB_EDIT:
            self._out(f"  {result.name} : {result.url}")
        elif result.kind == TEMPLATE_COPIED:
            self._out(f"  {result.name} créé dans PV")

    def choose_template(self, templates: List[StandardTemplate]) -> Optional[StandardTemplate]:
        """Search prompt: a number picks, any other text filters, 'q' cancels."""
        self._out("Sélectionner un PVEA standard")
        shown = filter_templates(templates, "")
        while True:
            if not shown:
                self._out("  Aucun PVEA standard trouvé")
            for number, template in enumerate(shown, start=1):
                self._out(f"  {number:>3}. {template.display_name}")
            answer = self.input_func("Numéro, recherche ou 'q' : ").strip()
            if answer.lower() == "q":
                return None
            if answer.isdigit() and 1 <= int(answer) <= len(shown):
                return shown[int(answer) - 1]
            shown = filter_templates(templates, answer)

    # -- validation ---------------------------------------------------------

    def do_status(self, arg):
        """status: show the validation state"""
        record = self.session.validation
        if record is None:
            self.notifier.error("validation.json n'est pas chargé")
            return
        self._out(f"  FP   : {'validé' if record.FP else 'non validé'}")
        self._out(f"  PVEE : {'validé' if record.PVEE else 'non validé'}")
        self._out(f"  PVEA : {record.PVEA.value}")
        self._out(f"  Validation finale {'possible' if record.can_finalize else 'impossible'}")

    def do_toggle(self, arg):
        """toggle FP|PVEE: flip the validation of a document"""
        self.services.validation.toggle(self.session, arg.strip().upper(), self.ask)
        self.do_status("")

    def do_pvea(self, arg):
        """pvea validé|non_necessaire|non_valide: set the PVEA state"""
        try:
            state = PveaState(arg.strip().lower())
        except ValueError:
            self.notifier.error("Usage : pvea validé|non_necessaire|non_valide")
            return
        self.services.validation.set_pvea(self.session, state)
        self.do_status("")

    def do_finalize(self, arg):
        """finalize: convert Word documents to PDF and archive the folder"""
        result = self.services.finalizer.run(self.session, self.ask)
        if result.cancelled:
            return False
        self._out(f"  {result.files_converted} converti(s), {result.files_failed} en erreur")
        # Archived folders are left: back to the search prompt
        return result.moved

    # -- navigation ---------------------------------------------------------

    def do_refresh(self, arg):
        """refresh: reload sub-folders, photos and validation state"""
        self.services.photos.refresh(self.session)
        self.services.validation.load(self.session)
        self.notifier.info(f"{len(self.session.photos)} photo(s)")

    def do_back(self, arg):
        """back: close this affaire"""
        return True

    def do_EOF(self, arg):
        self._out()
        return True
