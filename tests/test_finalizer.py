"""Tests for the finalize saga."""
import unittest

from fake_graph import FakeGraph, build_affaire_tree, make_session

from cetieflow.config.settings import AppSettings
from cetieflow.core.session import FolderBrowser
from cetieflow.core.validation import PveaState, ValidationRecord, ValidationStore
from cetieflow.orchestrator.finalizer import (
    CONVERTED,
    DELETE_FAILED,
    DOWNLOAD_FAILED,
    UPLOAD_FAILED,
    FinalizeOrchestrator,
    pdf_name_for
)
from cetieflow.utils.exceptions import (
    FinalizeInProgressError,
    HttpError,
    NetworkError,
    NotFoundError,
    ValidationError
)
from cetieflow.utils.notifier import RecordingNotifier

REMINDER = "⚠️ Rappel executer script !.txt"


def yes(_):
    return True


class TestFinalizeOrchestrator(unittest.TestCase):
    def setUp(self):
        self.settings = AppSettings.load()
        self.graph = FakeGraph()
        self.tree = build_affaire_tree(self.graph)
        self.notifier = RecordingNotifier()
        browser = FolderBrowser(self.graph, self.settings)
        self.orchestrator = FinalizeOrchestrator(self.graph, self.settings, browser, self.notifier)
        self.session = make_session(self.tree)

        store = ValidationStore(self.graph, self.settings)
        store.load(self.session)
        store.set_value(self.session, "FP", True)
        store.set_value(self.session, "PVEE", True)
        store.set_pvea(self.session, PveaState.NON_NECESSAIRE)

        self.fp = self.graph.add_file(self.tree["pv"], "FP_AB12CD34.docx", b"fp")
        self.pvee = self.graph.add_file(self.tree["pv"], "PVEE_AB12CD34.docx", b"pvee")
        self.graph.add_file(self.tree["pv"], "PVEA_AB12CD34.pdf", b"pvea")
        self.graph.calls.clear()

    def test_pdf_name(self):
        self.assertEqual(pdf_name_for("FP_AB12CD34.docx"), "FP_AB12CD34.pdf")
        self.assertEqual(pdf_name_for("FP.v2.docx"), "FP.v2.pdf")

    def test_full_success(self):
        result = self.orchestrator.run(self.session, yes)

        self.assertTrue(result.moved)
        self.assertTrue(result.validation_deleted)
        self.assertTrue(result.reminder_created)
        self.assertEqual([c.outcome for c in result.conversions], [CONVERTED, CONVERTED])
        self.assertEqual(
            sorted(self.graph.names_in(self.tree["pv"])),
            ["FP_AB12CD34.pdf", "PVEA_AB12CD34.pdf", "PVEE_AB12CD34.pdf"]
        )
        self.assertEqual(self.graph.nodes[self.tree["affaire"]].parent, self.tree["valide"])
        self.assertEqual(sorted(self.graph.names_in(self.tree["affaire"])), ["PV", "Photos", REMINDER])
        self.assertIn("Dossier validé", self.notifier.messages)

    def test_steps_run_in_order(self):
        self.orchestrator.run(self.session, yes)
        mutating = [c[0] for c in self.graph.calls if c[0] in ("delete", "upload", "move", "create_empty_file")]
        self.assertEqual(
            mutating,
            ["delete", "upload", "delete", "upload", "delete", "move", "create_empty_file"]
        )

    def test_refused_when_not_validated(self):
        self.session.validation = ValidationRecord(FP=True, PVEE=True)
        with self.assertRaises(ValidationError) as ctx:
            self.orchestrator.run(self.session, yes)
        self.assertIn("Impossible de valider", str(ctx.exception))
        self.assertEqual(self.graph.calls_of("move"), [])

    def test_cancelled_by_user(self):
        result = self.orchestrator.run(self.session, lambda _: False)
        self.assertTrue(result.cancelled)
        self.assertEqual(self.graph.calls_of("delete"), [])

    def test_missing_pv_aborts_before_mutation(self):
        self.graph.delete("drive-1", self.tree["pv"])
        calls_before = len(self.graph.calls)
        with self.assertRaises(NotFoundError):
            self.orchestrator.run(self.session, yes)
        self.assertEqual([c for c in self.graph.calls[calls_before:] if c[0] != "list_children"], [])

    def test_partial_failures_continue(self):
        self.graph.failures[("download", self.fp)] = NetworkError("reset")
        self.graph.failures[("delete", self.pvee)] = HttpError("DELETE failed", 423, "locked")

        result = self.orchestrator.run(self.session, yes)

        self.assertEqual([c.outcome for c in result.conversions], [DOWNLOAD_FAILED, DELETE_FAILED])
        self.assertEqual(result.files_converted, 0)
        self.assertEqual(result.files_failed, 2)
        self.assertEqual(len(self.notifier.errors), 2)
        self.assertTrue(result.moved)

    def test_upload_failure_keeps_word_document(self):
        self.graph.failures[("upload", "FP_AB12CD34.pdf")] = HttpError("PUT failed", 507)

        result = self.orchestrator.run(self.session, yes)

        self.assertEqual(result.conversions[0].outcome, UPLOAD_FAILED)
        self.assertIn("FP_AB12CD34.docx", self.graph.names_in(self.tree["pv"]))

    def test_validation_delete_failure_is_swallowed(self):
        record = self.graph.find(self.tree["affaire"], "validation.json")
        self.graph.failures[("delete", record.id)] = HttpError("DELETE failed", 500)

        result = self.orchestrator.run(self.session, yes)

        self.assertFalse(result.validation_deleted)
        self.assertTrue(result.moved)

    def test_move_failure(self):
        self.graph.failures[("move", self.tree["affaire"])] = HttpError("PATCH failed", 409, "nameAlreadyExists")

        result = self.orchestrator.run(self.session, yes)

        self.assertFalse(result.moved)
        self.assertFalse(result.reminder_created)
        self.assertEqual(self.graph.calls_of("create_empty_file"), [])
        self.assertTrue(any("déplacement" in e for e in self.notifier.errors))

    def test_conversion_rerun_is_idempotent(self):
        self.orchestrator.run(self.session, yes)
        documents = [
            item for item in self.graph.list_children("drive-1", self.tree["pv"]) if item.is_word_document
        ]
        self.assertEqual(
            self.orchestrator.convert_word_documents(self.session, self.tree["pv"], documents), []
        )

    def test_concurrent_finalize_fails_fast(self):
        self.session.finalize_lock.acquire()
        try:
            with self.assertRaises(FinalizeInProgressError):
                self.orchestrator.run(self.session, yes)
        finally:
            self.session.finalize_lock.release()

    def test_lock_released_after_failure(self):
        self.session.validation = ValidationRecord()
        with self.assertRaises(ValidationError):
            self.orchestrator.run(self.session, yes)
        self.assertTrue(self.session.finalize_lock.acquire(blocking=False))
        self.session.finalize_lock.release()


if __name__ == "__main__":
    unittest.main()
