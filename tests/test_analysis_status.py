import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cvforge.core.store import SETTINGS_CV_ANALYSIS_STATUS, LocalStore  # noqa: E402
from cvforge.schemas.resume import StructuredResume  # noqa: E402
from cvforge.services.analysis_status import (  # noqa: E402
    INTERRUPTED_MESSAGE,
    AnalysisTracker,
    InvalidTransition,
    get_cv_analysis_status,
    mark_interrupted,
)


class AnalysisTrackerTests(unittest.TestCase):
    def setUp(self):
        self.store = LocalStore(":memory:")
        self.snapshots = []
        self.tracker = AnalysisTracker(self.store, self.snapshots.append)

    def tearDown(self):
        self.store.close()

    def test_happy_path_is_persisted_and_observed(self):
        self.tracker.reset()
        self.tracker.advance("extracting", 10)
        self.tracker.advance("analyzing", 30)
        self.tracker.advance("analyzing", 60)
        self.tracker.complete(StructuredResume(name="Jane"))

        self.assertEqual(
            [(s.status, s.progress) for s in self.snapshots],
            [("idle", 0), ("extracting", 10), ("analyzing", 30), ("analyzing", 60), ("completed", 100)],
        )
        stored = get_cv_analysis_status(self.store)
        self.assertEqual(stored.status, "completed")
        self.assertEqual(stored.parsed_data.name, "Jane")
        self.assertGreater(stored.last_updated, 0)

    def test_progress_never_goes_back(self):
        self.tracker.reset()
        self.tracker.advance("extracting", 15)
        with self.assertRaises(InvalidTransition):
            self.tracker.advance("analyzing", 10)

    def test_illegal_transitions_are_refused(self):
        self.tracker.reset()
        with self.assertRaises(InvalidTransition):
            self.tracker.advance("analyzing", 30)
        with self.assertRaises(InvalidTransition):
            self.tracker.complete(StructuredResume())

    def test_message_is_carried_until_replaced(self):
        self.tracker.reset()
        self.tracker.advance("extracting", 15, message="Running OCR")
        status = self.tracker.advance("analyzing", 30)
        self.assertEqual(status.message, "Running OCR")
        status = self.tracker.advance("analyzing", 60, message="Text extracted via OCR")
        self.assertEqual(status.message, "Text extracted via OCR")

    def test_failure_resets_progress_and_is_terminal(self):
        self.tracker.reset()
        self.tracker.advance("extracting", 10)
        failed = self.tracker.fail("boom")
        self.assertEqual((failed.status, failed.progress, failed.error), ("error", 0, "boom"))
        self.assertIs(self.tracker.fail("second"), failed)
        with self.assertRaises(InvalidTransition):
            self.tracker.advance("extracting", 10)

    def test_reset_starts_over_after_terminal_state(self):
        self.tracker.reset()
        self.tracker.fail("boom")
        status = self.tracker.reset()
        self.assertEqual((status.status, status.progress), ("idle", 0))
        self.assertIsNone(status.error)

    def test_observer_errors_do_not_break_tracking(self):
        def observer(_):
            raise RuntimeError("ui gone")

        tracker = AnalysisTracker(self.store, observer)
        tracker.reset()
        tracker.advance("extracting", 10)
        self.assertEqual(get_cv_analysis_status(self.store).progress, 10)


class InterruptedRunTests(unittest.TestCase):
    def setUp(self):
        self.store = LocalStore(":memory:")

    def tearDown(self):
        self.store.close()

    def test_running_status_left_by_dead_process_becomes_error(self):
        self.store.put(SETTINGS_CV_ANALYSIS_STATUS, {"status": "analyzing", "progress": 60, "lastUpdated": 1})
        self.assertTrue(mark_interrupted(self.store))
        status = get_cv_analysis_status(self.store)
        self.assertEqual(status.status, "error")
        self.assertEqual(status.progress, 0)
        self.assertEqual(status.error, INTERRUPTED_MESSAGE)

    def test_terminal_and_idle_statuses_are_left_alone(self):
        self.assertFalse(mark_interrupted(self.store))
        self.store.put(SETTINGS_CV_ANALYSIS_STATUS, {"status": "completed", "progress": 100, "lastUpdated": 1})
        self.assertFalse(mark_interrupted(self.store))
        self.assertEqual(get_cv_analysis_status(self.store).status, "completed")

    def test_unreadable_status_reads_as_idle(self):
        self.store.put(SETTINGS_CV_ANALYSIS_STATUS, {"status": "flying", "progress": 500})
        self.assertEqual(get_cv_analysis_status(self.store).status, "idle")


if __name__ == "__main__":
    unittest.main()
