from __future__ import annotations

import logging
import time
from typing import Callable

from pydantic import ValidationError

from cvforge.core.errors import PipelineError
from cvforge.core.store import SETTINGS_CV_ANALYSIS_STATUS, SETTINGS_CV_PARSED_DATA, KeyValueStore
from cvforge.schemas.analysis import AnalysisState, AnalysisStatus
from cvforge.schemas.resume import StructuredResume

logger = logging.getLogger(__name__)

StatusObserver = Callable[[AnalysisStatus], None]

INTERRUPTED_MESSAGE = "Analysis was interrupted. Please upload the CV again."

_ALLOWED: dict[str, frozenset[str]] = {
    "idle": frozenset({"extracting", "error"}),
    "extracting": frozenset({"extracting", "analyzing", "error"}),
    "analyzing": frozenset({"analyzing", "completed", "error"}),
    "completed": frozenset(),
    "error": frozenset(),
}


class InvalidTransition(PipelineError):
    default_code = "invalid_status_transition"


def _now_ms() -> int:
    return int(time.time() * 1000)


def get_cv_analysis_status(store: KeyValueStore) -> AnalysisStatus:
    raw = store.get(SETTINGS_CV_ANALYSIS_STATUS)
    if not isinstance(raw, dict):
        return AnalysisStatus()
    try:
        return AnalysisStatus.model_validate(raw)
    except ValidationError:
        logger.warning("analysis_status_unreadable")
        return AnalysisStatus()


def get_parsed_cv_data(store: KeyValueStore) -> StructuredResume | None:
    raw = store.get(SETTINGS_CV_PARSED_DATA)
    if not isinstance(raw, dict):
        return None
    try:
        return StructuredResume.model_validate(raw)
    except ValidationError:
        logger.warning("parsed_cv_unreadable")
        return None


def save_parsed_cv_data(store: KeyValueStore, resume: StructuredResume) -> None:
    store.put(SETTINGS_CV_PARSED_DATA, resume.to_payload())


def mark_interrupted(store: KeyValueStore) -> bool:
    """Rewrite a non-terminal status left behind by a previous process as an error."""
    current = get_cv_analysis_status(store)
    if current.is_terminal or current.status == "idle":
        return False
    failed = AnalysisStatus(
        status="error", progress=0, error=INTERRUPTED_MESSAGE, last_updated=_now_ms()
    )
    store.put(SETTINGS_CV_ANALYSIS_STATUS, failed.to_payload())
    logger.warning("analysis_status_interrupted previous=%s", current.status)
    return True


class AnalysisTracker:
    """Single writer of the persisted analysis status.

    Every transition writes the whole snapshot and then notifies the observer.
    """

    def __init__(self, store: KeyValueStore, observer: StatusObserver | None = None):
        self._store = store
        self._observer = observer
        self._current = get_cv_analysis_status(store)

    @property
    def current(self) -> AnalysisStatus:
        return self._current

    def reset(self) -> AnalysisStatus:
        # A new upload always starts over, whatever the previous outcome.
        return self._commit(AnalysisStatus(status="idle", progress=0, last_updated=_now_ms()))

    def advance(
        self, state: AnalysisState, progress: int, *, message: str | None = None
    ) -> AnalysisStatus:
        previous = self._current
        if state not in _ALLOWED[previous.status]:
            raise InvalidTransition(f"Cannot move analysis from {previous.status} to {state}.")
        if progress < previous.progress:
            raise InvalidTransition(
                f"Progress cannot go back from {previous.progress} to {progress}."
            )
        return self._commit(
            AnalysisStatus(
                status=state,
                progress=progress,
                message=message if message is not None else previous.message,
                last_updated=_now_ms(),
            )
        )

    def complete(self, resume: StructuredResume) -> AnalysisStatus:
        if "completed" not in _ALLOWED[self._current.status]:
            raise InvalidTransition(f"Cannot complete analysis from {self._current.status}.")
        return self._commit(
            AnalysisStatus(
                status="completed",
                progress=100,
                message=self._current.message,
                last_updated=_now_ms(),
                parsed_data=resume,
            )
        )

    def fail(self, message: str) -> AnalysisStatus:
        if self._current.is_terminal:
            logger.warning("analysis_status_fail_ignored status=%s", self._current.status)
            return self._current
        return self._commit(
            AnalysisStatus(status="error", progress=0, error=message, last_updated=_now_ms())
        )

    def _commit(self, status: AnalysisStatus) -> AnalysisStatus:
        self._store.put(SETTINGS_CV_ANALYSIS_STATUS, status.to_payload())
        self._current = status
        logger.info("analysis_status status=%s progress=%s", status.status, status.progress)
        if self._observer is not None:
            try:
                self._observer(status)
            except Exception:
                logger.debug("analysis_status_observer_failed", exc_info=True)
        return status
