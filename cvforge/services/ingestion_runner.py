from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Any, Coroutine

from cvforge.core.errors import PipelineError

logger = logging.getLogger(__name__)


class AnalysisInProgress(PipelineError):
    default_code = "analysis_in_progress"


def _log_outcome(task: asyncio.Task) -> None:
    if task.cancelled():
        logger.info("ingestion_task_cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.info("ingestion_task_failed error=%s", type(exc).__name__)


class IngestionRunner:
    """Keeps at most one CV ingestion task alive per process."""

    def __init__(self) -> None:
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        if self.running:
            coro.close()
            raise AnalysisInProgress("A CV analysis is already running.")
        task = asyncio.create_task(coro)
        task.add_done_callback(_log_outcome)
        self._task = task
        return task

    async def cancel(self) -> bool:
        task = self._task
        if task is None or task.done():
            return False
        task.cancel()
        # The pipeline records the cancellation before the task settles.
        await asyncio.wait({task})
        return True


@lru_cache(maxsize=1)
def get_ingestion_runner() -> IngestionRunner:
    return IngestionRunner()
