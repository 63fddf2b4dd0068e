import logging
from contextlib import asynccontextmanager

from cvforge.core.store import get_device_store, get_store
from cvforge.services.analysis_status import mark_interrupted
from cvforge.services.ingestion_runner import get_ingestion_runner

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    store = get_store()
    get_device_store()

    # Nothing can still be running right after startup.
    if mark_interrupted(store):
        logger.info("startup_recovered_interrupted_analysis")

    yield

    runner = get_ingestion_runner()
    if await runner.cancel():
        logger.info("shutdown_cancelled_ingestion")
