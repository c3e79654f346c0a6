#!/usr/bin/env python3
"""regdesk - Event registration and sheet sync API"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from regdesk.config import config
from regdesk.logging_config import get_logger, setup_logging
from regdesk.routers.admin import router as admin_router
from regdesk.routers.health import health
from regdesk.routers.registration import router as registration_router
from regdesk.services.sheets_service import get_sync_worker

# Configure logging (INFO -> stdout, WARNING/ERROR -> stderr)
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    worker = get_sync_worker()
    worker.start()
    try:
        yield
    finally:
        # Flush whatever admissions queued before shutting the worker down
        await worker.stop()
        if worker.pending:
            logger.info(f"Draining {worker.pending} queued sheet syncs before exit")
            await worker.drain()


app = FastAPI(
    title="regdesk",
    description="Event registration admission with Google Sheets mirroring",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(health)
app.include_router(registration_router)
app.include_router(admin_router)


if __name__ == "__main__":
    port = config.get("port")
    logger.info(f"Starting regdesk on 0.0.0.0:{port}")
    logger.info("Health check available at /health")

    try:
        uvicorn.run(
            app, host="0.0.0.0", port=port, log_level=config["log_level"].lower()
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise
