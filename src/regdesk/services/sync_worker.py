"""Background worker that mirrors admitted registrations into sheets.

Admission only enqueues a job and returns; the worker task started in the
application lifespan drains the queue one job at a time, each with its own
database session. Failures are already recorded on the Sync Record by
SheetSyncService, so the worker only logs them.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Optional

from sqlmodel import Session

from regdesk.backends.sheets_client import SheetsClient
from regdesk.errors import SyncFailure
from regdesk.models.registration import Registration
from regdesk.services.sheet_sync_service import SheetSyncService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncJob:
    event_id: uuid.UUID
    registration_pk: uuid.UUID


class SheetSyncWorker:
    """Queue plus consumer task for fire-and-forget sheet syncs"""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        sheets_client_factory: Callable[[], SheetsClient],
    ):
        self.session_factory = session_factory
        self.sheets_client_factory = sheets_client_factory
        self._queue: asyncio.Queue[SyncJob] = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def enqueue(self, event_id: uuid.UUID, registration_pk: uuid.UUID) -> None:
        """Schedule a sync without waiting for it (queue is unbounded)"""
        self._queue.put_nowait(SyncJob(event_id, registration_pk))
        logger.debug(f"Queued sheet sync for registration {registration_pk}")

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="sheet-sync-worker")
        logger.info("Sheet sync worker started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Sheet sync worker stopped")

    async def drain(self) -> None:
        """Process every queued job in the current task (tests, shutdown)"""
        while not self._queue.empty():
            job = self._queue.get_nowait()
            try:
                await self.process(job)
            finally:
                self._queue.task_done()

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self.process(job)
            except Exception:
                logger.exception(
                    f"Unexpected error syncing registration {job.registration_pk}"
                )
            finally:
                self._queue.task_done()

    async def process(self, job: SyncJob) -> bool:
        """Run one sync job; returns True when the row was written"""
        with self.session_factory() as db:
            registration = db.get(Registration, job.registration_pk)
            if registration is None:
                logger.warning(
                    f"Registration {job.registration_pk} vanished before sheet sync"
                )
                return False

            service = SheetSyncService(db, self.sheets_client_factory())
            try:
                await service.sync_one(job.event_id, registration)
            except SyncFailure as e:
                logger.warning(
                    f"Sheet sync failed for registration "
                    f"{registration.registration_id}: {e.message}"
                )
                return False
        return True
