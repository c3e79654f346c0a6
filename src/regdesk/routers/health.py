"""Liveness and readiness of the registration pipeline"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlmodel import Session, select, text

from regdesk.backends.sheets_client import SheetsClient
from regdesk.models.database import get_db
from regdesk.models.sheet_sync import SheetSync, SyncStatus
from regdesk.services.sheets_service import get_sheets_client, get_sync_worker
from regdesk.services.sync_worker import SheetSyncWorker

logger = logging.getLogger(__name__)

health = APIRouter(tags=["Health"])


@health.get("/health")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": "regdesk",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@health.get("/health/detailed")
async def detailed_health_check(
    db: Session = Depends(get_db),
    sync_worker: SheetSyncWorker = Depends(get_sync_worker),
    sheets_client: SheetsClient = Depends(get_sheets_client),
):
    """
    Database, sheet sync worker and spreadsheet credential checks.

    A database failure answers 503. A stopped worker, missing credentials or
    sheets whose last sync failed only mark the service as degraded.
    """
    checks = {}
    status = "healthy"

    try:
        db.exec(text("SELECT 1")).first()
        failing = db.exec(
            select(func.count(SheetSync.id)).where(
                SheetSync.last_sync_status == SyncStatus.FAILED
            )
        ).one()
        checks["database"] = "healthy"
        checks["failingSheets"] = failing
        if failing:
            status = "degraded"
    except Exception as e:
        logger.error(f"Health check database query failed: {e}")
        checks["database"] = f"unhealthy: {e}"
        status = "unhealthy"

    checks["syncWorker"] = {
        "running": sync_worker.is_running,
        "pending": sync_worker.pending,
    }
    if not sync_worker.is_running and status == "healthy":
        status = "degraded"

    checks["sheetsCredentials"] = (
        "configured" if sheets_client.is_configured else "missing"
    )
    if not sheets_client.is_configured and status == "healthy":
        status = "degraded"

    body = {
        "status": status,
        "service": "regdesk",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }
    if status == "unhealthy":
        raise HTTPException(status_code=503, detail=body)
    return body
