"""Centralized spreadsheet client and sync worker for the application"""

import logging

from regdesk.backends.sheets_client import GoogleSheetsClient, SheetsClient
from regdesk.config import config
from regdesk.models.database import new_session
from regdesk.services.sync_worker import SheetSyncWorker

logger = logging.getLogger(__name__)

# Global instances, created on first use
_sheets_client = None
_sync_worker = None


def get_sheets_client() -> SheetsClient:
    """Get or create the global spreadsheet client instance"""
    global _sheets_client
    if _sheets_client is None:
        _sheets_client = GoogleSheetsClient(config)
        logger.info("Initialized global Google Sheets client")
    return _sheets_client


def get_sync_worker() -> SheetSyncWorker:
    """Get or create the global sheet sync worker"""
    global _sync_worker
    if _sync_worker is None:
        _sync_worker = SheetSyncWorker(new_session, get_sheets_client)
        logger.info("Initialized global sheet sync worker")
    return _sync_worker
