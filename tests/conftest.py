"""Shared test configuration and fixtures for regdesk tests"""

import logging
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from tests.config import test_config

# Must be in place before regdesk.config is imported
os.environ.setdefault("DATABASE_URL", test_config["database_url"])
os.environ.setdefault("ADMIN_API_KEY", test_config["admin_api_key"])
os.environ["SYNC_BATCH_DELAY_SECONDS"] = "0"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from regdesk.backends.sheets_client import (  # noqa: E402
    SheetInfo,
    SheetsClientError,
    build_column_mapping,
    build_header_row,
)
from regdesk.config import config  # noqa: E402
from regdesk.main import app  # noqa: E402
from regdesk.models import Event, EventStatus, SheetSync, SyncStatus  # noqa: E402
from regdesk.models.database import get_db  # noqa: E402
from regdesk.services.event_service import EventService  # noqa: E402
from regdesk.services.form_schema_service import FormSchemaService  # noqa: E402
from regdesk.services.registration_service import RegistrationService  # noqa: E402
from regdesk.services.sheet_sync_service import SheetSyncService  # noqa: E402
from regdesk.services.sheets_service import (  # noqa: E402
    get_sheets_client,
    get_sync_worker,
)
from regdesk.services.sync_worker import SheetSyncWorker  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeSheetsClient:
    """In-memory spreadsheet keyed by sheet id -> {row index: values}"""

    is_configured = True

    def __init__(self):
        self.sheets: Dict[str, Dict[int, List[Any]]] = {}
        self.writes: List[tuple] = []
        self.highlights: Dict[str, Dict[int, str]] = {}
        # Registration ids whose row writes should fail
        self.failing_registrations: set = set()
        self.fail_create = False

    def provision(self, event_id: str, name: str, fields) -> SheetInfo:
        sheet_id = f"sheet-{event_id}"
        self.sheets[sheet_id] = {1: build_header_row(fields)}
        return SheetInfo(
            sheet_id=sheet_id,
            sheet_url=f"https://sheets.test/{sheet_id}",
            column_mapping=build_column_mapping(fields),
        )

    async def create_sheet_for_event(self, event_id, name, fields) -> SheetInfo:
        if self.fail_create:
            raise SheetsClientError("Sheets API quota exceeded")
        return self.provision(event_id, name, fields)

    async def write_row(self, sheet_id, row_index, values) -> None:
        if values and values[0] in self.failing_registrations:
            raise SheetsClientError(
                f"Sheets API returned 429: rate limited for {values[0]}"
            )
        self.sheets.setdefault(sheet_id, {})[row_index] = list(values)
        self.writes.append((sheet_id, row_index, list(values)))

    async def highlight_row(self, sheet_id, row_index, status) -> None:
        self.highlights.setdefault(sheet_id, {})[row_index] = status

    async def read_column_length(self, sheet_id) -> int:
        # Like the real API: values run up to the last filled row
        return max(self.sheets.get(sheet_id, {}), default=0)

    def rows(self, sheet_id) -> Dict[int, List[Any]]:
        return self.sheets.get(sheet_id, {})


class RecordingSyncWorker:
    """Stands in for SheetSyncWorker; remembers what admission scheduled"""

    is_running = False

    def __init__(self):
        self.jobs: List[tuple] = []

    def enqueue(self, event_id, registration_pk) -> None:
        self.jobs.append((event_id, registration_pk))

    @property
    def pending(self) -> int:
        return len(self.jobs)


@pytest.fixture
def _engine():
    """Fresh in-memory database per test"""
    engine = create_engine(
        test_config["database_url"],
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def _db_session(_engine):
    """Private DB session for fixtures only.

    Do not use this fixture directly in tests. Prefer the service fixtures
    like `registration_service` or `form_schema_service`.
    """
    session = Session(_engine)

    yield session

    session.close()


@pytest.fixture
def session_factory(_engine):
    """Session factory for code that opens its own sessions (sync worker)"""

    def _factory() -> Session:
        return Session(_engine)

    return _factory


@pytest.fixture
def sheets_client():
    return FakeSheetsClient()


@pytest.fixture
def sync_worker():
    return RecordingSyncWorker()


@pytest.fixture
def registration_service(_db_session, sync_worker):
    """Create a RegistrationService instance for testing"""
    return RegistrationService(_db_session, sync_worker)


@pytest.fixture
def form_schema_service(_db_session):
    """Create a FormSchemaService instance for testing"""
    return FormSchemaService(_db_session)


@pytest.fixture
def event_service(_db_session):
    """Create an EventService instance for testing"""
    return EventService(_db_session)


@pytest.fixture
def sheet_sync_service(_db_session, sheets_client):
    """Create a SheetSyncService instance without batch pauses"""
    return SheetSyncService(_db_session, sheets_client, batch_delay_seconds=0)


@pytest.fixture
def real_sync_worker(session_factory, sheets_client):
    """SheetSyncWorker wired to the test database and the in-memory sheet"""
    return SheetSyncWorker(session_factory, lambda: sheets_client)


@pytest.fixture
def form_fields() -> List[dict]:
    """Typical hackathon registration form, as sent by the form builder"""
    return [
        {"id": "full_name", "type": "text", "label": "Full Name", "required": True},
        {
            "id": "email",
            "type": "email",
            "label": "Email Address",
            "required": True,
        },
        {"id": "phone", "type": "phone", "label": "Phone Number"},
        {
            "id": "track",
            "type": "dropdown",
            "label": "Track",
            "options": ["Web", "AI/ML", "Hardware"],
        },
        {
            "id": "interests",
            "type": "checkbox",
            "label": "Interests",
            "options": ["Design", "Backend", "Data"],
        },
    ]


@pytest.fixture
def create_event(_db_session, form_fields, sheets_client):
    """Factory for persisted events.

    By default the event is published, open for a week, has the `form_fields`
    form and a provisioned sheet with its Sync Record.
    """

    def _create(
        *,
        status: EventStatus = EventStatus.PUBLISHED,
        max_capacity: Optional[int] = None,
        requires_approval: bool = False,
        deadline: Optional[datetime] = None,
        fields: Optional[List[dict]] = None,
        with_form: bool = True,
        with_sheet: bool = True,
    ) -> Event:
        now = datetime.now(timezone.utc)
        event = Event(
            id=uuid.uuid4(),
            name="Spring Hackathon",
            description="48 hours of building",
            venue="Main Hall",
            event_date=now + timedelta(days=30),
            registration_deadline=deadline or now + timedelta(days=7),
            max_capacity=max_capacity,
            requires_approval=requires_approval,
            status=status,
        )
        _db_session.add(event)
        _db_session.commit()

        fields = fields if fields is not None else form_fields
        if with_form:
            result = FormSchemaService(_db_session).upsert_form(event.id, fields)
            if with_sheet:
                sheet = sheets_client.provision(
                    str(event.id), event.name, result.form.field_definitions()
                )
                event.sheet_id = sheet.sheet_id
                _db_session.add(event)
                _db_session.add(
                    SheetSync(
                        event_id=event.id,
                        sheet_id=sheet.sheet_id,
                        sheet_url=sheet.sheet_url,
                        column_mapping=sheet.column_mapping,
                        last_sync_status=SyncStatus.SUCCESS,
                    )
                )
                _db_session.commit()

        _db_session.refresh(event)
        return event

    return _create


@pytest.fixture
def submission():
    """Factory for valid submissions of the `form_fields` form"""

    def _build(email: str = "ada@example.com", **overrides) -> Dict[str, Any]:
        data = {
            "full_name": "Ada Lovelace",
            "email": email,
            "phone": "+1 415-555-0100",
            "track": "AI/ML",
            "interests": ["Backend", "Data"],
        }
        data.update(overrides)
        return data

    return _build


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return {"X-Admin-Key": config["admin_api_key"]}


@pytest.fixture
def api_client(_db_session, sync_worker, sheets_client):
    """Test client using the test database, in-memory sheet and recording worker"""

    # Store original overrides to restore them later
    original_overrides = app.dependency_overrides.copy()

    def get_test_db():
        return _db_session

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_sync_worker] = lambda: sync_worker
    app.dependency_overrides[get_sheets_client] = lambda: sheets_client

    client = TestClient(app)

    yield client

    # Completely restore original state
    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
