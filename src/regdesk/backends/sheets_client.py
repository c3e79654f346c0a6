"""Spreadsheet client used to mirror registrations into Google Sheets"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence
from urllib.parse import quote

import httpx
from aiocache import Cache, cached
from authlib.jose import jwt

from regdesk.models.form_field import FormFieldDefinition

logger = logging.getLogger(__name__)

WORKSHEET_TITLE = "Registrations"
WORKSHEET_GRID_ID = 0
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"

# Fixed leading/trailing columns around the form fields
LEADING_COLUMNS = [
    ("registration_id", "Registration ID"),
    ("submitted_at", "Submitted At"),
    ("status", "Status"),
]
TRAILING_COLUMN = ("last_updated", "Last Updated")

HEADER_BACKGROUND = {"red": 0.26, "green": 0.26, "blue": 0.26}
HEADER_FOREGROUND = {"red": 1.0, "green": 1.0, "blue": 1.0}

# Row background per registration status
STATUS_COLORS = {
    "pending": {"red": 1.0, "green": 0.9, "blue": 0.6},
    "approved": {"red": 0.7, "green": 0.9, "blue": 0.7},
    "rejected": {"red": 1.0, "green": 0.7, "blue": 0.7},
}


class SheetsClientError(RuntimeError):
    """Raised when the spreadsheet API rejects or fails a request"""


@dataclass
class SheetInfo:
    sheet_id: str
    sheet_url: str
    column_mapping: Dict[str, str] = field(default_factory=dict)


class SheetsClient(Protocol):
    """Narrow interface the sync pipeline needs from a spreadsheet vendor"""

    is_configured: bool

    async def create_sheet_for_event(
        self, event_id: str, name: str, fields: Sequence[FormFieldDefinition]
    ) -> SheetInfo: ...

    async def write_row(
        self, sheet_id: str, row_index: int, values: List[Any]
    ) -> None: ...

    async def highlight_row(
        self, sheet_id: str, row_index: int, status: str
    ) -> None: ...

    async def read_column_length(self, sheet_id: str) -> int: ...


def column_letter(index: int) -> str:
    """Zero-based column index to A1 notation letters (0 -> A, 26 -> AA)"""
    if index < 0:
        raise ValueError("Column index must be non-negative")
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def build_header_row(fields: Sequence[FormFieldDefinition]) -> List[str]:
    return (
        [title for _, title in LEADING_COLUMNS]
        + [f.label for f in fields]
        + [TRAILING_COLUMN[1]]
    )


def build_column_mapping(fields: Sequence[FormFieldDefinition]) -> Dict[str, str]:
    """
    Map each sheet column key to its letter.

    registration_id/submitted_at/status take A-C, form fields follow from D in
    schema order and last_updated closes the row.
    """
    keys = [key for key, _ in LEADING_COLUMNS] + [f.id for f in fields]
    keys.append(TRAILING_COLUMN[0])
    return {key: column_letter(i) for i, key in enumerate(keys)}


class GoogleSheetsClient:
    """Google Sheets v4 REST client authenticated with a service account"""

    def __init__(self, config: dict):
        self.client_email = config.get("google_client_email")
        self.private_key = config.get("google_private_key")
        self.token_uri = config["google_token_uri"]
        self.api_base_url = config["sheets_api_base_url"].rstrip("/")
        self.protect_header = config.get("sheet_header_protection", False)

        self.is_configured = bool(self.client_email and self.private_key)
        if not self.is_configured:
            logger.warning(
                "Google service account credentials not configured. "
                "Sheet provisioning and sync will fail."
            )

    def _build_assertion(self) -> bytes:
        issued_at = int(time.time())
        claims = {
            "iss": self.client_email,
            "scope": SHEETS_SCOPE,
            "aud": self.token_uri,
            "iat": issued_at,
            "exp": issued_at + 3600,
        }
        return jwt.encode({"alg": "RS256", "typ": "JWT"}, claims, self.private_key)

    @cached(ttl=3000, cache=Cache.MEMORY)
    async def _get_access_token(self) -> str:
        """
        Exchange a signed service account assertion for an access token
        (cached below the one hour token lifetime)

        Raises:
            SheetsClientError: If credentials are missing or the exchange fails
        """
        if not self.is_configured:
            raise SheetsClientError("Google service account is not configured")

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.token_uri,
                    data={
                        "grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer",
                        "assertion": self._build_assertion().decode("ascii"),
                    },
                    timeout=10.0,
                )
                response.raise_for_status()
                logger.info("Obtained Google Sheets access token")
                return response.json()["access_token"]
        except httpx.HTTPError as e:
            logger.error(f"Failed to obtain Google access token: {e}")
            raise SheetsClientError(f"Google token request failed: {e}") from e

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> dict:
        token = await self._get_access_token()
        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    method,
                    f"{self.api_base_url}{path}",
                    params=params,
                    json=json,
                    headers={"Authorization": f"Bearer {token}"},
                    timeout=10.0,
                )
                response.raise_for_status()
                return response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            raise SheetsClientError(
                f"Sheets API {method} {path} returned {e.response.status_code}: "
                f"{e.response.text}"
            ) from e
        except httpx.RequestError as e:
            raise SheetsClientError(f"Sheets API {method} {path} failed: {e}") from e

    @staticmethod
    def _range_path(sheet_id: str, a1_range: str) -> str:
        return f"/{sheet_id}/values/{quote(a1_range, safe='!:')}"

    async def create_sheet_for_event(
        self, event_id: str, name: str, fields: Sequence[FormFieldDefinition]
    ) -> SheetInfo:
        """
        Create a spreadsheet for an event with a formatted header row.

        Returns:
            SheetInfo with spreadsheet id, URL and column mapping
        """
        headers = build_header_row(fields)

        created = await self._request(
            "POST",
            "",
            json={
                "properties": {"title": f"{name} - Registrations"},
                "sheets": [
                    {
                        "properties": {
                            "sheetId": WORKSHEET_GRID_ID,
                            "title": WORKSHEET_TITLE,
                            "gridProperties": {
                                "rowCount": 1000,
                                "columnCount": len(headers) + 1,
                            },
                        }
                    }
                ],
            },
        )
        spreadsheet_id = created["spreadsheetId"]
        grid_id = created["sheets"][0]["properties"]["sheetId"]

        await self._request(
            "PUT",
            self._range_path(spreadsheet_id, f"{WORKSHEET_TITLE}!A1"),
            params={"valueInputOption": "RAW"},
            json={"values": [headers]},
        )

        header_range = {"sheetId": grid_id, "startRowIndex": 0, "endRowIndex": 1}
        requests: List[dict] = [
            {
                "repeatCell": {
                    "range": header_range,
                    "cell": {
                        "userEnteredFormat": {
                            "backgroundColor": HEADER_BACKGROUND,
                            "textFormat": {
                                "foregroundColor": HEADER_FOREGROUND,
                                "fontSize": 11,
                                "bold": True,
                            },
                        }
                    },
                    "fields": "userEnteredFormat(backgroundColor,textFormat)",
                }
            },
            {
                "autoResizeDimensions": {
                    "dimensions": {
                        "sheetId": grid_id,
                        "dimension": "COLUMNS",
                        "startIndex": 0,
                        "endIndex": len(headers),
                    }
                }
            },
        ]
        if self.protect_header:
            requests.append(
                {
                    "addProtectedRange": {
                        "protectedRange": {
                            "range": header_range,
                            "description": "Header row is protected",
                            "warningOnly": False,
                        }
                    }
                }
            )
        await self._request(
            "POST", f"/{spreadsheet_id}:batchUpdate", json={"requests": requests}
        )

        logger.info(f"Created sheet {spreadsheet_id} for event {event_id}")
        return SheetInfo(
            sheet_id=spreadsheet_id,
            sheet_url=created.get(
                "spreadsheetUrl",
                f"https://docs.google.com/spreadsheets/d/{spreadsheet_id}",
            ),
            column_mapping=build_column_mapping(fields),
        )

    async def write_row(self, sheet_id: str, row_index: int, values: List[Any]) -> None:
        """Overwrite a full row (1-based index) starting at column A"""
        await self._request(
            "PUT",
            self._range_path(sheet_id, f"{WORKSHEET_TITLE}!A{row_index}"),
            params={"valueInputOption": "RAW"},
            json={"values": [values]},
        )

    async def highlight_row(self, sheet_id: str, row_index: int, status: str) -> None:
        """Colour a row's background by registration status"""
        color = STATUS_COLORS.get(status)
        if color is None:
            logger.debug(f"No row colour for status {status!r}")
            return
        await self._request(
            "POST",
            f"/{sheet_id}:batchUpdate",
            json={
                "requests": [
                    {
                        "repeatCell": {
                            "range": {
                                "sheetId": WORKSHEET_GRID_ID,
                                "startRowIndex": row_index - 1,
                                "endRowIndex": row_index,
                            },
                            "cell": {"userEnteredFormat": {"backgroundColor": color}},
                            "fields": "userEnteredFormat.backgroundColor",
                        }
                    }
                ]
            },
        )

    async def read_column_length(self, sheet_id: str) -> int:
        """Number of filled rows in column A, header included"""
        data = await self._request(
            "GET", self._range_path(sheet_id, f"{WORKSHEET_TITLE}!A:A")
        )
        return len(data.get("values", []))
