"""Configuration loader for regdesk with environment-specific support"""

import os
from pathlib import Path

from dotenv import load_dotenv

project_dir = Path(__file__).parent.parent.parent
env_path = project_dir / ".env"

# Load .env file if it exists. For local development only.
if env_path.exists():
    load_dotenv(env_path)

# Configuration dictionary - set once at initialization
config = {
    "database_url": os.getenv("DATABASE_URL"),
    "port": int(os.getenv("PORT", "8000")),
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "app_base_url": os.getenv("APP_BASE_URL"),
    "environment": os.getenv("ENVIRONMENT", "development"),
    # Shared secret for the administrative endpoints (X-Admin-Key header)
    "admin_api_key": os.getenv("ADMIN_API_KEY"),
    # Google service account used to provision and write registration sheets
    "google_client_email": os.getenv("GOOGLE_CLIENT_EMAIL"),
    # Keys pasted into env files carry literal "\n" sequences
    "google_private_key": os.getenv("GOOGLE_PRIVATE_KEY", "").replace("\\n", "\n"),
    "google_token_uri": os.getenv(
        "GOOGLE_TOKEN_URI", "https://oauth2.googleapis.com/token"
    ),
    "sheets_api_base_url": os.getenv(
        "SHEETS_API_BASE_URL", "https://sheets.googleapis.com/v4/spreadsheets"
    ),
    "sheet_header_protection": os.getenv("SHEET_HEADER_PROTECTION", "false").lower()
    == "true",
    # Pause between rows during a manual batch sync (Sheets API rate limits)
    "sync_batch_delay_seconds": float(os.getenv("SYNC_BATCH_DELAY_SECONDS", "0.1")),
}
