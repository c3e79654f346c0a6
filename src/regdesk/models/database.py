"""Database configuration and session helpers"""

import os

from sqlalchemy import create_engine
from sqlmodel import Session

from regdesk.config import config

DATABASE_URL = config["database_url"]

if not DATABASE_URL:
    raise ValueError(
        "DATABASE_URL environment variable is not set. "
        "Set DATABASE_URL in the deployment environment or local .env file."
    )

engine = create_engine(DATABASE_URL, echo=os.getenv("DEBUG", "false").lower() == "true")


def get_db():
    """Get database session"""
    with Session(engine) as session:
        yield session


def new_session() -> Session:
    """Open a session outside of a request (background workers)"""
    return Session(engine)
