"""Database configuration and session helpers"""

import os

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel

from ez_checkin.config import config
from ez_checkin.models.event_form import PUBLISHED_POINTER_ID, PublishedForm

# Database URL from config
DATABASE_URL = config["database_url"]

if not DATABASE_URL:
    raise ValueError(
        "DATABASE_URL environment variable is not set. "
        "Set DATABASE_URL in the environment or the local .env file."
    )


def build_engine(database_url: str):
    """Create an engine; SQLite connections may be shared across request threads."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
    engine = create_engine(
        database_url,
        echo=os.getenv("DEBUG", "false").lower() == "true",
        connect_args=connect_args,
    )

    if engine.dialect.name == "sqlite":
        # SQLite leaves foreign keys unenforced unless asked per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine(DATABASE_URL)


def init_db(target_engine=None):
    """Create all tables and seed the published-form pointer row."""
    target_engine = target_engine or engine
    # Import so every table is registered on the metadata
    import ez_checkin.models  # noqa: F401

    SQLModel.metadata.create_all(target_engine)
    with Session(target_engine) as session:
        if session.get(PublishedForm, PUBLISHED_POINTER_ID) is None:
            session.add(PublishedForm(id=PUBLISHED_POINTER_ID, form_id=None))
            try:
                session.commit()
            except IntegrityError:
                # Another process seeded it first
                session.rollback()


def get_db():
    """Get database session"""
    with Session(engine) as session:
        yield session
