"""SQLModel EventForm model and the published-form pointer"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

# The published_form table holds exactly one row with this id
PUBLISHED_POINTER_ID = 1


class EventForm(SQLModel, table=True):
    """Registration form definition owned by the organizer"""

    __tablename__ = "event_forms"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str
    description: Optional[str] = None
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True)),
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True)),
    )


class PublishedForm(SQLModel, table=True):
    """Single-row pointer to the form currently open for registration.

    A form is published iff this row's form_id equals its id, so at most one
    form can ever read as published.
    """

    __tablename__ = "published_form"

    id: int = Field(default=PUBLISHED_POINTER_ID, primary_key=True)
    form_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="event_forms.id", ondelete="SET NULL"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True)),
    )
