"""SQLModel Registration model"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column, DateTime
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class RegistrationStatus(str, enum.Enum):
    REGISTERED = "registered"
    CHECKED_IN = "checked_in"


class Registration(SQLModel, table=True):
    """Registration submitted against the published form"""

    __tablename__ = "registrations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    form_id: uuid.UUID = Field(foreign_key="event_forms.id", index=True)
    answers: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    token: str = Field(unique=True, index=True)
    status: RegistrationStatus = Field(
        default=RegistrationStatus.REGISTERED,
        sa_column=Column(
            SAEnum(
                RegistrationStatus,
                name="registration_status",
                native_enum=True,
                values_callable=lambda enum: [e.value for e in enum],
            ),
            nullable=False,
            server_default=RegistrationStatus.REGISTERED.value,
        ),
    )
    registered_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    checked_in_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
