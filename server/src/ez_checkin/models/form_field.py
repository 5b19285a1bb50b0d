"""SQLModel FormField model for the fields of an event form"""

import uuid
from typing import List, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlmodel import Field, SQLModel

from ez_checkin.models.field_type import FieldType


class FormField(SQLModel, table=True):
    """One field of an event form, ordered by field_order"""

    __tablename__ = "form_fields"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    form_id: uuid.UUID = Field(
        foreign_key="event_forms.id", ondelete="CASCADE", index=True
    )
    field_name: str  # Key used in submitted answers (e.g. 'name')
    field_type: FieldType = Field(
        sa_column=Column(
            SQLEnum(
                FieldType,
                name="form_field_type",
                values_callable=lambda x: [e.value for e in x],
            ),
            nullable=False,
        )
    )
    label: str
    placeholder: Optional[str] = None
    is_required: bool = Field(default=False)
    options: Optional[List[str]] = Field(
        default=None, sa_column=Column(JSON)
    )  # For select fields
    field_order: int = Field(default=0)

    __table_args__ = (
        UniqueConstraint("form_id", "field_name", name="uq_form_fields_form_name"),
    )
