"""Request and response models shared by the public and admin routers"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ez_checkin.models.event_form import EventForm
from ez_checkin.models.form_field import FormField
from ez_checkin.models.registration import Registration, RegistrationStatus
from ez_checkin.services.form_service import FieldSpec, FormService


class FieldResponse(BaseModel):
    name: str
    type: str
    label: str
    required: bool
    placeholder: Optional[str] = None
    options: Optional[List[str]] = None

    @classmethod
    def from_field(cls, field: FormField) -> "FieldResponse":
        return cls(
            name=field.field_name,
            type=field.field_type.value,
            label=field.label,
            required=field.is_required,
            placeholder=field.placeholder,
            options=field.options,
        )


class FormResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    fields: List[FieldResponse]
    is_published: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FormSummary(BaseModel):
    id: uuid.UUID
    title: str
    is_published: bool
    registration_count: int
    created_at: Optional[datetime] = None


class FormWriteRequest(BaseModel):
    title: Optional[str] = Field(
        default=None,
        max_length=200,
        json_schema_extra={"example": "Spring meetup"},
    )
    description: Optional[str] = None
    fields: List[FieldSpec] = Field(
        ...,
        description="Ordered fields collected from registrants",
        json_schema_extra={
            "example": [{"name": "name", "type": "text", "required": True}]
        },
    )


class RegistrationRequest(BaseModel):
    form_id: uuid.UUID = Field(..., description="Id of the published form")
    answers: Dict[str, Any] = Field(
        default_factory=dict,
        description="Field name to submitted value",
        json_schema_extra={"example": {"name": "Ana"}},
    )


class RegistrationSummary(BaseModel):
    """Returned to the registrant; code_payload is what their QR code holds"""

    id: uuid.UUID
    form_id: uuid.UUID
    token: str
    code_payload: str
    status: RegistrationStatus
    registered_at: datetime


class RegistrationResponse(BaseModel):
    id: uuid.UUID
    form_id: uuid.UUID
    answers: Dict[str, Any]
    status: RegistrationStatus
    registered_at: datetime
    checked_in_at: Optional[datetime] = None

    @classmethod
    def from_registration(cls, registration: Registration) -> "RegistrationResponse":
        return cls(
            id=registration.id,
            form_id=registration.form_id,
            answers=registration.answers or {},
            status=registration.status,
            registered_at=registration.registered_at,
            checked_in_at=registration.checked_in_at,
        )


class CheckInRequest(BaseModel):
    code_payload: str = Field(
        ...,
        description="Raw text read from the scanned code",
        json_schema_extra={"example": "https://checkin.example.org/verify?token=..."},
    )


class CheckInResponse(BaseModel):
    status: str = Field(..., description="checked_in or already_checked_in")
    registration: RegistrationResponse


def build_form_response(form_service: FormService, form: EventForm) -> FormResponse:
    return FormResponse(
        id=form.id,
        title=form.title,
        description=form.description,
        fields=[FieldResponse.from_field(f) for f in form_service.get_fields(form.id)],
        is_published=form_service.is_published(form.id),
        created_at=form.created_at,
        updated_at=form.updated_at,
    )
