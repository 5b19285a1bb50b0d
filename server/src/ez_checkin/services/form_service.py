"""Form Store - event form definitions and the single published pointer"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ez_checkin.errors import ConflictError, NotFoundError, ValidationError
from ez_checkin.models.event_form import (
    PUBLISHED_POINTER_ID,
    EventForm,
    PublishedForm,
)
from ez_checkin.models.field_type import FieldType
from ez_checkin.models.form_field import FormField
from ez_checkin.models.registration import Registration

logger = logging.getLogger(__name__)

DEFAULT_FORM_TITLE = "Event registration"


class FieldSpec(BaseModel):
    """Definition of one field when creating or editing a form.

    - name: key under which answers are stored; letters, digits and underscores
    - label: display label, defaults to the name
    - options: allowed values for select fields
    """

    name: str = Field(min_length=1, max_length=64, pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    type: FieldType = FieldType.TEXT
    label: Optional[str] = None
    required: bool = False
    placeholder: Optional[str] = None
    options: Optional[List[str]] = None

    @field_validator("options")
    @classmethod
    def _strip_options(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        return [o.strip() for o in v if o and o.strip()]


def validate_field_specs(fields: List[FieldSpec]) -> None:
    """Raise ValidationError unless the field list can back a form."""
    if not fields:
        raise ValidationError("A form needs at least one field")

    errors = {}
    seen = set()
    for spec in fields:
        if spec.name in seen:
            errors[spec.name] = "Duplicate field name"
        seen.add(spec.name)
        if spec.type == FieldType.SELECT and not spec.options:
            errors[spec.name] = "Select fields need at least one option"

    if errors:
        raise ValidationError("Invalid form fields", field_errors=errors)


class FormService:
    """Service for creating, editing and publishing event forms"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def create_form(
        self,
        fields: List[FieldSpec],
        title: str = DEFAULT_FORM_TITLE,
        description: Optional[str] = None,
    ) -> EventForm:
        """
        Create a new, unpublished form with its fields.

        Raises:
            ValidationError: fields empty, duplicated or incomplete
        """
        validate_field_specs(fields)

        form = EventForm(title=title, description=description)
        try:
            self.db.add(form)
            self.db.add_all(self._build_fields(form.id, fields))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating form: {e}")
            raise

        self.db.refresh(form)
        logger.info(f"Form created: {form.id} with {len(fields)} fields")
        return form

    def update_form(
        self,
        form_id: uuid.UUID,
        fields: List[FieldSpec],
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> EventForm:
        """
        Replace a form's fields (and optionally title/description).

        Stored answers of existing registrations are left untouched; they keep
        the shape of the form they were submitted against.
        """
        form = self.get_form(form_id)
        validate_field_specs(fields)

        try:
            self.db.exec(delete(FormField).where(FormField.form_id == form_id))
            self.db.add_all(self._build_fields(form_id, fields))
            if title is not None:
                form.title = title
            if description is not None:
                form.description = description
            form.updated_at = datetime.now(timezone.utc)
            self.db.add(form)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating form {form_id}: {e}")
            raise

        self.db.refresh(form)
        logger.info(f"Form updated: {form_id}")
        return form

    def delete_form(self, form_id: uuid.UUID) -> None:
        """
        Delete a form that has no registrations.

        Raises:
            NotFoundError: unknown form
            ConflictError: registrations still reference the form
        """
        self.get_form(form_id)
        if self.count_registrations(form_id):
            raise ConflictError(
                "Form has registrations and cannot be deleted; unpublish it instead"
            )

        try:
            self.db.exec(
                update(PublishedForm)
                .where(PublishedForm.form_id == form_id)
                .values(form_id=None, updated_at=datetime.now(timezone.utc))
            )
            self.db.exec(delete(FormField).where(FormField.form_id == form_id))
            self.db.exec(delete(EventForm).where(EventForm.id == form_id))
            self.db.commit()
        except IntegrityError:
            # A registration slipped in after the count
            self.db.rollback()
            raise ConflictError("Form has registrations and cannot be deleted")
        logger.info(f"Form deleted: {form_id}")

    def get_form(self, form_id: uuid.UUID) -> EventForm:
        """Get a form by id or raise NotFoundError"""
        form = self.db.get(EventForm, form_id)
        if not form:
            raise NotFoundError("Form not found")
        return form

    def list_forms(self) -> List[EventForm]:
        """All forms, newest first"""
        stmt = select(EventForm).order_by(EventForm.created_at.desc())
        return list(self.db.exec(stmt).all())

    def get_fields(self, form_id: uuid.UUID) -> List[FormField]:
        """Fields of a form ordered by field_order"""
        stmt = (
            select(FormField)
            .where(FormField.form_id == form_id)
            .order_by(FormField.field_order)
        )
        return list(self.db.exec(stmt).all())

    def count_registrations(self, form_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Registration).where(
            Registration.form_id == form_id
        )
        return self.db.exec(stmt).one()

    # Publishing
    def published_form_id(self) -> Optional[uuid.UUID]:
        pointer = self.db.get(
            PublishedForm, PUBLISHED_POINTER_ID, populate_existing=True
        )
        return pointer.form_id if pointer else None

    def is_published(self, form_id: uuid.UUID) -> bool:
        return self.published_form_id() == form_id

    def get_published(self) -> Optional[EventForm]:
        """The form currently open for registration, if any"""
        form_id = self.published_form_id()
        if form_id is None:
            return None
        return self.db.get(EventForm, form_id)

    def publish_form(self, form_id: uuid.UUID) -> EventForm:
        """
        Point the published pointer at this form.

        The pointer is swapped with one UPDATE, so the previous form stops
        reading as published in the same statement that publishes this one.
        """
        form = self.get_form(form_id)
        self._set_pointer(form_id)
        logger.info(f"Form published: {form_id}")
        return form

    def unpublish(self, form_id: uuid.UUID) -> EventForm:
        """Clear the pointer if it still points at this form"""
        form = self.get_form(form_id)
        result = self.db.exec(
            update(PublishedForm)
            .where(
                PublishedForm.id == PUBLISHED_POINTER_ID,
                PublishedForm.form_id == form_id,
            )
            .values(form_id=None, updated_at=datetime.now(timezone.utc))
        )
        self.db.commit()
        if result.rowcount:
            logger.info(f"Form unpublished: {form_id}")
        return form

    def _set_pointer(self, form_id: uuid.UUID) -> None:
        now = datetime.now(timezone.utc)
        result = self.db.exec(
            update(PublishedForm)
            .where(PublishedForm.id == PUBLISHED_POINTER_ID)
            .values(form_id=form_id, updated_at=now)
        )
        if result.rowcount == 1:
            self.db.commit()
            return

        # Pointer row not seeded yet (fresh database without migrations)
        self.db.add(PublishedForm(id=PUBLISHED_POINTER_ID, form_id=form_id))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            self.db.exec(
                update(PublishedForm)
                .where(PublishedForm.id == PUBLISHED_POINTER_ID)
                .values(form_id=form_id, updated_at=now)
            )
            self.db.commit()

    def _build_fields(
        self, form_id: uuid.UUID, fields: List[FieldSpec]
    ) -> List[FormField]:
        return [
            FormField(
                form_id=form_id,
                field_name=spec.name,
                field_type=spec.type,
                label=spec.label or spec.name.replace("_", " ").capitalize(),
                placeholder=spec.placeholder,
                is_required=spec.required,
                options=spec.options if spec.type == FieldType.SELECT else None,
                field_order=i,
            )
            for i, spec in enumerate(fields)
        ]
