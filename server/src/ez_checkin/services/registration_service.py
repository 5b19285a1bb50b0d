"""Registration service for handling submissions to the published form"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ez_checkin.errors import ConflictError, NotFoundError, ValidationError
from ez_checkin.models.event_form import PUBLISHED_POINTER_ID, PublishedForm
from ez_checkin.models.field_type import FieldType
from ez_checkin.models.form_field import FormField
from ez_checkin.models.registration import Registration
from ez_checkin.services.token_service import TokenService

logger = logging.getLogger(__name__)

# Token collisions are astronomically rare; a handful of attempts is plenty
MAX_TOKEN_ATTEMPTS = 5
MAX_TEXT_LENGTH = 250

_TRUE_STRINGS = {"true", "on", "yes", "1"}
_FALSE_STRINGS = {"false", "off", "no", "0", ""}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _clean_value(field: FormField, value: Any) -> Any:
    """Normalize one submitted value; raise ValueError with a user message."""
    if field.field_type == FieldType.CHECKBOX:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS:
            return True
        if isinstance(value, str) and value.strip().lower() in _FALSE_STRINGS:
            return False
        raise ValueError(f"{field.label} must be checked or unchecked")

    if field.field_type == FieldType.NUMBER:
        if isinstance(value, bool):
            raise ValueError(f"{field.label} must be a valid number")
        if isinstance(value, (int, float)):
            return value
        try:
            return float(str(value).strip())
        except ValueError:
            raise ValueError(f"{field.label} must be a valid number")

    if not isinstance(value, str):
        raise ValueError(f"{field.label} must be text")
    text = value.strip()

    if field.field_type == FieldType.SELECT:
        if field.options and text not in field.options:
            raise ValueError(f"Invalid option for {field.label}")
    elif field.field_type == FieldType.EMAIL:
        local, _, domain = text.partition("@")
        if not local or "." not in domain or " " in text:
            raise ValueError(f"{field.label} must be a valid email address")
        text = text.lower()
    elif len(text) > MAX_TEXT_LENGTH:
        raise ValueError(f"{field.label} must be fewer than {MAX_TEXT_LENGTH} characters")
    return text


def validate_answers(fields: List[FormField], answers: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check submitted answers against a form's fields.

    Args:
        fields: Fields of the form being submitted to
        answers: Raw field name -> value mapping from the client

    Returns:
        Normalized answers containing only provided values

    Raises:
        ValidationError: with one message per offending field
    """
    if not isinstance(answers, dict):
        raise ValidationError("Answers must be an object of field values")

    errors: Dict[str, str] = {}
    known = {f.field_name for f in fields}
    for name in answers:
        if name not in known:
            errors[name] = "Unknown field"

    cleaned: Dict[str, Any] = {}
    for field in fields:
        value = answers.get(field.field_name)
        if _is_blank(value):
            if field.is_required:
                errors[field.field_name] = f"{field.label} is required"
            continue

        try:
            cleaned_value = _clean_value(field, value)
        except ValueError as e:
            errors[field.field_name] = str(e)
            continue

        if field.is_required and field.field_type == FieldType.CHECKBOX and not cleaned_value:
            errors[field.field_name] = f"{field.label} is required"
            continue
        cleaned[field.field_name] = cleaned_value

    if errors:
        raise ValidationError("Submission has invalid fields", field_errors=errors)
    return cleaned


class RegistrationService:
    """Service for managing registrations"""

    def __init__(self, db_session: Session, token_service: TokenService):
        self.db = db_session
        self.token_service = token_service

    def submit(self, form_id: uuid.UUID, answers: Dict[str, Any]) -> Registration:
        """
        Register against the currently published form.

        Each attempt is one transaction: the published pointer is read (with a
        shared lock where supported) and the registration inserted and
        committed together, so a form unpublished mid-request never receives
        a registration. A duplicate token rolls the attempt back and retries.

        Raises:
            NotFoundError: form_id is not the currently published form
            ValidationError: answers miss required fields or carry unknown ones
        """
        for attempt in range(1, MAX_TOKEN_ATTEMPTS + 1):
            self._require_published(form_id)
            fields = list(
                self.db.exec(
                    select(FormField)
                    .where(FormField.form_id == form_id)
                    .order_by(FormField.field_order)
                ).all()
            )
            try:
                cleaned = validate_answers(fields, answers)
            except ValidationError:
                self.db.rollback()
                raise

            registration = Registration(
                form_id=form_id, answers=cleaned, token=self.token_service.mint()
            )
            self.db.add(registration)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                logger.warning(
                    f"Registration insert failed on attempt {attempt} for form {form_id}: {e}"
                )
                continue

            self.db.refresh(registration)
            logger.info(f"Created registration {registration.id} for form {form_id}")
            return registration

        raise ConflictError("Could not allocate a unique registration token")

    def get(self, registration_id: uuid.UUID) -> Registration:
        """Get a registration by ID or raise NotFoundError"""
        registration = self.db.get(Registration, registration_id)
        if not registration:
            raise NotFoundError("Registration not found")
        return registration

    def list_by_form(self, form_id: uuid.UUID) -> List[Registration]:
        """All registrations for a form, oldest first"""
        stmt = (
            select(Registration)
            .where(Registration.form_id == form_id)
            .order_by(Registration.registered_at.asc())
        )
        return list(self.db.exec(stmt).all())

    def find_by_token(self, token: str) -> Optional[Registration]:
        stmt = select(Registration).where(Registration.token == token)
        return self.db.exec(stmt).first()

    def count_by_form(self, form_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Registration).where(
            Registration.form_id == form_id
        )
        return self.db.exec(stmt).one()

    def _require_published(self, form_id: uuid.UUID) -> None:
        pointer = self.db.exec(
            select(PublishedForm)
            .where(PublishedForm.id == PUBLISHED_POINTER_ID)
            .with_for_update(read=True)
            .execution_options(populate_existing=True)
        ).first()
        if pointer is None or pointer.form_id != form_id:
            self.db.rollback()
            raise NotFoundError("Form not found or not published")
