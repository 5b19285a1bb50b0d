"""Admin endpoints: session, form management, registrations and check-in"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, Field
from sqlmodel import Session

from ez_checkin.auth.admin_gate import (
    AdminGate,
    end_admin_session,
    get_admin_gate,
    require_admin,
    start_admin_session,
    verify_admin_password,
)
from ez_checkin.errors import UnauthorizedError
from ez_checkin.logging_config import get_logger
from ez_checkin.models.database import get_db
from ez_checkin.routers.schemas import (
    CheckInRequest,
    CheckInResponse,
    FormResponse,
    FormSummary,
    FormWriteRequest,
    RegistrationResponse,
    build_form_response,
)
from ez_checkin.services.checkin_service import CheckinService
from ez_checkin.services.form_service import DEFAULT_FORM_TITLE, FormService
from ez_checkin.services.registration_service import RegistrationService
from ez_checkin.services.token_service import TokenService, get_token_service

router = APIRouter(prefix="/api/admin", tags=["Admin"])
logger = get_logger(__name__)


class LoginRequest(BaseModel):
    password: str = Field(..., min_length=1, description="Admin password")


class AdminStatus(BaseModel):
    is_admin: bool


# Session


@router.get("/check", response_model=AdminStatus)
async def check_admin(request: Request, gate: AdminGate = Depends(get_admin_gate)):
    """Whether the caller currently holds an admin session"""
    return AdminStatus(is_admin=gate.is_admin(request))


@router.post("/login", response_model=AdminStatus)
async def login(body: LoginRequest, request: Request):
    if not verify_admin_password(body.password):
        logger.warning("Rejected admin login attempt")
        raise UnauthorizedError("Invalid admin password")
    start_admin_session(request)
    return AdminStatus(is_admin=True)


@router.post("/logout", response_model=AdminStatus)
async def logout(request: Request):
    end_admin_session(request)
    return AdminStatus(is_admin=False)


# Forms


@router.get(
    "/forms", response_model=List[FormSummary], dependencies=[Depends(require_admin)]
)
async def list_forms(db: Session = Depends(get_db)):
    form_service = FormService(db)
    published_id = form_service.published_form_id()
    return [
        FormSummary(
            id=form.id,
            title=form.title,
            is_published=form.id == published_id,
            registration_count=form_service.count_registrations(form.id),
            created_at=form.created_at,
        )
        for form in form_service.list_forms()
    ]


@router.post(
    "/forms",
    response_model=FormResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_form(body: FormWriteRequest, db: Session = Depends(get_db)):
    form_service = FormService(db)
    form = form_service.create_form(
        body.fields,
        title=body.title or DEFAULT_FORM_TITLE,
        description=body.description,
    )
    return build_form_response(form_service, form)


@router.get(
    "/forms/{form_id}",
    response_model=FormResponse,
    dependencies=[Depends(require_admin)],
)
async def get_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    form_service = FormService(db)
    return build_form_response(form_service, form_service.get_form(form_id))


@router.put(
    "/forms/{form_id}",
    response_model=FormResponse,
    dependencies=[Depends(require_admin)],
)
async def update_form(
    form_id: uuid.UUID, body: FormWriteRequest, db: Session = Depends(get_db)
):
    """Replace a form's fields; existing registrations keep their answers"""
    form_service = FormService(db)
    form = form_service.update_form(
        form_id, body.fields, title=body.title, description=body.description
    )
    return build_form_response(form_service, form)


@router.delete(
    "/forms/{form_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    FormService(db).delete_form(form_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/forms/{form_id}/publish",
    response_model=FormResponse,
    dependencies=[Depends(require_admin)],
)
async def publish_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    form_service = FormService(db)
    form = form_service.publish_form(form_id)
    return build_form_response(form_service, form)


@router.post(
    "/forms/{form_id}/unpublish",
    response_model=FormResponse,
    dependencies=[Depends(require_admin)],
)
async def unpublish_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    form_service = FormService(db)
    form = form_service.unpublish(form_id)
    return build_form_response(form_service, form)


# Registrations and check-in


@router.get(
    "/forms/{form_id}/registrations",
    response_model=List[RegistrationResponse],
    dependencies=[Depends(require_admin)],
)
async def list_registrations(
    form_id: uuid.UUID,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
):
    FormService(db).get_form(form_id)
    registrations = RegistrationService(db, token_service).list_by_form(form_id)
    return [RegistrationResponse.from_registration(r) for r in registrations]


@router.get(
    "/registrations/{registration_id}",
    response_model=RegistrationResponse,
    dependencies=[Depends(require_admin)],
)
async def get_registration(
    registration_id: uuid.UUID,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
):
    registration = RegistrationService(db, token_service).get(registration_id)
    return RegistrationResponse.from_registration(registration)


@router.post(
    "/checkin",
    response_model=CheckInResponse,
    dependencies=[Depends(require_admin)],
)
async def check_in(
    body: CheckInRequest,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
):
    """Check in the attendee behind a scanned code.

    A repeat scan is not an error: it answers already_checked_in together
    with the original check-in time.
    """
    result = CheckinService(db, token_service).check_in(body.code_payload)
    return CheckInResponse(
        status=result.outcome.value,
        registration=RegistrationResponse.from_registration(result.registration),
    )
