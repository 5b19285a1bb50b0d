"""Public endpoints: published form, registration submission, QR codes"""

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from ez_checkin.errors import NotFoundError
from ez_checkin.logging_config import get_logger
from ez_checkin.models.database import get_db
from ez_checkin.routers.schemas import (
    FormResponse,
    RegistrationRequest,
    RegistrationSummary,
    build_form_response,
)
from ez_checkin.services.form_service import FormService
from ez_checkin.services.registration_service import RegistrationService
from ez_checkin.services.token_service import TokenService, get_token_service

router = APIRouter(prefix="/api", tags=["Registration"])
logger = get_logger(__name__)


@router.get(
    "/published-form",
    response_model=FormResponse,
    responses={204: {"description": "No form is published"}},
)
async def get_published_form(db: Session = Depends(get_db)):
    """Form currently open for registration, or 204 when none is"""
    form_service = FormService(db)
    form = form_service.get_published()
    if form is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return build_form_response(form_service, form)


@router.post(
    "/registrations",
    response_model=RegistrationSummary,
    status_code=status.HTTP_201_CREATED,
)
async def submit_registration(
    request: RegistrationRequest,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
):
    """Register against the published form and receive a check-in code"""
    registration_service = RegistrationService(db, token_service)
    registration = registration_service.submit(request.form_id, request.answers)

    return RegistrationSummary(
        id=registration.id,
        form_id=registration.form_id,
        token=registration.token,
        code_payload=token_service.encode(registration.token),
        status=registration.status,
        registered_at=registration.registered_at,
    )


@router.get("/codes/{token}", response_class=Response)
async def get_registration_code(
    token: str,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
):
    """QR code (SVG) for a registration's verification link"""
    registration_service = RegistrationService(db, token_service)
    if registration_service.find_by_token(token) is None:
        logger.info("QR code requested for unknown token")
        raise NotFoundError("Registration not found")

    svg = token_service.render_svg(token_service.encode(token))
    return Response(content=svg, media_type="image/svg+xml")
