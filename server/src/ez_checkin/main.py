#!/usr/bin/env python3
"""EZ Check-in - event registration and entrance check-in API"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware
from starlette_csrf.middleware import CSRFMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from ez_checkin.config import config
from ez_checkin.errors import AppError, ValidationError
from ez_checkin.logging_config import get_logger, setup_logging
from ez_checkin.models.database import init_db
from ez_checkin.routers.admin import router as admin_router
from ez_checkin.routers.health import health
from ez_checkin.routers.registration import router as registration_router

# Configure logging (INFO -> stdout, WARNING/ERROR -> stderr)
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config["create_schema"]:
        logger.info("Creating database schema")
        init_db()
    yield


app = FastAPI(
    title="EZ Check-in",
    description="Publish a registration form, collect registrations and check attendees in by scanned code",
    version="1.0.0",
    lifespan=lifespan,
)

# Trust proxy headers so request.url.scheme reflects the original HTTPS protocol
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

session_secret_key = config["session_secret_key"]
if not session_secret_key or len(session_secret_key) < 32:
    raise RuntimeError(
        "SESSION_SECRET_KEY must be set to a secure random string (>=32 characters)."
    )

app.add_middleware(
    SessionMiddleware,
    secret_key=session_secret_key,
    max_age=1800,  # 30 minutes
    https_only=config["secure_cookies"],
    same_site="lax",
)

# Session-backed admin requests must echo the csrftoken cookie in X-CSRFToken
app.add_middleware(
    CSRFMiddleware,
    secret=session_secret_key,
    sensitive_cookies={"session"},
    cookie_secure=config["secure_cookies"],
    cookie_samesite="lax",
    header_name="X-CSRFToken",
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    content = {"detail": exc.message, "error": exc.error_code}
    if isinstance(exc, ValidationError) and exc.field_errors:
        content["field_errors"] = exc.field_errors
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Render malformed request bodies like any other ValidationError"""
    field_errors = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        field_errors.setdefault(field, error.get("msg", "Invalid value"))
    return await app_error_handler(
        request, ValidationError("Request is invalid", field_errors)
    )


app.include_router(health)
app.include_router(registration_router)
app.include_router(admin_router)


if __name__ == "__main__":
    port = config["port"]
    logger.info(f"Starting EZ Check-in on 0.0.0.0:{port}")
    logger.info("Health check available at /health")

    try:
        uvicorn.run(
            app, host="0.0.0.0", port=port, log_level=config["log_level"].lower()
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise
