"""Admin session gate.

The core only needs a yes/no answer to "is this caller an admin". The answer
comes from an injected ``AdminGate`` so tests and other deployments can swap
in their own check without the services knowing about sessions.
"""

import secrets
from typing import Optional, Protocol

from fastapi import Depends, Request

from ez_checkin.config import config
from ez_checkin.errors import UnauthorizedError
from ez_checkin.logging_config import get_logger

logger = get_logger(__name__)

SESSION_ADMIN_KEY = "is_admin"


class AdminGate(Protocol):
    def is_admin(self, request: Request) -> bool: ...


class SessionAdminGate:
    """Reads the admin flag from the signed session cookie"""

    def is_admin(self, request: Request) -> bool:
        return bool(request.session.get(SESSION_ADMIN_KEY))


def get_admin_gate() -> AdminGate:
    """FastAPI dependency returning the active gate (override in tests)"""
    return SessionAdminGate()


def require_admin(
    request: Request, gate: AdminGate = Depends(get_admin_gate)
) -> None:
    """
    FastAPI dependency that rejects non-admin callers.

    Raises:
        UnauthorizedError: the gate denied the request
    """
    if not gate.is_admin(request):
        raise UnauthorizedError("Admin session required")


def verify_admin_password(candidate: Optional[str]) -> bool:
    """Constant-time comparison against the configured admin password"""
    expected = config.get("admin_password")
    if not expected or not candidate:
        return False
    return secrets.compare_digest(candidate.encode(), expected.encode())


def start_admin_session(request: Request) -> None:
    request.session[SESSION_ADMIN_KEY] = True
    logger.info("Admin session started")


def end_admin_session(request: Request) -> None:
    request.session.pop(SESSION_ADMIN_KEY, None)
