"""Check-in state machine: registered -> checked_in, at most once per token"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from ez_checkin.errors import NotFoundError
from ez_checkin.models.registration import Registration, RegistrationStatus
from ez_checkin.services.token_service import TokenService

logger = logging.getLogger(__name__)


class CheckInOutcome(str, enum.Enum):
    CHECKED_IN = "checked_in"
    ALREADY_CHECKED_IN = "already_checked_in"


@dataclass
class CheckInResult:
    outcome: CheckInOutcome
    registration: Registration

    @property
    def checked_in_at(self) -> Optional[datetime]:
        return self.registration.checked_in_at

    @property
    def already_checked_in(self) -> bool:
        return self.outcome == CheckInOutcome.ALREADY_CHECKED_IN


class CheckinService:
    """Validates scanned codes and performs the check-in transition"""

    def __init__(self, db_session: Session, token_service: TokenService):
        self.db = db_session
        self.token_service = token_service

    def check_in(self, code_payload: str) -> CheckInResult:
        """
        Check in the registration behind a scanned code.

        The transition is one conditional UPDATE guarded by the prior status,
        so when several scanners submit the same code at once exactly one
        of them flips the row and the rest observe ALREADY_CHECKED_IN.

        Raises:
            MalformedCodeError: payload is not a verification code
            NotFoundError: no registration carries the token
        """
        token = self.token_service.decode(code_payload)
        now = datetime.now(timezone.utc)

        try:
            result = self.db.exec(
                update(Registration)
                .where(
                    Registration.token == token,
                    Registration.status == RegistrationStatus.REGISTERED,
                )
                .values(status=RegistrationStatus.CHECKED_IN, checked_in_at=now)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error checking in token: {e}")
            raise

        registration = self.db.exec(
            select(Registration)
            .where(Registration.token == token)
            .execution_options(populate_existing=True)
        ).first()
        if registration is None:
            logger.warning("Check-in rejected: unrecognized code")
            raise NotFoundError("Invalid or unrecognized code")

        if result.rowcount == 1:
            logger.info(f"Checked in registration {registration.id}")
            return CheckInResult(CheckInOutcome.CHECKED_IN, registration)

        logger.info(
            f"Registration {registration.id} already checked in at {registration.checked_in_at}"
        )
        return CheckInResult(CheckInOutcome.ALREADY_CHECKED_IN, registration)
