"""
Auth Service — PIN login and PIN change for registered identities.
"""
import logging

from sqlalchemy.orm import Session

from app.config import get_settings
from app.errors import (
    ValidationError,
    UnauthorizedError,
    IncompleteRegistrationError,
)
from app.models.identity import Identity
from app.services.token_service import TokenService
from app.utils.hashing import hash_pin, verify_pin
from app.utils.validators import validate_pin

settings = get_settings()
logger = logging.getLogger(__name__)


class AuthService:

    @staticmethod
    def login(db: Session, national_id: str, pin: str) -> tuple[Identity, str]:
        """Authenticate with national ID and PIN; returns the identity and a session token.

        Unknown handles and wrong PINs fail the same way so handles cannot be
        enumerated. Identities that have not finished registering are told to
        resume instead.
        """
        national_id = (national_id or "").strip()
        if not national_id or not pin:
            raise ValidationError("Please provide ID number and PIN")

        identity = db.query(Identity).filter(Identity.national_id == national_id).first()
        if not identity:
            logger.info("Login failed: unknown handle")
            raise UnauthorizedError("Invalid credentials")

        if not identity.is_authenticatable:
            raise IncompleteRegistrationError("Please complete your registration first")

        if not verify_pin(pin, identity.pin_hash):
            logger.info("Login failed: wrong PIN for identity %s", identity.id)
            raise UnauthorizedError("Invalid credentials")

        if not identity.is_active:
            raise UnauthorizedError("Account is disabled", status_code=403)

        logger.info("Login succeeded for identity %s", identity.id)
        return identity, TokenService.issue_session(identity.id)

    @staticmethod
    def change_pin(db: Session, identity: Identity, current_pin: str, new_pin: str, confirm_pin: str) -> None:
        if not current_pin or not new_pin or not confirm_pin:
            raise ValidationError("Please provide current PIN, new PIN and confirmation")
        if not validate_pin(new_pin):
            raise ValidationError(f"PIN must be exactly {settings.PIN_LENGTH} digits")
        if new_pin != confirm_pin:
            raise ValidationError("New PIN and confirmation do not match")

        if not verify_pin(current_pin, identity.pin_hash):
            raise UnauthorizedError("Current PIN is incorrect")
        if new_pin == current_pin:
            raise ValidationError("New PIN must be different from the current PIN")

        identity.pin_hash = hash_pin(new_pin)
        db.commit()
        logger.info("PIN changed for identity %s", identity.id)
