"""
OTP Service — Issues and validates one-time codes for phone verification.
Challenges live in the ``otp_challenges`` table so any server instance can
validate a code issued by another.
"""
import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.config import get_settings
from app.errors import UnauthorizedError, UpstreamServiceError
from app.models.identity import Identity
from app.models.otp import OtpChallenge
from app.services.notification_service import NotificationService
from app.utils.hashing import generate_hash, hashes_match

settings = get_settings()
logger = logging.getLogger(__name__)


class OtpService:
    """Creates, delivers and checks OTP challenges."""

    @staticmethod
    def generate_code() -> str:
        return "".join(secrets.choice("0123456789") for _ in range(settings.OTP_LENGTH))

    @classmethod
    def issue(cls, db: Session, identity: Identity) -> OtpChallenge:
        """Invalidate earlier challenges, store a new one and send it by SMS.

        The caller commits. Raises UpstreamServiceError if the SMS gateway fails.
        """
        now = datetime.utcnow()
        db.query(OtpChallenge).filter(
            OtpChallenge.identity_id == identity.id,
            OtpChallenge.consumed_at.is_(None),
        ).update({OtpChallenge.consumed_at: now}, synchronize_session=False)

        code = cls.generate_code()
        challenge = OtpChallenge(
            identity_id=identity.id,
            phone_number=identity.phone_number,
            code_hash=generate_hash(code),
            expires_at=now + timedelta(minutes=settings.OTP_EXPIRY_MINUTES),
        )
        db.add(challenge)

        result = NotificationService.send_sms(
            identity.phone_number,
            f"Your GKash verification code is {code}. It expires in {settings.OTP_EXPIRY_MINUTES} minutes.",
        )
        if not result.get("success"):
            raise UpstreamServiceError("Failed to send verification code")

        logger.info("OTP issued for identity %s", identity.id)
        return challenge

    @staticmethod
    def verify(db: Session, identity: Identity, code: str) -> None:
        """Consume the active challenge if ``code`` matches.

        Each wrong attempt is counted and committed; the challenge is burned
        after OTP_MAX_ATTEMPTS. Raises UnauthorizedError on any mismatch.
        """
        now = datetime.utcnow()
        challenge = (
            db.query(OtpChallenge)
            .filter(
                OtpChallenge.identity_id == identity.id,
                OtpChallenge.phone_number == identity.phone_number,
                OtpChallenge.consumed_at.is_(None),
            )
            .order_by(OtpChallenge.id.desc())
            .first()
        )
        if not challenge or challenge.expires_at < now:
            raise UnauthorizedError("Verification code has expired. Please request a new one.")

        if not hashes_match(code, challenge.code_hash):
            challenge.attempts += 1
            if challenge.attempts >= settings.OTP_MAX_ATTEMPTS:
                challenge.consumed_at = now
            db.commit()
            logger.warning("Wrong OTP for identity %s (attempt %d)", identity.id, challenge.attempts)
            raise UnauthorizedError("Invalid verification code")

        challenge.consumed_at = now
