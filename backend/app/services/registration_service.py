"""
Registration Service — Multi-step identity provisioning.

    Unstarted -> DocumentSubmitted -> PhoneBound -> (PhoneOTPVerified) -> CredentialSet

Each step after the first is gated by a scoped token whose purpose matches
the step and which equals the identity's ``pending_session_token``. Issuing
a new scoped token overwrites that field, so only the latest one is honoured.
"""
import hmac
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.errors import ConflictError, UnauthorizedError, ValidationError, UpstreamServiceError
from app.models.identity import Identity, VERIFICATION_APPROVED, VERIFICATION_PENDING
from app.models.otp import OtpChallenge
from app.services import verification_scorer
from app.services.image_store import ImageStore
from app.services.ocr_service import OCRService, DocumentExtraction
from app.services.otp_service import OtpService
from app.services.token_service import (
    TokenService,
    PURPOSE_COMPLETE_REGISTRATION,
    PURPOSE_PIN_SETUP,
)
from app.services.verification_scorer import VerificationResult
from app.services.verification_service import (
    UploadedImage,
    validate_images,
    document_checks,
    selfie_has_face,
    store_images,
    build_verification_record,
)
from app.utils.hashing import hash_pin
from app.utils.validators import validate_phone, validate_pin, validate_otp

settings = get_settings()
logger = logging.getLogger(__name__)

# Shown until a name is read from the document or set during manual review
UNVERIFIED_DISPLAY_NAME = "UNVERIFIED APPLICANT"


@dataclass
class StartResult:
    identity: Identity
    token: str
    extraction: DocumentExtraction
    verification: VerificationResult


def _commit_or_conflict(db: Session, message: str) -> None:
    """Commit; a uniqueness violation from a racing writer becomes ConflictError."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(message)


class RegistrationService:
    """The registration state machine."""

    @staticmethod
    def resolve_scoped_identity(db: Session, token: str, accepted_purposes: tuple[str, ...]) -> Identity:
        """Authenticate a registration step.

        The token must verify, carry an accepted purpose, name an identity that
        has not finished registering, and be that identity's outstanding token.
        """
        identity_id = TokenService.verify_scoped(token, accepted_purposes)

        identity = db.get(Identity, identity_id)
        if not identity:
            raise UnauthorizedError("Registration session not found. Please start registration again.")
        if identity.registration_complete:
            raise UnauthorizedError("Registration already completed. Please log in.")
        if not identity.pending_session_token or not hmac.compare_digest(identity.pending_session_token, token):
            logger.warning("Stale registration token presented for identity %s", identity.id)
            raise UnauthorizedError("Registration session is no longer valid. Please start registration again.")
        return identity

    # ─── Step 1: ID document + selfie ────────────────────────────────────

    @staticmethod
    def start(db: Session, document: Optional[UploadedImage], selfie: Optional[UploadedImage]) -> StartResult:
        """Create a provisional identity from an ID document and a selfie."""
        validate_images(document, selfie)

        try:
            extraction = OCRService.read_document(document.contents, document.content_type)
        except UpstreamServiceError as e:
            logger.warning("OCR failed - proceeding with manual verification: %s", e.message)
            extraction = DocumentExtraction.failed(e.message)

        national_id = extraction.national_id.value if extraction.national_id.extracted else None
        if national_id and db.query(Identity).filter(Identity.national_id == national_id).first():
            raise ConflictError("User with this ID number already exists")

        result = verification_scorer.score(
            document_checks(extraction),
            extraction.face_detected,
            selfie_has_face(selfie),
        )
        id_image_ref, selfie_ref = store_images(document, selfie)

        status = result.decision if extraction.succeeded else VERIFICATION_PENDING
        identity_id = str(uuid.uuid4())
        token = TokenService.issue_scoped(identity_id, PURPOSE_COMPLETE_REGISTRATION)

        identity = Identity(
            id=identity_id,
            display_name=extraction.name.value if extraction.name.extracted else UNVERIFIED_DISPLAY_NAME,
            national_id=national_id,
            pending_session_token=token,
            identity_verification=build_verification_record(
                extraction, result, status, id_image_ref, selfie_ref,
            ),
            id_verified=status == VERIFICATION_APPROVED,
        )
        db.add(identity)
        try:
            _commit_or_conflict(db, "User with this ID number already exists")
        except ConflictError:
            ImageStore.delete(id_image_ref)
            ImageStore.delete(selfie_ref)
            raise
        db.refresh(identity)

        logger.info(
            "Registration started for %s (score=%d, status=%s)",
            identity.id, result.score, status,
        )
        return StartResult(identity=identity, token=token, extraction=extraction, verification=result)

    # ─── Step 2: phone number ────────────────────────────────────────────

    @staticmethod
    def bind_phone(db: Session, identity: Identity, phone_number: str) -> Optional[str]:
        """Attach a phone number.

        Without the OTP gate the phone counts as verified and the PIN-setup
        token is returned. With it, a code is sent and None is returned.
        """
        if not validate_phone(phone_number):
            raise ValidationError(f"Please provide a valid {settings.PHONE_NUMBER_LENGTH}-digit phone number")

        taken = db.query(Identity).filter(
            Identity.phone_number == phone_number, Identity.id != identity.id,
        ).first()
        if taken:
            raise ConflictError("Phone number already registered")

        identity.phone_number = phone_number
        next_token = None

        if settings.REQUIRE_PHONE_OTP:
            identity.phone_verified = False
            try:
                db.flush()
            except IntegrityError:
                db.rollback()
                raise ConflictError("Phone number already registered")
            OtpService.issue(db, identity)
        else:
            identity.phone_verified = True
            next_token = TokenService.issue_scoped(identity.id, PURPOSE_PIN_SETUP)
            identity.pending_session_token = next_token

        _commit_or_conflict(db, "Phone number already registered")
        logger.info("Phone bound for identity %s (otp_required=%s)", identity.id, settings.REQUIRE_PHONE_OTP)
        return next_token

    # ─── Step 2b: optional OTP gate ──────────────────────────────────────

    @staticmethod
    def _require_otp_step(identity: Identity) -> None:
        if not settings.REQUIRE_PHONE_OTP:
            raise ValidationError("Phone OTP verification is not enabled")
        if not identity.phone_number:
            raise ValidationError("Add a phone number before verifying it")
        if identity.phone_verified:
            raise ValidationError("Phone number is already verified")

    @classmethod
    def verify_otp(cls, db: Session, identity: Identity, code: str) -> str:
        """Check the code sent to the bound phone; returns the PIN-setup token."""
        cls._require_otp_step(identity)
        if not validate_otp(code):
            raise ValidationError(f"Verification code must be {settings.OTP_LENGTH} digits")

        OtpService.verify(db, identity, code)

        identity.phone_verified = True
        token = TokenService.issue_scoped(identity.id, PURPOSE_PIN_SETUP)
        identity.pending_session_token = token
        db.commit()

        logger.info("Phone verified by OTP for identity %s", identity.id)
        return token

    @classmethod
    def resend_otp(cls, db: Session, identity: Identity) -> None:
        cls._require_otp_step(identity)
        OtpService.issue(db, identity)
        db.commit()

    # ─── Step 3: PIN ─────────────────────────────────────────────────────

    @staticmethod
    def set_credential(db: Session, identity: Identity, token: str, pin: str) -> str:
        """Commit the PIN and finish registration; returns a full-session token.

        The write is conditional on ``token`` still being the outstanding one,
        so a replayed or concurrent second call fails instead of succeeding twice.
        """
        if not validate_pin(pin):
            raise ValidationError(f"PIN must be exactly {settings.PIN_LENGTH} digits")
        if not identity.phone_number or not identity.phone_verified:
            raise ValidationError("Verify your phone number before creating a PIN")

        pin_hash = hash_pin(pin)
        updated = (
            db.query(Identity)
            .filter(
                Identity.id == identity.id,
                Identity.pending_session_token == token,
                Identity.registration_complete.is_(False),
            )
            .update(
                {
                    Identity.pin_hash: pin_hash,
                    Identity.pin_set: True,
                    Identity.registration_complete: True,
                    Identity.pending_session_token: None,
                },
                synchronize_session=False,
            )
        )
        if updated != 1:
            db.rollback()
            raise UnauthorizedError("Registration session is no longer valid. Please start registration again.")
        db.commit()
        db.refresh(identity)

        logger.info("Registration completed for identity %s", identity.id)
        return TokenService.issue_session(identity.id)

    # ─── Maintenance ─────────────────────────────────────────────────────

    @staticmethod
    def cleanup_incomplete(db: Session) -> int:
        """Delete identities that never finished registering, with their OTPs and images."""
        stale = db.query(Identity).filter(Identity.registration_complete.is_(False)).all()

        for identity in stale:
            record = identity.identity_verification or {}
            ImageStore.delete(record.get("id_image_ref"))
            ImageStore.delete(record.get("selfie_ref"))
            db.query(OtpChallenge).filter(OtpChallenge.identity_id == identity.id).delete(
                synchronize_session=False
            )
            db.delete(identity)

        db.commit()
        logger.info("Cleaned up %d incomplete registrations", len(stale))
        return len(stale)
