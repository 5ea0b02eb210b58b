"""
Verification Service — ID document checks, re-submission, status and admin review.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.errors import ValidationError, NotFoundError, ConflictError, UpstreamServiceError
from app.models.identity import (
    Identity,
    VERIFICATION_APPROVED,
    VERIFICATION_REJECTED,
    VERIFICATION_NOT_SUBMITTED,
)
from app.services import verification_scorer
from app.services.image_store import ImageStore
from app.services.ocr_service import OCRService, DocumentExtraction, find_document_keywords
from app.services.verification_scorer import CheckKind, VerificationResult
from app.utils.validators import validate_national_id, sanitize_name

settings = get_settings()
logger = logging.getLogger(__name__)


@dataclass
class UploadedImage:
    """An uploaded image, read fully into memory."""
    contents: bytes
    content_type: str
    filename: str = ""


def validate_images(*images: Optional[UploadedImage]) -> None:
    """Both the document and the selfie must be non-empty images within the size limit."""
    for image in images:
        if image is None or not image.contents:
            raise ValidationError("Please upload both ID and selfie images")
        if not (image.content_type or "").startswith("image/"):
            raise ValidationError("Only image files are allowed")
        if len(image.contents) > settings.MAX_UPLOAD_BYTES:
            raise ValidationError(
                f"Image exceeds the {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB upload limit"
            )


def name_matches(display_name: str, text: str) -> bool:
    """True if any part (longer than two letters) of the name appears in the text."""
    lowered = (text or "").lower()
    return any(
        len(part) > 2 and part in lowered
        for part in (display_name or "").lower().split()
    )


def document_checks(extraction: DocumentExtraction, expected_name: Optional[str] = None) -> dict:
    """Evaluate the fixed check set against an extraction.

    With ``expected_name`` the name check means "the document names this
    person"; without it, "a name could be read from the document".
    """
    if expected_name:
        has_name = name_matches(expected_name, extraction.raw_text) or (
            extraction.name.extracted and name_matches(expected_name, extraction.name.value)
        )
    else:
        has_name = extraction.name.extracted

    return {
        CheckKind.HAS_NAME: has_name,
        CheckKind.HAS_ID_NUMBER: extraction.national_id.extracted,
        CheckKind.HAS_DATE_OF_BIRTH: extraction.date_of_birth.extracted,
        CheckKind.HAS_DOCUMENT_KEYWORDS: find_document_keywords(extraction.raw_text),
    }


def selfie_has_face(selfie: UploadedImage) -> bool:
    """Face presence in the live capture; an unavailable detector counts as no face."""
    try:
        return OCRService.detect_face(selfie.contents, selfie.content_type)
    except UpstreamServiceError as e:
        logger.warning("Selfie face detection unavailable: %s", e.message)
        return False


def build_verification_record(
    extraction: DocumentExtraction,
    result: VerificationResult,
    status: str,
    id_image_ref: str,
    selfie_ref: str,
) -> dict:
    now = datetime.utcnow().isoformat()
    return {
        "id_image_ref": id_image_ref,
        "selfie_ref": selfie_ref,
        "extracted_text": extraction.raw_text,
        "extraction": extraction.fields_dict(),
        "checks": result.checks,
        "has_face_in_document": result.has_face_in_document,
        "has_face_in_selfie": result.has_face_in_selfie,
        "score": result.score,
        "status": status,
        "submitted_at": now,
        "decided_at": now if status in (VERIFICATION_APPROVED, VERIFICATION_REJECTED) else None,
        "reviewed_by": None,
        "rejection_reason": None,
    }


def store_images(document: UploadedImage, selfie: UploadedImage) -> tuple[str, str]:
    """Store both images; if the second fails the first is removed again."""
    id_image_ref = ImageStore.save(document.contents, document.content_type, "id_documents")
    try:
        selfie_ref = ImageStore.save(selfie.contents, selfie.content_type, "selfies")
    except UpstreamServiceError:
        ImageStore.delete(id_image_ref)
        raise
    return id_image_ref, selfie_ref


class VerificationService:
    """ID verification for identities that already hold a full session."""

    @staticmethod
    def submit(db: Session, identity: Identity, document: UploadedImage, selfie: UploadedImage) -> VerificationResult:
        """Re-run document checks for a registered identity.

        Unlike registration, a failed OCR call here is surfaced to the caller
        (UpstreamServiceError) because nothing is blocked by it.
        """
        validate_images(document, selfie)

        extraction = OCRService.read_document(document.contents, document.content_type)
        face_in_selfie = selfie_has_face(selfie)

        result = verification_scorer.score(
            document_checks(extraction, expected_name=identity.display_name),
            extraction.face_detected,
            face_in_selfie,
        )
        id_image_ref, selfie_ref = store_images(document, selfie)
        previous = identity.identity_verification or {}

        identity.identity_verification = build_verification_record(
            extraction, result, result.decision, id_image_ref, selfie_ref,
        )
        identity.id_verified = result.approved
        try:
            db.commit()
        except Exception:
            db.rollback()
            ImageStore.delete(id_image_ref)
            ImageStore.delete(selfie_ref)
            raise

        # Only the latest submission keeps its images
        ImageStore.delete(previous.get("id_image_ref"))
        ImageStore.delete(previous.get("selfie_ref"))

        logger.info(
            "ID verification for %s: score=%d decision=%s",
            identity.id, result.score, result.decision,
        )
        return result

    @staticmethod
    def status(identity: Identity) -> dict:
        record = identity.identity_verification or {}
        return {
            "verified": bool(identity.id_verified),
            "status": record.get("status", VERIFICATION_NOT_SUBMITTED),
            "score": record.get("score", 0),
            "checks": record.get("checks", {}),
            "submitted_at": record.get("submitted_at"),
            "verified_at": record.get("decided_at") if identity.id_verified else None,
        }

    @staticmethod
    def review(
        db: Session,
        identity_id: str,
        reviewer: Identity,
        status: str,
        reason: Optional[str] = None,
        display_name: Optional[str] = None,
        national_id: Optional[str] = None,
    ) -> Identity:
        """Admin decision on a verification, optionally correcting identity fields."""
        if status not in (VERIFICATION_APPROVED, VERIFICATION_REJECTED):
            raise ValidationError('Invalid status. Use "approved" or "rejected"')

        identity = db.get(Identity, identity_id)
        if not identity:
            raise NotFoundError("User not found")

        if national_id is not None:
            national_id = national_id.strip()
            if not validate_national_id(national_id):
                raise ValidationError("National ID must be 7-8 digits")
            taken = db.query(Identity).filter(
                Identity.national_id == national_id, Identity.id != identity.id,
            ).first()
            if taken:
                raise ConflictError("User with this ID number already exists")
            identity.national_id = national_id

        if display_name is not None:
            cleaned = sanitize_name(display_name)
            if not cleaned:
                raise ValidationError("Display name cannot be empty")
            identity.display_name = cleaned

        now = datetime.utcnow().isoformat()
        record = dict(identity.identity_verification or {})
        record.update({
            "status": status,
            "decided_at": now,
            "reviewed_by": reviewer.id,
            "reviewed_at": now,
            "rejection_reason": reason if status == VERIFICATION_REJECTED else None,
        })
        identity.identity_verification = record
        identity.id_verified = status == VERIFICATION_APPROVED

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("User with this ID number already exists")

        logger.info("Verification for %s set to %s by %s", identity.id, status, reviewer.id)
        return identity
