"""
Admin Routes — Manual verification review and maintenance sweeps.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import require_admin
from app.models.identity import Identity, VERIFICATION_PENDING, VERIFICATION_REJECTED
from app.schemas.schemas import (
    CleanupResponse, VerificationReviewRequest, VerificationReviewResponse,
    PendingVerificationOut, IdentitySummary, MessageResponse,
)
from app.services.chat_service import ChatService
from app.services.registration_service import RegistrationService
from app.services.verification_service import VerificationService

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/verifications/pending", response_model=List[PendingVerificationOut])
def pending_verifications(
    _admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Identities whose ID check awaits a manual decision (pending or auto-rejected)."""
    identities = db.query(Identity).filter(Identity.id_verified.is_(False)).order_by(Identity.created_at).all()
    queue = []
    for identity in identities:
        record = identity.identity_verification or {}
        if record.get("status") not in (VERIFICATION_PENDING, VERIFICATION_REJECTED):
            continue
        if record.get("reviewed_by"):
            continue
        queue.append(PendingVerificationOut(
            id=identity.id,
            display_name=identity.display_name,
            national_id=identity.national_id,
            verification_status=record["status"],
            score=record.get("score", 0),
            submitted_at=record.get("submitted_at"),
        ))
    return queue


@router.patch("/verification/{identity_id}", response_model=VerificationReviewResponse)
def review_verification(
    identity_id: str,
    payload: VerificationReviewRequest,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    identity = VerificationService.review(
        db, identity_id, admin, payload.status,
        reason=payload.reason,
        display_name=payload.display_name,
        national_id=payload.national_id,
    )
    return VerificationReviewResponse(
        message=f"Verification {payload.status}",
        user=IdentitySummary.model_validate(identity),
    )


@router.delete("/cleanup-incomplete", response_model=CleanupResponse)
def cleanup_incomplete(
    _admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Remove identities that never finished registering."""
    deleted = RegistrationService.cleanup_incomplete(db)
    return CleanupResponse(deleted_count=deleted, message=f"Deleted {deleted} incomplete registrations")


@router.delete("/chat-sessions/expired", response_model=MessageResponse)
def purge_chat_sessions(
    _admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    purged = ChatService.purge_expired(db)
    return MessageResponse(message=f"Purged {purged} expired chat sessions")
