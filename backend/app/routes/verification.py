"""
Verification Routes — ID re-submission and status for registered users.
"""
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_identity, read_upload
from app.models.identity import Identity
from app.schemas.schemas import VerificationSubmitResponse, VerificationStatusResponse
from app.services.verification_service import VerificationService
from app.utils.rate_limiter import rate_limit

router = APIRouter(prefix="/api/verification", tags=["Verification"])


@router.post("/verify-id", response_model=VerificationSubmitResponse)
def verify_id(
    idFront: UploadFile = File(None),
    selfie: UploadFile = File(None),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    _throttle: bool = Depends(rate_limit(requests=5, window=60)),
):
    result = VerificationService.submit(db, identity, read_upload(idFront), read_upload(selfie))
    return VerificationSubmitResponse(
        success=result.approved,
        message="ID verified successfully" if result.approved else "ID verification failed",
        verification={
            "score": result.score,
            "status": result.decision,
            "checks": result.checks,
            "has_face_in_document": result.has_face_in_document,
            "has_face_in_selfie": result.has_face_in_selfie,
        },
    )


@router.get("/status", response_model=VerificationStatusResponse)
def verification_status(identity: Identity = Depends(get_current_identity)):
    return VerificationService.status(identity)
