"""
User Routes — The caller's own profile.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_identity
from app.errors import ValidationError
from app.models.identity import Identity
from app.schemas.schemas import IdentitySummary, ProfileUpdateRequest
from app.utils.validators import sanitize_name

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/me", response_model=IdentitySummary)
def get_me(identity: Identity = Depends(get_current_identity)):
    return identity


@router.put("/me", response_model=IdentitySummary)
def update_me(
    payload: ProfileUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Update the display name."""
    cleaned = sanitize_name(payload.display_name)
    if not cleaned:
        raise ValidationError("Display name cannot be empty")
    identity.display_name = cleaned
    db.commit()
    db.refresh(identity)
    return identity
