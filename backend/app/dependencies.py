"""
Request dependencies — bearer token extraction and identity resolution.
"""
from typing import Optional

from fastapi import Depends, Header, UploadFile
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import UnauthorizedError
from app.models.identity import Identity
from app.services.registration_service import RegistrationService
from app.services.verification_service import UploadedImage
from app.services.token_service import (
    TokenService,
    PURPOSE_COMPLETE_REGISTRATION,
    PURPOSE_PIN_SETUP,
)


def get_bearer_token(authorization: str = Header(None)) -> str:
    """Token from ``Authorization: Bearer <token>``."""
    if not authorization:
        raise UnauthorizedError("No token provided")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Malformed authorization header")
    return token.strip()


def _session_identity(db: Session, token: str) -> Identity:
    identity = db.get(Identity, TokenService.verify_session(token))
    if not identity or not identity.is_authenticatable:
        raise UnauthorizedError("User not found")
    if not identity.is_active:
        raise UnauthorizedError("Account is disabled", status_code=403)
    return identity


def get_current_identity(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> Identity:
    """The registered identity behind a full-session token."""
    return _session_identity(db, token)


def get_optional_identity(
    authorization: str = Header(None),
    db: Session = Depends(get_db),
) -> Optional[Identity]:
    """Like get_current_identity, but anonymous callers get None."""
    if not authorization:
        return None
    return _session_identity(db, get_bearer_token(authorization))


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if identity.role != "admin":
        raise UnauthorizedError("Admin access required", status_code=403)
    return identity


def registration_identity(*purposes: str):
    """Dependency factory for registration steps accepting tokens of ``purposes``."""
    def resolver(
        token: str = Depends(get_bearer_token),
        db: Session = Depends(get_db),
    ) -> Identity:
        return RegistrationService.resolve_scoped_identity(db, token, purposes)
    return resolver


completing_registration = registration_identity(PURPOSE_COMPLETE_REGISTRATION)
setting_up_pin = registration_identity(PURPOSE_PIN_SETUP)


def read_upload(upload: Optional[UploadFile]) -> Optional[UploadedImage]:
    """Read a multipart upload fully; None when the part is absent."""
    if upload is None:
        return None
    return UploadedImage(
        contents=upload.file.read(),
        content_type=upload.content_type or "",
        filename=upload.filename or "",
    )
