"""
Token Service — Signed, time-limited bearer tokens (PyJWT, HS256).

Two classes of token:
- scoped: short-lived, carries a ``purpose`` claim restricting which
  registration endpoint accepts it (``complete_registration``, ``pin_setup``).
- full session: long-lived, carries no purpose; accepted by every
  identity-scoped endpoint once registration is complete.
"""
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from app.config import get_settings
from app.errors import UnauthorizedError

settings = get_settings()

PURPOSE_COMPLETE_REGISTRATION = "complete_registration"
PURPOSE_PIN_SETUP = "pin_setup"
SCOPED_PURPOSES = (PURPOSE_COMPLETE_REGISTRATION, PURPOSE_PIN_SETUP)


class TokenService:
    """Mints and verifies scoped and full-session tokens."""

    @staticmethod
    def _encode(claims: dict, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "iat": now,
            "exp": now + lifetime,
            # Unique per token so two tokens minted in the same second differ
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def _decode(token: str) -> dict:
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Token has expired", status_code=403)
        except jwt.InvalidTokenError:
            raise UnauthorizedError("Invalid token", status_code=403)

    @classmethod
    def issue_scoped(cls, identity_id: str, purpose: str) -> str:
        if purpose not in SCOPED_PURPOSES:
            raise ValueError(f"Unknown token purpose: {purpose}")
        return cls._encode(
            {"sub": identity_id, "purpose": purpose},
            timedelta(minutes=settings.SCOPED_TOKEN_EXPIRY_MINUTES),
        )

    @classmethod
    def issue_session(cls, identity_id: str) -> str:
        return cls._encode(
            {"sub": identity_id},
            timedelta(days=settings.SESSION_TOKEN_EXPIRY_DAYS),
        )

    @classmethod
    def verify_scoped(cls, token: str, accepted_purposes: tuple[str, ...]) -> str:
        """Verify signature, expiry and purpose. Returns the subject identity id."""
        claims = cls._decode(token)
        purpose = claims.get("purpose")
        if purpose not in accepted_purposes:
            raise UnauthorizedError(
                f"Invalid token type: expected one of {list(accepted_purposes)}",
                status_code=403,
            )
        subject = claims.get("sub")
        if not subject:
            raise UnauthorizedError("Invalid token", status_code=403)
        return subject

    @classmethod
    def verify_session(cls, token: str) -> str:
        """Verify a full-session token. Scoped registration tokens are refused."""
        claims = cls._decode(token)
        if claims.get("purpose") is not None:
            raise UnauthorizedError("Registration tokens cannot access this resource", status_code=403)
        subject = claims.get("sub")
        if not subject:
            raise UnauthorizedError("Invalid token", status_code=403)
        return subject
