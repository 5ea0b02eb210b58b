"""
Identity Model — One record per registrant.
The registration state machine keeps all of its durable state on this row.
"""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON, Boolean

from app.database import Base

# Verification statuses stored in identity_verification["status"]
VERIFICATION_NOT_SUBMITTED = "not_submitted"
VERIFICATION_PENDING = "pending"
VERIFICATION_APPROVED = "approved"
VERIFICATION_REJECTED = "rejected"


class Identity(Base):
    __tablename__ = "identities"

    id = Column(String(36), primary_key=True, index=True)
    display_name = Column(String(128), nullable=False)

    # Unique login handle. NULL until extracted or set during manual review;
    # SQL unique constraints allow any number of NULLs.
    national_id = Column(String(32), unique=True, index=True, nullable=True)
    phone_number = Column(String(20), unique=True, index=True, nullable=True)

    # Credential
    pin_hash = Column(String(128), nullable=True)
    pin_set = Column(Boolean, default=False, nullable=False)

    # Registration progress
    registration_complete = Column(Boolean, default=False, nullable=False)
    phone_verified = Column(Boolean, default=False, nullable=False)
    pending_session_token = Column(String(512), nullable=True)

    # ID verification sub-record:
    #   id_image_ref, selfie_ref, extracted_text, extraction, checks,
    #   has_face_in_document, has_face_in_selfie, score, status,
    #   submitted_at, decided_at, reviewed_by, rejection_reason
    identity_verification = Column(JSON, default=dict)
    id_verified = Column(Boolean, default=False, nullable=False)

    role = Column(String(16), default="user", nullable=False)   # user | admin
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_authenticatable(self) -> bool:
        return bool(self.pin_set and self.registration_complete)

    @property
    def verification_status(self) -> str:
        return (self.identity_verification or {}).get("status", VERIFICATION_NOT_SUBMITTED)
