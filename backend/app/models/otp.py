"""
OTP Challenge Model — One-time codes sent to a phone during registration.
Only the SHA-256 of the code is stored; rows expire after OTP_EXPIRY_MINUTES.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey

from app.database import Base


class OtpChallenge(Base):
    __tablename__ = "otp_challenges"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    identity_id = Column(String(36), ForeignKey("identities.id", ondelete="CASCADE"), nullable=False, index=True)
    phone_number = Column(String(20), nullable=False)

    code_hash = Column(String(64), nullable=False)
    attempts = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False)
    consumed_at = Column(DateTime, nullable=True)
