"""
Pydantic Schemas — Request & Response models for API validation.
"""
from datetime import datetime
from typing import Any, Optional, Dict, List
from pydantic import BaseModel, Field


# ──────────────── Identity ────────────────

class IdentitySummary(BaseModel):
    id: str
    display_name: str
    national_id: Optional[str] = None
    phone_number: Optional[str] = None
    phone_verified: bool = False
    id_verified: bool = False
    verification_status: str
    registration_complete: bool = False
    role: str = "user"
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdateRequest(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=128)


# ──────────────── Registration ────────────────

class ExtractedFieldOut(BaseModel):
    status: str
    value: Optional[str] = None


class VerificationSummary(BaseModel):
    score: int
    status: str
    checks: Dict[str, bool]
    has_face_in_document: bool
    has_face_in_selfie: bool


class RegisterWithIdResponse(BaseModel):
    success: bool = True
    message: str = "ID verified. Please add your phone number."
    token: str
    user_id: str
    extracted: Dict[str, ExtractedFieldOut]
    verification: VerificationSummary


class AddPhoneRequest(BaseModel):
    phone_number: Optional[str] = Field(None, alias="phoneNumber")

    class Config:
        populate_by_name = True


class AddPhoneResponse(BaseModel):
    success: bool = True
    message: str
    otp_required: bool
    token: Optional[str] = None   # pin_setup token when no OTP step follows


class VerifyOtpRequest(BaseModel):
    code: Optional[str] = None


class ScopedTokenResponse(BaseModel):
    success: bool = True
    message: str
    token: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class CreatePinRequest(BaseModel):
    pin: Optional[str] = None


class SessionResponse(BaseModel):
    success: bool = True
    message: str
    token: str
    user: IdentitySummary


# ──────────────── Auth ────────────────

class LoginRequest(BaseModel):
    national_id: Optional[str] = None
    pin: Optional[str] = None


class ChangePinRequest(BaseModel):
    current_pin: Optional[str] = None
    new_pin: Optional[str] = None
    confirm_pin: Optional[str] = None


class CleanupResponse(BaseModel):
    success: bool = True
    deleted_count: int
    message: str


# ──────────────── Accounts ────────────────

class AccountCreateRequest(BaseModel):
    kind: Optional[str] = Field(None, description="balanced fund | fixed income fund | money market fund | stock market")


class AccountOut(BaseModel):
    id: str
    kind: str
    balance: float
    balance_cents: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AccountCreateResponse(BaseModel):
    message: str = "Account created successfully"
    account: AccountOut


# ──────────────── Transactions ────────────────

class TransactionCreateRequest(BaseModel):
    account_id: Optional[str] = None
    kind: Optional[str] = Field(None, description="deposit | withdraw")
    amount: Any = None   # validated by the transaction processor


class TransactionOut(BaseModel):
    id: str
    account_id: Optional[str] = None
    kind: str
    amount: float
    amount_cents: int
    status: str
    occurred_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TransactionCreateResponse(BaseModel):
    message: str = "Transaction successful"
    transaction: TransactionOut
    balance: float


# ──────────────── Verification ────────────────

class VerificationSubmitResponse(BaseModel):
    success: bool
    message: str
    verification: VerificationSummary


class VerificationStatusResponse(BaseModel):
    verified: bool
    status: str
    score: int = 0
    checks: Dict[str, bool] = {}
    submitted_at: Optional[str] = None
    verified_at: Optional[str] = None


class VerificationReviewRequest(BaseModel):
    status: str = Field(..., description="approved | rejected")
    reason: Optional[str] = None
    display_name: Optional[str] = None
    national_id: Optional[str] = None


class VerificationReviewResponse(BaseModel):
    message: str
    user: IdentitySummary


class PendingVerificationOut(BaseModel):
    id: str
    display_name: str
    national_id: Optional[str] = None
    verification_status: str
    score: int = 0
    submitted_at: Optional[str] = None


# ──────────────── Chat ────────────────

class ChatRequest(BaseModel):
    message: Any = None
    session_id: Optional[str] = Field(None, alias="sessionId")

    class Config:
        populate_by_name = True


class ChatResponse(BaseModel):
    response: str
    sessionId: str
    timestamp: datetime


class FinancialAdviceRequest(BaseModel):
    query: Any = None
    message: Any = None
    question: Any = None
    user_profile: Dict[str, Any] = Field(default_factory=dict, alias="userProfile")

    class Config:
        populate_by_name = True


class FinancialAdviceResponse(BaseModel):
    advice: str
    query: str
    userProfile: Dict[str, Any]
    timestamp: datetime
    source: str = "GKash Financial Advisor (Kenyan Market)"


class ChatSessionRequest(BaseModel):
    session_id: Optional[str] = Field(None, alias="sessionId")

    class Config:
        populate_by_name = True


class ChatSessionResponse(BaseModel):
    message: str
    sessionId: str
    timestamp: datetime


# ──────────────── Generic ────────────────

class HealthResponse(BaseModel):
    status: str
    database: str
    ai_ocr: str
    uptime_seconds: float
    version: str


class ErrorResponse(BaseModel):
    detail: str
    error_code: Optional[str] = None
    debug: Optional[str] = None
