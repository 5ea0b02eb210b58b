"""
Auth Routes — Multi-step registration, login and PIN change.

    register-with-id -> add-phone -> (verify-otp) -> create-pin -> login
"""
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import (
    get_bearer_token,
    get_current_identity,
    completing_registration,
    setting_up_pin,
    read_upload,
)
from app.models.identity import Identity
from app.schemas.schemas import (
    RegisterWithIdResponse, AddPhoneRequest, AddPhoneResponse, VerifyOtpRequest,
    ScopedTokenResponse, MessageResponse, CreatePinRequest, SessionResponse,
    LoginRequest, ChangePinRequest, IdentitySummary,
)
from app.services.auth_service import AuthService
from app.services.registration_service import RegistrationService
from app.utils.rate_limiter import rate_limit

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register-with-id", response_model=RegisterWithIdResponse, status_code=201)
def register_with_id(
    idImage: UploadFile = File(None),
    selfie: UploadFile = File(None),
    db: Session = Depends(get_db),
    _throttle: bool = Depends(rate_limit(requests=10, window=60)),
):
    """Step 1: submit an ID document and a selfie; returns the registration token."""
    result = RegistrationService.start(db, read_upload(idImage), read_upload(selfie))
    record = result.identity.identity_verification

    return RegisterWithIdResponse(
        token=result.token,
        user_id=result.identity.id,
        extracted=result.extraction.fields_dict(),
        verification={
            "score": result.verification.score,
            "status": record["status"],
            "checks": result.verification.checks,
            "has_face_in_document": result.verification.has_face_in_document,
            "has_face_in_selfie": result.verification.has_face_in_selfie,
        },
    )


@router.post("/add-phone", response_model=AddPhoneResponse)
def add_phone(
    payload: AddPhoneRequest,
    identity: Identity = Depends(completing_registration),
    db: Session = Depends(get_db),
):
    """Step 2: bind a phone number."""
    token = RegistrationService.bind_phone(db, identity, payload.phone_number)
    if token is None:
        return AddPhoneResponse(
            message="Verification code sent. Please confirm your phone number.",
            otp_required=True,
        )
    return AddPhoneResponse(
        message="Phone number added. Please create your PIN.",
        otp_required=False,
        token=token,
    )


@router.post("/verify-otp", response_model=ScopedTokenResponse)
def verify_otp(
    payload: VerifyOtpRequest,
    identity: Identity = Depends(completing_registration),
    db: Session = Depends(get_db),
    _throttle: bool = Depends(rate_limit(requests=10, window=60)),
):
    """Step 2b: confirm the phone with the code sent by SMS."""
    token = RegistrationService.verify_otp(db, identity, payload.code)
    return ScopedTokenResponse(message="Phone number verified. Please create your PIN.", token=token)


@router.post("/resend-otp", response_model=MessageResponse)
def resend_otp(
    identity: Identity = Depends(completing_registration),
    db: Session = Depends(get_db),
    _throttle: bool = Depends(rate_limit(requests=3, window=60)),
):
    RegistrationService.resend_otp(db, identity)
    return MessageResponse(message="A new verification code has been sent.")


@router.post("/create-pin", response_model=SessionResponse, status_code=201)
def create_pin(
    payload: CreatePinRequest,
    identity: Identity = Depends(setting_up_pin),
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
):
    """Step 3: set the PIN. Completes registration and returns a session token."""
    session_token = RegistrationService.set_credential(db, identity, token, payload.pin)
    return SessionResponse(
        message="Registration completed successfully",
        token=session_token,
        user=IdentitySummary.model_validate(identity),
    )


@router.post("/login", response_model=SessionResponse)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    _throttle: bool = Depends(rate_limit(requests=10, window=60)),
):
    identity, token = AuthService.login(db, payload.national_id, payload.pin)
    return SessionResponse(
        message="Login successful",
        token=token,
        user=IdentitySummary.model_validate(identity),
    )


@router.post("/change-pin", response_model=MessageResponse)
def change_pin(
    payload: ChangePinRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    _throttle: bool = Depends(rate_limit(requests=5, window=60)),
):
    AuthService.change_pin(db, identity, payload.current_pin, payload.new_pin, payload.confirm_pin)
    return MessageResponse(message="PIN changed successfully")
