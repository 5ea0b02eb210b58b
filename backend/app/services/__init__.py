from app.services.ocr_service import OCRService
from app.services.token_service import TokenService
from app.services.registration_service import RegistrationService
from app.services.auth_service import AuthService
from app.services.verification_service import VerificationService
from app.services.account_service import AccountService
from app.services.transaction_service import TransactionService
from app.services.chat_service import ChatService

__all__ = [
    "OCRService", "TokenService", "RegistrationService", "AuthService",
    "VerificationService", "AccountService", "TransactionService", "ChatService",
]
