from app.models.identity import Identity
from app.models.account import Account
from app.models.transaction import TransactionRecord
from app.models.otp import OtpChallenge
from app.models.chat import ChatSession

__all__ = ["Identity", "Account", "TransactionRecord", "OtpChallenge", "ChatSession"]
