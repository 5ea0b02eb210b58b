"""
Application Configuration — Environment & Settings
Centralizes all config from .env with Pydantic Settings for validation.
"""
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings

# Resolve paths relative to backend/ directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Core ---
    APP_NAME: str = "GKash API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    CORS_ORIGINS: list[str] = ["*"]

    # --- Database ---
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'data' / 'gkash.db'}"

    # --- Security ---
    SECRET_KEY: str = "gkash-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    SCOPED_TOKEN_EXPIRY_MINUTES: int = 30
    SESSION_TOKEN_EXPIRY_DAYS: int = 7
    BCRYPT_ROUNDS: int = 10

    # --- Registration ---
    # The unique login handle is the national ID number
    REQUIRE_PHONE_OTP: bool = False
    PHONE_NUMBER_LENGTH: int = 10
    PIN_LENGTH: int = 4
    OTP_LENGTH: int = 6
    OTP_EXPIRY_MINUTES: int = 5
    OTP_MAX_ATTEMPTS: int = 5

    # --- Ledger ---
    # KES; amounts are stored as integer cents
    MAX_TRANSACTION_AMOUNT: int = 10_000_000
    MAX_BALANCE_CENTS: int = 10**15

    # --- ID Verification ---
    VERIFICATION_PASS_SCORE: int = 60
    FACE_BONUS: int = 10
    DOCUMENT_KEYWORDS: list[str] = ["republic", "kenya", "identity", "card", "national"]
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    UPLOAD_DIR: str = str(BASE_DIR / "data" / "uploads")

    # --- AI / OCR / Chat ---
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-flash-latest"
    CHAT_SESSION_TTL_MINUTES: int = 60
    CHAT_HISTORY_LIMIT: int = 20

    # --- Logging ---
    LOG_DIR: str = str(BASE_DIR / "logs")
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
