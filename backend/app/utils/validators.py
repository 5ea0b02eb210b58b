"""
Validators — Regex and rule-based validation for registration and ledger input.
"""
import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from app.config import get_settings

settings = get_settings()

# Kenyan national ID numbers are 7-8 digits
NATIONAL_ID_PATTERN = re.compile(r"^[0-9]{7,8}$")


def validate_phone(phone: str | None) -> bool:
    """Validate phone number: exactly PHONE_NUMBER_LENGTH digits, nothing else."""
    if not phone or not isinstance(phone, str):
        return False
    return bool(re.fullmatch(rf"[0-9]{{{settings.PHONE_NUMBER_LENGTH}}}", phone))


def validate_pin(pin: str | None) -> bool:
    """Validate PIN: exactly PIN_LENGTH numeric digits."""
    if not pin or not isinstance(pin, str):
        return False
    return bool(re.fullmatch(rf"[0-9]{{{settings.PIN_LENGTH}}}", pin))


def validate_otp(code: str | None) -> bool:
    if not code or not isinstance(code, str):
        return False
    return bool(re.fullmatch(rf"[0-9]{{{settings.OTP_LENGTH}}}", code))


def validate_national_id(national_id: str | None) -> bool:
    if not national_id:
        return False
    return bool(NATIONAL_ID_PATTERN.match(national_id.strip()))


def parse_amount_cents(amount) -> int | None:
    """Convert a positive, finite monetary amount to integer cents.

    Returns None for anything that is not a finite number greater than zero
    (including booleans, strings, NaN, infinities and sub-cent amounts) or
    that exceeds MAX_TRANSACTION_AMOUNT.
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        return None
    if isinstance(amount, float) and not math.isfinite(amount):
        return None
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        return None
    if not value.is_finite() or value <= 0 or value > settings.MAX_TRANSACTION_AMOUNT:
        return None
    cents = int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return cents if cents > 0 else None


def sanitize_name(name: str | None) -> str:
    """Basic sanitization for names: strip, collapse spaces, upper case."""
    if not name:
        return ""
    cleaned = re.sub(r"[^a-zA-Z\s.'-]", " ", name)
    return re.sub(r"\s+", " ", cleaned).strip().upper()
