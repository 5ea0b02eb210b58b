from app.utils.hashing import hash_pin, verify_pin, generate_hash, hashes_match
from app.utils.validators import validate_phone, validate_pin, validate_otp, validate_national_id, parse_amount_cents

__all__ = [
    "hash_pin", "verify_pin", "generate_hash", "hashes_match",
    "validate_phone", "validate_pin", "validate_otp", "validate_national_id", "parse_amount_cents",
]
