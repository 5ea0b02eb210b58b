"""
Hashing Utilities — bcrypt PIN hashing and SHA-256 digests.
"""
import hashlib
import hmac
import json

import bcrypt

from app.config import get_settings

settings = get_settings()


def hash_pin(pin: str) -> str:
    """One-way, salted bcrypt hash of a PIN. Deliberately slow."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(pin.encode("utf-8"), salt).decode("utf-8")


def verify_pin(pin: str, pin_hash: str | None) -> bool:
    """Check a PIN against a stored bcrypt hash. A missing hash never matches."""
    if not pin or not pin_hash:
        return False
    try:
        return bcrypt.checkpw(pin.encode("utf-8"), pin_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def generate_hash(data: dict | str) -> str:
    """Generate a SHA-256 hash of a string or dictionary (deterministic, sorted keys)."""
    if isinstance(data, str):
        canonical = data.encode("utf-8")
    else:
        canonical = json.dumps(data, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(canonical).hexdigest()


def hashes_match(value: str, expected_hash: str) -> bool:
    """Constant-time comparison of SHA-256(value) against a stored digest."""
    return hmac.compare_digest(generate_hash(value), expected_hash or "")
