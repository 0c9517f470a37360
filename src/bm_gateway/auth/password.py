"""Password and OTP hashing.

Passwords use the ``bcrypt`` library directly (>=4.0). OTPs are short-lived
and only ever compared once, so a SHA-256 digest compared in constant time is
enough for them.
"""

import hashlib
import hmac
import secrets

import bcrypt


def hash_password(plain: str) -> str:
    """Hash a plain-text password with bcrypt. Returns a utf-8 hash string."""
    hashed_bytes: bytes = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt())
    return hashed_bytes.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plain-text password against a bcrypt hash."""
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def generate_otp() -> str:
    """Six-digit numeric OTP from a CSPRNG."""
    return f"{secrets.randbelow(900000) + 100000}"


def hash_otp(otp: str) -> str:
    return hashlib.sha256(otp.encode("utf-8")).hexdigest()


def verify_otp_hash(plain: str, hashed: str) -> bool:
    return hmac.compare_digest(hash_otp(plain), hashed)
