"""One-time passcodes and registration tokens.

Codes are 6 decimal digits drawn with ``secrets.randbelow(10**6)``. randbelow
rejects out-of-range draws instead of reducing a wider value modulo 10**6,
so every code from 000000 to 999999 is equally likely.

Only a bcrypt hash of the code is ever kept; verification recomputes it.
"""

import secrets
import uuid

import bcrypt

OTP_DIGITS = 6
_OTP_SPACE = 10**OTP_DIGITS
_OTP_BCRYPT_ROUNDS = 10


def generate_otp() -> str:
    return f"{secrets.randbelow(_OTP_SPACE):0{OTP_DIGITS}d}"


def hash_otp(otp: str) -> str:
    return bcrypt.hashpw(otp.encode("utf-8"), bcrypt.gensalt(rounds=_OTP_BCRYPT_ROUNDS)).decode(
        "utf-8"
    )


def verify_otp(otp: str, otp_hash: str) -> bool:
    return bcrypt.checkpw(otp.encode("utf-8"), otp_hash.encode("utf-8"))


def generate_registration_token() -> str:
    """Opaque 122-bit random token (UUIDv4)."""
    return str(uuid.uuid4())
