"""
Password hashing.

PBKDF2-HMAC-SHA256 with a random 16-byte salt and 100,000 iterations. The
stored form is base64(salt + 20-byte digest).
"""

import base64
import binascii
import hashlib
import hmac
import secrets

SALT_BYTES = 16
DIGEST_BYTES = 20
ITERATIONS = 100_000


def _derive(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, ITERATIONS, dklen=DIGEST_BYTES)


def hash_password(password: str) -> str:
    """Hash a plain-text password for storage"""
    salt = secrets.token_bytes(SALT_BYTES)
    return base64.b64encode(salt + _derive(password, salt)).decode("ascii")


def verify_password(password: str, hashed_password: str) -> bool:
    """Check a plain-text password against a stored hash; malformed hashes never match"""
    try:
        raw = base64.b64decode(hashed_password.encode("ascii"), validate=True)
    except (binascii.Error, ValueError, AttributeError):
        return False
    if len(raw) != SALT_BYTES + DIGEST_BYTES:
        return False

    salt, expected = raw[:SALT_BYTES], raw[SALT_BYTES:]
    return hmac.compare_digest(_derive(password, salt), expected)
