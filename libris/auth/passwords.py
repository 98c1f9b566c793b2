# =============================================================================
# Password Hashing
# =============================================================================
#
# Salted PBKDF2-SHA256. Stored format: "<iterations>:<salt>:<hash hex>".
# Verification always runs the full derivation and compares in constant time.
#
# =============================================================================

from __future__ import annotations

import hashlib
import secrets
from functools import lru_cache

from libris.config import get_settings


def _derive(password: str, salt: str, iterations: int) -> str:
    return hashlib.pbkdf2_hmac(
        'sha256',
        password.encode('utf-8'),
        salt.encode('utf-8'),
        iterations=iterations,
    ).hex()


def hash_password(password: str, iterations: int | None = None) -> str:
    """
    Hash a password using PBKDF2-SHA256.
    
    Returns: iterations:salt:hash format string
    """
    iterations = iterations or get_settings().password_hash_iterations
    salt = secrets.token_hex(32)
    return f"{iterations}:{salt}:{_derive(password, salt, iterations)}"


def verify_password(password: str, password_hash: str | None) -> bool:
    """Verify a password against its hash."""
    try:
        iterations, salt, stored_hash = password_hash.split(':')
        computed = _derive(password, salt, int(iterations))
    except (ValueError, AttributeError):
        return False
    return secrets.compare_digest(computed, stored_hash)


@lru_cache
def _dummy_hash() -> str:
    return hash_password(secrets.token_hex(16))


def burn_verification(password: str) -> None:
    """
    Spend the same work as a real verification.
    
    Used when the identifier is unknown so the response time does not
    reveal whether the account exists.
    """
    verify_password(password, _dummy_hash())
