"""
S-Network Backend — Password Hashing
======================================

What:  Salted PBKDF2-SHA256 password hashing and verification.
How:   Werkzeug's `generate_password_hash` / `check_password_hash`. The stored
       string is `pbkdf2:sha256:<iterations>$<salt>$<hash>`, so the work
       factor can be raised later without invalidating old hashes.
Who:   UserService on registration, login and nothing else.
"""

from werkzeug.security import check_password_hash, generate_password_hash

from snetwork.config import settings

SALT_LENGTH = 16


def hash_password(password: str, iterations: int | None = None) -> str:
    """Hash a password with a fresh random salt."""
    iterations = iterations or settings.password_hash_iterations
    return generate_password_hash(password, method=f"pbkdf2:sha256:{iterations}", salt_length=SALT_LENGTH)


def verify_password(password: str, stored_hash: str) -> bool:
    """Constant-time comparison of a password against a stored hash."""
    if not stored_hash.startswith("pbkdf2:"):
        return False
    return check_password_hash(stored_hash, password)
