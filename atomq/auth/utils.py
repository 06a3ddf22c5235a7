import re

from flask import current_app
from passlib.hash import bcrypt


EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
BCRYPT_MAX_BYTES = 72


def _bcrypt_input(plain_password: str) -> str:
    # bcrypt only reads the first 72 bytes; cut there so hash and verify agree
    clipped = plain_password.encode('utf-8')[:BCRYPT_MAX_BYTES]
    return clipped.decode('utf-8', errors='ignore')


def hash_password(plain_password: str) -> str:
    """Hash with bcrypt at the configured BCRYPT_ROUNDS cost."""
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    return bcrypt.using(rounds=rounds).hash(_bcrypt_input(plain_password))


def verify_password(plain_password: str, password_hash: str) -> bool:
    """A malformed stored hash counts as a mismatch."""
    try:
        return bcrypt.verify(_bcrypt_input(plain_password), password_hash)
    except ValueError:
        current_app.logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def is_valid_email(email: str) -> bool:
    return bool(email and EMAIL_REGEX.match(email))


def normalize_email(email) -> str:
    return (email or "").strip().lower() if isinstance(email, str) else ""


def validate_password(password: str) -> tuple[bool, str | None]:
    """Check MIN_PASSWORD_LENGTH; returns (ok, error message or None)."""
    min_length = current_app.config.get("MIN_PASSWORD_LENGTH", 6)
    if len(password) < min_length:
        return False, f"Password must be at least {min_length} characters long"
    return True, None
