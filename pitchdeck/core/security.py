"""Token, slug and password helpers."""

import secrets
import time

import bcrypt

from .config import settings


def generate_access_token() -> str:
    """Opaque, URL-safe capability token for a version (view or edit)."""
    return secrets.token_urlsafe(settings.ACCESS_TOKEN_BYTES)


def generate_token_pair() -> tuple[str, str]:
    """Return (view_token, edit_token); the two are never equal."""
    view_token = generate_access_token()
    edit_token = generate_access_token()
    while edit_token == view_token:
        edit_token = generate_access_token()
    return view_token, edit_token


def generate_version_slug() -> str:
    return secrets.token_urlsafe(settings.VERSION_SLUG_BYTES)


def generate_presentation_slug() -> str:
    """Ten random URL-safe characters followed by the creation time in epoch millis."""
    return f"{secrets.token_urlsafe(8)[:10]}-{int(time.time() * 1000)}"


def tokens_match(presented: str, stored: str) -> bool:
    """Constant-time comparison of a presented token against a stored one."""
    if not presented or not stored:
        return False
    return secrets.compare_digest(presented.encode("utf-8"), stored.encode("utf-8"))


def _truncate(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def get_password_hash(password: str) -> str:
    """Hash a version password using bcrypt."""
    return bcrypt.hashpw(_truncate(password), bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(_truncate(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False
