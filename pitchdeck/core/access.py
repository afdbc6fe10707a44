"""Token authorization for presentation versions.

A presented token is classified against the version's stored tokens:

* equal to the edit token -> ``EDIT`` (implies view capability)
* equal to the view token -> ``VIEW``
* anything else -> ``DENIED``

Expiry is checked only after the token matched, so an invalid token never
learns whether the version has expired. A matching token on a version whose
``expires_at`` is in the past yields ``EXPIRED``.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .exceptions import ExpiredError, ForbiddenError
from .security import tokens_match, verify_password


class AccessLevel(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    DENIED = "denied"
    EXPIRED = "expired"

    @property
    def can_view(self) -> bool:
        return self in (AccessLevel.VIEW, AccessLevel.EDIT)

    @property
    def can_edit(self) -> bool:
        return self is AccessLevel.EDIT


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(version, now: Optional[datetime] = None) -> bool:
    if version.expires_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    return _as_utc(version.expires_at) < _as_utc(now)


def classify_token(version, token: Optional[str]) -> AccessLevel:
    """Token match only, expiry not considered."""
    if token and tokens_match(token, version.edit_token):
        return AccessLevel.EDIT
    if token and tokens_match(token, version.view_token):
        return AccessLevel.VIEW
    return AccessLevel.DENIED


def authorize(version, token: Optional[str], now: Optional[datetime] = None) -> AccessLevel:
    """Classify ``token`` for ``version``: VIEW, EDIT, DENIED or EXPIRED."""
    level = classify_token(version, token)
    if level is AccessLevel.DENIED:
        return level
    if is_expired(version, now):
        return AccessLevel.EXPIRED
    return level


def require_access(
    version,
    token: Optional[str],
    *,
    edit: bool = False,
    password: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AccessLevel:
    """
    Raise unless ``token`` grants the requested access.

    ForbiddenError for a token matching neither stored token, for a view token
    when edit access is required, and for a view-token read of a
    password-protected version without the right password. ExpiredError when
    the token matched but the version has expired.
    """
    level = authorize(version, token, now)
    if level is AccessLevel.DENIED:
        raise ForbiddenError("Invalid edit token" if edit else "Invalid token")
    if level is AccessLevel.EXPIRED:
        raise ExpiredError()
    if edit and not level.can_edit:
        raise ForbiddenError("Invalid edit token")
    if level is AccessLevel.VIEW and version.password_hash:
        if not password or not verify_password(password, version.password_hash):
            raise ForbiddenError("Password required")
    return level
