from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from pitchdeck.core.access import AccessLevel, authorize, require_access
from pitchdeck.core.exceptions import ExpiredError, ForbiddenError
from pitchdeck.core.security import generate_token_pair, get_password_hash

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_version(expires_at=None, password_hash=None):
    return SimpleNamespace(
        view_token="view-token-abc",
        edit_token="edit-token-xyz",
        expires_at=expires_at,
        password_hash=password_hash,
    )


def test_token_classification():
    version = make_version()
    assert authorize(version, "view-token-abc", NOW) is AccessLevel.VIEW
    assert authorize(version, "edit-token-xyz", NOW) is AccessLevel.EDIT
    assert authorize(version, "something-else", NOW) is AccessLevel.DENIED
    assert authorize(version, None, NOW) is AccessLevel.DENIED
    assert authorize(version, "", NOW) is AccessLevel.DENIED


def test_edit_implies_view():
    assert AccessLevel.EDIT.can_view and AccessLevel.EDIT.can_edit
    assert AccessLevel.VIEW.can_view and not AccessLevel.VIEW.can_edit
    assert not AccessLevel.DENIED.can_view


def test_expired_version_rejects_both_tokens():
    version = make_version(expires_at=NOW - timedelta(minutes=1))
    assert authorize(version, "view-token-abc", NOW) is AccessLevel.EXPIRED
    assert authorize(version, "edit-token-xyz", NOW) is AccessLevel.EXPIRED


def test_invalid_token_does_not_learn_about_expiry():
    version = make_version(expires_at=NOW - timedelta(days=1))
    assert authorize(version, "guess", NOW) is AccessLevel.DENIED


def test_future_expiry_still_grants_access():
    version = make_version(expires_at=NOW + timedelta(days=1))
    assert authorize(version, "view-token-abc", NOW) is AccessLevel.VIEW


def test_naive_expiry_is_treated_as_utc():
    version = make_version(expires_at=datetime(2025, 6, 1, 11, 59))
    assert authorize(version, "view-token-abc", NOW) is AccessLevel.EXPIRED


def test_require_access_raises_distinct_errors():
    version = make_version(expires_at=NOW - timedelta(seconds=1))
    with pytest.raises(ForbiddenError):
        require_access(version, "nope", now=NOW)
    with pytest.raises(ExpiredError):
        require_access(version, "view-token-abc", now=NOW)


def test_require_edit_rejects_view_token():
    version = make_version()
    with pytest.raises(ForbiddenError):
        require_access(version, "view-token-abc", edit=True, now=NOW)
    assert require_access(version, "edit-token-xyz", edit=True, now=NOW) is AccessLevel.EDIT


def test_password_gates_view_token_only():
    version = make_version(password_hash=get_password_hash("open sesame"))
    with pytest.raises(ForbiddenError):
        require_access(version, "view-token-abc", now=NOW)
    with pytest.raises(ForbiddenError):
        require_access(version, "view-token-abc", password="wrong", now=NOW)
    assert require_access(version, "view-token-abc", password="open sesame", now=NOW) is AccessLevel.VIEW
    assert require_access(version, "edit-token-xyz", now=NOW) is AccessLevel.EDIT


def test_generated_tokens_are_distinct_and_url_safe():
    view_token, edit_token = generate_token_pair()
    assert view_token != edit_token
    assert len(view_token) == 32 and len(edit_token) == 32
    assert all(ch.isalnum() or ch in "-_" for ch in view_token + edit_token)
