from datetime import datetime, timedelta, timezone

import jwt
import pytest

from urbanesta.application.ports.user_repo import UserDto
from urbanesta.application.services.token_service import TokenIssuer
from urbanesta.exceptions import ConfigurationError


def make_user():
    now = datetime.now(timezone.utc)
    return UserDto(id="user-1", phone_number="+919876543210", name="Asha", city="Noida",
                   email=None, join_date=now, last_login=now)


def test_issue_binds_identity_and_lifetimes():
    issuer = TokenIssuer(secret_key="access-secret-123456", refresh_secret_key="refresh-secret-123456")
    now = datetime.now(timezone.utc)
    pair = issuer.issue(make_user(), now)

    access = jwt.decode(pair.access_token, "access-secret-123456", algorithms=["HS256"])
    refresh = jwt.decode(pair.refresh_token, "refresh-secret-123456", algorithms=["HS256"])
    assert access["sub"] == refresh["sub"] == "user-1"
    assert access["type"] == "access"
    assert refresh["type"] == "refresh"
    assert access["exp"] - access["iat"] == 15 * 60
    assert refresh["exp"] - refresh["iat"] == 30 * 24 * 3600


def test_token_types_are_not_interchangeable():
    issuer = TokenIssuer(secret_key="access-secret-123456")
    pair = issuer.issue(make_user())
    assert issuer.decode_access(pair.refresh_token) is None
    assert issuer.decode_refresh(pair.access_token) is None
    assert issuer.decode_access(pair.access_token)["phoneNumber"] == "+919876543210"


def test_tampered_and_expired_tokens_are_rejected():
    issuer = TokenIssuer(secret_key="access-secret-123456")
    token = issuer.issue_access(make_user())
    assert issuer.decode_access(token[:-2] + "xx") is None

    old = datetime.now(timezone.utc) - timedelta(hours=1)
    assert issuer.decode_access(issuer.issue_access(make_user(), old)) is None


def test_default_secret_refused_when_insecure_not_allowed():
    issuer = TokenIssuer(secret_key="change-me-in-prod", allow_insecure_secret=False)
    with pytest.raises(ConfigurationError):
        issuer.issue(make_user())
