"""Tests for bearer token issuing and decoding."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from storefront.domain.errors import Unauthenticated
from storefront.domain.order_status import Role
from storefront.services.identity_service import IdentityService, Principal
from storefront.utils.settings import JWT_SECRET


def test_round_trip_carries_user_and_role(identity):
    token = identity.issue_token(7, "admin")

    principal = identity.decode(token)

    assert principal == Principal(user_id=7, role=Role.ADMIN)
    assert principal.is_admin


def test_regular_user_is_not_admin(identity):
    assert not identity.decode(identity.issue_token(3, "user")).is_admin


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
def test_missing_or_garbled_token(identity, token):
    with pytest.raises(Unauthenticated):
        identity.decode(token)


def test_token_signed_with_other_secret(identity):
    token = IdentityService(secret="someone-else-entirely-different-signing-key").issue_token(1, "admin")

    with pytest.raises(Unauthenticated):
        identity.decode(token)


def test_expired_token(identity):
    token = IdentityService(ttl=-10).issue_token(1, "user")

    with pytest.raises(Unauthenticated):
        identity.decode(token)


def test_unknown_role_claim(identity):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "1", "role": "superuser", "exp": now + timedelta(minutes=5)},
        JWT_SECRET,
        algorithm="HS256",
    )

    with pytest.raises(Unauthenticated):
        identity.decode(token)


def test_missing_subject(identity):
    now = datetime.now(timezone.utc)
    token = jwt.encode({"role": "user", "exp": now + timedelta(minutes=5)}, JWT_SECRET, algorithm="HS256")

    with pytest.raises(Unauthenticated):
        identity.decode(token)
