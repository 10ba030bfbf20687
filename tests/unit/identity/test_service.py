"""Tests for IdentityService token verification."""

import pytest
from jose import jwt

from thinkboard.core.modules.user.models import User
from thinkboard.errors import AuthenticationError


@pytest.fixture
def identity(core):
    return core.services.identity


@pytest.fixture
def zoe():
    return User(username="zoe", email="zoe@example.com")


class TestAuthenticate:
    async def test_valid_token_syncs_directory(self, core, identity, zoe, make_token):
        user = await identity.authenticate(make_token(zoe))

        assert user.id == zoe.id
        assert user.username == "zoe"
        assert core.services.user.get_user(zoe.id).email == "zoe@example.com"

    async def test_changed_claims_update_directory(self, core, identity, zoe, make_token):
        await identity.authenticate(make_token(zoe))
        await identity.authenticate(make_token(zoe, email="zoe@new.example.com", username="zoe2"))

        stored = {u.id: u for u in await core.storage.users.list_all()}
        assert stored[zoe.id].email == "zoe@new.example.com"
        assert core.services.user.get_user_by_username("zoe2").id == zoe.id

    async def test_wrong_signature(self, identity, zoe):
        token = jwt.encode({"sub": str(zoe.id), "username": "zoe"}, "other-secret", algorithm="HS256")
        with pytest.raises(AuthenticationError):
            await identity.authenticate(token)

    async def test_expired_token(self, identity, zoe, make_token):
        with pytest.raises(AuthenticationError, match="Invalid or expired token"):
            await identity.authenticate(make_token(zoe, exp=1))

    async def test_garbage(self, identity):
        with pytest.raises(AuthenticationError):
            await identity.authenticate("not-a-jwt")

    @pytest.mark.parametrize("claims", [{"sub": "not-a-uuid"}, {"username": None}])
    async def test_missing_identity_claims(self, identity, config, zoe, claims):
        payload = {"sub": str(zoe.id), "username": "zoe", **claims}
        payload = {k: v for k, v in payload.items() if v is not None}
        token = jwt.encode(payload, config.identity_secret_key, algorithm="HS256")
        with pytest.raises(AuthenticationError, match="missing identity claims"):
            await identity.authenticate(token)
