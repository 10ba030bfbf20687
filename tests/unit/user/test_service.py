"""Tests for UserService."""

from uuid import uuid4

import pytest

from thinkboard.core.core import Core
from thinkboard.errors import NotFoundError


class TestUserDirectory:
    async def test_lookup_by_id_and_username(self, core, alice):
        users = core.services.user

        assert users.get_user(alice.id) == alice
        assert users.get_user_by_username("alice") == alice
        assert users.resolve_user("alice") == alice
        assert users.resolve_user(str(alice.id)) == alice

    async def test_unknown_user(self, core):
        with pytest.raises(NotFoundError):
            core.services.user.get_user(uuid4())
        with pytest.raises(NotFoundError):
            core.services.user.resolve_user("nobody")
        assert core.services.user.find_user(uuid4()) is None

    async def test_unchanged_sync_does_not_write(self, core, alice, monkeypatch):
        writes = []

        async def upsert(user):
            writes.append(user)

        monkeypatch.setattr(core.storage.users, "upsert", upsert)
        await core.services.user.sync_user(alice.id, "alice", "alice@example.com")
        assert writes == []

    async def test_cache_loaded_on_start(self, config, clock):
        first = Core(config, clock=clock)
        async with first.lifespan():
            user = await first.services.user.sync_user(uuid4(), "frank", None)

        second = Core(config, clock=clock, storage=first.storage)
        async with second.lifespan():
            assert second.services.user.get_user(user.id).username == "frank"
