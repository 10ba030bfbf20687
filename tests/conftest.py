"""Shared pytest fixtures."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import pytest
from jose import jwt

# Core must be imported before any service module so the service registry resolves
from thinkboard.core.core import Core  # isort: skip
from thinkboard.config import Config
from thinkboard.core.modules.user.models import User
from thinkboard.errors import TransportError

NOW = datetime(2025, 10, 20, 12, 0, tzinfo=UTC)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, at: datetime) -> None:
        self.current = at

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: Any) -> None:
        self.current += timedelta(**kwargs)


class RecordingTransport:
    """Email transport that keeps sent messages in memory and can be told to fail."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    async def send(self, to_address: str, subject: str, body: str) -> None:
        if self.fail:
            raise TransportError("relay unavailable")
        self.sent.append((to_address, subject, body))


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def config(tmp_path):
    """Configuration backed by in-memory stores, with the background scheduler off."""
    return Config(
        _env_file=None,
        database_url="memory://",
        host="127.0.0.1",
        port=8000,
        debug=True,
        frontend_url="https://notes.example.com",
        identity_secret_key="test-secret",
        attachments_path=str(tmp_path / "attachments"),
        reminder_scheduler_enabled=False,
    )


@pytest.fixture
async def core(config, clock, transport) -> AsyncGenerator[Core]:
    core = Core(config, clock=clock, email_transport=transport)
    async with core.lifespan():
        yield core


@pytest.fixture
async def alice(core) -> User:
    return await core.services.user.sync_user(uuid4(), "alice", "alice@example.com")


@pytest.fixture
async def bob(core) -> User:
    return await core.services.user.sync_user(uuid4(), "bob", "bob@example.com")


@pytest.fixture
async def carol(core) -> User:
    return await core.services.user.sync_user(uuid4(), "carol", None)


@pytest.fixture
def make_token(config):
    """Sign identity tokens the way the identity provider does."""

    def sign(user: User, **claims: Any) -> str:
        payload = {"sub": str(user.id), "username": user.username, "email": user.email, **claims}
        return jwt.encode(payload, config.identity_secret_key, algorithm=config.identity_algorithm)

    return sign
