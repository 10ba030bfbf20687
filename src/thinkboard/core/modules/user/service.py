from uuid import UUID

import structlog

from thinkboard.core.core import Service
from thinkboard.core.modules.user.models import User
from thinkboard.core.storage import Storage
from thinkboard.errors import NotFoundError

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Directory of users known from identity tokens, with in-memory cache."""

    def __init__(self, storage: Storage) -> None:
        super().__init__(storage)
        self._users: dict[UUID, User] = {}

    async def on_start(self) -> None:
        """Load the user cache."""
        await self.update_all_users_cache()
        logger.debug("user_service_started", user_count=len(self._users))

    async def update_all_users_cache(self) -> None:
        """Reload all users cache from storage."""
        users = await self.storage.users.list_all()
        self._users = {user.id: user for user in users}

    def get_all_users(self) -> list[User]:
        """Get all users from cache."""
        return list(self._users.values())

    def get_user(self, user_id: UUID) -> User:
        """Get user by ID from cache."""
        if user_id not in self._users:
            raise NotFoundError(f"User '{user_id}' not found")
        return self._users[user_id]

    def find_user(self, user_id: UUID) -> User | None:
        return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> User:
        """Get user by username from cache."""
        user = next((u for u in self._users.values() if u.username == username), None)
        if user is None:
            raise NotFoundError(f"User '{username}' not found")
        return user

    def resolve_user(self, username_or_id: str) -> User:
        """Look a user up by UUID string or username."""
        try:
            user_id = UUID(username_or_id)
        except ValueError:
            return self.get_user_by_username(username_or_id)
        return self.get_user(user_id)

    async def sync_user(self, user_id: UUID, username: str, email: str | None) -> User:
        """Record the identity provider's view of a user, writing only when it changed."""
        cached = self._users.get(user_id)
        if cached is not None and cached.username == username and cached.email == email:
            return cached
        user = User(id=user_id, username=username, email=email)
        await self.storage.users.upsert(user)
        self._users[user_id] = user
        logger.info("user_synced", user_id=user_id, username=username)
        return user
