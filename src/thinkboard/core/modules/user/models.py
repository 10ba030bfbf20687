from uuid import UUID

from pydantic import BaseModel, Field

from thinkboard.core.db import MongoModel


class User(MongoModel):
    """Directory entry for a user known to the identity provider. No credentials are kept."""

    username: str
    email: str | None = None


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    email: str | None = Field(None, description="Email address used for reminder notifications")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, username=user.username, email=user.email)
