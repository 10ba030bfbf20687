from typing import Any, NewType
from uuid import UUID

import structlog
from jose import JWTError, jwt

from thinkboard.core.core import Service
from thinkboard.core.modules.user.models import User
from thinkboard.errors import AuthenticationError

logger = structlog.get_logger(__name__)

AuthToken = NewType("AuthToken", str)


class IdentityService(Service):
    """Verifies tokens issued by the identity provider.

    Tokens are JWTs signed with the shared identity secret and carry the
    claims `sub` (user id), `username` and optionally `email`. Verified
    identities are synchronised into the user directory so that reminder
    notifications can be addressed.
    """

    def decode_token(self, auth_token: AuthToken) -> dict[str, Any]:
        config = self.core.config
        try:
            return jwt.decode(auth_token, config.identity_secret_key, algorithms=[config.identity_algorithm])
        except JWTError as e:
            logger.debug("identity_token_rejected", error=str(e))
            raise AuthenticationError("Invalid or expired token") from e

    async def authenticate(self, auth_token: AuthToken) -> User:
        """Resolve a bearer token to the acting user."""
        claims = self.decode_token(auth_token)
        try:
            user_id = UUID(str(claims["sub"]))
            username = str(claims["username"])
        except (KeyError, ValueError) as e:
            raise AuthenticationError("Token is missing identity claims") from e

        email = claims.get("email")
        return await self.core.services.user.sync_user(user_id, username, str(email) if email else None)
