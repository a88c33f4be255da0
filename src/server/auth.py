"""Identity oracle seam and the bearer-auth FastAPI dependency.

The service never verifies credentials itself: an ``IdentityOracle`` maps a
bearer credential to a user or reports it unknown. ``DatabaseIdentityOracle``
resolves session tokens issued by ``src.state.accounts``; other backends can
be injected into ``create_app``.
"""
from typing import Awaitable, Callable, Optional, Protocol

from fastapi import Header

from src.state.accounts import identify
from src.state.database import DatabaseManager
from src.state.errors import UnauthorizedError
from src.state.models.user import User

_BEARER_PREFIX = "bearer "


class IdentityOracle(Protocol):
    async def identify(self, credential: str) -> Optional[User]:
        ...


class DatabaseIdentityOracle:
    """Resolves bearer credentials against the local auth_sessions table."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def identify(self, credential: str) -> Optional[User]:
        async with self._db.connection() as conn:
            return await identify(conn, credential)


def bearer_credential(authorization: Optional[str]) -> Optional[str]:
    """Extract the credential from an ``Authorization: Bearer`` header."""
    if not authorization or not authorization.lower().startswith(_BEARER_PREFIX):
        return None
    credential = authorization[len(_BEARER_PREFIX):].strip()
    return credential or None


def create_auth_dependency(oracle: IdentityOracle) -> Callable[..., Awaitable[User]]:
    """Build a dependency that yields the authenticated user or raises 401."""

    async def require_user(authorization: Optional[str] = Header(default=None)) -> User:
        credential = bearer_credential(authorization)
        if credential is None:
            raise UnauthorizedError("Authentication required")
        user = await oracle.identify(credential)
        if user is None:
            raise UnauthorizedError("Invalid or expired credential")
        return user

    return require_user
