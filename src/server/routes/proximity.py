"""Proximity session endpoints.

The initiator opens a session, advertises its token to nearby devices and
attaches one message. Discovering devices look the session up, connect,
and fetch the message; they answer it through the accept/reject endpoints.
"""
import logging
from typing import Annotated, Awaitable, Callable, Optional

from fastapi import APIRouter, Body, Depends, Path, status

from src.server.config import ServerConfig
from src.server.models.requests import AttachMessageRequest, CreateSessionRequest
from src.server.models.responses import (
    AttachResponse,
    LinkMessageResponse,
    SessionCreatedResponse,
    SessionInfoResponse,
)
from src.server.routes._message_helpers import lifetime, resolved_to_response
from src.state.database import DatabaseManager
from src.state.models.user import User
from src.state.proximity import (
    SessionInfo,
    attach_message,
    connect,
    create_session,
    fetch_session_message,
    get_session,
)

logger = logging.getLogger(__name__)


def _info_response(info: SessionInfo) -> SessionInfoResponse:
    return SessionInfoResponse(
        session_id=info.session_id,
        initiator_id=info.initiator_id,
        has_message=info.has_message,
        expires_at=info.expires_at.isoformat(),
    )


def create_proximity_router(
    db: DatabaseManager,
    config: ServerConfig,
    require_user: Callable[..., Awaitable[User]],
) -> APIRouter:
    """Create the proximity router with injected dependencies."""
    router = APIRouter()
    CurrentUser = Annotated[User, Depends(require_user)]
    TokenPath = Annotated[str, Path(description="Proximity token")]

    @router.post("/api/proximity/session", response_model=SessionCreatedResponse, status_code=status.HTTP_200_OK, tags=["proximity"])
    async def open_session(
        user: CurrentUser,
        body: Annotated[Optional[CreateSessionRequest], Body()] = None,
    ) -> SessionCreatedResponse:
        """Open a short-lived session to advertise to nearby devices."""
        ttl = lifetime(
            body.expires_in if body else None, config.proximity.default_ttl,
            config.proximity.max_ttl_ms, "expires_in",
        )
        async with db.connection() as conn:
            session = await create_session(conn, user.user_id, ttl)
        return SessionCreatedResponse(
            session_id=session.session_id,
            proximity_token=session.proximity_token,
            expires_at=session.expires_at.isoformat(),
            expires_in=int(ttl.total_seconds() * 1000),
        )

    @router.get("/api/proximity/session/{token}", response_model=SessionInfoResponse, tags=["proximity"])
    async def session_info(token: TokenPath) -> SessionInfoResponse:
        async with db.connection() as conn:
            info = await get_session(conn, token)
        return _info_response(info)

    @router.post("/api/proximity/session/{token}/send", response_model=AttachResponse, tags=["proximity"])
    async def send(token: TokenPath, body: AttachMessageRequest, user: CurrentUser) -> AttachResponse:
        """Attach the session's one message. Initiator only."""
        expires_in = lifetime(
            body.link_expires_in, config.link.default_expires_in,
            config.link.max_expires_in_ms, "link_expires_in",
        )
        async with db.connection() as conn:
            message, session = await attach_message(
                conn, token, user.user_id, body.content, link_expires_in=expires_in,
            )
        return AttachResponse(
            message_id=message.message_id,
            session_id=session.session_id,
            expires_at=session.expires_at.isoformat(),
        )

    @router.post("/api/proximity/session/{token}/connect", response_model=SessionInfoResponse, tags=["proximity"])
    async def join(token: TokenPath, user: CurrentUser) -> SessionInfoResponse:
        async with db.connection() as conn:
            info = await connect(conn, token, user.user_id)
        return _info_response(info)

    @router.get("/api/proximity/session/{token}/message", response_model=LinkMessageResponse, tags=["proximity"])
    async def session_message(token: TokenPath) -> LinkMessageResponse:
        async with db.connection() as conn:
            resolved = await fetch_session_message(conn, token)
        return resolved_to_response(resolved)

    return router
