"""Device push token endpoints. Device token values are never echoed back."""
import logging
from datetime import datetime, timezone
from typing import Annotated, Awaitable, Callable

from fastapi import APIRouter, Depends, Path

from src.server.models.requests import PushTokenRequest
from src.server.models.responses import (
    PushTokenDeletedResponse,
    PushTokenListResponse,
    PushTokenRegisteredResponse,
    PushTokenResponse,
)
from src.state.accounts import register_push_token, remove_push_token
from src.state.database import DatabaseManager
from src.state.models.push_token import PushToken
from src.state.models.user import User
from src.state.repositories.push_tokens import PushTokenRepository

logger = logging.getLogger(__name__)


def _token_to_response(t: PushToken) -> PushTokenResponse:
    return PushTokenResponse(
        id=t.token_id, platform=t.platform.value,
        created_at=t.created_at.isoformat(), updated_at=t.updated_at.isoformat(),
    )


def create_push_tokens_router(
    db: DatabaseManager,
    require_user: Callable[..., Awaitable[User]],
) -> APIRouter:
    router = APIRouter()
    CurrentUser = Annotated[User, Depends(require_user)]

    @router.post("/api/push-tokens", response_model=PushTokenRegisteredResponse, tags=["push"])
    async def register(body: PushTokenRequest, user: CurrentUser) -> PushTokenRegisteredResponse:
        """Register or refresh a device for push delivery."""
        async with db.connection() as conn:
            stored, outcome = await register_push_token(
                conn, user.user_id, body.token, body.platform, datetime.now(timezone.utc),
            )
        return PushTokenRegisteredResponse(**_token_to_response(stored).model_dump(), outcome=outcome)

    @router.get("/api/push-tokens", response_model=PushTokenListResponse, tags=["push"])
    async def list_tokens(user: CurrentUser) -> PushTokenListResponse:
        async with db.connection() as conn:
            tokens = await PushTokenRepository(conn).list_for_user(user.user_id)
        items = [_token_to_response(t) for t in tokens]
        return PushTokenListResponse(count=len(items), tokens=items)

    @router.delete("/api/push-tokens/{token_id}", response_model=PushTokenDeletedResponse, tags=["push"])
    async def unregister(
        token_id: Annotated[str, Path(description="Push token registration ID")], user: CurrentUser,
    ) -> PushTokenDeletedResponse:
        async with db.connection() as conn:
            await remove_push_token(conn, user.user_id, token_id)
        return PushTokenDeletedResponse(id=token_id)

    return router
