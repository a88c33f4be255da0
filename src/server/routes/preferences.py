"""Sharing preference endpoints for the current user."""
import logging
from typing import Annotated, Awaitable, Callable

from fastapi import APIRouter, Depends

from src.server.models.requests import ShareMethodsRequest, UpdatePreferencesRequest
from src.server.models.responses import PreferencesResponse
from src.server.routes._message_helpers import iso
from src.state.database import DatabaseManager
from src.state.models.preferences import SharingPreferences
from src.state.models.user import User
from src.state.preferences import get_preferences, reset_preferences, update_preferences

logger = logging.getLogger(__name__)


def _to_response(prefs: SharingPreferences) -> PreferencesResponse:
    return PreferencesResponse(
        proximity_enabled=prefs.proximity_enabled,
        link_sharing_enabled=prefs.link_sharing_enabled,
        push_notifications_enabled=prefs.push_notifications_enabled,
        obfuscate_links=prefs.obfuscate_links,
        allowed_share_methods=[m.value for m in prefs.allowed_share_methods],
        updated_at=iso(prefs.updated_at),
    )


def create_preferences_router(
    db: DatabaseManager,
    require_user: Callable[..., Awaitable[User]],
) -> APIRouter:
    router = APIRouter()
    CurrentUser = Annotated[User, Depends(require_user)]

    @router.get("/api/users/preferences", response_model=PreferencesResponse, tags=["preferences"])
    async def read(user: CurrentUser) -> PreferencesResponse:
        """The caller's preferences; defaults are stored on first read."""
        async with db.connection() as conn:
            prefs = await get_preferences(conn, user.user_id)
        return _to_response(prefs)

    @router.put("/api/users/preferences", response_model=PreferencesResponse, tags=["preferences"])
    async def update(body: UpdatePreferencesRequest, user: CurrentUser) -> PreferencesResponse:
        async with db.connection() as conn:
            prefs = await update_preferences(
                conn, user.user_id,
                proximity_enabled=body.proximity_enabled,
                link_sharing_enabled=body.link_sharing_enabled,
                push_notifications_enabled=body.push_notifications_enabled,
                obfuscate_links=body.obfuscate_links,
                allowed_share_methods=body.allowed_share_methods,
            )
        return _to_response(prefs)

    @router.patch("/api/users/preferences/share-methods", response_model=PreferencesResponse, tags=["preferences"])
    async def set_share_methods(body: ShareMethodsRequest, user: CurrentUser) -> PreferencesResponse:
        """Replace the allowed share channels. The list must not be empty."""
        async with db.connection() as conn:
            prefs = await update_preferences(
                conn, user.user_id, allowed_share_methods=body.allowed_share_methods,
            )
        return _to_response(prefs)

    @router.post("/api/users/preferences/reset", response_model=PreferencesResponse, tags=["preferences"])
    async def reset(user: CurrentUser) -> PreferencesResponse:
        async with db.connection() as conn:
            prefs = await reset_preferences(conn, user.user_id)
        return _to_response(prefs)

    return router
