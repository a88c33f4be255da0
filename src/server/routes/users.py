"""Current-user endpoints: profile, stats, data export, and account deletion."""
import logging
from typing import Annotated, Awaitable, Callable

from fastapi import APIRouter, Depends, Query, Response

from src.server.models.responses import (
    DeleteAccountResponse,
    ExportedMessage,
    ExportedMessages,
    ExportedPushTokens,
    ExportedSession,
    ExportedSessions,
    PushTokenResponse,
    StatsResponse,
    StatusCounts,
    UserDataExportResponse,
    UserResponse,
)
from src.state.accounts import AccountExport, delete_account, export_account, user_stats
from src.state.database import DatabaseManager
from src.state.errors import ValidationFailedError
from src.state.models.message import Message
from src.state.models.user import User

logger = logging.getLogger(__name__)


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.user_id, name=user.name, email=user.email,
        created_at=user.created_at.isoformat(),
    )


def _exported_message(m: Message) -> ExportedMessage:
    return ExportedMessage(
        id=m.message_id, sender_id=m.sender_id, recipient_id=m.recipient_id,
        content=m.content, status=m.status.value,
        created_at=m.created_at.isoformat(), updated_at=m.updated_at.isoformat(),
    )


def _export_to_response(export: AccountExport) -> UserDataExportResponse:
    """Render an export without link tokens or device tokens."""
    platforms = list(dict.fromkeys(t.platform.value for t in export.push_tokens))
    return UserDataExportResponse(
        user=_user_to_response(export.user),
        messages=ExportedMessages(
            sent=len(export.sent),
            received=len(export.received),
            sent_messages=[_exported_message(m) for m in export.sent],
            received_messages=[_exported_message(m) for m in export.received],
        ),
        proximity_sessions=ExportedSessions(
            count=len(export.proximity_sessions),
            sessions=[
                ExportedSession(
                    id=s.session_id, expires_at=s.expires_at.isoformat(),
                    message_id=s.message_id, created_at=s.created_at.isoformat(),
                )
                for s in export.proximity_sessions
            ],
        ),
        push_tokens=ExportedPushTokens(
            count=len(export.push_tokens),
            platforms=platforms,
            registered_at=[
                PushTokenResponse(
                    id=t.token_id, platform=t.platform.value,
                    created_at=t.created_at.isoformat(), updated_at=t.updated_at.isoformat(),
                )
                for t in export.push_tokens
            ],
        ),
        exported_at=export.exported_at.isoformat(),
    )


def create_users_router(
    db: DatabaseManager,
    require_user: Callable[..., Awaitable[User]],
) -> APIRouter:
    router = APIRouter()
    CurrentUser = Annotated[User, Depends(require_user)]

    @router.get("/api/users/me", response_model=UserResponse, tags=["users"])
    async def me(user: CurrentUser) -> UserResponse:
        return _user_to_response(user)

    @router.get("/api/users/me/stats", response_model=StatsResponse, tags=["users"])
    async def stats(user: CurrentUser) -> StatsResponse:
        """Sent and received message counts by status."""
        async with db.connection() as conn:
            counts = await user_stats(conn, user.user_id)
        return StatsResponse(
            sent=StatusCounts(**counts["sent"]),
            received=StatusCounts(**counts["received"]),
        )

    @router.get("/api/users/me/data", response_model=UserDataExportResponse, tags=["users"])
    async def export_me(user: CurrentUser, response: Response) -> UserDataExportResponse:
        """Download everything stored about the caller as a JSON attachment."""
        async with db.connection() as conn:
            export = await export_account(conn, user.user_id)
        stamp = int(export.exported_at.timestamp() * 1000)
        response.headers["Content-Disposition"] = (
            f'attachment; filename="user-data-{user.user_id}-{stamp}.json"'
        )
        return _export_to_response(export)

    @router.delete("/api/users/me", response_model=DeleteAccountResponse, tags=["users"])
    async def delete_me(
        user: CurrentUser,
        confirm: Annotated[bool, Query(description="Must be true")] = False,
    ) -> DeleteAccountResponse:
        """Delete the caller's account.

        Messages survive with the caller's references anonymized; devices,
        proximity sessions and credentials are removed.
        """
        if not confirm:
            raise ValidationFailedError("Account deletion requires confirm=true")
        async with db.connection() as conn:
            result = await delete_account(conn, user.user_id)
        return DeleteAccountResponse(
            messages_anonymized=result.messages_anonymized,
            proximity_sessions_deleted=result.proximity_sessions_deleted,
            push_tokens_deleted=result.push_tokens_deleted,
            deleted_at=result.deleted_at.isoformat(),
        )

    return router
