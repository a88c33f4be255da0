"""Consent message endpoints: create, query, resolve by link, respond, share."""
import logging
from typing import Annotated, Awaitable, Callable, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query, Request, status

from src.server.config import ServerConfig
from src.server.models.requests import CreateMessageRequest, RespondRequest
from src.server.models.responses import (
    CreateMessageResponse,
    LinkMessageResponse,
    MessageListResponse,
    MessageResponse,
    RespondResponse,
    ShareFormatsResponse,
)
from src.server.routes._message_helpers import (
    lifetime,
    msg_to_response,
    resolved_to_response,
    schedule_push,
)
from src.state.database import DatabaseError, DatabaseManager
from src.state.errors import ValidationFailedError
from src.state.lifecycle import (
    create_message,
    ensure_status,
    get_for_participant,
    get_for_sender,
    resolve_by_token,
    respond,
    respond_by_id,
)
from src.state.models.message import Message, ResponseAction
from src.state.models.user import User
from src.state.preferences import require_link_sharing_enabled
from src.state.repositories.messages import MessageRepository
from src.state.tokens import build_share_messages, obfuscate_url, share_url, shorten_link

logger = logging.getLogger(__name__)

_DIRECTIONS = frozenset({"sent", "received", "all"})
_GENERIC_CHANNEL = "generic"


def create_messages_router(
    db: DatabaseManager,
    config: ServerConfig,
    require_user: Callable[..., Awaitable[User]],
) -> APIRouter:
    """Create the message router with injected dependencies."""
    router = APIRouter()
    CurrentUser = Annotated[User, Depends(require_user)]

    @router.post("/api/messages", response_model=CreateMessageResponse, status_code=status.HTTP_200_OK, tags=["messages"])
    async def create(
        request: Request, background: BackgroundTasks, body: CreateMessageRequest, user: CurrentUser,
    ) -> CreateMessageResponse:
        """Create a pending message and issue its link token."""
        expires_in = lifetime(
            body.link_expires_in, config.link.default_expires_in,
            config.link.max_expires_in_ms, "link_expires_in",
        )
        async with db.connection() as conn:
            message = await create_message(
                conn, user.user_id, body.content,
                recipient_id=body.recipient_id,
                recipient_email=body.recipient_email,
                link_expires_in=expires_in,
                single_use=body.single_use,
            )
        if message.link_token is None or message.link_expires_at is None:
            raise DatabaseError(f"Message {message.message_id} was stored without a link")
        if message.recipient_id is not None:
            schedule_push(background, request, "created", message, user.name)
        return CreateMessageResponse(
            id=message.message_id,
            link_token=message.link_token,
            share_url=share_url(message.link_token, config.link.base_url),
            link_expires_at=message.link_expires_at.isoformat(),
        )

    @router.get("/api/messages", response_model=MessageListResponse, tags=["messages"])
    async def list_messages(
        user: CurrentUser,
        direction: Annotated[str, Query(description="sent|received|all")] = "all",
        status_filter: Annotated[Optional[str], Query(alias="status", description="pending|accepted|rejected")] = None,
        limit: Annotated[int, Query(ge=1, le=100, description="Max messages")] = 50,
        offset: Annotated[int, Query(ge=0)] = 0,
    ) -> MessageListResponse:
        """List the caller's sent and received messages, newest first."""
        if direction not in _DIRECTIONS:
            raise ValidationFailedError(
                f"Invalid direction '{direction}'. Valid: {', '.join(sorted(_DIRECTIONS))}"
            )
        parsed_status = ensure_status(status_filter)
        async with db.connection() as conn:
            messages = await MessageRepository(conn).list_for_user(
                user.user_id,
                direction=None if direction == "all" else direction,
                status=parsed_status, limit=limit, offset=offset,
            )
        items = [msg_to_response(m) for m in messages]
        return MessageListResponse(count=len(items), messages=items)

    # Registered before /{message_id} so "link" is never read as an id.
    @router.get("/api/messages/link/{token}", response_model=LinkMessageResponse, tags=["messages"])
    async def resolve_link(token: Annotated[str, Path(description="Link token")]) -> LinkMessageResponse:
        """View a message through its link. Does not consume the link."""
        async with db.connection() as conn:
            resolved = await resolve_by_token(conn, token)
        return resolved_to_response(resolved)

    @router.get("/api/messages/{message_id}", response_model=MessageResponse, tags=["messages"])
    async def get_message(
        message_id: Annotated[str, Path(description="Message ID")], user: CurrentUser,
    ) -> MessageResponse:
        """Get a message the caller sent or is bound to."""
        async with db.connection() as conn:
            message = await get_for_participant(conn, user.user_id, message_id)
        return msg_to_response(message)

    @router.post("/api/messages/{token}/respond", response_model=RespondResponse, tags=["messages"])
    async def respond_via_link(
        request: Request,
        background: BackgroundTasks,
        token: Annotated[str, Path(description="Link token")],
        body: RespondRequest,
        user: CurrentUser,
    ) -> RespondResponse:
        """Accept or reject through a link token."""
        async with db.connection() as conn:
            message = await respond(conn, user.user_id, token, body.action)
        return _answered(request, background, message)

    @router.post("/api/messages/{message_id}/accept", response_model=RespondResponse, tags=["messages"])
    async def accept(
        request: Request,
        background: BackgroundTasks,
        message_id: Annotated[str, Path(description="Message ID")],
        user: CurrentUser,
    ) -> RespondResponse:
        async with db.connection() as conn:
            message = await respond_by_id(conn, user.user_id, message_id, ResponseAction.ACCEPT)
        return _answered(request, background, message)

    @router.post("/api/messages/{message_id}/reject", response_model=RespondResponse, tags=["messages"])
    async def reject(
        request: Request,
        background: BackgroundTasks,
        message_id: Annotated[str, Path(description="Message ID")],
        user: CurrentUser,
    ) -> RespondResponse:
        async with db.connection() as conn:
            message = await respond_by_id(conn, user.user_id, message_id, ResponseAction.REJECT)
        return _answered(request, background, message)

    @router.get("/api/messages/{message_id}/share", response_model=ShareFormatsResponse, tags=["messages"])
    async def share(
        message_id: Annotated[str, Path(description="Message ID")],
        user: CurrentUser,
        obfuscate: Annotated[
            Optional[bool], Query(description="Mask the token in display texts; defaults to the sender's preference")
        ] = None,
        note: Annotated[Optional[str], Query(max_length=500, description="Custom share text")] = None,
    ) -> ShareFormatsResponse:
        """Ready-to-send share texts for a message. Sender only.

        Only the channels the sender allows are returned, plus the generic
        text.
        """
        async with db.connection() as conn:
            message = await get_for_sender(conn, user.user_id, message_id)
            prefs = await require_link_sharing_enabled(conn, user.user_id)
        if message.link_token is None:
            raise ValidationFailedError("Message has no share link")
        if obfuscate is None:
            obfuscate = prefs.obfuscate_links
        url = share_url(message.link_token, config.link.base_url)
        short = shorten_link(message.link_token, config.link.base_url)
        allowed = {m.value for m in prefs.allowed_share_methods} | {_GENERIC_CHANNEL}
        texts = build_share_messages(url, sender_name=user.name, message=note, obfuscate=obfuscate)
        return ShareFormatsResponse(
            share_url=url,
            short_id=short.short_id,
            display_url=short.display_url,
            obfuscated_url=obfuscate_url(url),
            messages={channel: text for channel, text in texts.items() if channel in allowed},
        )

    def _answered(request: Request, background: BackgroundTasks, message: Message) -> RespondResponse:
        schedule_push(background, request, "answered", message)
        return RespondResponse(id=message.message_id, status=message.status.value)

    return router
