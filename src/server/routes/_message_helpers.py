"""Helpers shared by the message and proximity endpoints."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import BackgroundTasks, Request

from src.server.models.common import SenderInfo
from src.server.models.responses import LinkMessageResponse, MessageResponse
from src.server.push import PushNotifier
from src.state.errors import ValidationFailedError
from src.state.lifecycle import ResolvedMessage
from src.state.models.message import Message

logger = logging.getLogger(__name__)


def iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def lifetime(requested_ms: Optional[int], default: timedelta, max_ms: int, label: str) -> timedelta:
    """Turn a client-supplied lifetime in ms into a timedelta within bounds."""
    if requested_ms is None:
        return default
    if requested_ms <= 0:
        raise ValidationFailedError(f"{label} must be positive")
    if requested_ms > max_ms:
        raise ValidationFailedError(
            f"{label} cannot exceed {max_ms} ms", {"max": max_ms},
        )
    return timedelta(milliseconds=requested_ms)


def msg_to_response(m: Message) -> MessageResponse:
    """Convert a state Message to the participant view."""
    return MessageResponse(
        id=m.message_id,
        sender_id=m.sender_id,
        recipient_id=m.recipient_id,
        content=m.content,
        status=m.status.value,
        single_use=m.single_use,
        link_used=m.link_used,
        link_expires_at=iso(m.link_expires_at),
        created_at=m.created_at.isoformat(),
        updated_at=m.updated_at.isoformat(),
    )


def resolved_to_response(resolved: ResolvedMessage) -> LinkMessageResponse:
    """Convert a resolved message to the link/session viewer's view."""
    m = resolved.message
    return LinkMessageResponse(
        id=m.message_id,
        content=m.content,
        status=m.status.value,
        single_use=m.single_use,
        link_expires_at=iso(m.link_expires_at),
        created_at=m.created_at.isoformat(),
        sender=SenderInfo(user_id=resolved.sender.user_id, name=resolved.sender.name),
    )


def schedule_push(
    background: BackgroundTasks, request: Request, event: str, message: Message, *args: str,
) -> None:
    """Queue a push notification to run after the response is sent."""
    notifier: Optional[PushNotifier] = getattr(request.app.state, "push_notifier", None)
    if notifier is None:
        return
    background.add_task(deliver_push, notifier, event, message, *args)


async def deliver_push(notifier: PushNotifier, event: str, message: Message, *args: str) -> None:
    """Send one push notification, logging rather than raising on failure.

    Catch all exceptions: push runs after the response and has no caller
    to report to (e.g. httpx.ReadTimeout, PushDeliveryError).
    """
    try:
        if event == "created":
            result = await notifier.notify_new_message(message, *args)
        else:
            result = await notifier.notify_response(message)
        logger.info("Push %s: message=%s delivered=%d", event, message.message_id, result.delivered)
    except Exception as exc:
        logger.warning("Push %s failed for message %s: %s", event, message.message_id, exc)
