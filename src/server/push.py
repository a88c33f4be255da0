"""Push delivery to registered devices through the Expo push service."""
import logging
from dataclasses import dataclass

import httpx

from src.state.database import DatabaseManager
from src.state.models.message import Message
from src.state.models.push_token import PushToken
from src.state.preferences import load_preferences
from src.state.repositories.push_tokens import PushTokenRepository

logger = logging.getLogger(__name__)


class PushDeliveryError(Exception):
    """Error delivering to the push gateway."""


@dataclass(frozen=True)
class PushResult:
    """Outcome of a push fan-out to one user's devices."""

    delivered: int
    platforms: tuple[str, ...] = ()


class PushNotifier:
    """Sends one push notification per registered device of a user."""

    def __init__(
        self, db_manager: DatabaseManager, endpoint: str,
        access_token: str = "", timeout: float = 5.0,
    ) -> None:
        if not db_manager.is_initialized:
            raise PushDeliveryError("Database not initialized")
        if not endpoint:
            raise PushDeliveryError("Push endpoint required")
        self._db = db_manager
        self._endpoint = endpoint
        self._access_token = access_token
        self._timeout = timeout

    async def notify_new_message(self, message: Message, sender_name: str) -> PushResult:
        """Tell a direct-addressed recipient a consent request is waiting."""
        if message.recipient_id is None:
            return PushResult(delivered=0)
        return await self._send(
            message.recipient_id,
            title="New consent request",
            body=f"{sender_name} sent you a consent request",
            data={"messageId": message.message_id, "event": "message_created"},
        )

    async def notify_response(self, message: Message) -> PushResult:
        """Tell the sender their message was answered."""
        return await self._send(
            message.sender_id,
            title=f"Consent request {message.status.value}",
            body=f"Your consent request was {message.status.value}",
            data={"messageId": message.message_id, "event": "message_answered"},
        )

    async def _send(self, user_id: str, title: str, body: str, data: dict) -> PushResult:
        async with self._db.connection() as conn:
            if not (await load_preferences(conn, user_id)).push_notifications_enabled:
                logger.info("Push notifications disabled by user %s", user_id)
                return PushResult(delivered=0)
            tokens = await PushTokenRepository(conn).list_for_user(user_id)
        if not tokens:
            logger.info("No push tokens registered for user %s", user_id)
            return PushResult(delivered=0)
        payload = [_ticket(t, title, body, data) for t in tokens]
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(self._endpoint, json=payload, headers=self._headers())
            if response.status_code >= 400:
                raise PushDeliveryError(f"Push gateway returned {response.status_code}: {response.text}")
        platforms = tuple(sorted({t.platform.value for t in tokens}))
        logger.info("Push sent to %d device(s) of user %s", len(tokens), user_id)
        return PushResult(delivered=len(tokens), platforms=platforms)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers


def _ticket(token: PushToken, title: str, body: str, data: dict) -> dict:
    return {"to": token.token, "title": title, "body": body, "data": data, "sound": "default"}
